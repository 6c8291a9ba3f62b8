"""
Report configuration loading.

Reads the customer's discount policy, exchange rate and cost centers from
a YAML file with strict validation.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from billing_cost_engine.core.exchange import ExchangeRate
from billing_cost_engine.sources.models import CostCenter, DiscountPolicy

SUPPORTED_CURRENCIES = ("EUR", "USD")


@dataclass(frozen=True)
class DisplayConfig:
    """Presentation settings; never used inside calculations."""
    ratio_decimals: int = 4
    currency: str = "EUR"

    def __post_init__(self):
        """Validate display settings."""
        if self.ratio_decimals < 0 or self.ratio_decimals > 10:
            raise ValueError("ratio_decimals must be between 0 and 10")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"currency must be one of: {list(SUPPORTED_CURRENCIES)}")


@dataclass(frozen=True)
class ReportConfig:
    """Complete report configuration for one customer."""
    customer_name: str
    policy: DiscountPolicy
    exchange_rate: ExchangeRate
    cost_centers: Tuple[CostCenter, ...] = ()
    display: DisplayConfig = field(default_factory=DisplayConfig)

    def get_cost_center(self, cost_center_id: str) -> CostCenter:
        """Look up a configured cost center.

        Raises:
            KeyError: If no cost center has that id
        """
        for center in self.cost_centers:
            if center.id == cost_center_id:
                return center
        raise KeyError(f"Unknown cost center: {cost_center_id}")


def load_yaml_mapping(path: str, kind: str) -> Dict[str, Any]:
    """Read a YAML file whose top level must be a non-empty mapping.

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the YAML is invalid
        ValueError: If the file is empty or not a mapping
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"{kind} file not found: {path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in {kind} file {path}: {e}")

    if not raw:
        raise ValueError(f"{kind} file is empty")
    if not isinstance(raw, dict):
        raise ValueError(f"{kind} file must contain a mapping at the top level")
    return raw


def check_keys(data: Dict, allowed: set, path: str) -> None:
    """Reject keys outside ``allowed``."""
    unknown_keys = set(data.keys()) - allowed
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")


def load_report_config(path: str) -> ReportConfig:
    """Load and validate report configuration from a YAML file.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated ReportConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        InvalidDiscountRange: If the discount is outside [0, 100]
        ValueError: If configuration is otherwise invalid
    """
    raw_config = load_yaml_mapping(path, "Report config")
    check_keys(raw_config, {'customer', 'discount', 'exchange_rate', 'cost_centers', 'display'}, "config")

    for section in ('customer', 'discount', 'exchange_rate'):
        if section not in raw_config:
            raise ValueError(f"Missing required '{section}' section")
        if not isinstance(raw_config[section], dict):
            raise ValueError(f"'{section}' must be a dictionary")

    customer_data = raw_config['customer']
    check_keys(customer_data, {'name'}, "customer")
    customer_name = customer_data.get('name')
    if not isinstance(customer_name, str) or not customer_name.strip():
        raise ValueError("'customer.name' is required and cannot be empty")

    policy = _parse_discount(raw_config['discount'])

    rate_data = raw_config['exchange_rate']
    check_keys(rate_data, {'rate'}, "exchange_rate")
    if 'rate' not in rate_data:
        raise ValueError("Missing required 'rate' in exchange_rate")
    exchange_rate = ExchangeRate(rate_data['rate'])

    centers_data = raw_config.get('cost_centers') or []
    if not isinstance(centers_data, list):
        raise ValueError("'cost_centers' must be a list")
    cost_centers = _parse_cost_centers(centers_data)

    display_data = raw_config.get('display') or {}
    if not isinstance(display_data, dict):
        raise ValueError("'display' must be a dictionary")
    check_keys(display_data, {'ratio_decimals', 'currency'}, "display")
    ratio_decimals = display_data.get('ratio_decimals', 4)
    if isinstance(ratio_decimals, bool) or not isinstance(ratio_decimals, int):
        raise ValueError("'display.ratio_decimals' must be an integer")
    display = DisplayConfig(
        ratio_decimals=ratio_decimals,
        currency=str(display_data.get('currency', 'EUR')).upper(),
    )

    return ReportConfig(
        customer_name=customer_name.strip(),
        policy=policy,
        exchange_rate=exchange_rate,
        cost_centers=cost_centers,
        display=display,
    )


def _parse_discount(data: Dict) -> DiscountPolicy:
    """Parse the customer discount policy."""
    check_keys(data, {'customer_discount_percent', 'rebate_credits_enabled'}, "discount")

    if 'customer_discount_percent' not in data:
        raise ValueError("Missing required 'customer_discount_percent' in discount")

    rebate = data.get('rebate_credits_enabled', False)
    if not isinstance(rebate, bool):
        raise ValueError("'rebate_credits_enabled' in discount must be true or false")

    return DiscountPolicy(
        customer_discount_percent=data['customer_discount_percent'],
        rebate_credits_enabled=rebate,
    )


def _parse_cost_centers(items: List[Any]) -> Tuple[CostCenter, ...]:
    """Parse cost centers, keeping their configured order.

    Center ids must be unique and an account may be linked to one center only.
    """
    centers = []
    seen_ids = set()
    owner_by_account: Dict[str, str] = {}

    for index, item in enumerate(items):
        path = f"cost_centers[{index}]"
        if not isinstance(item, dict):
            raise ValueError(f"{path} must be a dictionary")
        check_keys(item, {'id', 'name', 'linked_usage_account_ids'}, path)

        if item.get('id') is None:
            raise ValueError(f"Missing required 'id' in {path}")
        center_id = str(item['id'])
        if center_id in seen_ids:
            raise ValueError(f"Duplicate cost center id: {center_id}")
        seen_ids.add(center_id)

        linked = item.get('linked_usage_account_ids') or []
        if not isinstance(linked, list):
            raise ValueError(f"'linked_usage_account_ids' in {path} must be a list")
        account_ids = [str(account_id) for account_id in linked]

        for account_id in account_ids:
            owner = owner_by_account.setdefault(account_id, center_id)
            if owner != center_id:
                raise ValueError(
                    f"Account {account_id} is linked to both cost centers {owner} and {center_id}"
                )

        centers.append(CostCenter(
            id=center_id,
            name=str(item.get('name') or center_id),
            linked_usage_account_ids=frozenset(account_ids),
        ))

    return tuple(centers)

"""
Data-source providers for account figures.

The calculator never fetches data itself; a provider supplies the figures
for a billing period and ``build_snapshot`` freezes them for one report.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from .models import AccountFigures, BillingSnapshot, Deposit
from billing_cost_engine.config.loader import ReportConfig, check_keys, load_yaml_mapping
from billing_cost_engine.utils.logging import get_logger

logger = get_logger(__name__)

ACCOUNT_KEYS = {
    'account_id', 'name', 'usage', 'fee', 'credit', 'tax', 'adjustment',
    'payer_account_id', 'cost_center_id', 'source',
}
DEPOSIT_KEYS = {'amount', 'cost_center_id', 'period', 'description', 'po_number'}


class AccountFiguresProvider(Protocol):
    """Anything that can supply account figures and deposits for a period."""

    def get_account_figures(self, period: Optional[str] = None) -> List[AccountFigures]:
        ...

    def get_deposits(self, period: Optional[str] = None) -> List[Deposit]:
        ...


class StaticFiguresProvider:
    """Provider backed by in-memory records, e.g. already fetched from an API.

    The records belong to a single billing period and are returned as given,
    accounts and deposits alike. When ``period`` is set, asking for any other
    period is an error; without it the records answer for every period.
    """

    def __init__(
        self,
        accounts: Sequence[AccountFigures] = (),
        deposits: Sequence[Deposit] = (),
        period: Optional[str] = None,
    ):
        self._accounts = list(accounts)
        self._deposits = list(deposits)
        self.period = period

    def _check_period(self, period: Optional[str]) -> None:
        if period is not None and self.period is not None and period != self.period:
            raise ValueError(f"Unknown period: {period}")

    def get_account_figures(self, period: Optional[str] = None) -> List[AccountFigures]:
        self._check_period(period)
        return list(self._accounts)

    def get_deposits(self, period: Optional[str] = None) -> List[Deposit]:
        self._check_period(period)
        return list(self._deposits)


class YamlFiguresProvider:
    """Provider reading figures from a YAML export.

    The file holds a ``periods`` mapping from period name to ``accounts`` and
    ``deposits`` lists. Without a period, the only period in the file is used.
    """

    def __init__(self, path: str):
        """Load and validate the data file.

        Args:
            path: Path to the YAML data file

        Raises:
            FileNotFoundError: If the file doesn't exist
            yaml.YAMLError: If the YAML is invalid
            ValueError: If records are malformed
        """
        self.path = path
        raw = load_yaml_mapping(path, "Account data")
        check_keys(raw, {'periods'}, "data")

        periods = raw.get('periods')
        if not isinstance(periods, dict) or not periods:
            raise ValueError("'periods' must be a non-empty dictionary")

        self._periods: Dict[str, Dict[str, list]] = {}
        for period_name, period_data in periods.items():
            period_name = str(period_name)
            path_prefix = f"periods.{period_name}"
            if not isinstance(period_data, dict):
                raise ValueError(f"{path_prefix} must be a dictionary")
            check_keys(period_data, {'accounts', 'deposits'}, path_prefix)
            self._periods[period_name] = {
                'accounts': [
                    _parse_account(item, f"{path_prefix}.accounts[{i}]")
                    for i, item in enumerate(_as_list(period_data.get('accounts'), f"{path_prefix}.accounts"))
                ],
                'deposits': [
                    _parse_deposit(item, period_name, f"{path_prefix}.deposits[{i}]")
                    for i, item in enumerate(_as_list(period_data.get('deposits'), f"{path_prefix}.deposits"))
                ],
            }

    @property
    def periods(self) -> List[str]:
        return list(self._periods)

    def _resolve(self, period: Optional[str]) -> Dict[str, list]:
        if period is None:
            if len(self._periods) != 1:
                raise ValueError(f"Data file has several periods; choose one of: {self.periods}")
            return next(iter(self._periods.values()))
        if period not in self._periods:
            raise ValueError(f"Unknown period: {period}")
        return self._periods[period]

    def get_account_figures(self, period: Optional[str] = None) -> List[AccountFigures]:
        return list(self._resolve(period)['accounts'])

    def get_deposits(self, period: Optional[str] = None) -> List[Deposit]:
        return list(self._resolve(period)['deposits'])


def build_snapshot(
    provider: AccountFiguresProvider,
    config: ReportConfig,
    period: Optional[str] = None,
) -> BillingSnapshot:
    """Read the provider once and freeze the result with the report config."""
    accounts = provider.get_account_figures(period)
    deposits = provider.get_deposits(period)

    logger.debug("snapshot_built", period=period, accounts=len(accounts), deposits=len(deposits))

    return BillingSnapshot(
        customer_name=config.customer_name,
        policy=config.policy,
        accounts=tuple(accounts),
        cost_centers=config.cost_centers,
        exchange_rate=config.exchange_rate,
        deposits=tuple(deposits),
        period=period,
    )


def _as_list(value: Any, path: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{path}' must be a list")
    return value


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _parse_account(data: Any, path: str) -> AccountFigures:
    """Parse one account record. Missing amounts default to zero."""
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a dictionary")
    check_keys(data, ACCOUNT_KEYS, path)
    if data.get('account_id') is None:
        raise ValueError(f"Missing required 'account_id' in {path}")

    return AccountFigures(
        account_id=str(data['account_id']),
        name=_optional_str(data.get('name')),
        usage=data.get('usage', 0),
        fee=data.get('fee', 0),
        credit=data.get('credit', 0),
        tax=data.get('tax', 0),
        adjustment=data.get('adjustment', 0),
        payer_account_id=_optional_str(data.get('payer_account_id')),
        cost_center_id=_optional_str(data.get('cost_center_id')),
        source=str(data.get('source', 'aws')).lower(),
    )


def _parse_deposit(data: Any, period: str, path: str) -> Deposit:
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a dictionary")
    check_keys(data, DEPOSIT_KEYS, path)
    if 'amount' not in data:
        raise ValueError(f"Missing required 'amount' in {path}")

    return Deposit(
        amount=data['amount'],
        cost_center_id=_optional_str(data.get('cost_center_id')),
        period=_optional_str(data.get('period', period)),
        description=str(data.get('description') or ''),
        po_number=str(data.get('po_number') or ''),
    )

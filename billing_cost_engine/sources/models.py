"""
Input records for cost computation.

These are already-fetched figures; nothing here talks to a remote service.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import FrozenSet, Optional, Tuple

from billing_cost_engine.core.account_cost import validate_discount_percent
from billing_cost_engine.core.exchange import ExchangeRate
from billing_cost_engine.core.money import ZERO, to_money

SOURCE_AWS = "aws"
SOURCE_MARKETPLACE = "marketplace"
SOURCES = (SOURCE_AWS, SOURCE_MARKETPLACE)


@dataclass(frozen=True)
class AccountFigures:
    """Raw per-period figures for one usage account, in USD.

    ``tax`` and ``adjustment`` are pass-through categories reported in the
    cost breakdown; they do not enter the per-account cost calculation.
    """
    account_id: str
    usage: Decimal
    fee: Decimal
    credit: Decimal
    tax: Decimal = ZERO
    adjustment: Decimal = ZERO
    name: Optional[str] = None
    payer_account_id: Optional[str] = None
    cost_center_id: Optional[str] = None
    source: str = SOURCE_AWS

    def __post_init__(self):
        """Normalize amounts to Decimal and validate identifiers."""
        if not self.account_id or not str(self.account_id).strip():
            raise ValueError("account_id is required and cannot be empty")
        for name in ("usage", "fee", "credit", "tax", "adjustment"):
            object.__setattr__(self, name, to_money(getattr(self, name), name))
        if self.source not in SOURCES:
            raise ValueError(f"source must be one of: {list(SOURCES)}")

    @property
    def display_name(self) -> str:
        return self.name or self.account_id


@dataclass(frozen=True)
class DiscountPolicy:
    """Customer-level pricing policy applied to every account of the customer."""
    customer_discount_percent: Decimal
    rebate_credits_enabled: bool = False

    def __post_init__(self):
        """Reject discounts outside [0, 100]."""
        object.__setattr__(
            self,
            "customer_discount_percent",
            validate_discount_percent(self.customer_discount_percent),
        )


@dataclass(frozen=True)
class CostCenter:
    """Customer-defined grouping of usage accounts."""
    id: str
    name: str
    linked_usage_account_ids: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if not self.id:
            raise ValueError("cost center id is required")
        object.__setattr__(self, "linked_usage_account_ids", frozenset(self.linked_usage_account_ids))


@dataclass(frozen=True)
class Deposit:
    """Funds deposited by the customer, optionally earmarked for a cost center."""
    amount: Decimal
    cost_center_id: Optional[str] = None
    period: Optional[str] = None
    description: str = ""
    po_number: str = ""

    def __post_init__(self):
        object.__setattr__(self, "amount", to_money(self.amount, "amount"))


@dataclass(frozen=True)
class BillingSnapshot:
    """Consistent set of inputs for one customer report."""
    customer_name: str
    policy: DiscountPolicy
    accounts: Tuple[AccountFigures, ...] = ()
    cost_centers: Tuple[CostCenter, ...] = ()
    exchange_rate: ExchangeRate = field(default_factory=lambda: ExchangeRate(Decimal("1")))
    deposits: Tuple[Deposit, ...] = ()
    period: Optional[str] = None

    def __post_init__(self):
        """Freeze collections so the snapshot cannot change under a report."""
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(self, "cost_centers", tuple(self.cost_centers))
        object.__setattr__(self, "deposits", tuple(self.deposits))

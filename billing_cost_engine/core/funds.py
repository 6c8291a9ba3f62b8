"""
Fund balance: customer deposits measured against billed cost.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .aggregation import CostCenterReport
from .money import HUNDRED, ZERO
from billing_cost_engine.sources.models import Deposit

# Utilization above this share of deposits is flagged as running low.
LOW_FUNDS_THRESHOLD = Decimal("80")


@dataclass(frozen=True)
class FundBalance:
    """Deposits, cost and what is left of the deposits."""
    total_deposit: Decimal
    total_cost: Decimal

    @property
    def available_fund(self) -> Decimal:
        return self.total_deposit - self.total_cost

    @property
    def utilization_percent(self) -> Decimal:
        """Share of deposits consumed, capped at 100; 0 without deposits."""
        if self.total_deposit <= ZERO:
            return ZERO
        return min(self.total_cost / self.total_deposit * HUNDRED, HUNDRED)

    @property
    def is_over_budget(self) -> bool:
        return self.total_cost > self.total_deposit

    @property
    def is_running_low(self) -> bool:
        return not self.is_over_budget and self.utilization_percent > LOW_FUNDS_THRESHOLD


@dataclass(frozen=True)
class CostCenterFundBalance:
    """Fund balance of a single cost center."""
    cost_center_id: str
    cost_center_name: str
    balance: FundBalance


def compute_fund_balance(deposits: Sequence[Deposit], total_cost: Decimal) -> FundBalance:
    """Compare all deposits against the customer's total cost."""
    return FundBalance(
        total_deposit=sum((deposit.amount for deposit in deposits), ZERO),
        total_cost=total_cost,
    )


def compute_cost_center_funds(
    deposits: Sequence[Deposit],
    centers: CostCenterReport,
) -> List[CostCenterFundBalance]:
    """Compute a fund balance per cost center, in cost-center order.

    Deposits without a cost center, or earmarked for an unknown one, count
    only towards the customer-level balance.
    """
    result = []
    for center in centers.balances:
        center_deposits = [d for d in deposits if d.cost_center_id == center.cost_center_id]
        result.append(CostCenterFundBalance(
            cost_center_id=center.cost_center_id,
            cost_center_name=center.cost_center_name,
            balance=compute_fund_balance(center_deposits, center.total_cost),
        ))
    return result


@dataclass(frozen=True)
class PeriodFunds:
    """Deposits and cost of one billing period."""
    period: str
    deposits: Decimal
    costs: Decimal


def deposits_vs_costs(
    deposits: Iterable[Deposit],
    costs_by_period: Iterable[Tuple[str, Decimal]],
    periods: Optional[Sequence[str]] = None,
) -> List[PeriodFunds]:
    """Group deposits and costs by billing period.

    Without ``periods`` the series covers every period seen, costs first and
    then deposits, in first-seen order. With ``periods`` the series is exactly
    those periods, in that order. A period with no data reports zero.
    Deposits not tagged with a period are left out.

    Args:
        deposits: Deposits to group by their ``period``
        costs_by_period: (period, cost) pairs; repeated periods are summed
        periods: Optional fixed list of periods to report

    Returns:
        One PeriodFunds per period
    """
    deposit_totals: Dict[str, Decimal] = {}
    cost_totals: Dict[str, Decimal] = {}
    seen: Dict[str, None] = {}

    for period, cost in costs_by_period:
        cost_totals[period] = cost_totals.get(period, ZERO) + cost
        seen.setdefault(period)

    for deposit in deposits:
        if deposit.period is None:
            continue
        deposit_totals[deposit.period] = deposit_totals.get(deposit.period, ZERO) + deposit.amount
        seen.setdefault(deposit.period)

    series = list(seen) if periods is None else list(periods)
    return [
        PeriodFunds(
            period=period,
            deposits=deposit_totals.get(period, ZERO),
            costs=cost_totals.get(period, ZERO),
        )
        for period in series
    ]

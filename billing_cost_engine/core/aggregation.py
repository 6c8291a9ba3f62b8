"""
Report aggregation over per-account cost results.

Runs the account cost calculator for every account and folds the results
into the report widgets: cost breakdown, cost by center, customer cost,
payer rollup and AWS/Marketplace split. Rows keep the order in which the
inputs were supplied.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .account_cost import AccountCostResult, compute_account_cost
from .money import HUNDRED, ZERO
from billing_cost_engine.sources.models import (
    SOURCE_AWS,
    SOURCE_MARKETPLACE,
    AccountFigures,
    CostCenter,
    DiscountPolicy,
)
from billing_cost_engine.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccountLine:
    """An account's raw figures paired with its computed costs."""
    figures: AccountFigures
    result: AccountCostResult


@dataclass(frozen=True)
class CostBreakdown:
    """Cost by category.

    ``discount`` is the negated sum of savings so that the six categories
    add up to the amount billed.
    """
    usage: Decimal
    tax: Decimal
    fee: Decimal
    discount: Decimal
    credits: Decimal
    adjustment: Decimal

    @property
    def total(self) -> Decimal:
        return self.usage + self.tax + self.fee + self.discount + self.credits + self.adjustment

    @property
    def pass_through(self) -> Decimal:
        """Categories not produced by the account cost calculator."""
        return self.tax + self.adjustment

    def rows(self) -> List[Tuple[str, Decimal]]:
        """Category rows in display order."""
        return [
            ("Usage", self.usage),
            ("Tax", self.tax),
            ("Fees", self.fee),
            ("Discount", self.discount),
            ("Credits", self.credits),
            ("Adjustment", self.adjustment),
        ]


@dataclass(frozen=True)
class CostCenterBalance:
    """Post-discount cost of the accounts linked to one cost center."""
    cost_center_id: str
    cost_center_name: str
    total_cost: Decimal
    account_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CostCenterReport:
    """Cost-by-center widget data."""
    balances: Tuple[CostCenterBalance, ...]
    unassigned_account_ids: Tuple[str, ...] = ()

    @property
    def total(self) -> Decimal:
        return sum((b.total_cost for b in self.balances), ZERO)


@dataclass(frozen=True)
class CustomerCostSummary:
    """Customer cost widget data: gross, discount and net."""
    gross_customer_cost: Decimal
    discount_applied: Decimal
    net_customer_cost: Decimal


@dataclass(frozen=True)
class PayerRollup:
    """Costs of all usage accounts billed under one payer account."""
    payer_account_id: Optional[str]
    total_cost: Decimal
    discounted_cost: Decimal
    savings: Decimal
    account_count: int


@dataclass(frozen=True)
class SourceSplit:
    """Share of post-discount cost coming from AWS versus Marketplace."""
    aws_total: Decimal
    marketplace_total: Decimal

    @property
    def grand_total(self) -> Decimal:
        return self.aws_total + self.marketplace_total

    @property
    def aws_percent(self) -> Decimal:
        if self.grand_total == ZERO:
            return ZERO
        return self.aws_total / self.grand_total * HUNDRED

    @property
    def marketplace_percent(self) -> Decimal:
        if self.grand_total == ZERO:
            return ZERO
        return self.marketplace_total / self.grand_total * HUNDRED


def compute_account_lines(
    accounts: Iterable[Tuple[AccountFigures, DiscountPolicy]],
) -> List[AccountLine]:
    """Run the account cost calculator for each (figures, policy) pair."""
    lines = []
    for figures, policy in accounts:
        result = compute_account_cost(
            usage=figures.usage,
            fee=figures.fee,
            credit=figures.credit,
            customer_discount_percent=policy.customer_discount_percent,
            rebate_credits_enabled=policy.rebate_credits_enabled,
        )
        lines.append(AccountLine(figures=figures, result=result))
    return lines


def build_cost_breakdown(lines: Sequence[AccountLine]) -> CostBreakdown:
    """Sum every cost category across accounts.

    ``total`` equals the sum of discounted costs plus the pass-through
    tax and adjustment amounts.
    """
    return CostBreakdown(
        usage=sum((line.figures.usage for line in lines), ZERO),
        tax=sum((line.figures.tax for line in lines), ZERO),
        fee=sum((line.figures.fee for line in lines), ZERO),
        discount=-sum((line.result.savings for line in lines), ZERO),
        credits=sum((line.result.credit_applied for line in lines), ZERO),
        adjustment=sum((line.figures.adjustment for line in lines), ZERO),
    )


def _assign_cost_centers(
    lines: Sequence[AccountLine],
    cost_centers: Sequence[CostCenter],
) -> Tuple[Dict[str, List[AccountLine]], List[str]]:
    """Map each account to at most one cost center.

    Membership comes from the centers' linked account ids. An account that no
    center links falls back to its own ``cost_center_id``; a reference to an
    unknown center leaves the account unassigned.
    """
    known_ids = {center.id for center in cost_centers}
    members: Dict[str, List[AccountLine]] = {center.id: [] for center in cost_centers}
    unassigned: List[str] = []

    for line in lines:
        account_id = line.figures.account_id
        linked = [center.id for center in cost_centers if account_id in center.linked_usage_account_ids]

        if len(linked) > 1:
            logger.warning(
                "account_linked_to_multiple_centers",
                account_id=account_id,
                cost_center_ids=linked,
                used=linked[0],
            )

        if linked:
            members[linked[0]].append(line)
            continue

        reference = line.figures.cost_center_id
        if reference is None:
            logger.debug("account_without_cost_center", account_id=account_id)
            unassigned.append(account_id)
        elif reference not in known_ids:
            logger.warning(
                "cost_center_reference_missing",
                account_id=account_id,
                cost_center_id=reference,
            )
            unassigned.append(account_id)
        else:
            members[reference].append(line)

    return members, unassigned


def group_by_cost_center(
    lines: Sequence[AccountLine],
    cost_centers: Sequence[CostCenter],
) -> CostCenterReport:
    """Sum post-discount cost per cost center.

    Every configured center is listed, in configuration order, even when no
    account is linked to it.

    Raises:
        ValueError: If two cost centers share an id
    """
    seen_ids = set()
    for center in cost_centers:
        if center.id in seen_ids:
            raise ValueError(f"Duplicate cost center id: {center.id}")
        seen_ids.add(center.id)

    members, unassigned = _assign_cost_centers(lines, cost_centers)

    balances = []
    for center in cost_centers:
        center_lines = members[center.id]
        balances.append(CostCenterBalance(
            cost_center_id=center.id,
            cost_center_name=center.name,
            total_cost=sum((line.result.discounted_cost for line in center_lines), ZERO),
            account_ids=tuple(line.figures.account_id for line in center_lines),
        ))

    return CostCenterReport(
        balances=tuple(balances),
        unassigned_account_ids=tuple(unassigned),
    )


def summarize_customer(lines: Sequence[AccountLine]) -> CustomerCostSummary:
    """Aggregate gross, discount and net cost over all of a customer's accounts."""
    return CustomerCostSummary(
        gross_customer_cost=sum((line.result.total_cost for line in lines), ZERO),
        discount_applied=sum((line.result.savings for line in lines), ZERO),
        net_customer_cost=sum((line.result.discounted_cost for line in lines), ZERO),
    )


def rollup_by_payer(lines: Sequence[AccountLine]) -> List[PayerRollup]:
    """Group account costs by payer account, in first-seen order."""
    groups: Dict[Optional[str], List[AccountLine]] = {}
    for line in lines:
        groups.setdefault(line.figures.payer_account_id, []).append(line)

    return [
        PayerRollup(
            payer_account_id=payer_id,
            total_cost=sum((line.result.total_cost for line in payer_lines), ZERO),
            discounted_cost=sum((line.result.discounted_cost for line in payer_lines), ZERO),
            savings=sum((line.result.savings for line in payer_lines), ZERO),
            account_count=len(payer_lines),
        )
        for payer_id, payer_lines in groups.items()
    ]


def split_by_source(lines: Sequence[AccountLine]) -> SourceSplit:
    """Split post-discount cost between AWS and Marketplace accounts."""
    return SourceSplit(
        aws_total=sum(
            (line.result.discounted_cost for line in lines if line.figures.source == SOURCE_AWS),
            ZERO,
        ),
        marketplace_total=sum(
            (line.result.discounted_cost for line in lines if line.figures.source == SOURCE_MARKETPLACE),
            ZERO,
        ),
    )

"""
Customer report assembly.

Composes the account cost calculator, the aggregators, currency conversion
and fund balances into the full report for one billing snapshot.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .aggregation import (
    AccountLine,
    CostBreakdown,
    CostCenterReport,
    CustomerCostSummary,
    PayerRollup,
    SourceSplit,
    build_cost_breakdown,
    compute_account_lines,
    group_by_cost_center,
    rollup_by_payer,
    split_by_source,
    summarize_customer,
)
from .exchange import ExchangeRateSummary, summarize_exchange
from .funds import (
    CostCenterFundBalance,
    FundBalance,
    PeriodFunds,
    compute_cost_center_funds,
    compute_fund_balance,
    deposits_vs_costs,
)
from billing_cost_engine.config.loader import ReportConfig
from billing_cost_engine.sources.models import BillingSnapshot
from billing_cost_engine.sources.provider import AccountFiguresProvider, build_snapshot
from billing_cost_engine.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CustomerReport:
    """Everything shown on a customer's billing report."""
    customer_name: str
    period: Optional[str]
    account_lines: Tuple[AccountLine, ...]
    breakdown: CostBreakdown
    cost_centers: CostCenterReport
    customer_cost: CustomerCostSummary
    payers: Tuple[PayerRollup, ...]
    source_split: SourceSplit
    exchange: ExchangeRateSummary
    fund_balance: FundBalance
    cost_center_funds: Tuple[CostCenterFundBalance, ...]


def build_customer_report(snapshot: BillingSnapshot, ratio_decimals: int = 4) -> CustomerReport:
    """Build the complete report from one consistent snapshot.

    Amounts are USD at full precision; the exchange summary converts the
    customer's net cost to EUR. An empty snapshot yields all-zero figures.

    Args:
        snapshot: Accounts, policy, cost centers, deposits and exchange rate
        ratio_decimals: Decimals for the displayed exchange ratio

    Returns:
        CustomerReport
    """
    lines: List[AccountLine] = compute_account_lines(
        (figures, snapshot.policy) for figures in snapshot.accounts
    )

    customer_cost = summarize_customer(lines)
    centers = group_by_cost_center(lines, snapshot.cost_centers)

    report = CustomerReport(
        customer_name=snapshot.customer_name,
        period=snapshot.period,
        account_lines=tuple(lines),
        breakdown=build_cost_breakdown(lines),
        cost_centers=centers,
        customer_cost=customer_cost,
        payers=tuple(rollup_by_payer(lines)),
        source_split=split_by_source(lines),
        exchange=summarize_exchange(
            customer_cost.net_customer_cost,
            snapshot.exchange_rate,
            ratio_decimals=ratio_decimals,
        ),
        fund_balance=compute_fund_balance(snapshot.deposits, customer_cost.net_customer_cost),
        cost_center_funds=tuple(compute_cost_center_funds(snapshot.deposits, centers)),
    )

    logger.info(
        "report_built",
        customer=snapshot.customer_name,
        period=snapshot.period,
        accounts=len(lines),
        cost_centers=len(centers.balances),
        unassigned_accounts=len(centers.unassigned_account_ids),
        net_customer_cost=str(customer_cost.net_customer_cost),
    )
    return report


def build_deposits_vs_costs(
    provider: AccountFiguresProvider,
    config: ReportConfig,
    periods: Sequence[str],
) -> List[PeriodFunds]:
    """Build the deposits-versus-costs series over several billing periods.

    Each period is read as its own snapshot; its cost is the customer's net
    cost for that period. Deposits without a period count towards the period
    they were read for.

    Args:
        provider: Source of account figures and deposits
        config: Report configuration supplying the discount policy
        periods: Periods to report, in display order

    Returns:
        One PeriodFunds per period, zero where a period has no data
    """
    costs = []
    deposits = []
    for period in periods:
        snapshot = build_snapshot(provider, config, period)
        lines = compute_account_lines((figures, snapshot.policy) for figures in snapshot.accounts)
        costs.append((period, summarize_customer(lines).net_customer_cost))
        deposits.extend(
            deposit if deposit.period is not None else replace(deposit, period=period)
            for deposit in snapshot.deposits
        )

    series = deposits_vs_costs(deposits, costs, periods=periods)
    logger.info("deposits_vs_costs_built", customer=config.customer_name, periods=len(series))
    return series

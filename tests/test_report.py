"""
Tests for full customer report assembly.
"""

from decimal import Decimal

import pytest

from billing_cost_engine.config.loader import ReportConfig
from billing_cost_engine.core.exchange import ExchangeRate
from billing_cost_engine.core.report import build_customer_report, build_deposits_vs_costs
from billing_cost_engine.sources.models import (
    AccountFigures,
    BillingSnapshot,
    CostCenter,
    Deposit,
    DiscountPolicy,
)


@pytest.fixture
def snapshot():
    return BillingSnapshot(
        customer_name="Acme",
        policy=DiscountPolicy(customer_discount_percent=10, rebate_credits_enabled=True),
        accounts=[
            AccountFigures(account_id="a1", usage=10000, fee=100, credit=500, payer_account_id="p1"),
            AccountFigures(account_id="a2", usage=1000, fee=0, credit=0, payer_account_id="p1",
                           source="marketplace"),
            AccountFigures(account_id="a3", usage=100, fee=0, credit=0),
        ],
        cost_centers=[
            CostCenter(id="eng", name="Engineering", linked_usage_account_ids={"a1"}),
            CostCenter(id="ops", name="Operations", linked_usage_account_ids={"a2"}),
            CostCenter(id="empty", name="Empty"),
        ],
        exchange_rate=ExchangeRate(0.92),
        deposits=[Deposit(amount=12000, cost_center_id="eng"), Deposit(amount=500)],
        period="2024-05",
    )


class TestBuildCustomerReport:
    """Test the composed report."""

    def test_customer_cost(self, snapshot):
        """Verify customer totals across all accounts."""
        report = build_customer_report(snapshot)
        # a1: 10600 -> 9540, a2: 1000 -> 900, a3: 100 -> 90
        assert report.customer_cost.gross_customer_cost == Decimal("11700")
        assert report.customer_cost.discount_applied == Decimal("1170")
        assert report.customer_cost.net_customer_cost == Decimal("10530")

    def test_breakdown_cross_check(self, snapshot):
        """Verify the breakdown total equals the customer's net cost."""
        report = build_customer_report(snapshot)
        assert report.breakdown.total == report.customer_cost.net_customer_cost

    def test_cost_centers(self, snapshot):
        """Verify center balances and the unassigned account."""
        report = build_customer_report(snapshot)
        totals = [(b.cost_center_id, b.total_cost) for b in report.cost_centers.balances]
        assert totals == [("eng", Decimal("9540")), ("ops", Decimal("900")), ("empty", Decimal("0"))]
        assert report.cost_centers.unassigned_account_ids == ("a3",)
        assert report.cost_centers.total <= report.customer_cost.net_customer_cost

    def test_exchange_uses_net_cost(self, snapshot):
        """Verify the USD total is the customer's net cost."""
        report = build_customer_report(snapshot)
        assert report.exchange.total_usd == Decimal("10530")
        assert report.exchange.total_eur == Decimal("9687.60")
        assert report.exchange.display_ratio == "1 USD = 1.0870 EUR"

    def test_payers_and_sources(self, snapshot):
        """Verify payer rollup and source split are included."""
        report = build_customer_report(snapshot)
        assert [p.payer_account_id for p in report.payers] == ["p1", None]
        assert report.source_split.marketplace_total == Decimal("900")

    def test_fund_balances(self, snapshot):
        """Verify customer and center fund balances."""
        report = build_customer_report(snapshot)
        assert report.fund_balance.total_deposit == Decimal("12500")
        assert report.fund_balance.available_fund == Decimal("1970")
        eng = report.cost_center_funds[0]
        assert eng.balance.total_deposit == Decimal("12000")
        assert eng.balance.available_fund == Decimal("2460")
        assert len(report.cost_center_funds) == 3

    def test_empty_snapshot(self):
        """Verify an empty account list yields zeros and keeps every center."""
        snapshot = BillingSnapshot(
            customer_name="Empty Co",
            policy=DiscountPolicy(customer_discount_percent=5),
            cost_centers=[CostCenter(id="a", name="A"), CostCenter(id="b", name="B")],
        )
        report = build_customer_report(snapshot)

        assert report.breakdown.total == 0
        assert report.customer_cost.net_customer_cost == 0
        assert report.exchange.total_eur == 0
        assert report.payers == ()
        assert [(b.cost_center_id, b.total_cost) for b in report.cost_centers.balances] == [
            ("a", 0),
            ("b", 0),
        ]

    def test_zero_rate_report_still_built(self, snapshot):
        """Verify a zero rate does not stop the report."""
        zero_rate = BillingSnapshot(
            customer_name=snapshot.customer_name,
            policy=snapshot.policy,
            accounts=snapshot.accounts,
            cost_centers=snapshot.cost_centers,
            exchange_rate=ExchangeRate(0),
        )
        report = build_customer_report(zero_rate)
        assert report.exchange.display_ratio == "N/A"
        assert report.exchange.total_eur == 0
        assert report.customer_cost.net_customer_cost == Decimal("10530")

    def test_report_is_reproducible(self, snapshot):
        """Verify the same snapshot always yields the same report."""
        assert build_customer_report(snapshot) == build_customer_report(snapshot)


class _PeriodProvider:
    """In-memory provider keyed by period."""

    def __init__(self, accounts_by_period, deposits_by_period):
        self.accounts_by_period = accounts_by_period
        self.deposits_by_period = deposits_by_period

    def get_account_figures(self, period=None):
        return list(self.accounts_by_period.get(period, []))

    def get_deposits(self, period=None):
        return list(self.deposits_by_period.get(period, []))


class TestBuildDepositsVsCosts:
    """Test the deposits-versus-costs series over several periods."""

    @pytest.fixture
    def config(self):
        return ReportConfig(
            customer_name="Acme",
            policy=DiscountPolicy(customer_discount_percent=10),
            exchange_rate=ExchangeRate(0.92),
        )

    def test_net_cost_and_deposits_per_period(self, config):
        """Verify each period pairs its own deposits with its own net cost."""
        provider = _PeriodProvider(
            accounts_by_period={
                "2024-04": [AccountFigures(account_id="a1", usage=1000, fee=0, credit=0)],
                "2024-05": [AccountFigures(account_id="a1", usage=2000, fee=0, credit=0)],
            },
            deposits_by_period={
                "2024-05": [Deposit(amount=5000), Deposit(amount=250, period="2024-05")],
            },
        )

        series = build_deposits_vs_costs(provider, config, ["2024-04", "2024-05", "2024-06"])

        assert [row.period for row in series] == ["2024-04", "2024-05", "2024-06"]
        assert series[0].costs == Decimal("900")
        assert series[0].deposits == 0
        assert series[1].costs == Decimal("1800")
        assert series[1].deposits == Decimal("5250")
        assert series[2].costs == 0
        assert series[2].deposits == 0

    def test_no_periods(self, config):
        assert build_deposits_vs_costs(_PeriodProvider({}, {}), config, []) == []

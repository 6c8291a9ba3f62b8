"""
Tests for fund balance computation.
"""

from decimal import Decimal

from billing_cost_engine.core.aggregation import CostCenterBalance, CostCenterReport
from billing_cost_engine.core.funds import (
    FundBalance,
    PeriodFunds,
    compute_cost_center_funds,
    compute_fund_balance,
    deposits_vs_costs,
)
from billing_cost_engine.sources.models import Deposit


class TestFundBalance:
    """Test deposit versus cost figures."""

    def test_available_and_utilization(self):
        """Verify remaining funds and share used."""
        balance = FundBalance(total_deposit=Decimal("1000"), total_cost=Decimal("250"))
        assert balance.available_fund == Decimal("750")
        assert balance.utilization_percent == Decimal("25")
        assert not balance.is_over_budget
        assert not balance.is_running_low

    def test_over_budget_caps_utilization(self):
        """Verify utilization never exceeds 100 percent."""
        balance = FundBalance(total_deposit=Decimal("100"), total_cost=Decimal("150"))
        assert balance.available_fund == Decimal("-50")
        assert balance.utilization_percent == Decimal("100")
        assert balance.is_over_budget

    def test_running_low_above_threshold(self):
        """Verify usage above 80 percent is flagged."""
        balance = FundBalance(total_deposit=Decimal("100"), total_cost=Decimal("85"))
        assert balance.is_running_low

    def test_no_deposits(self):
        """Verify zero deposits give zero utilization."""
        balance = FundBalance(total_deposit=Decimal("0"), total_cost=Decimal("40"))
        assert balance.utilization_percent == 0
        assert balance.is_over_budget

    def test_compute_from_deposits(self):
        """Verify deposits are summed."""
        deposits = [Deposit(amount=500), Deposit(amount="250.50", cost_center_id="cc1")]
        balance = compute_fund_balance(deposits, Decimal("100"))
        assert balance.total_deposit == Decimal("750.50")


class TestCostCenterFunds:
    """Test per-center fund balances."""

    def test_deposits_matched_to_centers(self):
        """Verify each center only sees its own deposits."""
        centers = CostCenterReport(balances=(
            CostCenterBalance(cost_center_id="cc1", cost_center_name="One", total_cost=Decimal("90")),
            CostCenterBalance(cost_center_id="cc2", cost_center_name="Two", total_cost=Decimal("0")),
        ))
        deposits = [
            Deposit(amount=100, cost_center_id="cc1"),
            Deposit(amount=40, cost_center_id="cc1"),
            Deposit(amount=999),
            Deposit(amount=5, cost_center_id="unknown"),
        ]

        funds = compute_cost_center_funds(deposits, centers)

        assert [f.cost_center_id for f in funds] == ["cc1", "cc2"]
        assert funds[0].balance.total_deposit == Decimal("140")
        assert funds[0].balance.available_fund == Decimal("50")
        assert funds[1].balance.total_deposit == 0
        assert funds[1].balance.available_fund == 0


class TestDepositsVsCosts:
    """Test the per-period deposits and costs series."""

    def test_groups_by_period_in_first_seen_order(self):
        """Verify costs and deposits are summed per period."""
        deposits = [
            Deposit(amount=100, period="2024-03"),
            Deposit(amount=50, period="2024-05"),
            Deposit(amount=25, period="2024-05"),
        ]
        costs = [("2024-05", Decimal("60")), ("2024-04", Decimal("40")), ("2024-05", Decimal("15"))]

        series = deposits_vs_costs(deposits, costs)

        assert [row.period for row in series] == ["2024-05", "2024-04", "2024-03"]
        assert series[0] == PeriodFunds(period="2024-05", deposits=Decimal("75"), costs=Decimal("75"))
        assert series[1].deposits == 0
        assert series[1].costs == Decimal("40")
        assert series[2].deposits == Decimal("100")
        assert series[2].costs == 0

    def test_fixed_periods_fill_gaps_with_zero(self):
        """Verify requested periods without data report zero and others are dropped."""
        deposits = [Deposit(amount=10, period="2024-01"), Deposit(amount=20, period="2023-12")]
        costs = [("2024-02", Decimal("5"))]

        series = deposits_vs_costs(deposits, costs, periods=["2024-01", "2024-02", "2024-03"])

        assert [(row.period, row.deposits, row.costs) for row in series] == [
            ("2024-01", Decimal("10"), 0),
            ("2024-02", 0, Decimal("5")),
            ("2024-03", 0, 0),
        ]

    def test_deposits_without_period_skipped(self):
        series = deposits_vs_costs([Deposit(amount=99)], [])
        assert series == []

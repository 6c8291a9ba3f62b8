"""
Unit tests for money conversion and display formatting.
"""

from decimal import Decimal

import pytest

from billing_cost_engine.core.money import (
    format_currency,
    format_currency_usd,
    format_ratio,
    quantize_money,
    to_money,
)


class TestToMoney:
    """Test numeric conversion."""

    def test_decimal_passthrough(self):
        value = Decimal("12.345")
        assert to_money(value) is value

    def test_float_uses_written_value(self):
        """Verify floats are not converted through their binary form."""
        assert to_money(0.92) == Decimal("0.92")

    def test_numeric_string(self):
        assert to_money(" 10.50 ") == Decimal("10.50")

    def test_bool_rejected(self):
        """Verify booleans are not silently read as 0/1."""
        with pytest.raises(ValueError, match="got bool"):
            to_money(True, "fee")

    def test_garbage_rejected(self):
        with pytest.raises(ValueError, match="fee must be a number"):
            to_money("abc", "fee")

    def test_none_rejected(self):
        with pytest.raises(ValueError, match="must be a number"):
            to_money(None)

    def test_infinity_rejected(self):
        with pytest.raises(ValueError, match="must be finite"):
            to_money(float("inf"))


class TestFormatting:
    """Test presentation rounding and formatting."""

    def test_quantize_half_up(self):
        assert quantize_money(Decimal("2.345")) == Decimal("2.35")

    def test_ratio_four_decimals(self):
        """Verify the ratio is rounded for display only."""
        assert format_ratio(Decimal(1) / Decimal("0.92")) == "1.0870"

    def test_ratio_custom_decimals(self):
        assert format_ratio(Decimal("33.33333"), 1) == "33.3"

    def test_euro_format(self):
        """Verify European separators."""
        assert format_currency(Decimal("1234.56")) == "1.234,56 €"

    def test_euro_negative(self):
        assert format_currency(Decimal("-1295")) == "-1.295,00 €"

    def test_usd_format(self):
        assert format_currency_usd(Decimal("1234567.891")) == "$1,234,567.89"

    def test_usd_negative(self):
        assert format_currency_usd(Decimal("-5")) == "-$5.00"

    def test_negative_zero_formats_as_zero(self):
        assert format_currency_usd(-Decimal("0")) == "$0.00"

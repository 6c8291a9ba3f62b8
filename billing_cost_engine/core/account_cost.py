"""
Per-account cost calculation.

Derives total cost, customer-facing discounted cost and savings from an
account's usage, fee and credit, honoring the customer's rebate toggle.
"""

from dataclasses import dataclass
from decimal import Decimal

from .money import HUNDRED, ZERO, Money, to_money


class InvalidDiscountRange(ValueError):
    """Raised when a customer discount percentage falls outside [0, 100]."""
    def __init__(self, value: Decimal):
        super().__init__(f"customer discount percent must be between 0 and 100, got {value}")
        self.value = value


@dataclass(frozen=True)
class AccountCostResult:
    """Derived cost figures for one account.

    Invariants:
        total_cost = usage + fee + credit_applied
        discounted_cost = total_cost - total_cost * discount / 100
        savings = total_cost - discounted_cost
        credit_ignored = credit - credit_applied
    """
    total_cost: Decimal
    discounted_cost: Decimal
    savings: Decimal
    credit_applied: Decimal
    credit_ignored: Decimal


def validate_discount_percent(value: Money) -> Decimal:
    """Validate a customer discount percentage before it reaches the calculator.

    Args:
        value: Discount percentage

    Returns:
        The percentage as Decimal

    Raises:
        InvalidDiscountRange: If the value is below 0 or above 100
        ValueError: If the value is not a finite number
    """
    percent = to_money(value, "customer_discount_percent")
    if percent < ZERO or percent > HUNDRED:
        raise InvalidDiscountRange(percent)
    return percent


def compute_account_cost(
    usage: Money,
    fee: Money,
    credit: Money,
    customer_discount_percent: Money,
    rebate_credits_enabled: bool,
) -> AccountCostResult:
    """Compute an account's total and discounted cost.

    Pure arithmetic: no clamping, no rounding beyond Decimal precision, and
    no range checks on the discount (see ``validate_discount_percent``).
    Negative fees or credits are accepted as corrections.

    Args:
        usage: Metered usage cost
        fee: Fees added to usage
        credit: Credit amount, applied only when rebates are enabled
        customer_discount_percent: Customer discount (0-100)
        rebate_credits_enabled: Whether the customer's credits count

    Returns:
        AccountCostResult with all five derived fields
    """
    usage = to_money(usage, "usage")
    fee = to_money(fee, "fee")
    credit = to_money(credit, "credit")
    percent = to_money(customer_discount_percent, "customer_discount_percent")

    credit_applied = credit if rebate_credits_enabled else ZERO
    total_cost = usage + fee + credit_applied
    discounted_cost = total_cost - total_cost * percent / HUNDRED
    savings = total_cost - discounted_cost

    return AccountCostResult(
        total_cost=total_cost,
        discounted_cost=discounted_cost,
        savings=savings,
        credit_applied=credit_applied,
        credit_ignored=credit - credit_applied,
    )

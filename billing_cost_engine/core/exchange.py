"""
Currency conversion between USD account figures and EUR reporting.

The configured rate is read as EUR per USD: ``total_eur = total_usd * rate``.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .money import ZERO, Money, format_ratio, to_money
from billing_cost_engine.utils.logging import get_logger

logger = get_logger(__name__)

RATE_UNAVAILABLE = "N/A"


class DivisionByZeroRate(ZeroDivisionError):
    """Raised when the inverse of a zero exchange rate is requested."""


@dataclass(frozen=True)
class ExchangeRate:
    """Admin-configured EUR-per-USD multiplier."""
    rate: Decimal

    def __post_init__(self):
        """Normalize and validate the rate."""
        rate = to_money(self.rate, "rate")
        if rate < ZERO:
            raise ValueError("exchange rate cannot be negative")
        object.__setattr__(self, "rate", rate)


@dataclass(frozen=True)
class ExchangeRateSummary:
    """Exchange-rate widget data."""
    rate: Decimal
    total_usd: Decimal
    total_eur: Decimal
    inverse_rate: Optional[Decimal]
    display_ratio: str

    @property
    def rate_available(self) -> bool:
        return self.inverse_rate is not None


def convert_usd_to_eur(total_usd: Money, rate: Money) -> Decimal:
    """Convert a USD amount with the EUR-per-USD rate.

    A zero rate is well defined here and yields zero.
    """
    return to_money(total_usd, "total_usd") * to_money(rate, "rate")


def inverse_rate(rate: Money) -> Decimal:
    """Return ``1 / rate``.

    Raises:
        DivisionByZeroRate: If the rate is zero
    """
    rate = to_money(rate, "rate")
    if rate == ZERO:
        raise DivisionByZeroRate("exchange rate is zero; inverse ratio is undefined")
    return Decimal(1) / rate


def summarize_exchange(
    total_usd: Money,
    exchange_rate: ExchangeRate,
    ratio_decimals: int = 4,
) -> ExchangeRateSummary:
    """Build the exchange-rate summary for a report.

    Totals are always converted with the raw rate. When the rate is zero the
    display ratio is ``"N/A"`` and the summary is flagged as unavailable.

    Args:
        total_usd: Sum of USD-denominated figures
        exchange_rate: Configured EUR-per-USD rate
        ratio_decimals: Decimals shown in the ``1 USD = x EUR`` ratio

    Returns:
        ExchangeRateSummary
    """
    total_usd = to_money(total_usd, "total_usd")
    total_eur = convert_usd_to_eur(total_usd, exchange_rate.rate)

    try:
        inverse: Optional[Decimal] = inverse_rate(exchange_rate.rate)
    except DivisionByZeroRate:
        logger.warning("exchange_rate_unavailable", rate=str(exchange_rate.rate))
        inverse = None

    if inverse is None:
        display = RATE_UNAVAILABLE
    else:
        display = f"1 USD = {format_ratio(inverse, ratio_decimals)} EUR"

    return ExchangeRateSummary(
        rate=exchange_rate.rate,
        total_usd=total_usd,
        total_eur=total_eur,
        inverse_rate=inverse,
        display_ratio=display,
    )

"""
Market price lookup support.

The lookup itself is an external collaborator (a marketplace search, a
scraper, a manual entry). This module defines its interface and turns raw
observed prices into a MarketQuote.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Protocol

from vaultfolio.core.exceptions import NoPriceDataError
from vaultfolio.core.portfolio.models import MarketQuote, Number, to_decimal

CENT = Decimal("0.01")


class PriceSource(Protocol):
    """Anything that can estimate a market price from a free-text query."""

    def lookup(self, query: str) -> MarketQuote:
        ...


def median(values: list[Decimal]) -> Decimal:
    """Median of a non-empty list; mean of the two middle values for even counts."""
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def summarize_prices(
    prices: Iterable[Number],
    updated_at: Optional[datetime] = None,
) -> MarketQuote:
    """
    Build a MarketQuote from observed sale prices.

    Non-positive observations are discarded. Median, min and max are rounded
    to cents because they are published values, not intermediate results.

    Args:
        prices: Observed prices
        updated_at: Observation time (defaults to now, UTC)

    Raises:
        ValueError: If an observation is not a finite number
        NoPriceDataError: If no positive price remains
    """
    observed = [p for p in (to_decimal(v) for v in prices) if p > 0]
    if not observed:
        raise NoPriceDataError("No sold items found")

    return MarketQuote(
        median=median(observed).quantize(CENT, rounding=ROUND_HALF_UP),
        min_price=min(observed).quantize(CENT, rounding=ROUND_HALF_UP),
        max_price=max(observed).quantize(CENT, rounding=ROUND_HALF_UP),
        sales_count=len(observed),
        updated_at=updated_at or datetime.now(timezone.utc),
    )

"""
Purchase location ("spot") matching.

A spot collects every purchase whose free-text source overlaps its name,
e.g. "eBay France" <-> "eBay" or "Gamemania - Part Dieu" <-> "Gamemania".
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from vaultfolio.core.portfolio.models import ZERO, Category, Holding


@dataclass(frozen=True)
class SpotPurchase:
    """A purchase lot annotated with the holding it belongs to."""

    holding_id: str
    holding_name: str
    category: Category
    lot_id: str
    purchase_date: date
    unit_price: Decimal
    quantity: int
    source: str

    @property
    def cost(self) -> Decimal:
        return self.unit_price * self.quantity


def spot_matches_source(spot_name: str, source: str) -> bool:
    """Case-insensitive containment in either direction. Blank never matches."""
    a = (spot_name or "").strip().lower()
    b = (source or "").strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def purchases_for_spot(spot_name: str, holdings: Iterable[Holding]) -> list[SpotPurchase]:
    """All lots bought at a spot, most recent first."""
    purchases = [
        SpotPurchase(
            holding_id=holding.id,
            holding_name=holding.name,
            category=holding.category,
            lot_id=lot.id,
            purchase_date=lot.purchase_date,
            unit_price=lot.unit_price,
            quantity=lot.quantity,
            source=lot.source,
        )
        for holding in holdings
        for lot in holding.lots
        if spot_matches_source(spot_name, lot.source)
    ]
    purchases.sort(key=lambda p: p.purchase_date, reverse=True)
    return purchases


def total_spent(purchases: Iterable[SpotPurchase]) -> Decimal:
    return sum((p.cost for p in purchases), ZERO)

"""
Collection management backed by the database.

Integration layer around the pure valuation engine:
- Loads a holding, applies one engine edit, saves the result
- Deletes the holding when its last lot is removed
- Forwards target price alerts to the notifier
- Lists holdings with their metrics and builds the portfolio summary

Each edit is all-or-nothing: the engine validates before anything is
written, and the save runs in a single transaction. Writes to one holding
are assumed to come from a single writer at a time.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional

from vaultfolio.core.alerts.notifier import AlertNotifier
from vaultfolio.core.exceptions import NotFoundError
from vaultfolio.core.portfolio import valuation
from vaultfolio.core.portfolio.models import (
    Category,
    Holding,
    MarketQuote,
    Number,
    PurchaseLot,
    SaleRecord,
)
from vaultfolio.core.portfolio.summary import PortfolioSummary, portfolio_summary
from vaultfolio.core.portfolio.valuation import EstimateUpdate, HoldingMetrics
from vaultfolio.core.pricing.quotes import PriceSource
from vaultfolio.db import repository
from vaultfolio.db.database import get_session

logger = logging.getLogger(__name__)

SORT_FIELDS = ("name", "category", "value", "pnl", "pnl_pct")


@dataclass
class HoldingDetail:
    """Holding together with its derived metrics."""

    holding: Holding
    metrics: HoldingMetrics


class CollectionManager:
    """
    Manages holdings, purchase lots and sales.

    Args:
        notifier: Receives target price alerts (defaults to AlertNotifier)
        fee_rates: Fee table for new sales (defaults to the configured table)
    """

    def __init__(
        self,
        notifier: Optional[AlertNotifier] = None,
        fee_rates: Optional[Mapping[str, Decimal]] = None,
    ):
        self.notifier = notifier or AlertNotifier()
        self.fee_rates = fee_rates

    # -------------------------------------------------------------------------
    # Persistence helpers
    # -------------------------------------------------------------------------

    def get_holding(self, holding_id: str) -> Optional[Holding]:
        """Get a holding by id, or None if it does not exist."""
        with get_session() as session:
            return repository.load_holding(session, holding_id)

    def _require(self, holding_id: str) -> Holding:
        holding = self.get_holding(holding_id)
        if holding is None:
            raise NotFoundError("Holding", holding_id)
        return holding

    def _save(self, holding: Holding) -> Holding:
        with get_session() as session:
            repository.save_holding(session, holding)
        return holding

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def add_holding(
        self,
        name: str,
        category: str,
        unit_price: Number,
        quantity: int,
        purchase_date: Optional[date] = None,
        source: str = "",
        current_estimate: Optional[Number] = None,
    ) -> Holding:
        """
        Create a holding from its first purchase.

        Args:
            name: Display name
            category: Category label (see models.Category)
            unit_price: Purchase price per unit
            quantity: Units purchased
            purchase_date: Date of purchase (defaults to today)
            source: Where it was bought
            current_estimate: Market estimate (defaults to the purchase price)

        Returns:
            Created Holding
        """
        lot = PurchaseLot.new(unit_price, quantity, purchase_date, source)
        holding = valuation.create_holding(name, category, lot, current_estimate)
        self._save(holding)
        logger.info(f"Added holding {holding.name} ({holding.id})")
        return holding

    def add_purchase(
        self,
        holding_id: str,
        unit_price: Number,
        quantity: int,
        purchase_date: Optional[date] = None,
        source: str = "",
    ) -> Holding:
        """Record an additional purchase lot."""
        holding = self._require(holding_id)
        lot = PurchaseLot.new(unit_price, quantity, purchase_date, source)
        return self._save(valuation.record_purchase(holding, lot))

    def edit_lot(
        self,
        holding_id: str,
        lot_id: str,
        unit_price: Optional[Number] = None,
        quantity: Optional[int] = None,
        purchase_date: Optional[date] = None,
        source: Optional[str] = None,
    ) -> Holding:
        """Edit one purchase lot."""
        holding = self._require(holding_id)
        updated = valuation.edit_lot(
            holding,
            lot_id,
            unit_price=unit_price,
            quantity=quantity,
            purchase_date=purchase_date,
            source=source,
        )
        return self._save(updated)

    def remove_lot(self, holding_id: str, lot_id: str) -> Optional[Holding]:
        """
        Delete a purchase lot.

        Returns:
            Updated holding, or None when the holding was deleted with its
            last lot
        """
        holding = self._require(holding_id)
        updated = valuation.delete_lot(holding, lot_id)
        if updated is None:
            self.delete_holding(holding_id)
            logger.info(f"Removed last lot of {holding.name}, holding deleted")
            return None
        return self._save(updated)

    def record_sale(
        self,
        holding_id: str,
        unit_price: Number,
        quantity: int,
        platform: str,
        sale_date: Optional[date] = None,
    ) -> SaleRecord:
        """
        Record a sale, freezing fees from the current fee table.

        Returns:
            Created SaleRecord
        """
        holding = self._require(holding_id)
        sale = SaleRecord.new(unit_price, quantity, platform, sale_date, self.fee_rates)
        self._save(valuation.record_sale(holding, sale))
        logger.info(
            f"Recorded sale of {quantity} x {holding.name} on {sale.platform}: "
            f"net {sale.net_amount}"
        )
        return sale

    def delete_sale(self, holding_id: str, sale_id: str) -> Holding:
        """Delete a sale, restoring its quantity."""
        holding = self._require(holding_id)
        return self._save(valuation.delete_sale(holding, sale_id))

    def update_estimate(
        self,
        holding_id: str,
        new_price: Number,
        as_of: Optional[date] = None,
    ) -> EstimateUpdate:
        """
        Set a new market estimate; forwards a reached target to the notifier.

        Returns:
            EstimateUpdate with the saved holding and the alert, if any
        """
        holding = self._require(holding_id)
        update = valuation.update_current_estimate(holding, new_price, as_of)
        self._save(update.holding)
        if update.alert is not None:
            self.notifier.notify(update.alert)
        return update

    def set_target(self, holding_id: str, target: Optional[Number]) -> Holding:
        """Set or clear (None) the alert target price."""
        holding = self._require(holding_id)
        return self._save(valuation.set_target_alert_price(holding, target))

    def apply_quote(self, holding_id: str, quote: MarketQuote) -> Holding:
        """Store a market quote on the holding."""
        holding = self._require(holding_id)
        return self._save(valuation.apply_market_quote(holding, quote))

    def refresh_quote(
        self,
        holding_id: str,
        source: PriceSource,
        query: Optional[str] = None,
    ) -> Holding:
        """
        Look up a market quote and store it.

        Args:
            holding_id: Holding to quote
            source: Price lookup collaborator
            query: Search text (defaults to the holding name)
        """
        holding = self._require(holding_id)
        quote = source.lookup(query or holding.name)
        logger.info(
            f"Quote for {holding.name}: median={quote.median}, "
            f"count={quote.sales_count}"
        )
        return self._save(valuation.apply_market_quote(holding, quote))

    def delete_holding(self, holding_id: str) -> bool:
        """Delete a holding with all its lots and sales."""
        with get_session() as session:
            return repository.delete_holding(session, holding_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_holdings(self) -> list[Holding]:
        """All holdings in creation order."""
        with get_session() as session:
            return repository.list_holdings(session)

    def resolve_holding_id(self, ref: str) -> str:
        """
        Resolve a holding reference typed by a user.

        Accepts a full id, a unique id prefix, or an exact (case-insensitive)
        name.

        Raises:
            NotFoundError: Nothing matches
            ValueError: The reference is ambiguous
        """
        ref = (ref or "").strip()
        holdings = self.list_holdings()
        if any(h.id == ref for h in holdings):
            return ref

        by_prefix = [h for h in holdings if ref and h.id.startswith(ref.lower())]
        if len(by_prefix) == 1:
            return by_prefix[0].id

        by_name = [h for h in holdings if h.name.lower() == ref.lower()]
        if len(by_name) == 1:
            return by_name[0].id

        if len(by_prefix) > 1 or len(by_name) > 1:
            raise ValueError(f"Ambiguous holding reference {ref!r}, use a longer id")
        raise NotFoundError("Holding", ref)

    def get_holdings(
        self,
        sort_by: str = "value",
        category: Optional[str] = None,
    ) -> list[HoldingDetail]:
        """
        Get holdings with metrics.

        Args:
            sort_by: name, category, value, pnl or pnl_pct (numeric sorts descending)
            category: Only holdings of this category

        Returns:
            List of HoldingDetail
        """
        if sort_by not in SORT_FIELDS:
            raise ValueError(f"Invalid sort field: {sort_by}. Use one of {', '.join(SORT_FIELDS)}")

        holdings = self.list_holdings()
        if category:
            wanted = Category.parse(category)
            holdings = [h for h in holdings if h.category == wanted]

        details = [HoldingDetail(h, valuation.compute_holding_metrics(h)) for h in holdings]

        if sort_by == "name":
            details.sort(key=lambda d: d.holding.name.lower())
        elif sort_by == "category":
            details.sort(key=lambda d: (d.holding.category.value, d.holding.name.lower()))
        elif sort_by == "value":
            details.sort(key=lambda d: d.metrics.current_value, reverse=True)
        elif sort_by == "pnl":
            details.sort(key=lambda d: d.metrics.total_pnl, reverse=True)
        else:
            details.sort(key=lambda d: d.metrics.total_pnl_pct, reverse=True)
        return details

    def get_portfolio_summary(self) -> PortfolioSummary:
        """Aggregate metrics across all holdings."""
        return portfolio_summary(self.list_holdings())

"""
Valuation engine for collection holdings.

Pure functions over Holding records:
- Derived metrics (quantities, weighted average cost, realized/unrealized P&L)
- Edits (purchases, sales, estimate changes, deletions) returning a NEW holding

Edits validate everything before building the result and never mutate their
input, so a rejected edit leaves the caller's holding untouched. Amounts are
never rounded here.

Cost basis uses the WEIGHTED AVERAGE of the lots currently present, so
realized P&L is recomputed (not frozen) when lots are edited or removed.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from vaultfolio.core.exceptions import (
    InvalidEstimateError,
    InvalidHoldingError,
    InvalidLotError,
    InvalidSaleError,
    NotFoundError,
    OversellError,
)
from vaultfolio.core.portfolio.models import (
    ZERO,
    Category,
    Holding,
    MarketQuote,
    Number,
    PriceSnapshot,
    PurchaseLot,
    SaleRecord,
    new_id,
    to_decimal,
)

MAX_NAME_LENGTH = 100
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class HoldingMetrics:
    """Derived values for one holding. Recomputed on every call, never stored."""

    total_quantity: int
    sold_quantity: int
    remaining_quantity: int
    total_cost: Decimal
    average_cost: Decimal
    current_value: Decimal  # current_estimate * remaining_quantity
    gross_proceeds: Decimal
    fees_paid: Decimal
    net_proceeds: Decimal
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    total_pnl: Decimal
    total_pnl_pct: Decimal  # 0 when total_cost is 0


@dataclass(frozen=True)
class PriceAlert:
    """Raised when a new estimate reaches the holding's alert target."""

    holding_id: str
    holding_name: str
    target_price: Decimal
    price: Decimal
    as_of: date

    @property
    def message(self) -> str:
        return (
            f"{self.holding_name} estimate reached {self.price} "
            f"(target: {self.target_price})"
        )


@dataclass(frozen=True)
class EstimateUpdate:
    """Result of update_current_estimate(): the new holding plus any alert."""

    holding: Holding
    alert: Optional[PriceAlert] = None


# =============================================================================
# Derived metrics
# =============================================================================


def total_quantity(holding: Holding) -> int:
    return sum(lot.quantity for lot in holding.lots)


def total_cost(holding: Holding) -> Decimal:
    return sum((lot.cost for lot in holding.lots), ZERO)


def average_cost(holding: Holding) -> Decimal:
    """Weighted average unit cost; 0 when nothing was purchased."""
    quantity = total_quantity(holding)
    if quantity == 0:
        return ZERO
    return total_cost(holding) / quantity


def sold_quantity(holding: Holding) -> int:
    return sum(sale.quantity for sale in holding.sales)


def remaining_quantity(holding: Holding) -> int:
    return total_quantity(holding) - sold_quantity(holding)


def compute_holding_metrics(holding: Holding) -> HoldingMetrics:
    """
    Compute the full derived-value set for a holding.

    realized = sum(sale.net_amount) - average_cost * sold_quantity
    unrealized = (current_estimate - average_cost) * remaining_quantity
    total = realized + unrealized

    Args:
        holding: Holding with at least one lot

    Returns:
        HoldingMetrics (pure function of the holding)
    """
    qty = total_quantity(holding)
    cost = total_cost(holding)
    avg = cost / qty if qty > 0 else ZERO
    sold = sold_quantity(holding)
    remaining = qty - sold

    gross = sum((sale.gross_amount for sale in holding.sales), ZERO)
    fees = sum((sale.fee_amount for sale in holding.sales), ZERO)
    net = sum((sale.net_amount for sale in holding.sales), ZERO)

    realized = net - avg * sold
    unrealized = (holding.current_estimate - avg) * remaining if remaining > 0 else ZERO
    total = realized + unrealized
    pct = total / cost * HUNDRED if cost != 0 else ZERO

    return HoldingMetrics(
        total_quantity=qty,
        sold_quantity=sold,
        remaining_quantity=remaining,
        total_cost=cost,
        average_cost=avg,
        current_value=holding.current_estimate * remaining,
        gross_proceeds=gross,
        fees_paid=fees,
        net_proceeds=net,
        realized_pnl=realized,
        unrealized_pnl=unrealized,
        total_pnl=total,
        total_pnl_pct=pct,
    )


# =============================================================================
# Validation
# =============================================================================


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_lot(lot: PurchaseLot) -> None:
    if not _is_positive_int(lot.quantity):
        raise InvalidLotError(f"Quantity must be a positive whole number, got {lot.quantity!r}")
    if not lot.unit_price.is_finite() or lot.unit_price <= 0:
        raise InvalidLotError(f"Price must be positive, got {lot.unit_price}")


def _validate_estimate(price: Decimal, what: str = "Estimate") -> Decimal:
    if not price.is_finite():
        raise InvalidEstimateError(f"{what} must be a finite number, got {price}")
    if price < 0:
        raise InvalidEstimateError(f"{what} cannot be negative, got {price}")
    return price


def _coerce_estimate(value: Number, what: str) -> Decimal:
    try:
        price = to_decimal(value)
    except ValueError as e:
        raise InvalidEstimateError(str(e)) from e
    return _validate_estimate(price, what)


# =============================================================================
# Edits
# =============================================================================


def create_holding(
    name: str,
    category: Union[Category, str],
    lot: PurchaseLot,
    current_estimate: Optional[Number] = None,
    track_history: bool = True,
    holding_id: Optional[str] = None,
) -> Holding:
    """
    Create a holding with exactly one initial lot.

    Args:
        name: Display name (1-100 characters)
        category: Category or category label
        lot: Initial purchase lot
        current_estimate: Market estimate (defaults to the lot's unit price)
        track_history: Whether to keep a price history
        holding_id: Explicit id (a new one is generated by default)

    Raises:
        InvalidHoldingError: Blank/too long name or unknown category
        InvalidLotError: Invalid initial lot
        InvalidEstimateError: Negative estimate
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise InvalidHoldingError("Name is required")
    if len(clean_name) > MAX_NAME_LENGTH:
        raise InvalidHoldingError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    try:
        parsed_category = Category.parse(category)
    except ValueError as e:
        raise InvalidHoldingError(str(e)) from e

    _validate_lot(lot)
    estimate = (
        _coerce_estimate(current_estimate, "Estimate")
        if current_estimate is not None
        else lot.unit_price
    )

    return Holding(
        id=holding_id or new_id(),
        name=clean_name,
        category=parsed_category,
        current_estimate=estimate,
        lots=[lot],
        sales=[],
        price_history=[PriceSnapshot(as_of=lot.purchase_date, price=estimate)] if track_history else None,
    )


def record_purchase(holding: Holding, lot: PurchaseLot) -> Holding:
    """
    Append a purchase lot.

    Raises:
        InvalidLotError: If price or quantity is not positive
    """
    _validate_lot(lot)
    return replace(holding, lots=[*holding.lots, lot])


def edit_lot(
    holding: Holding,
    lot_id: str,
    unit_price: Optional[Number] = None,
    quantity: Optional[int] = None,
    purchase_date: Optional[date] = None,
    source: Optional[str] = None,
) -> Holding:
    """
    Replace one lot with an edited copy.

    Raises:
        NotFoundError: Unknown lot id
        InvalidLotError: Edited price or quantity is not positive
        OversellError: Edit would leave fewer units purchased than sold
    """
    lot = holding.find_lot(lot_id)
    if lot is None:
        raise NotFoundError("Lot", lot_id)

    changes = {}
    if unit_price is not None:
        try:
            changes["unit_price"] = to_decimal(unit_price)
        except ValueError as e:
            raise InvalidLotError(str(e)) from e
    if quantity is not None:
        changes["quantity"] = quantity
    if purchase_date is not None:
        changes["purchase_date"] = purchase_date
    if source is not None:
        changes["source"] = source.strip()
    edited = replace(lot, **changes)
    _validate_lot(edited)

    lots = [edited if existing.id == lot_id else existing for existing in holding.lots]
    purchased = sum(existing.quantity for existing in lots)
    sold = sold_quantity(holding)
    if purchased < sold:
        raise OversellError(
            requested=sold,
            available=purchased,
            message=f"Cannot reduce lot: {sold} unit(s) already sold, only {purchased} would remain purchased",
        )
    return replace(holding, lots=lots)


def record_sale(holding: Holding, sale: SaleRecord) -> Holding:
    """
    Append a sale whose amounts were frozen by SaleRecord.new().

    Raises:
        InvalidSaleError: If price or quantity is not positive
        OversellError: If quantity exceeds the remaining unsold quantity
    """
    if not _is_positive_int(sale.quantity):
        raise InvalidSaleError(f"Quantity must be a positive whole number, got {sale.quantity!r}")
    if not sale.unit_price.is_finite() or sale.unit_price <= 0:
        raise InvalidSaleError(f"Price must be positive, got {sale.unit_price}")

    available = remaining_quantity(holding)
    if sale.quantity > available:
        raise OversellError(requested=sale.quantity, available=available)

    return replace(holding, sales=[*holding.sales, sale])


def update_current_estimate(
    holding: Holding,
    new_price: Number,
    as_of: Optional[date] = None,
) -> EstimateUpdate:
    """
    Set a new market estimate and append it to the price history.

    The alert is reported in the result, never delivered from here.

    Args:
        holding: Holding to update
        new_price: New estimate (>= 0)
        as_of: Date of the estimate (defaults to today)

    Returns:
        EstimateUpdate with the new holding and a PriceAlert when the new
        price is at or above the holding's target

    Raises:
        InvalidEstimateError: If new_price is negative or not a finite number
    """
    price = _coerce_estimate(new_price, "Estimate")
    as_of = as_of or date.today()

    history = holding.price_history
    if history is not None:
        history = [*history, PriceSnapshot(as_of=as_of, price=price)]
    updated = replace(holding, current_estimate=price, price_history=history)

    alert = None
    target = holding.target_alert_price
    if target is not None and price >= target:
        alert = PriceAlert(
            holding_id=holding.id,
            holding_name=holding.name,
            target_price=target,
            price=price,
            as_of=as_of,
        )
    return EstimateUpdate(holding=updated, alert=alert)


def set_target_alert_price(holding: Holding, target: Optional[Number]) -> Holding:
    """
    Set or clear (target=None) the alert target.

    Raises:
        InvalidEstimateError: If target is negative
    """
    value = _coerce_estimate(target, "Alert target") if target is not None else None
    return replace(holding, target_alert_price=value)


def apply_market_quote(holding: Holding, quote: MarketQuote) -> Holding:
    """Store a price lookup result verbatim. The estimate is left unchanged."""
    return replace(holding, market_quote=quote)


def delete_sale(holding: Holding, sale_id: str) -> Holding:
    """
    Remove a sale, restoring its quantity to the remaining balance.

    Raises:
        NotFoundError: Unknown sale id
    """
    if holding.find_sale(sale_id) is None:
        raise NotFoundError("Sale", sale_id)
    return replace(holding, sales=[sale for sale in holding.sales if sale.id != sale_id])


def delete_lot(holding: Holding, lot_id: str) -> Optional[Holding]:
    """
    Remove a lot.

    Deleting a lot whose units are needed to cover recorded sales is
    rejected; the caller must delete sales first.

    Returns:
        Updated holding, or None when the last lot was removed (the caller
        deletes the whole holding)

    Raises:
        NotFoundError: Unknown lot id
        OversellError: Remaining lots would not cover sold units
    """
    lot = holding.find_lot(lot_id)
    if lot is None:
        raise NotFoundError("Lot", lot_id)

    lots = [existing for existing in holding.lots if existing.id != lot_id]
    purchased = sum(existing.quantity for existing in lots)
    sold = sold_quantity(holding)
    if purchased < sold:
        raise OversellError(
            requested=sold,
            available=purchased,
            message=(
                f"Cannot delete lot: {sold} unit(s) already sold, "
                f"only {purchased} would remain purchased. Delete sales first."
            ),
        )

    if not lots:
        return None
    return replace(holding, lots=lots)

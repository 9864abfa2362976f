"""
Holding persistence.

Converts between domain Holding records and database rows. Lots, sales and
price history are stored verbatim (including frozen sale amounts) and
rewritten as a whole on each save.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Session, select

from vaultfolio.core.portfolio.models import (
    Category,
    Holding,
    MarketQuote,
    PriceSnapshot,
    PurchaseLot,
    SaleRecord,
)
from vaultfolio.db.models import HoldingRow, LotRow, PriceSnapshotRow, SaleRow

logger = logging.getLogger(__name__)


def _amount(value: Optional[str]) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


def _text(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _to_domain(session: Session, row: HoldingRow) -> Holding:
    lots = session.exec(
        select(LotRow).where(LotRow.holding_id == row.id).order_by(LotRow.position)
    ).all()
    sales = session.exec(
        select(SaleRow).where(SaleRow.holding_id == row.id).order_by(SaleRow.position)
    ).all()

    history = None
    if row.track_history:
        snapshots = session.exec(
            select(PriceSnapshotRow)
            .where(PriceSnapshotRow.holding_id == row.id)
            .order_by(PriceSnapshotRow.position)
        ).all()
        history = [PriceSnapshot(as_of=s.as_of, price=Decimal(s.price)) for s in snapshots]

    quote = None
    if row.quote_median is not None:
        quote = MarketQuote(
            median=_amount(row.quote_median),
            min_price=_amount(row.quote_min),
            max_price=_amount(row.quote_max),
            sales_count=row.quote_sales_count or 0,
            updated_at=datetime.fromisoformat(row.quote_updated_at),
        )

    return Holding(
        id=row.id,
        name=row.name,
        category=Category.parse(row.category),
        current_estimate=Decimal(row.current_estimate),
        lots=[
            PurchaseLot(
                id=lot.id,
                purchase_date=lot.purchase_date,
                unit_price=Decimal(lot.unit_price),
                quantity=lot.quantity,
                source=lot.source,
            )
            for lot in lots
        ],
        sales=[
            SaleRecord(
                id=sale.id,
                sale_date=sale.sale_date,
                unit_price=Decimal(sale.unit_price),
                quantity=sale.quantity,
                platform=sale.platform,
                fee_rate=Decimal(sale.fee_rate),
                gross_amount=Decimal(sale.gross_amount),
                fee_amount=Decimal(sale.fee_amount),
                net_amount=Decimal(sale.net_amount),
            )
            for sale in sales
        ],
        price_history=history,
        target_alert_price=_amount(row.target_alert_price),
        market_quote=quote,
    )


def load_holding(session: Session, holding_id: str) -> Optional[Holding]:
    """Load one holding, or None if it does not exist."""
    row = session.get(HoldingRow, holding_id)
    if row is None:
        return None
    return _to_domain(session, row)


def list_holdings(session: Session) -> list[Holding]:
    """Load all holdings in creation order."""
    rows = session.exec(select(HoldingRow).order_by(HoldingRow.created_at, HoldingRow.id)).all()
    return [_to_domain(session, row) for row in rows]


def _delete_children(session: Session, holding_id: str) -> None:
    for model in (LotRow, SaleRow, PriceSnapshotRow):
        for child in session.exec(select(model).where(model.holding_id == holding_id)).all():
            session.delete(child)
    session.flush()  # Deletes must hit the database before re-inserting the same ids


def save_holding(session: Session, holding: Holding) -> None:
    """
    Insert or update a holding with all its sub-records.

    Args:
        session: Active DB session (caller commits)
        holding: Holding to persist; must have at least one lot
    """
    if not holding.lots:
        raise ValueError(f"Refusing to save holding {holding.id} without purchase lots")

    now_utc = datetime.now(timezone.utc)
    row = session.get(HoldingRow, holding.id)
    if row is None:
        row = HoldingRow(id=holding.id, name=holding.name, category=holding.category.value)
        session.add(row)
        logger.info(f"Created holding {holding.id}: {holding.name}")

    row.name = holding.name
    row.category = holding.category.value
    row.current_estimate = str(holding.current_estimate)
    row.target_alert_price = _text(holding.target_alert_price)
    row.track_history = holding.price_history is not None
    row.updated_at = now_utc

    quote = holding.market_quote
    row.quote_median = _text(quote.median) if quote else None
    row.quote_min = _text(quote.min_price) if quote else None
    row.quote_max = _text(quote.max_price) if quote else None
    row.quote_sales_count = quote.sales_count if quote else None
    row.quote_updated_at = quote.updated_at.isoformat() if quote else None

    session.flush()  # Make sure the parent row exists before children
    _delete_children(session, holding.id)

    for position, lot in enumerate(holding.lots):
        session.add(
            LotRow(
                id=lot.id,
                holding_id=holding.id,
                position=position,
                purchase_date=lot.purchase_date,
                unit_price=str(lot.unit_price),
                quantity=lot.quantity,
                source=lot.source,
            )
        )
    for position, sale in enumerate(holding.sales):
        session.add(
            SaleRow(
                id=sale.id,
                holding_id=holding.id,
                position=position,
                sale_date=sale.sale_date,
                unit_price=str(sale.unit_price),
                quantity=sale.quantity,
                platform=sale.platform,
                fee_rate=str(sale.fee_rate),
                gross_amount=str(sale.gross_amount),
                fee_amount=str(sale.fee_amount),
                net_amount=str(sale.net_amount),
            )
        )
    for position, snapshot in enumerate(holding.price_history or []):
        session.add(
            PriceSnapshotRow(
                holding_id=holding.id,
                position=position,
                as_of=snapshot.as_of,
                price=str(snapshot.price),
            )
        )
    session.flush()


def delete_holding(session: Session, holding_id: str) -> bool:
    """
    Delete a holding and its sub-records.

    Returns:
        True if a holding was deleted
    """
    row = session.get(HoldingRow, holding_id)
    if row is None:
        return False
    _delete_children(session, holding_id)
    session.delete(row)
    session.flush()
    logger.info(f"Deleted holding {holding_id}")
    return True

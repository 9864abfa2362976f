"""
Database models for Vaultfolio.

Defines the schema for:
- HoldingRow: One tracked collectible (estimate, alert target, last quote)
- LotRow: Purchase lots belonging to a holding
- SaleRow: Sales with fee amounts frozen at creation
- PriceSnapshotRow: Ordered estimate history of a holding
- Spot: Purchase locations
- AlertHistory: Record of target price alerts for review

Amounts on holdings, lots, sales and price snapshots are TEXT columns holding
``str(Decimal)``. SQLite has no decimal type; NUMERIC columns come back as
REAL rounded to the column scale.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel

AMOUNT_LENGTH = 50


class HoldingRow(SQLModel, table=True):
    """
    One tracked collectible.

    Lots, sales and price history hang off this row and are rewritten as a
    whole on every save (see db.repository).
    """

    __tablename__ = "holdings"

    id: str = Field(primary_key=True, max_length=32)
    name: str = Field(max_length=100, index=True)
    category: str = Field(max_length=40)

    current_estimate: str = Field(default="0", max_length=AMOUNT_LENGTH)
    target_alert_price: Optional[str] = Field(default=None, max_length=AMOUNT_LENGTH)
    track_history: bool = Field(default=True)

    # Last external price lookup (stored verbatim)
    quote_median: Optional[str] = Field(default=None, max_length=AMOUNT_LENGTH)
    quote_min: Optional[str] = Field(default=None, max_length=AMOUNT_LENGTH)
    quote_max: Optional[str] = Field(default=None, max_length=AMOUNT_LENGTH)
    quote_sales_count: Optional[int] = None
    quote_updated_at: Optional[str] = Field(default=None, max_length=40)  # ISO 8601 with offset

    # Timestamps
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    lots: list["LotRow"] = Relationship(
        back_populates="holding",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "LotRow.position"},
    )
    sales: list["SaleRow"] = Relationship(
        back_populates="holding",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "SaleRow.position"},
    )
    price_history: list["PriceSnapshotRow"] = Relationship(
        back_populates="holding",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "PriceSnapshotRow.position",
        },
    )


class LotRow(SQLModel, table=True):
    """Purchase lot. ``position`` preserves insertion order."""

    __tablename__ = "purchase_lots"

    id: str = Field(primary_key=True, max_length=32)
    holding_id: str = Field(foreign_key="holdings.id", index=True)
    position: int = Field(default=0)

    purchase_date: date
    unit_price: str = Field(max_length=AMOUNT_LENGTH)
    quantity: int
    source: str = Field(default="", max_length=200)

    holding: Optional[HoldingRow] = Relationship(back_populates="lots")


class SaleRow(SQLModel, table=True):
    """
    Recorded sale.

    fee_rate, gross_amount, fee_amount and net_amount are copied from the
    domain record and never recomputed from the current fee table.
    """

    __tablename__ = "sales"

    id: str = Field(primary_key=True, max_length=32)
    holding_id: str = Field(foreign_key="holdings.id", index=True)
    position: int = Field(default=0)

    sale_date: date
    unit_price: str = Field(max_length=AMOUNT_LENGTH)
    quantity: int
    platform: str = Field(max_length=40)
    fee_rate: str = Field(max_length=AMOUNT_LENGTH)
    gross_amount: str = Field(max_length=AMOUNT_LENGTH)
    fee_amount: str = Field(max_length=AMOUNT_LENGTH)
    net_amount: str = Field(max_length=AMOUNT_LENGTH)

    holding: Optional[HoldingRow] = Relationship(back_populates="sales")


class PriceSnapshotRow(SQLModel, table=True):
    """One entry of a holding's estimate history."""

    __tablename__ = "price_snapshots"

    id: Optional[int] = Field(default=None, primary_key=True)
    holding_id: str = Field(foreign_key="holdings.id", index=True)
    position: int = Field(default=0)

    as_of: date
    price: str = Field(max_length=AMOUNT_LENGTH)

    holding: Optional[HoldingRow] = Relationship(back_populates="price_history")


class Spot(SQLModel, table=True):
    """
    Purchase location (store, website, flea market).

    Purchases are linked by fuzzy name matching against lot sources,
    not by foreign key.
    """

    __tablename__ = "spots"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, index=True)
    spot_type: str = Field(default="store", max_length=20)  # store, online, flea_market
    rating: int = Field(default=3)  # 1-5 stars
    note: Optional[str] = Field(default=None, max_length=500)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AlertHistory(SQLModel, table=True):
    """
    Record of target price alerts for audit and review.

    Holding name is copied so the record survives deletion of the holding.
    """

    __tablename__ = "alert_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    holding_id: str = Field(max_length=32, index=True)
    holding_name: str = Field(max_length=100)

    # Trigger details
    triggered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    as_of: date
    target_price: Decimal = Field(max_digits=14, decimal_places=4)
    price: Decimal = Field(max_digits=14, decimal_places=4)
    message: str = Field(max_length=500)

    # Acknowledgment workflow
    acknowledged: bool = Field(default=False)
    acknowledged_at: Optional[datetime] = None

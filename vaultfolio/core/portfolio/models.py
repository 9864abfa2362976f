"""
Domain models for the collection portfolio.

Defines plain records consumed and produced by the valuation engine:
- PurchaseLot: One purchase transaction (date, unit price, quantity, source)
- SaleRecord: One partial or total resale with fees frozen at creation
- PriceSnapshot: A dated market estimate appended on every estimate change
- MarketQuote: Verbatim result of an external price lookup
- Holding: One tracked collectible aggregating its lots and sales

All currency amounts are Decimal and are never rounded here; rounding is a
presentation concern (see cli.formatting). Every record round-trips through
``to_dict()``/``from_dict()`` as JSON-compatible data.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional, Union

from vaultfolio.core.exceptions import InvalidLotError, InvalidSaleError

Number = Union[int, float, Decimal, str]

ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """Convert a numeric value to Decimal safely.

    Floats go through ``str()`` so 0.13 becomes Decimal("0.13"), not its
    binary approximation.

    Raises:
        ValueError: If the value is not a finite number (NaN and Infinity
            are rejected)
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Not a numeric amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Amount must be a finite number, got {value!r}")
    return result


def new_id() -> str:
    """Generate an opaque unique id for a holding, lot or sale."""
    return uuid.uuid4().hex


def _parse_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _parse_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class Category(str, Enum):
    """Product line a holding belongs to."""

    ULTRA_PREMIUM_COLLECTION = "Ultra Premium Collection"
    ELITE_TRAINER_BOX = "Elite Trainer Box"
    BUNDLE = "Bundle"
    COLLECTION_BOX = "Collection Box"
    BOOSTER = "Booster"
    DISPLAY = "Display"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Union[str, "Category"]) -> "Category":
        """Resolve a category from its label or enum name (case-insensitive)."""
        if isinstance(value, Category):
            return value
        needle = str(value).strip().lower()
        for member in cls:
            if needle in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"Unknown category: {value!r}")


@dataclass(frozen=True)
class PurchaseLot:
    """One discrete purchase of a holding."""

    id: str
    purchase_date: date
    unit_price: Decimal
    quantity: int
    source: str = ""

    @classmethod
    def new(
        cls,
        unit_price: Number,
        quantity: int,
        purchase_date: Optional[date] = None,
        source: str = "",
    ) -> "PurchaseLot":
        """Build a lot with a fresh id; range checks happen in the engine.

        Raises:
            InvalidLotError: If unit_price is not a finite number
        """
        try:
            price = to_decimal(unit_price)
        except ValueError as e:
            raise InvalidLotError(str(e)) from e
        return cls(
            id=new_id(),
            purchase_date=purchase_date or date.today(),
            unit_price=price,
            quantity=quantity,
            source=(source or "").strip(),
        )

    @property
    def cost(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.purchase_date.isoformat(),
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PurchaseLot":
        return cls(
            id=str(data["id"]),
            purchase_date=_parse_date(data["date"]),
            unit_price=to_decimal(data["unit_price"]),
            quantity=int(data["quantity"]),
            source=data.get("source") or "",
        )


@dataclass(frozen=True)
class SaleRecord:
    """
    One recorded sale.

    gross_amount, fee_amount and net_amount are computed from the fee table
    when the record is created and stored as-is afterwards, so later fee
    table changes never alter a historical sale.
    """

    id: str
    sale_date: date
    unit_price: Decimal
    quantity: int
    platform: str
    fee_rate: Decimal
    gross_amount: Decimal
    fee_amount: Decimal
    net_amount: Decimal

    @classmethod
    def new(
        cls,
        unit_price: Number,
        quantity: int,
        platform: str,
        sale_date: Optional[date] = None,
        fee_rates: Optional[Mapping[str, Decimal]] = None,
    ) -> "SaleRecord":
        """
        Build a sale, freezing its amounts with the current fee rate.

        Args:
            unit_price: Sale price per unit
            quantity: Units sold
            platform: Key into the fee table
            sale_date: Date of sale (defaults to today)
            fee_rates: Fee table to use (defaults to the configured table)

        Raises:
            InvalidSaleError: If unit_price is not a finite number
            UnknownPlatformError: If platform is not in the fee table
        """
        from vaultfolio.core.portfolio.fees import fee_rate_for

        try:
            price = to_decimal(unit_price)
        except ValueError as e:
            raise InvalidSaleError(str(e)) from e
        platform_key = platform.strip().lower()
        rate = fee_rate_for(platform_key, fee_rates)
        gross = price * quantity
        fee = gross * rate
        return cls(
            id=new_id(),
            sale_date=sale_date or date.today(),
            unit_price=price,
            quantity=quantity,
            platform=platform_key,
            fee_rate=rate,
            gross_amount=gross,
            fee_amount=fee,
            net_amount=gross - fee,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.sale_date.isoformat(),
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "platform": self.platform,
            "fee_rate": str(self.fee_rate),
            "gross_amount": str(self.gross_amount),
            "fee_amount": str(self.fee_amount),
            "net_amount": str(self.net_amount),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SaleRecord":
        return cls(
            id=str(data["id"]),
            sale_date=_parse_date(data["date"]),
            unit_price=to_decimal(data["unit_price"]),
            quantity=int(data["quantity"]),
            platform=data["platform"],
            fee_rate=to_decimal(data["fee_rate"]),
            gross_amount=to_decimal(data["gross_amount"]),
            fee_amount=to_decimal(data["fee_amount"]),
            net_amount=to_decimal(data["net_amount"]),
        )


@dataclass(frozen=True)
class PriceSnapshot:
    """Market estimate as of a given date."""

    as_of: date
    price: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.as_of.isoformat(), "price": str(self.price)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PriceSnapshot":
        return cls(as_of=_parse_date(data["date"]), price=to_decimal(data["price"]))


@dataclass(frozen=True)
class MarketQuote:
    """Result of an external price lookup, stored without interpretation."""

    median: Decimal
    min_price: Decimal
    max_price: Decimal
    sales_count: int
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "median": str(self.median),
            "min": str(self.min_price),
            "max": str(self.max_price),
            "sales_count": self.sales_count,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MarketQuote":
        return cls(
            median=to_decimal(data["median"]),
            min_price=to_decimal(data["min"]),
            max_price=to_decimal(data["max"]),
            sales_count=int(data["sales_count"]),
            updated_at=_parse_datetime(data["updated_at"]),
        )


@dataclass
class Holding:
    """
    One tracked collectible.

    Never persists without purchase lots: deleting the last lot deletes the
    holding. ``price_history`` is None when history is not tracked.
    """

    id: str
    name: str
    category: Category
    current_estimate: Decimal
    lots: list[PurchaseLot] = field(default_factory=list)
    sales: list[SaleRecord] = field(default_factory=list)
    price_history: Optional[list[PriceSnapshot]] = field(default_factory=list)
    target_alert_price: Optional[Decimal] = None
    market_quote: Optional[MarketQuote] = None

    def find_lot(self, lot_id: str) -> Optional[PurchaseLot]:
        return next((lot for lot in self.lots if lot.id == lot_id), None)

    def find_sale(self, sale_id: str) -> Optional[SaleRecord]:
        return next((sale for sale in self.sales if sale.id == sale_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "current_estimate": str(self.current_estimate),
            "lots": [lot.to_dict() for lot in self.lots],
            "sales": [sale.to_dict() for sale in self.sales],
            "price_history": (
                [snap.to_dict() for snap in self.price_history]
                if self.price_history is not None
                else None
            ),
            "target_alert_price": (
                str(self.target_alert_price) if self.target_alert_price is not None else None
            ),
            "market_quote": self.market_quote.to_dict() if self.market_quote else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Holding":
        history = data.get("price_history", [])
        target = data.get("target_alert_price")
        quote = data.get("market_quote")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            category=Category.parse(data["category"]),
            current_estimate=to_decimal(data["current_estimate"]),
            lots=[PurchaseLot.from_dict(d) for d in data.get("lots", [])],
            sales=[SaleRecord.from_dict(d) for d in data.get("sales", [])],
            price_history=(
                [PriceSnapshot.from_dict(d) for d in history] if history is not None else None
            ),
            target_alert_price=to_decimal(target) if target is not None else None,
            market_quote=MarketQuote.from_dict(quote) if quote else None,
        )

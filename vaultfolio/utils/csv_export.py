"""CSV export utilities with injection protection."""

from typing import Iterable

import pandas as pd

from vaultfolio.core.portfolio.models import Holding
from vaultfolio.core.portfolio.valuation import compute_holding_metrics
from vaultfolio.utils.money import round_money, round_pct

# Characters that can trigger formula execution in spreadsheet applications
_FORMULA_TRIGGERS = frozenset("=+\\-@")

HOLDING_COLUMNS = [
    "id", "name", "category", "quantity", "sold", "remaining",
    "average_cost", "total_cost", "current_estimate", "current_value",
    "realized_pnl", "unrealized_pnl", "total_pnl", "total_pnl_pct",
]
LOT_COLUMNS = ["holding_id", "holding", "lot_id", "date", "unit_price", "quantity", "source"]
SALE_COLUMNS = [
    "holding_id", "holding", "sale_id", "date", "platform", "unit_price",
    "quantity", "gross_amount", "fee_amount", "net_amount",
]


def sanitize_csv_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of the DataFrame with CSV injection protection applied.

    Prefixes string values starting with formula-trigger characters
    (=, +, -, @, \\) with a single quote to prevent execution in Excel/Sheets.

    Args:
        df: Source DataFrame.

    Returns:
        Sanitized copy safe for CSV export.
    """
    export_df = df.copy()
    for col in export_df.columns:
        if pd.api.types.is_numeric_dtype(export_df[col]):
            continue
        export_df[col] = export_df[col].apply(
            lambda v: "'" + str(v)
            if isinstance(v, str) and v and v[0] in _FORMULA_TRIGGERS
            else v
        )
    return export_df


def holdings_frame(holdings: Iterable[Holding]) -> pd.DataFrame:
    """One row per holding with its metrics, rounded for presentation."""
    rows = []
    for holding in holdings:
        m = compute_holding_metrics(holding)
        rows.append(
            {
                "id": holding.id,
                "name": holding.name,
                "category": holding.category.value,
                "quantity": m.total_quantity,
                "sold": m.sold_quantity,
                "remaining": m.remaining_quantity,
                "average_cost": float(round_money(m.average_cost)),
                "total_cost": float(round_money(m.total_cost)),
                "current_estimate": float(round_money(holding.current_estimate)),
                "current_value": float(round_money(m.current_value)),
                "realized_pnl": float(round_money(m.realized_pnl)),
                "unrealized_pnl": float(round_money(m.unrealized_pnl)),
                "total_pnl": float(round_money(m.total_pnl)),
                "total_pnl_pct": float(round_pct(m.total_pnl_pct)),
            }
        )
    return pd.DataFrame(rows, columns=HOLDING_COLUMNS)


def lots_frame(holdings: Iterable[Holding]) -> pd.DataFrame:
    """One row per purchase lot."""
    rows = [
        {
            "holding_id": holding.id,
            "holding": holding.name,
            "lot_id": lot.id,
            "date": lot.purchase_date.isoformat(),
            "unit_price": float(round_money(lot.unit_price)),
            "quantity": lot.quantity,
            "source": lot.source,
        }
        for holding in holdings
        for lot in holding.lots
    ]
    return pd.DataFrame(rows, columns=LOT_COLUMNS)


def sales_frame(holdings: Iterable[Holding]) -> pd.DataFrame:
    """One row per sale with its frozen amounts."""
    rows = [
        {
            "holding_id": holding.id,
            "holding": holding.name,
            "sale_id": sale.id,
            "date": sale.sale_date.isoformat(),
            "platform": sale.platform,
            "unit_price": float(round_money(sale.unit_price)),
            "quantity": sale.quantity,
            "gross_amount": float(round_money(sale.gross_amount)),
            "fee_amount": float(round_money(sale.fee_amount)),
            "net_amount": float(round_money(sale.net_amount)),
        }
        for holding in holdings
        for sale in holding.sales
    ]
    return pd.DataFrame(rows, columns=SALE_COLUMNS)


EXPORTERS = {
    "holdings": holdings_frame,
    "lots": lots_frame,
    "sales": sales_frame,
}

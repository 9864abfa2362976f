"""Tests for CSV export frames and sanitization."""

from decimal import Decimal

import pandas as pd
import pytest

from vaultfolio.core.portfolio.valuation import record_sale
from vaultfolio.utils.csv_export import (
    EXPORTERS,
    HOLDING_COLUMNS,
    holdings_frame,
    lots_frame,
    sales_frame,
    sanitize_csv_dataframe,
)


class TestSanitizeCsvDataframe:
    """Tests for CSV injection protection."""

    @pytest.mark.parametrize("value", ["=cmd('calc')", "+1", "-1+1", "@SUM(A1:A10)"])
    def test_escapes_formula_prefix(self, value):
        df = pd.DataFrame({"name": [value, "Normal"]})
        result = sanitize_csv_dataframe(df)

        assert result["name"].iloc[0] == "'" + value
        assert result["name"].iloc[1] == "Normal"

    def test_preserves_numeric_columns(self):
        df = pd.DataFrame({"price": [150.0, -20.5], "name": ["=BAD", "OK"]})
        result = sanitize_csv_dataframe(df)

        assert result["price"].iloc[1] == -20.5
        assert result["name"].iloc[0] == "'=BAD"

    def test_does_not_modify_input(self):
        df = pd.DataFrame({"name": ["=BAD"]})
        sanitize_csv_dataframe(df)

        assert df["name"].iloc[0] == "=BAD"

    def test_handles_empty_dataframe(self):
        df = pd.DataFrame({"name": pd.Series([], dtype=str)})

        assert len(sanitize_csv_dataframe(df)) == 0


class TestFrames:
    """Tests for the export frames."""

    def test_holdings_frame(self, etb_holding, make_sale):
        holding = record_sale(etb_holding, make_sale("140", 1, "ebay"))
        df = holdings_frame([holding])

        assert list(df.columns) == HOLDING_COLUMNS
        row = df.iloc[0]
        assert row["name"] == "Evolving Skies ETB"
        assert row["remaining"] == 1
        assert row["realized_pnl"] == pytest.approx(21.8)
        assert row["total_pnl"] == pytest.approx(71.8)
        assert row["total_pnl_pct"] == pytest.approx(35.9)

    def test_rounding_happens_on_export(self, make_lot):
        from vaultfolio.core.portfolio.valuation import create_holding

        holding = create_holding("Booster", "Booster", make_lot("0.333", 3), current_estimate="0.335")
        row = holdings_frame([holding]).iloc[0]

        assert row["total_cost"] == pytest.approx(1.00)
        assert row["unrealized_pnl"] == pytest.approx(0.01)

    def test_lots_frame(self, etb_holding):
        df = lots_frame([etb_holding])

        assert len(df) == 1
        assert df.iloc[0]["lot_id"] == etb_holding.lots[0].id
        assert df.iloc[0]["date"] == "2024-01-10"

    def test_sales_frame(self, etb_holding, make_sale):
        holding = record_sale(etb_holding, make_sale("140", 1, "ebay"))
        row = sales_frame([holding]).iloc[0]

        assert row["platform"] == "ebay"
        assert row["fee_amount"] == pytest.approx(18.2)
        assert row["net_amount"] == pytest.approx(121.8)

    def test_empty_frames_keep_columns(self):
        for name, build in EXPORTERS.items():
            df = build([])
            assert len(df) == 0, name
            assert len(df.columns) > 0, name

    def test_source_is_sanitized(self, etb_holding, make_lot):
        from vaultfolio.core.portfolio.valuation import record_purchase

        holding = record_purchase(etb_holding, make_lot("10", 1, source="=HYPERLINK(\"x\")"))
        df = sanitize_csv_dataframe(lots_frame([holding]))

        assert df.iloc[1]["source"].startswith("'=")
        assert Decimal(str(df.iloc[1]["unit_price"])) == Decimal("10.0")

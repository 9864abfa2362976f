"""
Tests for the CLI formatting module.

Tests cover:
- Money and percentage formatting (presentation rounding)
- P&L colors
- Rating and progress bar indicators
"""

from decimal import Decimal

import pytest

from vaultfolio.cli.formatting import (
    MISSING,
    colored_pnl,
    format_money,
    format_pct,
    format_rate,
    format_rating,
    format_signed_money,
    get_pnl_color,
    make_progress_bar,
    short_id,
)
from vaultfolio.utils.money import round_money, round_pct


class TestRounding:
    """Tests for presentation rounding."""

    def test_round_money_half_up(self):
        assert round_money(Decimal("2.675")) == Decimal("2.68")
        assert round_money(Decimal("-2.675")) == Decimal("-2.68")

    def test_round_pct(self):
        assert round_pct(Decimal("35.95")) == Decimal("36.0")
        assert round_pct(Decimal("33.3333"), Decimal("0.01")) == Decimal("33.33")


class TestFormatMoney:
    """Tests for money formatting."""

    def test_thousands_and_currency(self):
        assert format_money(Decimal("1234.5")) == "1,234.50 EUR"

    def test_explicit_currency(self):
        assert format_money(Decimal("5"), "USD") == "5.00 USD"

    def test_missing(self):
        assert format_money(None) == MISSING

    @pytest.mark.parametrize(
        "value,expected",
        [(Decimal("21.8"), "+21.80 EUR"), (Decimal("-20"), "-20.00 EUR"), (Decimal("0"), "+0.00 EUR")],
    )
    def test_signed(self, value, expected):
        assert format_signed_money(value) == expected


class TestFormatPct:
    """Tests for percentage and rate formatting."""

    def test_positive(self):
        assert format_pct(Decimal("50")) == "+50.0%"

    def test_negative(self):
        assert format_pct(Decimal("-20")) == "-20.0%"

    @pytest.mark.parametrize(
        "rate,expected",
        [(Decimal("0.13"), "13%"), (Decimal("0"), "0%"), (Decimal("0.128"), "12.8%"), (Decimal("1"), "100%")],
    )
    def test_rate(self, rate, expected):
        assert format_rate(rate) == expected


class TestPnlColor:
    """Tests for P&L coloring."""

    def test_colors(self):
        assert get_pnl_color(Decimal("1")) == "green"
        assert get_pnl_color(Decimal("0")) == "green"
        assert get_pnl_color(Decimal("-0.01")) == "red"

    def test_markup(self):
        assert colored_pnl(Decimal("-5")) == "[red]-5.00 EUR[/red]"


class TestIndicators:
    """Tests for text indicators."""

    def test_rating(self):
        assert format_rating(3) == "***oo"
        assert format_rating(9) == "*****"
        assert format_rating(-1) == "ooooo"

    def test_progress_bar(self):
        assert make_progress_bar(50, 100) == "#####-----"
        assert make_progress_bar(5, 0) == "----------"

    def test_short_id(self):
        assert short_id("0123456789abcdef") == "01234567"

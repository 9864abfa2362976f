"""Tests for market quote summarization."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from vaultfolio.core.exceptions import NoPriceDataError
from vaultfolio.core.pricing.quotes import median, summarize_prices


class TestMedian:
    """Tests for median()."""

    def test_odd(self):
        assert median([Decimal("3"), Decimal("1"), Decimal("2")]) == Decimal("2")

    def test_even_uses_mean_of_middle_values(self):
        assert median([Decimal("10"), Decimal("40"), Decimal("20"), Decimal("30")]) == Decimal("25")


class TestSummarizePrices:
    """Tests for summarize_prices()."""

    def test_summary(self):
        when = datetime(2024, 6, 1, tzinfo=timezone.utc)
        quote = summarize_prices(["150", 165.5, Decimal("180"), "210"], updated_at=when)

        assert quote.median == Decimal("172.75")
        assert quote.min_price == Decimal("150.00")
        assert quote.max_price == Decimal("210.00")
        assert quote.sales_count == 4
        assert quote.updated_at == when

    def test_rounds_to_cents(self):
        quote = summarize_prices(["10.005", "10.004", "10.006"])

        assert quote.median == Decimal("10.01")
        assert quote.min_price == Decimal("10.00")

    def test_discards_non_positive(self):
        quote = summarize_prices(["0", "-5", "42"])

        assert quote.sales_count == 1
        assert quote.median == Decimal("42.00")

    @pytest.mark.parametrize("prices", [[], ["0", "-1"]])
    def test_no_data(self, prices):
        with pytest.raises(NoPriceDataError):
            summarize_prices(prices)

    @pytest.mark.parametrize("bad", ["NaN", "Infinity"])
    def test_rejects_non_finite_observation(self, bad):
        with pytest.raises(ValueError, match="finite"):
            summarize_prices(["150", bad])

"""
Tests for the valuation engine.

Covers derived metrics, every edit operation, and the accounting
invariants that must hold after each successful edit.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from vaultfolio.core.exceptions import (
    InvalidEstimateError,
    InvalidHoldingError,
    InvalidLotError,
    InvalidSaleError,
    NotFoundError,
    OversellError,
    ValuationError,
)
from vaultfolio.core.portfolio.models import Category, Holding, MarketQuote, PurchaseLot, SaleRecord
from vaultfolio.core.portfolio.valuation import (
    apply_market_quote,
    average_cost,
    compute_holding_metrics,
    create_holding,
    delete_lot,
    delete_sale,
    edit_lot,
    record_purchase,
    record_sale,
    remaining_quantity,
    set_target_alert_price,
    sold_quantity,
    total_quantity,
    update_current_estimate,
)


class TestScenarios:
    """Reference scenarios for the P&L model."""

    def test_single_lot_no_sales(self, etb_holding):
        """One lot {100 x 2}, estimate 150."""
        m = compute_holding_metrics(etb_holding)

        assert m.average_cost == Decimal("100")
        assert m.total_cost == Decimal("200")
        assert m.unrealized_pnl == Decimal("100")
        assert m.realized_pnl == Decimal("0")
        assert m.total_pnl == Decimal("100")
        assert m.total_pnl_pct == Decimal("50")

    def test_partial_sale_with_fee(self, etb_holding, make_sale):
        """Sell 1 at 140 on a 13% platform."""
        sale = make_sale("140", 1, "ebay")
        holding = record_sale(etb_holding, sale)
        m = compute_holding_metrics(holding)

        assert sale.gross_amount == Decimal("140")
        assert sale.fee_amount == Decimal("18.2")
        assert sale.net_amount == Decimal("121.8")
        assert m.realized_pnl == Decimal("21.8")
        assert m.remaining_quantity == 1
        assert m.unrealized_pnl == Decimal("50")
        assert m.total_pnl == Decimal("71.8")

    def test_oversell_rejected(self, etb_holding, make_sale):
        holding = record_sale(etb_holding, make_sale("140", 1, "ebay"))

        with pytest.raises(OversellError) as exc_info:
            record_sale(holding, make_sale("140", 2, "ebay"))

        assert exc_info.value.requested == 2
        assert exc_info.value.available == 1
        assert len(holding.sales) == 1
        assert remaining_quantity(holding) == 1

    def test_two_lots_weighted_average(self, make_lot):
        holding = create_holding("Crown Zenith ETB", "Elite Trainer Box", make_lot("100", 1))
        holding = record_purchase(holding, make_lot("200", 1))
        m = compute_holding_metrics(holding)

        assert m.average_cost == Decimal("150")
        assert m.total_cost == Decimal("300")

    def test_delete_only_lot_returns_none(self, etb_holding):
        assert delete_lot(etb_holding, etb_holding.lots[0].id) is None

    def test_alert_once_per_crossing_call(self, etb_holding):
        holding = set_target_alert_price(etb_holding, "160")

        first = update_current_estimate(holding, "160", date(2024, 4, 1))
        assert first.alert is not None
        assert first.alert.price == Decimal("160")
        assert first.alert.target_price == Decimal("160")
        assert first.alert.holding_id == holding.id

        second = update_current_estimate(first.holding, "155", date(2024, 4, 2))
        assert second.alert is None

        third = update_current_estimate(second.holding, "175", date(2024, 4, 3))
        assert third.alert is not None
        assert "175" in third.alert.message


class TestDerivedMetrics:
    """Tests for compute_holding_metrics()."""

    def test_total_equals_realized_plus_unrealized(self, etb_holding, make_lot, make_sale):
        holding = record_purchase(etb_holding, make_lot("73.37", 3))
        holding = record_sale(holding, make_sale("120.10", 2, "vinted"))
        holding = record_sale(holding, make_sale("99.99", 1, "ebay"))
        m = compute_holding_metrics(holding)

        assert m.total_pnl == m.realized_pnl + m.unrealized_pnl

    def test_no_unrealized_when_everything_sold(self, etb_holding, make_sale):
        holding = record_sale(etb_holding, make_sale("90", 2, "direct"))
        m = compute_holding_metrics(holding)

        assert m.remaining_quantity == 0
        assert m.unrealized_pnl == Decimal("0")
        assert m.current_value == Decimal("0")
        assert m.realized_pnl == Decimal("-20")

    def test_zero_cost_guard(self):
        holding = Holding(
            id="free",
            name="Promo pack",
            category=Category.BOOSTER,
            current_estimate=Decimal("5"),
            lots=[PurchaseLot("lot1", date(2024, 1, 1), Decimal("0"), 2)],
        )
        m = compute_holding_metrics(holding)

        assert m.total_cost == Decimal("0")
        assert m.total_pnl == Decimal("10")
        assert m.total_pnl_pct == Decimal("0")

    def test_no_lots_average_is_zero(self):
        holding = Holding(id="x", name="Empty", category=Category.OTHER, current_estimate=Decimal("1"))

        assert average_cost(holding) == Decimal("0")
        assert compute_holding_metrics(holding).total_pnl_pct == Decimal("0")

    def test_no_mid_calculation_rounding(self, make_lot):
        holding = create_holding("Booster", "Booster", make_lot("0.333", 3), current_estimate="0.335")
        m = compute_holding_metrics(holding)

        assert m.total_cost == Decimal("0.999")
        assert m.unrealized_pnl == Decimal("0.006")

    def test_metrics_are_pure(self, etb_holding, make_sale):
        holding = record_sale(etb_holding, make_sale("140", 1, "ebay"))

        assert compute_holding_metrics(holding) == compute_holding_metrics(holding)

    def test_fees_and_proceeds_totals(self, etb_holding, make_sale):
        holding = record_sale(etb_holding, make_sale("100", 1, "vinted"))
        m = compute_holding_metrics(holding)

        assert m.gross_proceeds == Decimal("100")
        assert m.fees_paid == Decimal("5")
        assert m.net_proceeds == Decimal("95")


class TestCreateHolding:
    """Tests for create_holding()."""

    def test_defaults_estimate_to_purchase_price(self, make_lot):
        holding = create_holding("Pikachu UPC", "Ultra Premium Collection", make_lot("119.99", 1))

        assert holding.current_estimate == Decimal("119.99")
        assert holding.category == Category.ULTRA_PREMIUM_COLLECTION
        assert len(holding.lots) == 1
        assert holding.sales == []

    def test_records_first_snapshot(self, make_lot):
        lot = make_lot("50", 1, purchase_date=date(2024, 2, 2))
        holding = create_holding("Bundle", "bundle", lot, current_estimate="55")

        assert len(holding.price_history) == 1
        assert holding.price_history[0].as_of == date(2024, 2, 2)
        assert holding.price_history[0].price == Decimal("55")

    def test_untracked_history(self, make_lot):
        holding = create_holding("Bundle", "Bundle", make_lot(), track_history=False)

        assert holding.price_history is None

    @pytest.mark.parametrize("name", ["", "   ", "x" * 101])
    def test_invalid_name(self, make_lot, name):
        with pytest.raises(InvalidHoldingError):
            create_holding(name, "Bundle", make_lot())

    def test_unknown_category(self, make_lot):
        with pytest.raises(InvalidHoldingError, match="Unknown category"):
            create_holding("Thing", "Plushie", make_lot())

    def test_invalid_initial_lot(self, make_lot):
        with pytest.raises(InvalidLotError):
            create_holding("Thing", "Other", make_lot("0", 1))

    def test_negative_estimate(self, make_lot):
        with pytest.raises(InvalidEstimateError):
            create_holding("Thing", "Other", make_lot(), current_estimate="-1")


class TestRecordPurchase:
    """Tests for record_purchase()."""

    @pytest.mark.parametrize(
        "price,quantity",
        [("0", 1), ("-5", 1), ("10", 0), ("10", -2), ("10", 1.5), ("10", True)],
    )
    def test_rejects_invalid_lot(self, etb_holding, make_lot, price, quantity):
        with pytest.raises(InvalidLotError):
            record_purchase(etb_holding, make_lot(price, quantity))

    @pytest.mark.parametrize("price", ["NaN", "Infinity", "-Infinity"])
    def test_new_lot_rejects_non_finite_price(self, price):
        with pytest.raises(InvalidLotError):
            PurchaseLot.new(price, 1)

    def test_rejects_non_finite_lot_built_directly(self, etb_holding, make_lot):
        lot = replace(make_lot(), unit_price=Decimal("NaN"))

        with pytest.raises(InvalidLotError):
            record_purchase(etb_holding, lot)

    def test_does_not_mutate_input(self, etb_holding, make_lot):
        updated = record_purchase(etb_holding, make_lot("60", 2))

        assert len(etb_holding.lots) == 1
        assert len(updated.lots) == 2
        assert total_quantity(updated) == 4
        assert average_cost(updated) == Decimal("80")


class TestRecordSale:
    """Tests for record_sale()."""

    def test_invalid_sale_is_invalid_lot(self):
        assert issubclass(InvalidSaleError, InvalidLotError)
        assert issubclass(OversellError, ValueError)

    @pytest.mark.parametrize("price,quantity", [("0", 1), ("-1", 1), ("10", 0)])
    def test_rejects_invalid_sale(self, etb_holding, make_sale, price, quantity):
        with pytest.raises(InvalidSaleError):
            record_sale(etb_holding, make_sale(price, quantity))

    @pytest.mark.parametrize("price", ["NaN", "Infinity"])
    def test_new_sale_rejects_non_finite_price(self, fee_rates, price):
        with pytest.raises(InvalidSaleError):
            SaleRecord.new(price, 1, "ebay", fee_rates=fee_rates)

    def test_rejects_non_finite_sale_built_directly(self, etb_holding, make_sale):
        sale = replace(make_sale(), unit_price=Decimal("Infinity"))

        with pytest.raises(InvalidSaleError):
            record_sale(etb_holding, sale)

    def test_sell_exactly_remaining(self, etb_holding, make_sale):
        holding = record_sale(etb_holding, make_sale("150", 2))

        assert sold_quantity(holding) == 2
        assert remaining_quantity(holding) == 0

    def test_fee_frozen_against_table_change(self, etb_holding, fee_rates):
        rates = dict(fee_rates)
        sale = SaleRecord.new("140", 1, "ebay", date(2024, 3, 1), rates)
        holding = record_sale(etb_holding, sale)

        rates["ebay"] = Decimal("0.50")

        stored = holding.find_sale(sale.id)
        assert stored.fee_rate == Decimal("0.13")
        assert stored.net_amount == Decimal("121.8")
        assert compute_holding_metrics(holding).realized_pnl == Decimal("21.8")

    def test_fee_frozen_against_config_change(self, etb_holding, monkeypatch):
        from vaultfolio.config import config

        sale = SaleRecord.new("140", 1, "ebay")
        holding = record_sale(etb_holding, sale)
        monkeypatch.setattr(config, "fee_rate_overrides", "ebay=0.2")

        assert SaleRecord.new("140", 1, "ebay").fee_amount == Decimal("28.0")
        assert holding.sales[0].fee_amount == Decimal("18.2")


class TestUpdateCurrentEstimate:
    """Tests for update_current_estimate()."""

    def test_appends_history(self, etb_holding):
        update = update_current_estimate(etb_holding, "175.50", date(2024, 5, 1))

        assert update.holding.current_estimate == Decimal("175.50")
        assert update.holding.price_history[-1].price == Decimal("175.50")
        assert update.holding.price_history[-1].as_of == date(2024, 5, 1)
        assert len(update.holding.price_history) == len(etb_holding.price_history) + 1
        assert etb_holding.current_estimate == Decimal("150")

    def test_zero_is_allowed(self, etb_holding):
        assert update_current_estimate(etb_holding, 0).holding.current_estimate == Decimal("0")

    def test_untracked_history_stays_untracked(self, make_lot):
        holding = create_holding("Display", "Display", make_lot(), track_history=False)
        update = update_current_estimate(holding, "120")

        assert update.holding.price_history is None

    @pytest.mark.parametrize("price", ["-0.01", "abc", "NaN", "Infinity", Decimal("-Infinity")])
    def test_rejects_invalid_price(self, etb_holding, price):
        with pytest.raises(InvalidEstimateError):
            update_current_estimate(etb_holding, price)

    def test_no_alert_without_target(self, etb_holding):
        assert update_current_estimate(etb_holding, "1000").alert is None

    def test_alert_below_target(self, etb_holding):
        holding = set_target_alert_price(etb_holding, "200")

        assert update_current_estimate(holding, "199.99").alert is None


class TestTargetAndQuote:
    """Tests for set_target_alert_price() and apply_market_quote()."""

    def test_set_and_clear_target(self, etb_holding):
        holding = set_target_alert_price(etb_holding, "180")
        assert holding.target_alert_price == Decimal("180")

        cleared = set_target_alert_price(holding, None)
        assert cleared.target_alert_price is None

    def test_negative_target(self, etb_holding):
        with pytest.raises(InvalidEstimateError):
            set_target_alert_price(etb_holding, "-10")

    def test_infinite_target(self, etb_holding):
        with pytest.raises(InvalidEstimateError):
            set_target_alert_price(etb_holding, "Infinity")

    def test_quote_does_not_change_estimate(self, etb_holding):
        quote = MarketQuote(Decimal("180"), Decimal("150"), Decimal("210"), 7)
        holding = apply_market_quote(etb_holding, quote)

        assert holding.market_quote == quote
        assert holding.current_estimate == Decimal("150")


class TestDeleteSale:
    """Tests for delete_sale()."""

    def test_restores_quantity(self, etb_holding, make_sale):
        sale = make_sale("140", 2)
        holding = record_sale(etb_holding, sale)
        restored = delete_sale(holding, sale.id)

        assert remaining_quantity(restored) == 2
        assert restored.sales == []
        assert len(holding.sales) == 1

    def test_unknown_sale(self, etb_holding):
        with pytest.raises(NotFoundError, match="Sale not found"):
            delete_sale(etb_holding, "missing")


class TestDeleteLot:
    """Tests for delete_lot()."""

    def test_removes_lot(self, etb_holding, make_lot):
        holding = record_purchase(etb_holding, make_lot("200", 1))
        updated = delete_lot(holding, holding.lots[0].id)

        assert len(updated.lots) == 1
        assert average_cost(updated) == Decimal("200")

    def test_unknown_lot(self, etb_holding):
        with pytest.raises(NotFoundError, match="Lot not found"):
            delete_lot(etb_holding, "missing")

    def test_blocked_when_sales_need_the_units(self, etb_holding, make_lot, make_sale):
        holding = record_purchase(etb_holding, make_lot("80", 1))
        holding = record_sale(holding, make_sale("150", 2))

        with pytest.raises(OversellError, match="Delete sales first"):
            delete_lot(holding, holding.lots[0].id)

    def test_allowed_when_other_lots_cover_sales(self, etb_holding, make_lot, make_sale):
        holding = record_purchase(etb_holding, make_lot("80", 1))
        holding = record_sale(holding, make_sale("150", 1))
        updated = delete_lot(holding, holding.lots[1].id)

        assert total_quantity(updated) == 2
        assert sold_quantity(updated) <= total_quantity(updated)

    def test_realized_pnl_follows_current_lots(self, etb_holding, make_lot, make_sale):
        holding = record_purchase(etb_holding, make_lot("40", 2))
        holding = record_sale(holding, make_sale("100", 1))
        assert compute_holding_metrics(holding).realized_pnl == Decimal("30")

        updated = delete_lot(holding, holding.lots[1].id)
        assert compute_holding_metrics(updated).realized_pnl == Decimal("0")


class TestEditLot:
    """Tests for edit_lot()."""

    def test_edit_price(self, etb_holding):
        lot_id = etb_holding.lots[0].id
        updated = edit_lot(etb_holding, lot_id, unit_price="90")

        assert average_cost(updated) == Decimal("90")
        assert updated.lots[0].id == lot_id
        assert etb_holding.lots[0].unit_price == Decimal("100")

    def test_edit_date_and_source(self, etb_holding):
        updated = edit_lot(
            etb_holding, etb_holding.lots[0].id,
            purchase_date=date(2023, 12, 24), source="  Gamemania  ",
        )

        assert updated.lots[0].purchase_date == date(2023, 12, 24)
        assert updated.lots[0].source == "Gamemania"

    def test_cannot_drop_below_sold(self, etb_holding, make_sale):
        holding = record_sale(etb_holding, make_sale("150", 2))

        with pytest.raises(OversellError):
            edit_lot(holding, holding.lots[0].id, quantity=1)

    @pytest.mark.parametrize(
        "changes",
        [{"unit_price": "0"}, {"quantity": 0}, {"unit_price": "abc"}, {"unit_price": "NaN"}],
    )
    def test_invalid_edit(self, etb_holding, changes):
        with pytest.raises(InvalidLotError):
            edit_lot(etb_holding, etb_holding.lots[0].id, **changes)

    def test_unknown_lot(self, etb_holding):
        with pytest.raises(NotFoundError):
            edit_lot(etb_holding, "missing", unit_price="1")


class TestOversellInvariant:
    """sold <= purchased after every successful edit."""

    def test_sequence_of_edits(self, etb_holding, make_lot, make_sale):
        holding = etb_holding
        steps = [
            lambda h: record_purchase(h, make_lot("90", 3)),
            lambda h: record_sale(h, make_sale("120", 4, "vinted")),
            lambda h: delete_sale(h, h.sales[0].id),
            lambda h: record_sale(h, make_sale("130", 5, "ebay")),
            lambda h: record_purchase(h, make_lot("110", 1)),
            lambda h: record_sale(h, make_sale("125", 1)),
        ]
        for step in steps:
            holding = step(holding)
            assert sold_quantity(holding) <= total_quantity(holding)

        with pytest.raises(ValuationError):
            record_sale(holding, make_sale("125", 1))

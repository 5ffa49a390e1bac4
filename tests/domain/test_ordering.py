"""Tests for stock-aware order sizing and pack rounding."""

from __future__ import annotations

import logging

import pytest

from app.domain.replenishment.errors import InvalidFrequency
from app.domain.replenishment.ordering import (
    ORDER_FREQUENCIES,
    ReplenishmentItem,
    build_replenishment_item,
    clamp_stock,
    frequency_label,
    high_seller_threshold,
    order_sheet_columns,
    order_sheet_rows,
    performance_label,
    round_to_pack_size,
    suggested_order,
    validate_frequency,
)


def test_suggested_order_with_pack_size():
    """avg 10/wk, every 2 weeks, 5 on hand -> 15, packed by 6 -> 18."""
    raw = suggested_order(10, 2, 5)

    assert raw == 15
    assert round_to_pack_size(raw, 6) == 18


def test_suggested_order_never_negative():
    """Overstocked items suggest 0."""
    for avg in (0, 0.3, 1, 7.5, 40):
        for freq in ORDER_FREQUENCIES:
            for stock in (0, 1, 12.5, 1000):
                assert suggested_order(avg, freq, stock) >= 0


def test_suggested_order_rounds_up_fractional_demand():
    """Demand is ceiled before stock is netted."""
    assert suggested_order(2.2, 1, 0) == 3
    assert suggested_order(3, 1, 0.5) == 3
    assert suggested_order(0.1, 0.5, 0) == 1


def test_negative_stock_is_clamped(caplog):
    """Negative stock counts as zero and is logged."""
    with caplog.at_level(logging.WARNING):
        assert clamp_stock(-4, key="Tea") == 0

    assert suggested_order(5, 1, -4) == 5
    assert "negative_stock_clamped" in caplog.text
    assert clamp_stock(None) == 0


@pytest.mark.parametrize("freq", [0, -1, 5, 1.5, "weekly", None, True])
def test_invalid_frequency_rejected(freq):
    """Only the enumerated order cycles are accepted."""
    with pytest.raises(InvalidFrequency):
        validate_frequency(freq)


def test_invalid_frequency_carries_item_key():
    """Errors for a single item name that item."""
    with pytest.raises(InvalidFrequency) as exc:
        build_replenishment_item(
            item_name="Oat Milk", avg_weekly=3, current_stock=0, order_frequency=7
        )

    assert exc.value.key == "Oat Milk"
    assert exc.value.frequency == 7
    assert isinstance(exc.value, ValueError)


def test_frequency_labels():
    assert frequency_label(0.5) == "Semi-weekly (Twice per week)"
    assert frequency_label(2) == "Bi-weekly (Every 2 weeks)"
    assert validate_frequency(4) == 4.0


def test_round_to_pack_size_idempotent():
    """Rounding an already rounded quantity changes nothing."""
    for pack in (1, 6, 12, 24):
        for q in range(0, 60):
            once = round_to_pack_size(q, pack)
            assert round_to_pack_size(once, pack) == once
            assert once % pack == 0
            assert once >= q


def test_round_to_pack_size_without_pack():
    """Unset or invalid pack sizes leave the quantity alone."""
    assert round_to_pack_size(15, None) == 15
    assert round_to_pack_size(15, 0) == 15
    assert round_to_pack_size(15, -6) == 15
    assert round_to_pack_size(0, 6) == 0


def test_item_suggestion_and_override_lifecycle():
    """Order quantity overrides stay pack multiples through pack changes."""
    item = build_replenishment_item(
        item_name="Oat Milk",
        avg_weekly=10,
        current_stock=5,
        order_frequency=2,
        pack_size=6,
    )
    assert item.suggested_order == 18
    assert item.order_quantity is None

    item.set_order_quantity(13)
    assert item.order_quantity == 18

    item.set_pack_size(12)
    assert item.order_quantity == 24
    assert item.suggested_order == 24

    item.set_pack_size(None)
    assert item.order_quantity == 24
    assert item.suggested_order == 15


def test_item_update_stock_recomputes():
    """New on-hand counts flow into the suggestion."""
    item = build_replenishment_item(
        item_name="Tea", avg_weekly=10, current_stock=0, order_frequency=1
    )
    assert item.suggested_order == 10

    item.update_stock(7, order_frequency=1)
    assert item.suggested_order == 3

    item.update_stock(-2, order_frequency=1)
    assert item.current_stock == 0
    assert item.suggested_order == 10


def test_item_recalculate_derives_average_from_totals():
    """A missing average is rebuilt from total units over the period."""
    item = ReplenishmentItem(
        item_name="Tea",
        vendor_name="",
        category="",
        avg_weekly=0,
        current_stock=1,
        total_units=12,
    )

    item.recalculate(1, period_weeks=4)

    assert item.avg_weekly == pytest.approx(3.0)
    assert item.suggested_order == 2


def test_zero_velocity_suggests_nothing():
    item = build_replenishment_item(
        item_name="Tea", avg_weekly=0, current_stock=0, order_frequency=4, pack_size=6
    )

    assert item.suggested_order == 0


def test_margin_fields():
    item = build_replenishment_item(
        item_name="Tea",
        avg_weekly=1,
        current_stock=0,
        order_frequency=1,
        sell_price=5.0,
        cost_price=3.0,
    )

    assert item.margin == pytest.approx(2.0)
    assert item.margin_percent == pytest.approx(40.0)


def test_performance_bands():
    """Top 20% of sellers are HIGH, below 0.3/wk LOW, below 2/wk MEDIUM."""
    values = [10, 8, 6, 4, 2, 1, 0.5, 0.2, 0.1, 0]
    threshold = high_seller_threshold(values)

    assert threshold == 6
    assert performance_label(6, threshold) == "HIGH"
    assert performance_label(4, threshold) == "NORMAL"
    assert performance_label(1, threshold) == "MEDIUM"
    assert performance_label(0.2, threshold) == "LOW"
    assert high_seller_threshold([]) == 5.0


def test_order_sheet_rows():
    """Rows carry weekly columns and skip items without an order quantity."""
    ordered = build_replenishment_item(
        item_name="Oat Milk",
        vendor_name="Dairy Co",
        category="Fridge",
        avg_weekly=10,
        current_stock=5,
        order_frequency=2,
        pack_size=6,
        order_quantity=13,
        weeks=[9, 11],
        total_units=20,
        sell_price=5.0,
        cost_price=3.0,
    )
    skipped = build_replenishment_item(
        item_name="Tea", avg_weekly=1, current_stock=0, order_frequency=1, weeks=[1, 1]
    )

    columns, rows = order_sheet_rows([ordered, skipped])

    assert columns == order_sheet_columns(2)
    assert columns[3:5] == ["WK1", "WK2"]
    assert len(rows) == 1
    row = rows[0]
    assert row["Item"] == "Oat Milk"
    assert row["WK2"] == 11
    assert row["Suggested"] == 18
    assert row["Order Qty"] == 18
    assert row["Margin $"] == "2.00"
    assert row["Margin %"] == "40.0"

    _, all_rows = order_sheet_rows([ordered, skipped], only_ordered=False)
    assert len(all_rows) == 2


def test_order_sheet_rows_name_variation_lines():
    item = build_replenishment_item(
        item_name="Pie",
        variation_name="Spinach Pie",
        avg_weekly=4,
        current_stock=0,
        order_frequency=1,
        weeks=[4],
    )

    _, rows = order_sheet_rows([item])

    assert rows[0]["Item"] == "Pie - Spinach Pie"

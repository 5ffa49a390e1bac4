"""Tests for low-stock priority classification."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from app.domain.replenishment.priority import (
    LowStockAlert,
    Priority,
    StockPosition,
    build_alert,
    build_low_stock_report,
    classify_priority,
    days_of_stock_remaining,
    needs_attention,
    sort_alerts,
    suggested_reorder_qty,
)
from app.domain.replenishment.sales import SalesRecord, aggregate_sales


def test_out_of_stock_is_always_critical():
    """Zero stock wins over any runway figure."""
    for days in (None, 0, 5, 10, 100):
        priority, reason = classify_priority(0, None, days)
        assert priority == Priority.CRITICAL
        assert reason == "Out of stock"


def test_below_reorder_point_is_critical_regardless_of_velocity():
    """8 on hand with reorder point 10 -> critical."""
    for days in (None, 2, 50):
        priority, reason = classify_priority(8, 10, days)
        assert priority == Priority.CRITICAL
        assert "Below reorder point (10)" in reason


@pytest.mark.parametrize(
    "days,expected",
    [
        (2.9, Priority.CRITICAL),
        (3, Priority.WARNING),
        (6.9, Priority.WARNING),
        (7, Priority.WATCH),
        (13.9, Priority.WATCH),
        (14, Priority.OK),
        (None, Priority.OK),
    ],
)
def test_runway_thresholds(days, expected):
    assert classify_priority(20, None, days)[0] == expected


def test_classification_is_idempotent():
    assert classify_priority(5, 2, 4.2) == classify_priority(5, 2, 4.2)


def test_priority_rank_order():
    ranked = sorted(Priority, key=lambda p: p.rank)

    assert ranked == [Priority.CRITICAL, Priority.WARNING, Priority.WATCH, Priority.OK]


def test_days_of_stock_remaining():
    assert days_of_stock_remaining(10, 2) == pytest.approx(5.0)
    assert days_of_stock_remaining(10, 0) is None


def test_suggested_reorder_qty_targets_runway():
    """2/day with 10 on hand (5 days) needs 50 more for 30 days."""
    assert suggested_reorder_qty(2, 10) == 50
    assert suggested_reorder_qty(2, 100) == 0
    assert suggested_reorder_qty(0, 0) == 0
    assert suggested_reorder_qty(1.5, 0, target_days=7) == 11


def test_build_alert_clamps_negative_stock():
    alert = build_alert(StockPosition("1", "Tea", current_stock=-3), avg_daily_sales=1)

    assert alert.current_stock == 0
    assert alert.priority == Priority.CRITICAL
    assert alert.suggested_reorder_qty == 30


def _alert(name, priority, days):
    return LowStockAlert(
        item_id=name,
        name=name,
        category="",
        vendor_name=None,
        current_stock=1,
        reorder_point=None,
        avg_daily_sales=1,
        days_of_stock_remaining=days,
        priority=priority,
        reason="",
        suggested_reorder_qty=0,
    )


def test_sort_alerts_by_rank_then_runway():
    """Unknown runway sorts last within a tier."""
    alerts = [
        _alert("watch", Priority.WATCH, 10),
        _alert("crit-none", Priority.CRITICAL, None),
        _alert("warn", Priority.WARNING, 4),
        _alert("crit-1", Priority.CRITICAL, 1),
    ]

    names = [a.name for a in sort_alerts(alerts)]

    assert names == ["crit-1", "crit-none", "warn", "watch"]


def test_needs_attention():
    assert needs_attention(_alert("a", Priority.CRITICAL, None))
    assert needs_attention(_alert("b", Priority.WARNING, 5))
    assert needs_attention(_alert("c", Priority.WATCH, 10))
    assert not needs_attention(_alert("d", Priority.WATCH, 10), attention_days=7)
    assert not needs_attention(_alert("e", Priority.OK, 40))


def _report(urgent_only=False):
    start, end = date(2025, 11, 1), date(2025, 11, 30)
    records = [
        SalesRecord("Oat Milk", date(2025, 11, 10), 60),  # 2/day
        SalesRecord("Kombucha", date(2025, 11, 10), 30),  # 1/day
        SalesRecord("Tea", date(2025, 11, 10), 30),  # 1/day
    ]
    positions = [
        StockPosition("1", "Oat Milk", 4, vendor_name="Dairy Co"),  # 2 days -> critical
        StockPosition("2", "Kombucha", 5, vendor_name="Brew Co"),  # 5 days -> warning
        StockPosition("3", "Tea", 40),  # 40 days -> ok
        StockPosition("4", "Dusty Jar", 0),  # no sales, out of stock
        StockPosition("5", "Honey", 3, reorder_point=5),  # below reorder point
    ]
    summaries = aggregate_sales(records, start, end, 30)
    return build_low_stock_report(
        positions, summaries, 30, datetime(2025, 11, 30, 9, 0), urgent_only=urgent_only
    )


def test_low_stock_report():
    report = _report()

    names = [a.name for a in report.alerts]
    assert "Tea" not in names
    assert names[-1] == "Kombucha"
    assert set(names[:3]) == {"Oat Milk", "Dusty Jar", "Honey"}
    assert names[0] == "Oat Milk"
    assert report.summary == {"total": 4, "critical": 3, "warning": 1, "watch": 0}


def test_low_stock_report_urgent_only():
    report = _report(urgent_only=True)

    assert all(a.priority == Priority.CRITICAL for a in report.alerts)
    assert report.summary["total"] == 3

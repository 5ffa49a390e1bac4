"""Tests for low-stock and vendor-reminder digests."""

from __future__ import annotations

from datetime import datetime

from app.domain.replenishment.deadlines import VendorDeadline, due_reminders
from app.domain.replenishment.delivery import DayOfWeek
from app.domain.replenishment.digest import format_low_stock_digest, format_reminder_digest
from app.domain.replenishment.priority import (
    LowStockReport,
    StockPosition,
    build_alert,
    sort_alerts,
)

GENERATED = datetime(2025, 11, 4, 9, 0)


def _report(positions_with_velocity):
    alerts = [build_alert(p, v) for p, v in positions_with_velocity]
    return LowStockReport(generated_at=GENERATED, period_days=30, alerts=sort_alerts(alerts))


def test_healthy_digest():
    text = format_low_stock_digest(LowStockReport(GENERATED, 30, []))

    assert "All stock levels looking healthy!" in text
    assert "Needs Action" not in text


def test_low_stock_digest_groups_by_vendor():
    report = _report(
        [
            (StockPosition("1", "Oat Milk", 0, vendor_name="Dairy Co"), 2),
            (StockPosition("2", "Yoghurt", 5, vendor_name="Dairy Co"), 1),
            (StockPosition("3", "Tea", 10), 1),  # watch, 10 days
        ]
    )

    text = format_low_stock_digest(report, store_name="Corner Store Stock Alert")

    assert text.startswith("📦 *Corner Store Stock Alert*")
    assert "Based on last 30 days" in text
    assert "*1 critical*" in text
    assert "*1 warning*" in text
    assert "*1 watch*" in text
    assert "🚨 Oat Milk (Dairy Co)" in text
    assert "Stock: OUT" in text
    assert "Order: ~60 units" in text
    assert "• Dairy Co: 2 items" in text
    assert "Tea" not in text.split("*📋 By Vendor*")[0].split("Needs Action")[1]


def test_low_stock_digest_caps_listed_items():
    report = _report(
        [(StockPosition(str(i), f"Item {i}", 0, vendor_name="Big Co"), 1) for i in range(13)]
    )

    text = format_low_stock_digest(report)

    assert text.count("🚨 Item") == 10
    assert "... and 3 more items" in text
    assert "• Big Co: 13 items" in text


def test_reminder_digest_sections():
    now = datetime(2025, 11, 4, 14, 45)  # Tuesday
    schedules = [
        VendorDeadline("Late Co", DayOfWeek.TUESDAY, deadline="2:30 PM", notes="Call Sam"),
        VendorDeadline("Now Co", DayOfWeek.TUESDAY, deadline="3:00 PM"),
        VendorDeadline(
            "Soon Co", DayOfWeek.TUESDAY, deadline="4:00 PM", delivery_day=DayOfWeek.THURSDAY
        ),
        VendorDeadline("Anytime Co", DayOfWeek.TUESDAY),
    ]
    reminders = due_reminders(schedules, now, include_no_deadline=True)

    text = format_reminder_digest(reminders, now)

    assert text.startswith("🚨 *VENDOR ORDER REMINDER*")
    assert "Tuesday 2:45 PM" in text
    assert "❌ *OVERDUE*" in text
    assert "• *Late Co* - deadline was 2:30 PM" in text
    assert "_Call Sam_" in text
    assert "🔴 *ORDER NOW*" in text
    assert "• *Now Co* - 15min left (3:00 PM)" in text
    assert "🟡 *Coming Up*" in text
    assert "📦 Delivery: Thursday" in text
    assert "📋 *Also Due Today*" in text
    assert "• *Anytime Co* - no deadline" in text
    assert text.index("OVERDUE") < text.index("ORDER NOW") < text.index("Coming Up")


def test_reminder_digest_empty():
    assert format_reminder_digest([], datetime(2025, 11, 4, 9, 0)) == ""

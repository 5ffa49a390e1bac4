"""Plain-text digests for low-stock alerts and vendor order reminders.

Messages are short chat-style summaries (``*bold*`` markup) meant to be
forwarded to staff as-is.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from app.domain.replenishment.deadlines import Urgency, VendorReminder
from app.domain.replenishment.priority import LowStockReport, Priority

MAX_URGENT_LINES = 10
UNKNOWN_VENDOR = "Unknown Vendor"


def _qty(value: float) -> str:
    return f"{value:g}"


def format_low_stock_digest(report: LowStockReport, store_name: str = "Stock Alert") -> str:
    """Render a low-stock report as a chat message.

    Critical and warning items are listed (at most MAX_URGENT_LINES), then a
    per-vendor count of urgent items.

    Args:
        report: Low-stock report
        store_name: Header title

    Returns:
        Multi-line message

    """
    lines = [f"📦 *{store_name}*", f"📊 Based on last {report.period_days} days", ""]

    if not report.alerts:
        lines.append("✅ All stock levels looking healthy!")
        lines.append("No items need attention right now.")
        return "\n".join(lines)

    summary = report.summary
    if summary["critical"]:
        lines.append(f"🚨 *{summary['critical']} critical* items need immediate attention")
    if summary["warning"]:
        lines.append(f"⚠️ *{summary['warning']} warning* items running low")
    if summary["watch"]:
        lines.append(f"👀 *{summary['watch']} watch* items to keep an eye on")
    lines.append("")

    urgent = [a for a in report.alerts if a.priority in (Priority.CRITICAL, Priority.WARNING)]
    if urgent:
        lines.append("*🔴 Needs Action*")
        for alert in urgent[:MAX_URGENT_LINES]:
            emoji = "🚨" if alert.priority == Priority.CRITICAL else "⚠️"
            vendor = f" ({alert.vendor_name})" if alert.vendor_name else ""
            stock = "OUT" if alert.current_stock <= 0 else _qty(alert.current_stock)
            days = (
                f" ~{alert.days_of_stock_remaining:.1f}d"
                if alert.days_of_stock_remaining is not None
                else ""
            )
            lines.append(f"{emoji} {alert.name}{vendor}")
            lines.append(f"   Stock: {stock}{days}")
            if alert.suggested_reorder_qty > 0:
                lines.append(f"   Order: ~{alert.suggested_reorder_qty} units")
        if len(urgent) > MAX_URGENT_LINES:
            lines.append("")
            lines.append(f"... and {len(urgent) - MAX_URGENT_LINES} more items")

    by_vendor: dict[str, int] = {}
    for alert in urgent:
        vendor = alert.vendor_name or UNKNOWN_VENDOR
        by_vendor[vendor] = by_vendor.get(vendor, 0) + 1

    lines.append("")
    lines.append("*📋 By Vendor*")
    for vendor, count in by_vendor.items():
        lines.append(f"• {vendor}: {count} item{'s' if count > 1 else ''}")

    return "\n".join(lines).rstrip()


def _reminder_details(reminder: VendorReminder) -> list[str]:
    lines = []
    if reminder.delivery_day is not None:
        lines.append(f"  📦 Delivery: {reminder.delivery_day.label}")
    if reminder.notes:
        lines.append(f"  _{reminder.notes}_")
    return lines


def format_reminder_digest(reminders: Sequence[VendorReminder], now: datetime) -> str:
    """Render vendor order reminders as a chat message.

    Sections: OVERDUE, ORDER NOW (urgent), Coming Up (soon), Also Due Today.

    Args:
        reminders: Reminders from due_reminders()
        now: Local time shown in the header

    Returns:
        Multi-line message (empty string when there is nothing to remind)

    """
    if not reminders:
        return ""

    if any(r.urgency == Urgency.URGENT for r in reminders):
        header = "🚨 *VENDOR ORDER REMINDER*"
    elif any(r.urgency == Urgency.SOON for r in reminders):
        header = "⏰ *Vendor Order Reminder*"
    else:
        header = "📋 *Vendor Order Reminder*"

    clock = now.strftime("%I:%M %p").lstrip("0")
    tz = f" {now.tzname()}" if now.tzinfo else ""
    lines = [header, f"{now.strftime('%A')} {clock}{tz}", ""]

    overdue = [r for r in reminders if r.is_overdue]
    if overdue:
        lines.append("❌ *OVERDUE*")
        for r in overdue:
            lines.append(f"• *{r.vendor_name}* - deadline was {r.deadline}")
            if r.notes:
                lines.append(f"  _{r.notes}_")
        lines.append("")

    urgent = [r for r in reminders if r.urgency == Urgency.URGENT and not r.is_overdue]
    if urgent:
        lines.append("🔴 *ORDER NOW*")
        for r in urgent:
            lines.append(f"• *{r.vendor_name}* - {r.time_remaining} left ({r.deadline})")
            lines.extend(_reminder_details(r))
        lines.append("")

    soon = [r for r in reminders if r.urgency == Urgency.SOON]
    if soon:
        lines.append("🟡 *Coming Up*")
        for r in soon:
            lines.append(f"• *{r.vendor_name}* - {r.time_remaining} ({r.deadline})")
            lines.extend(_reminder_details(r))
        lines.append("")

    later = [r for r in reminders if r.urgency == Urgency.TODAY]
    if later:
        lines.append("📋 *Also Due Today*")
        for r in later:
            if r.deadline and r.minutes_until_deadline is not None:
                lines.append(f"• *{r.vendor_name}* - {r.time_remaining} ({r.deadline})")
            else:
                lines.append(f"• *{r.vendor_name}* - no deadline")
            lines.extend(_reminder_details(r))

    return "\n".join(lines).strip()


__all__ = ["format_low_stock_digest", "format_reminder_digest"]

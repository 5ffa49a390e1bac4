"""Replenishment service facade.

Wires sales history and stock snapshots through the pure domain passes
(aggregation, velocity, sizing, buffers, delivery windows, priority and
deadlines) and records run metrics.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.logging import set_run_id
from app.core.metrics import (
    data_quality_issues_total,
    invalid_frequency_total,
    low_stock_alerts_total,
    replenishment_run_duration_seconds,
    replenishment_runs_total,
)
from app.db.models import VendorSchedule
from app.domain.replenishment.buffers import BufferSettings
from app.domain.replenishment.deadlines import (
    VendorDeadline,
    VendorReminder,
    due_reminders,
    parse_deadline_time,
)
from app.domain.replenishment.delivery import (
    PER_WINDOW,
    BoxSizeTable,
    DayOfWeek,
    DeliverySheet,
    DeliveryWindow,
    active_order_window,
    compute_delivery_sheets,
    default_delivery_windows,
)
from app.domain.replenishment.errors import InvalidFrequency, MalformedDeadline
from app.domain.replenishment.ordering import (
    ReplenishmentItem,
    build_replenishment_item,
    frequency_label,
    validate_frequency,
)
from app.domain.replenishment.priority import LowStockReport, build_low_stock_report
from app.domain.replenishment.sales import (
    SalesRecord,
    aggregate_sales,
    analyzed_days_for_weeks,
    display_names,
    normalize_item_key,
    record_key,
    weekday_averages,
    weekly_buckets,
)
from app.domain.replenishment.velocity import compute_velocity
from app.services.stock_repository import InventorySnapshot, stock_by_name

logger = logging.getLogger(__name__)


@contextmanager
def monitor_run(kind: str):
    """Time a replenishment computation and count it.

    Usage:
        with monitor_run("order_sheet"):
            ...

    """
    run_id = set_run_id()
    start_time = time.time()
    logger.info("replenishment_run_started", extra={"kind": kind})
    try:
        yield run_id
    except InvalidFrequency as e:
        invalid_frequency_total.inc()
        logger.warning(
            "replenishment_run_rejected",
            extra={"kind": kind, "frequency": e.frequency, "key": e.key},
        )
        raise
    finally:
        duration = time.time() - start_time
        replenishment_runs_total.labels(kind=kind).inc()
        replenishment_run_duration_seconds.labels(kind=kind).observe(duration)
        logger.info(
            "replenishment_run_finished",
            extra={"kind": kind, "duration_ms": round(duration * 1000, 1)},
        )


def local_now() -> datetime:
    """Current time in the store's timezone."""
    return datetime.now(ZoneInfo(get_settings().app_timezone))


@dataclass
class OrderSheet:
    """Order suggestions for one order frequency."""

    order_frequency: float
    frequency_label: str
    start: date
    end: date
    period_days: int
    items: list[ReplenishmentItem] = field(default_factory=list)

    @property
    def weeks(self) -> int:
        return max((len(i.weeks) for i in self.items), default=0)


def _span_days(start: date, end: date) -> int:
    return max(0, (end - start).days + 1)


def _parent_names(records: Iterable[SalesRecord]) -> dict[str, str]:
    """Variation key -> first-seen parent item name."""
    parents: dict[str, str] = {}
    for rec in records:
        if rec.variation_name:
            parents.setdefault(record_key(rec, by_variation=True), rec.item_name.strip())
    return parents


def build_order_sheet(
    records: Sequence[SalesRecord],
    snapshots: Iterable[InventorySnapshot],
    *,
    start: date,
    end: date,
    order_frequency: float,
    period_weeks: float | None = None,
    item_frequencies: Mapping[str, float] | None = None,
    order_quantities: Mapping[str, int] | None = None,
    by_variation: bool = False,
) -> OrderSheet:
    """Build the order sheet from sales history and current stock.

    Args:
        records: Sales records (out-of-window rows are ignored)
        snapshots: Current stock for known items
        start: First day of the sales window
        end: Last day of the sales window
        order_frequency: Order cycle in weeks for every item
        period_weeks: Declared analyzed period (default: the window length)
        item_frequencies: Per-item order cycle overrides (keyed by item name)
        order_quantities: User order quantities (keyed by item name)
        by_variation: One line per variation; overrides and stock snapshots
            are then keyed by variation name

    Returns:
        OrderSheet with items sorted by vendor, then name

    Raises:
        InvalidFrequency: If any frequency is not allowed

    """
    with monitor_run("order_sheet"):
        freq = validate_frequency(order_frequency)
        overrides = {
            normalize_item_key(name): validate_frequency(value, key=name)
            for name, value in (item_frequencies or {}).items()
        }
        quantities = {normalize_item_key(k): v for k, v in (order_quantities or {}).items()}

        span = _span_days(start, end)
        weeks = math.ceil(span / 7)
        period_days = analyzed_days_for_weeks(period_weeks) if period_weeks else span
        snapshots_by_key = {normalize_item_key(s.name): s for s in snapshots}
        parents = _parent_names(records) if by_variation else {}

        summaries = aggregate_sales(
            records,
            start,
            end,
            period_days,
            include_items=[s.name for s in snapshots_by_key.values()],
            by_variation=by_variation,
        )
        buckets = weekly_buckets(records, start, weeks, end=end, by_variation=by_variation)

        items: list[ReplenishmentItem] = []
        for key, summary in summaries.items():
            snap = snapshots_by_key.get(key)
            velocity = compute_velocity(summary.total_units, summary.period_days)
            parent = parents.get(key)
            items.append(
                build_replenishment_item(
                    item_name=parent or (snap.name if snap else summary.item_name),
                    variation_name=(snap.name if snap else summary.item_name) if parent else None,
                    avg_weekly=velocity.avg_weekly,
                    current_stock=snap.current_stock if snap else 0.0,
                    order_frequency=overrides.get(key, freq),
                    vendor_name=(snap.vendor_name or "") if snap else "",
                    category=snap.category if snap else "",
                    pack_size=snap.pack_size if snap else None,
                    order_quantity=quantities.get(key),
                    item_id=snap.item_id if snap else None,
                    total_units=summary.total_units,
                    weeks=buckets.get(key, [0.0] * weeks),
                    sell_price=snap.sell_price if snap else None,
                    cost_price=snap.cost_price if snap else None,
                )
            )

        items.sort(
            key=lambda i: (
                i.vendor_name.lower(),
                i.item_name.lower(),
                (i.variation_name or "").lower(),
            )
        )
        logger.info(
            "order_sheet_built",
            extra={
                "items": len(items),
                "to_order": sum(1 for i in items if i.suggested_order > 0),
                "order_frequency": freq,
                "period_days": period_days,
            },
        )
        return OrderSheet(
            order_frequency=freq,
            frequency_label=frequency_label(freq),
            start=start,
            end=end,
            period_days=period_days,
            items=items,
        )


def build_delivery_sheets(
    records: Sequence[SalesRecord],
    current_stock: Mapping[str, float] | Iterable[InventorySnapshot] | None,
    *,
    start: date,
    end: date,
    windows: Sequence[DeliveryWindow] | None = None,
    buffers: BufferSettings | None = None,
    box_table: BoxSizeTable | None = None,
    mode: str = PER_WINDOW,
    tracked: Iterable[str] | None = None,
    today: date | None = None,
) -> list[DeliverySheet]:
    """Box orders per delivery window from per-weekday sales averages.

    Args:
        records: Sales records; grouped by variation where present
        current_stock: Variation name -> units, or inventory snapshots
        start: First day of the sales window
        end: Last day of the sales window
        windows: Delivery windows (default: Mon->Tue and Wed->Thu)
        buffers: Buffer percentages (default: from settings)
        box_table: Box size lookup (default: from settings)
        mode: "per_window" or "global"
        tracked: Only compute these variations (default: every one sold)
        today: Day used to flag the window currently taking orders
            (default: today in the store timezone)

    Returns:
        One DeliverySheet per window, in window order

    """
    settings = get_settings()
    with monitor_run("delivery"):
        if buffers is None:
            buffers = BufferSettings(settings.general_buffer_pct, settings.delivery_buffer_pct)
        if box_table is None:
            box_table = settings.box_size_table()
        if windows is None:
            windows = default_delivery_windows()

        if current_stock is None:
            stock: Mapping[str, float] = {}
        elif isinstance(current_stock, Mapping):
            stock = current_stock
        else:
            stock = stock_by_name(current_stock)

        averages = weekday_averages(records, start, end, by_variation=True)
        names = display_names(records, by_variation=True)
        wanted = {normalize_item_key(t) for t in tracked} if tracked is not None else None

        daily = {
            names.get(key, key): values
            for key, values in averages.items()
            if wanted is None or key in wanted
        }
        if wanted:
            for missing in wanted - averages.keys():
                logger.info("tracked_variation_without_sales", extra={"variation": missing})

        sheets = compute_delivery_sheets(windows, daily, stock, buffers, box_table, mode=mode)
        active = active_order_window(today or local_now().date(), windows)
        for sheet in sheets:
            sheet.is_active = sheet.window is active
            logger.info(
                "delivery_sheet_built",
                extra={
                    "window": sheet.window.name,
                    "lines": len(sheet.lines),
                    "total_boxes": sheet.total_boxes,
                    "total_units": sheet.total_units,
                    "active": sheet.is_active,
                },
            )
        return sheets


def generate_low_stock_report(
    records: Sequence[SalesRecord],
    snapshots: Iterable[InventorySnapshot],
    *,
    now: datetime | None = None,
    period_days: int | None = None,
    urgent_only: bool = False,
    attention_days: int | None = None,
    target_days: int | None = None,
) -> LowStockReport:
    """Classify current stock against recent sales velocity.

    Sales over the last ``period_days`` (ending today) drive each item's
    velocity; items without sales can only be flagged by stock level.
    """
    settings = get_settings()
    with monitor_run("low_stock"):
        now = now or local_now()
        period_days = period_days or settings.low_stock_period_days
        end = now.date()
        start = end - timedelta(days=period_days - 1)

        positions = [s.to_position() for s in snapshots]
        summaries = aggregate_sales(records, start, end, period_days)
        report = build_low_stock_report(
            positions,
            summaries,
            period_days,
            now,
            urgent_only=urgent_only,
            attention_days=attention_days or settings.low_stock_attention_days,
            target_days=target_days or settings.low_stock_target_days,
        )

        for alert in report.alerts:
            low_stock_alerts_total.labels(priority=alert.priority.value).inc()
        logger.info("low_stock_report_built", extra=report.summary)
        return report


def _count_malformed_deadlines(schedules: Iterable[VendorDeadline]) -> int:
    malformed = 0
    for schedule in schedules:
        if not schedule.deadline:
            continue
        try:
            parse_deadline_time(schedule.deadline)
        except MalformedDeadline:
            malformed += 1
    return malformed


def generate_vendor_reminders(
    schedules: Sequence[VendorDeadline],
    *,
    now: datetime | None = None,
    hours_ahead: float | None = None,
    include_all: bool = False,
    include_no_deadline: bool = False,
) -> list[VendorReminder]:
    """Vendor orders due today, most urgent first."""
    settings = get_settings()
    with monitor_run("vendor_reminders"):
        now = now or local_now()

        malformed = _count_malformed_deadlines(schedules)
        if malformed:
            data_quality_issues_total.labels(issue="malformed_deadline").inc(malformed)

        reminders = due_reminders(
            schedules,
            now,
            hours_ahead=hours_ahead if hours_ahead is not None else settings.reminder_hours_ahead,
            include_all=include_all,
            include_no_deadline=include_no_deadline,
        )
        logger.info(
            "vendor_reminders_built",
            extra={
                "reminders": len(reminders),
                "overdue": sum(1 for r in reminders if r.is_overdue),
            },
        )
        return reminders


def load_vendor_schedules(db: Session) -> list[VendorDeadline]:
    """Active vendor schedules from the vendor_schedule table."""
    rows = db.execute(
        select(VendorSchedule).where(VendorSchedule.is_active.is_(True))
    ).scalars()
    return [
        VendorDeadline(
            vendor_name=row.vendor_name,
            order_day=DayOfWeek(row.order_day),
            deadline=row.order_deadline,
            delivery_day=DayOfWeek(row.delivery_day) if row.delivery_day is not None else None,
            frequency=row.frequency or "weekly",
            notes=row.notes,
            is_active=row.is_active,
        )
        for row in rows
    ]


__all__ = [
    "OrderSheet",
    "load_vendor_schedules",
    "monitor_run",
    "local_now",
    "build_order_sheet",
    "build_delivery_sheets",
    "generate_low_stock_report",
    "generate_vendor_reminders",
]

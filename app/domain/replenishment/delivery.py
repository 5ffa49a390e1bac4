"""Delivery-window order calculation.

A delivery window is an order day, a delivery day and the calendar days the
delivery must cover until the next one arrives. For each tracked variation
the buffered per-day recommendations over the covered days are summed,
netted against current stock and converted to whole boxes.

Overlapping windows are evaluated independently by default; a global mode
gives each calendar day to the first window that covers it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum

from app.domain.replenishment.buffers import NO_BUFFER, BufferSettings, apply_buffer_settings
from app.domain.replenishment.ordering import ceil_qty, clamp_stock
from app.domain.replenishment.sales import normalize_item_key

logger = logging.getLogger(__name__)

PER_WINDOW = "per_window"
GLOBAL = "global"


class DayOfWeek(IntEnum):
    """Day of week, numbered like ``date.weekday()`` (Monday=0)."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, value: str | int | DayOfWeek | date) -> DayOfWeek:
        """Parse a day from a name ("Tuesday", "tue"), an index or a date."""
        if isinstance(value, DayOfWeek):
            return value
        if isinstance(value, date):
            return cls(value.weekday())
        if isinstance(value, int):
            return cls(value)

        text = value.strip().lower()
        for day in cls:
            if day.name.lower() == text or (len(text) >= 3 and day.name.lower().startswith(text)):
                return day
        raise ValueError(f"Unknown day of week: {value!r}")


@dataclass(frozen=True)
class DeliveryWindow:
    """Static delivery schedule entry."""

    name: str
    order_day: DayOfWeek
    delivery_day: DayOfWeek
    coverage_days: tuple[DayOfWeek, ...]

    @classmethod
    def build(
        cls,
        order_day: str | int | DayOfWeek,
        delivery_day: str | int | DayOfWeek,
        coverage_days: Iterable[str | int | DayOfWeek],
        name: str | None = None,
    ) -> DeliveryWindow:
        order = DayOfWeek.parse(order_day)
        delivery = DayOfWeek.parse(delivery_day)
        return cls(
            name=name or f"{order.label} order -> {delivery.label} delivery",
            order_day=order,
            delivery_day=delivery,
            coverage_days=tuple(DayOfWeek.parse(d) for d in coverage_days),
        )


def default_delivery_windows() -> list[DeliveryWindow]:
    """Bakery schedule: Mon order covers Tue-Wed, Wed order covers Thu-Mon."""
    return [
        DeliveryWindow.build("monday", "tuesday", ["tuesday", "wednesday"]),
        DeliveryWindow.build(
            "wednesday",
            "thursday",
            ["thursday", "friday", "saturday", "sunday", "monday"],
        ),
    ]


@dataclass(frozen=True)
class BoxSizeTable:
    """Keyword -> box size lookup with a default.

    A name containing one of the keywords (case-insensitive) ships in that
    box size; the first matching keyword in table order wins.
    """

    keywords: Mapping[str, int] = field(default_factory=dict)
    default_size: int = 12

    def __post_init__(self):
        if self.default_size < 1:
            raise ValueError(f"Default box size must be >= 1, got {self.default_size}")
        for keyword, size in self.keywords.items():
            if size < 1:
                raise ValueError(f"Box size for {keyword!r} must be >= 1, got {size}")

    def box_size_for(self, name: str) -> int:
        lowered = name.lower()
        for keyword, size in self.keywords.items():
            if keyword.lower() in lowered:
                return size
        return self.default_size


DEFAULT_BOX_TABLE = BoxSizeTable(
    keywords={"cheese": 16, "spinach": 16, "energy": 16},
    default_size=12,
)


@dataclass
class DeliveryLine:
    """Order line for one variation in one delivery window."""

    name: str
    total_needed: int
    current_stock: float
    net_needed: int
    box_size: int
    boxes_needed: int
    total_ordered: int
    days_breakdown: list[tuple[DayOfWeek, int]] = field(default_factory=list)


@dataclass
class DeliverySheet:
    """All order lines for one delivery window."""

    window: DeliveryWindow
    lines: list[DeliveryLine]
    coverage_days: tuple[DayOfWeek, ...]
    is_active: bool = False  # window currently taking orders

    @property
    def total_boxes(self) -> int:
        return sum(line.boxes_needed for line in self.lines)

    @property
    def total_units(self) -> int:
        return sum(line.total_ordered for line in self.lines)


def delivery_days_of(windows: Iterable[DeliveryWindow]) -> frozenset[DayOfWeek]:
    """Days on which any of the windows delivers."""
    return frozenset(w.delivery_day for w in windows)


def adjusted_daily(
    daily: Sequence[float],
    buffers: BufferSettings,
    delivery_days: Iterable[DayOfWeek],
) -> list[int]:
    """Buffered per-weekday recommendations (Monday first).

    Args:
        daily: Seven unbuffered per-day quantities, Monday first
        buffers: Buffer percentages
        delivery_days: Days that get the delivery-day buffer on top

    Returns:
        Seven whole-unit quantities

    """
    if len(daily) != 7:
        raise ValueError(f"Expected 7 daily values, got {len(daily)}")

    deliveries = set(delivery_days)
    return [
        apply_buffer_settings(daily[day], DayOfWeek(day) in deliveries, buffers)
        for day in range(7)
    ]


def _stock_lookup(current_stock: Mapping[str, float]) -> dict[str, float]:
    return {normalize_item_key(name): value for name, value in current_stock.items()}


def _sheet_for_days(
    window: DeliveryWindow,
    days: tuple[DayOfWeek, ...],
    daily_by_variation: Mapping[str, Sequence[float]],
    stock: Mapping[str, float],
    buffers: BufferSettings,
    box_table: BoxSizeTable,
    delivery_days: Iterable[DayOfWeek],
) -> DeliverySheet:
    deliveries = frozenset(delivery_days)
    lines: list[DeliveryLine] = []

    for name, daily in daily_by_variation.items():
        adjusted = adjusted_daily(daily, buffers, deliveries)
        breakdown = [(day, adjusted[day]) for day in days]
        total_needed = sum(qty for _, qty in breakdown)

        on_hand = clamp_stock(stock.get(normalize_item_key(name), 0.0), key=name)
        net_needed = max(0, ceil_qty(total_needed - on_hand))
        box_size = box_table.box_size_for(name)
        boxes_needed = -(-net_needed // box_size)

        lines.append(
            DeliveryLine(
                name=name,
                total_needed=total_needed,
                current_stock=on_hand,
                net_needed=net_needed,
                box_size=box_size,
                boxes_needed=boxes_needed,
                total_ordered=boxes_needed * box_size,
                days_breakdown=breakdown,
            )
        )

    return DeliverySheet(window=window, lines=lines, coverage_days=days)


def compute_delivery_sheet(
    window: DeliveryWindow,
    daily_by_variation: Mapping[str, Sequence[float]],
    current_stock: Mapping[str, float] | None = None,
    buffers: BufferSettings = NO_BUFFER,
    box_table: BoxSizeTable = DEFAULT_BOX_TABLE,
    delivery_days: Iterable[DayOfWeek] | None = None,
) -> DeliverySheet:
    """Compute the box order for a single delivery window.

    Args:
        window: Delivery window to fill
        daily_by_variation: Variation name -> seven per-day base quantities
            (Monday first), e.g. from weekday_averages()
        current_stock: Variation name -> units on hand (missing = 0)
        buffers: General and delivery-day buffer percentages
        box_table: Box size lookup
        delivery_days: Days receiving the delivery-day buffer
            (default: this window's delivery day)

    Returns:
        DeliverySheet with one line per variation

    """
    return _sheet_for_days(
        window,
        window.coverage_days,
        daily_by_variation,
        _stock_lookup(current_stock or {}),
        buffers,
        box_table,
        delivery_days if delivery_days is not None else [window.delivery_day],
    )


def overlapping_days(windows: Sequence[DeliveryWindow]) -> dict[DayOfWeek, list[str]]:
    """Calendar days claimed by more than one window."""
    claims: dict[DayOfWeek, list[str]] = {}
    for window in windows:
        for day in window.coverage_days:
            claims.setdefault(day, []).append(window.name)
    return {day: names for day, names in claims.items() if len(names) > 1}


def compute_delivery_sheets(
    windows: Sequence[DeliveryWindow],
    daily_by_variation: Mapping[str, Sequence[float]],
    current_stock: Mapping[str, float] | None = None,
    buffers: BufferSettings = NO_BUFFER,
    box_table: BoxSizeTable = DEFAULT_BOX_TABLE,
    mode: str = PER_WINDOW,
) -> list[DeliverySheet]:
    """Compute box orders for every delivery window.

    Modes:
        per_window: each window independently; a day covered by two windows
            is counted in both (the caller decides how to reconcile).
        global: each day belongs to the first window (in the given order)
            that covers it; later windows skip it.

    Current stock is netted against each window separately in both modes.

    """
    if mode not in (PER_WINDOW, GLOBAL):
        raise ValueError(f"Unknown delivery mode: {mode!r}")

    stock = _stock_lookup(current_stock or {})
    deliveries = delivery_days_of(windows)

    overlaps = overlapping_days(windows)
    if overlaps and mode == PER_WINDOW:
        logger.info(
            "delivery_windows_overlap",
            extra={"days": {day.label: names for day, names in overlaps.items()}},
        )

    claimed: set[DayOfWeek] = set()
    sheets: list[DeliverySheet] = []
    for window in windows:
        days = window.coverage_days
        if mode == GLOBAL:
            days = tuple(d for d in days if d not in claimed)
            claimed.update(days)
        sheets.append(
            _sheet_for_days(window, days, daily_by_variation, stock, buffers, box_table, deliveries)
        )
    return sheets


def active_order_window(
    today: DayOfWeek | date,
    windows: Sequence[DeliveryWindow],
) -> DeliveryWindow | None:
    """Window whose ordering period contains today.

    That is the window with the most recent order day on or before today,
    wrapping around the week (with Mon and Wed order days: Mon-Tue belong
    to Monday's window, Wed-Sun to Wednesday's).
    """
    if not windows:
        return None
    day = DayOfWeek.parse(today)
    return min(windows, key=lambda w: (day - w.order_day) % 7)


__all__ = [
    "PER_WINDOW",
    "GLOBAL",
    "DayOfWeek",
    "DeliveryWindow",
    "default_delivery_windows",
    "BoxSizeTable",
    "DEFAULT_BOX_TABLE",
    "DeliveryLine",
    "DeliverySheet",
    "delivery_days_of",
    "adjusted_daily",
    "compute_delivery_sheet",
    "overlapping_days",
    "compute_delivery_sheets",
    "active_order_window",
]

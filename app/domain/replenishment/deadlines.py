"""Vendor order deadlines and reminder urgency.

Deadlines are local times of day in the fixed form ``H:MM AM|PM``. An
unreadable deadline means "no deadline": infinite minutes remaining, never
urgent, never overdue.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from app.domain.replenishment.delivery import DayOfWeek
from app.domain.replenishment.errors import MalformedDeadline

logger = logging.getLogger(__name__)

_DEADLINE_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)

URGENT_MINUTES = 30
SOON_MINUTES = 120


class Urgency(str, Enum):
    """Reminder urgency bucket."""

    URGENT = "urgent"
    SOON = "soon"
    TODAY = "today"


@dataclass(frozen=True)
class VendorDeadline:
    """Vendor ordering schedule entry (static configuration)."""

    vendor_name: str
    order_day: DayOfWeek
    deadline: str | None = None
    delivery_day: DayOfWeek | None = None
    frequency: str = "weekly"
    notes: str | None = None
    is_active: bool = True


@dataclass
class VendorReminder:
    """A schedule evaluated against the current time."""

    vendor_name: str
    order_day: DayOfWeek
    deadline: str | None
    delivery_day: DayOfWeek | None
    minutes_until_deadline: float | None
    is_overdue: bool
    urgency: Urgency
    time_remaining: str | None
    frequency: str = "weekly"
    notes: str | None = None


def parse_deadline_time(deadline: str) -> tuple[int, int]:
    """Parse "2:30 PM" into 24-hour (hour, minute).

    Raises:
        MalformedDeadline: If the string does not match ``H:MM AM|PM``

    Examples:
        >>> parse_deadline_time("2:30 PM")
        (14, 30)
        >>> parse_deadline_time("12:05 am")
        (0, 5)

    """
    match = _DEADLINE_RE.match(deadline.strip()) if isinstance(deadline, str) else None
    if not match:
        raise MalformedDeadline(deadline)

    hour = int(match.group(1))
    minute = int(match.group(2))
    if not 1 <= hour <= 12 or minute > 59:
        raise MalformedDeadline(deadline)

    ampm = match.group(3).upper()
    if ampm == "PM" and hour != 12:
        hour += 12
    if ampm == "AM" and hour == 12:
        hour = 0
    return hour, minute


def minutes_until_deadline(deadline: str, now: datetime) -> float:
    """Whole minutes from now until today's deadline (negative when past).

    Returns math.inf for a malformed deadline.
    """
    try:
        hour, minute = parse_deadline_time(deadline)
    except MalformedDeadline:
        logger.warning("malformed_deadline", extra={"deadline": deadline})
        return math.inf

    deadline_at = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return math.floor((deadline_at - now).total_seconds() / 60)


def deadline_urgency(minutes: float | None, is_overdue: bool) -> Urgency:
    """Bucket a reminder: overdue or <=30 min -> urgent, <=120 -> soon."""
    if is_overdue:
        return Urgency.URGENT
    if minutes is None:
        return Urgency.TODAY
    if minutes <= URGENT_MINUTES:
        return Urgency.URGENT
    if minutes <= SOON_MINUTES:
        return Urgency.SOON
    return Urgency.TODAY


def format_time_remaining(minutes: float) -> str:
    """Short human form: "15min", "1h 30m", "2h", "15min overdue", "2h overdue"."""
    if math.isinf(minutes):
        return "no deadline"

    minutes = int(minutes)
    if minutes < 0:
        over = abs(minutes)
        if over < 60:
            return f"{over}min overdue"
        return f"{over // 60}h overdue"

    if minutes < 60:
        return f"{minutes}min"
    hours, mins = divmod(minutes, 60)
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def evaluate_schedule(schedule: VendorDeadline, now: datetime) -> VendorReminder:
    """Derive the minutes remaining, overdue flag and urgency for a schedule."""
    minutes: float | None = None
    if schedule.deadline:
        minutes = minutes_until_deadline(schedule.deadline, now)
    is_overdue = minutes is not None and minutes < 0

    return VendorReminder(
        vendor_name=schedule.vendor_name,
        order_day=schedule.order_day,
        deadline=schedule.deadline,
        delivery_day=schedule.delivery_day,
        minutes_until_deadline=minutes,
        is_overdue=is_overdue,
        urgency=deadline_urgency(minutes, is_overdue),
        time_remaining=format_time_remaining(minutes) if minutes is not None else None,
        frequency=schedule.frequency,
        notes=schedule.notes,
    )


def reminder_sort_key(reminder: VendorReminder) -> tuple[int, float]:
    """Overdue first, then fewest minutes remaining (no deadline last)."""
    minutes = reminder.minutes_until_deadline
    return (0 if reminder.is_overdue else 1, minutes if minutes is not None else math.inf)


def due_reminders(
    schedules: Iterable[VendorDeadline],
    now: datetime,
    hours_ahead: float = 2,
    include_all: bool = False,
    include_no_deadline: bool = False,
) -> list[VendorReminder]:
    """Reminders for vendor orders due today.

    Args:
        schedules: Vendor schedules; only active ones ordering today count
        now: Current local time
        hours_ahead: Skip deadlines further away than this
        include_all: Keep every schedule due today regardless of deadline
        include_no_deadline: Keep schedules without a deadline

    Returns:
        Reminders sorted overdue first, then by minutes remaining

    """
    today = DayOfWeek.parse(now.date())
    reminders: list[VendorReminder] = []

    for schedule in schedules:
        if not schedule.is_active or schedule.order_day != today:
            continue

        reminder = evaluate_schedule(schedule, now)
        minutes = reminder.minutes_until_deadline

        if minutes is None:
            if not (include_all or include_no_deadline):
                logger.debug("reminder_skipped_no_deadline", extra={"vendor": schedule.vendor_name})
                continue
        elif not include_all and not reminder.is_overdue and minutes > hours_ahead * 60:
            logger.debug(
                "reminder_skipped_not_due",
                extra={"vendor": schedule.vendor_name, "minutes": minutes},
            )
            continue

        reminders.append(reminder)

    return sorted(reminders, key=reminder_sort_key)


__all__ = [
    "Urgency",
    "VendorDeadline",
    "VendorReminder",
    "parse_deadline_time",
    "minutes_until_deadline",
    "deadline_urgency",
    "format_time_remaining",
    "evaluate_schedule",
    "reminder_sort_key",
    "due_reminders",
]

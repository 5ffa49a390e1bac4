"""Tests for vendor order deadlines and reminders."""

from __future__ import annotations

import logging
import math
from datetime import datetime

import pytest

from app.domain.replenishment.deadlines import (
    Urgency,
    VendorDeadline,
    deadline_urgency,
    due_reminders,
    evaluate_schedule,
    format_time_remaining,
    minutes_until_deadline,
    parse_deadline_time,
)
from app.domain.replenishment.delivery import DayOfWeek
from app.domain.replenishment.errors import MalformedDeadline

# Tuesday
NOW = datetime(2025, 11, 4, 14, 45)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("2:30 PM", (14, 30)),
        ("9:05 am", (9, 5)),
        ("12:00 PM", (12, 0)),
        ("12:15 AM", (0, 15)),
        ("11:59PM", (23, 59)),
    ],
)
def test_parse_deadline_time(text, expected):
    assert parse_deadline_time(text) == expected


@pytest.mark.parametrize("text", ["14:30", "2:30", "2 PM", "13:00 PM", "2:75 PM", ""])
def test_parse_deadline_time_rejects_malformed(text):
    with pytest.raises(MalformedDeadline):
        parse_deadline_time(text)


def test_deadline_passed_fifteen_minutes_ago():
    """2:30 PM deadline at 2:45 PM -> -15 minutes, overdue, urgent."""
    schedule = VendorDeadline("Bakery", DayOfWeek.TUESDAY, deadline="2:30 PM")

    reminder = evaluate_schedule(schedule, NOW)

    assert minutes_until_deadline("2:30 PM", NOW) == -15
    assert reminder.minutes_until_deadline == -15
    assert reminder.is_overdue is True
    assert reminder.urgency == Urgency.URGENT
    assert reminder.time_remaining == "15min overdue"


def test_minutes_are_floored():
    now = datetime(2025, 11, 4, 14, 0, 30)

    assert minutes_until_deadline("2:30 PM", now) == 29


def test_malformed_deadline_is_infinite(caplog):
    """Unreadable deadlines never become urgent or overdue."""
    with caplog.at_level(logging.WARNING):
        minutes = minutes_until_deadline("half past two", NOW)

    assert math.isinf(minutes) and minutes > 0
    assert "malformed_deadline" in caplog.text

    reminder = evaluate_schedule(VendorDeadline("X", DayOfWeek.TUESDAY, deadline="??"), NOW)
    assert reminder.is_overdue is False
    assert reminder.urgency == Urgency.TODAY


@pytest.mark.parametrize(
    "minutes,overdue,expected",
    [
        (-5, True, Urgency.URGENT),
        (0, False, Urgency.URGENT),
        (30, False, Urgency.URGENT),
        (31, False, Urgency.SOON),
        (120, False, Urgency.SOON),
        (121, False, Urgency.TODAY),
        (None, False, Urgency.TODAY),
        (math.inf, False, Urgency.TODAY),
    ],
)
def test_deadline_urgency(minutes, overdue, expected):
    assert deadline_urgency(minutes, overdue) == expected


@pytest.mark.parametrize(
    "minutes,expected",
    [
        (15, "15min"),
        (60, "1h"),
        (90, "1h 30m"),
        (120, "2h"),
        (-15, "15min overdue"),
        (-130, "2h overdue"),
    ],
)
def test_format_time_remaining(minutes, expected):
    assert format_time_remaining(minutes) == expected


def _schedules():
    return [
        VendorDeadline("Later Co", DayOfWeek.TUESDAY, deadline="6:00 PM"),
        VendorDeadline("Soon Co", DayOfWeek.TUESDAY, deadline="4:00 PM", delivery_day=DayOfWeek.THURSDAY),
        VendorDeadline("Late Co", DayOfWeek.TUESDAY, deadline="2:30 PM"),
        VendorDeadline("Now Co", DayOfWeek.TUESDAY, deadline="3:00 PM"),
        VendorDeadline("Anytime Co", DayOfWeek.TUESDAY),
        VendorDeadline("Monday Co", DayOfWeek.MONDAY, deadline="3:00 PM"),
        VendorDeadline("Paused Co", DayOfWeek.TUESDAY, deadline="3:00 PM", is_active=False),
    ]


def test_due_reminders_default_window():
    """Only today's active schedules within two hours, overdue first."""
    reminders = due_reminders(_schedules(), NOW)

    assert [r.vendor_name for r in reminders] == ["Late Co", "Now Co", "Soon Co"]
    assert [r.urgency for r in reminders] == [Urgency.URGENT, Urgency.URGENT, Urgency.SOON]


def test_due_reminders_include_all():
    """include_all keeps far deadlines and schedules without one (last)."""
    reminders = due_reminders(_schedules(), NOW, include_all=True)

    assert [r.vendor_name for r in reminders] == [
        "Late Co",
        "Now Co",
        "Soon Co",
        "Later Co",
        "Anytime Co",
    ]
    assert reminders[-1].minutes_until_deadline is None


def test_due_reminders_include_no_deadline():
    reminders = due_reminders(_schedules(), NOW, include_no_deadline=True)

    assert reminders[-1].vendor_name == "Anytime Co"
    assert "Later Co" not in [r.vendor_name for r in reminders]


def test_due_reminders_hours_ahead():
    reminders = due_reminders(_schedules(), NOW, hours_ahead=4)

    assert "Later Co" in [r.vendor_name for r in reminders]

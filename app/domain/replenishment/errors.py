"""Errors raised by the replenishment engine.

Only configuration mistakes abort a computation. Sparse or messy data
(missing sales, negative stock, unreadable deadlines) is absorbed into
conservative defaults by the calling functions.
"""

from __future__ import annotations


class ReplenishmentError(Exception):
    """Base class for replenishment engine errors."""


class InvalidFrequency(ReplenishmentError, ValueError):
    """Order frequency is zero, negative, or not one of the allowed values."""

    def __init__(self, frequency: object, key: str | None = None):
        self.frequency = frequency
        self.key = key
        where = f" for {key!r}" if key else ""
        super().__init__(f"Invalid order frequency {frequency!r}{where}")


class MalformedDeadline(ReplenishmentError, ValueError):
    """Deadline string does not match the ``H:MM AM|PM`` form."""

    def __init__(self, deadline: object):
        self.deadline = deadline
        super().__init__(f"Malformed order deadline {deadline!r}")


class UnknownItem(ReplenishmentError, KeyError):
    """Stock update for an item the inventory store does not know."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(item_id)

    def __str__(self) -> str:
        return f"Unknown inventory item {self.item_id!r}"


__all__ = ["ReplenishmentError", "InvalidFrequency", "MalformedDeadline", "UnknownItem"]

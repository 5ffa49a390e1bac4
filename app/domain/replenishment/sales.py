"""Sales aggregation for replenishment planning.

Reduces raw per-transaction (or per-day rollup) sales records into per-item
totals over an analysis window.

NO DATA ACCESS - pure functions only. Records arrive already parsed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalesRecord:
    """One sales row: a transaction line or a daily rollup."""

    item_name: str
    date: date
    quantity_sold: float
    revenue: float = 0.0
    variation_name: str | None = None


@dataclass
class SalesSummary:
    """Per-item totals over an analyzed period."""

    item_key: str
    item_name: str
    total_units: float
    total_revenue: float
    period_days: int


def normalize_item_key(name: str) -> str:
    """Normalize an item name for matching (case and whitespace insensitive).

    Examples:
        >>> normalize_item_key("  Spinach   Pie ")
        'spinach pie'

    """
    return " ".join(name.split()).lower()


def record_key(record: SalesRecord, by_variation: bool = False) -> str:
    """Grouping key for a record (item name, or variation when requested)."""
    if by_variation and record.variation_name:
        return normalize_item_key(record.variation_name)
    return normalize_item_key(record.item_name)


def _in_window(record: SalesRecord, start: date, end: date) -> bool:
    return start <= record.date <= end


def aggregate_sales(
    records: Iterable[SalesRecord],
    start: date,
    end: date,
    period_days: int,
    include_items: Iterable[str] | None = None,
    by_variation: bool = False,
) -> dict[str, SalesSummary]:
    """Aggregate sales records into per-item summaries.

    Args:
        records: Sales records (any order)
        start: First day of the window (inclusive)
        end: Last day of the window (inclusive)
        period_days: Number of days the caller declares as analyzed. May be
            longer than the span of data present (e.g. 4 weeks of CSV treated
            as a 6-week period).
        include_items: Item names that must appear in the result even
            without sales; they get zero-filled summaries.
        by_variation: Group by variation name instead of item name

    Returns:
        Mapping of normalized item key -> SalesSummary

    """
    summaries: dict[str, SalesSummary] = {}
    outside = 0

    for rec in records:
        if not _in_window(rec, start, end):
            outside += 1
            continue

        key = record_key(rec, by_variation)
        summary = summaries.get(key)
        if summary is None:
            display = rec.variation_name if by_variation and rec.variation_name else rec.item_name
            summary = SalesSummary(
                item_key=key,
                item_name=display.strip(),
                total_units=0.0,
                total_revenue=0.0,
                period_days=period_days,
            )
            summaries[key] = summary

        summary.total_units += rec.quantity_sold
        summary.total_revenue += rec.revenue

    if outside:
        logger.debug(
            "sales_records_outside_window",
            extra={"count": outside, "start": start.isoformat(), "end": end.isoformat()},
        )

    for name in include_items or ():
        key = normalize_item_key(name)
        if key not in summaries:
            summaries[key] = SalesSummary(
                item_key=key,
                item_name=name.strip(),
                total_units=0.0,
                total_revenue=0.0,
                period_days=period_days,
            )

    return summaries


def display_names(records: Iterable[SalesRecord], by_variation: bool = False) -> dict[str, str]:
    """First-seen display name for each grouping key."""
    names: dict[str, str] = {}
    for rec in records:
        key = record_key(rec, by_variation)
        if key not in names:
            raw = rec.variation_name if by_variation and rec.variation_name else rec.item_name
            names[key] = raw.strip()
    return names


def analyzed_days_for_weeks(weeks: float) -> int:
    """Analyzed period in days for a declared number of weeks."""
    if weeks <= 0:
        return 0
    return int(round(weeks * 7))


def weekly_buckets(
    records: Iterable[SalesRecord],
    start: date,
    weeks: int,
    end: date | None = None,
    by_variation: bool = False,
) -> dict[str, list[float]]:
    """Split units sold per item into consecutive 7-day buckets.

    Bucket ``i`` covers ``start + 7*i`` .. ``start + 7*i + 6``. Records before
    ``start``, after ``end`` or after the last bucket are ignored, so a partial
    last week only holds sales up to ``end``.

    Args:
        records: Sales records
        start: First day of week 1
        weeks: Number of buckets
        end: Last day of the window (inclusive); unset = end of the last bucket
        by_variation: Group by variation name when present

    Returns:
        Mapping of normalized item key -> list of ``weeks`` unit totals

    """
    buckets: dict[str, list[float]] = {}
    if weeks <= 0:
        return buckets

    for rec in records:
        offset = (rec.date - start).days
        if offset < 0 or (end is not None and rec.date > end):
            continue
        idx = offset // 7
        if idx >= weeks:
            continue
        row = buckets.setdefault(record_key(rec, by_variation), [0.0] * weeks)
        row[idx] += rec.quantity_sold

    return buckets


def weekday_occurrences(start: date, end: date) -> list[int]:
    """Count how many times each weekday (Monday=0) occurs in [start, end]."""
    counts = [0] * 7
    if end < start:
        return counts

    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    counts = [full_weeks] * 7
    for i in range(remainder):
        counts[(start + timedelta(days=i)).weekday()] += 1
    return counts


def weekday_averages(
    records: Iterable[SalesRecord],
    start: date,
    end: date,
    by_variation: bool = True,
) -> dict[str, list[float]]:
    """Average units sold per weekday for each item (or variation).

    Each weekday total is divided by the number of times that weekday occurs
    in the inclusive range, so a weekday with no sales still counts toward
    the average. Weekdays that never occur in the range average to 0.

    Args:
        records: Sales records
        start: First day of the range (inclusive)
        end: Last day of the range (inclusive)
        by_variation: Group by variation name when present

    Returns:
        Mapping of key -> list of 7 averages, Monday first

    """
    occurrences = weekday_occurrences(start, end)
    totals: dict[str, list[float]] = {}

    for rec in records:
        if not _in_window(rec, start, end):
            continue
        row = totals.setdefault(record_key(rec, by_variation), [0.0] * 7)
        row[rec.date.weekday()] += rec.quantity_sold

    return {
        key: [
            (row[day] / occurrences[day]) if occurrences[day] > 0 else 0.0
            for day in range(7)
        ]
        for key, row in totals.items()
    }


__all__ = [
    "SalesRecord",
    "SalesSummary",
    "normalize_item_key",
    "record_key",
    "aggregate_sales",
    "display_names",
    "analyzed_days_for_weeks",
    "weekly_buckets",
    "weekday_occurrences",
    "weekday_averages",
]

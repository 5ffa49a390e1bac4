"""Low-stock priority classification.

Precedence (first match wins):
1. stock <= 0                                -> critical (out of stock)
2. reorder point set and stock <= it         -> critical (below reorder point)
3. days of stock < 3                         -> critical
4. days of stock < 7                         -> warning
5. days of stock < 14                        -> watch
6. otherwise                                 -> ok

Days of stock is undefined without sales velocity, so such items can only
be flagged by rules 1-2.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from app.domain.replenishment.ordering import clamp_stock
from app.domain.replenishment.sales import SalesSummary, normalize_item_key
from app.domain.replenishment.velocity import velocity_from_summary

CRITICAL_DAYS = 3
WARNING_DAYS = 7
WATCH_DAYS = 14
DEFAULT_TARGET_DAYS = 30


class Priority(str, Enum):
    """Urgency tier, ordered critical < warning < watch < ok."""

    CRITICAL = "critical"
    WARNING = "warning"
    WATCH = "watch"
    OK = "ok"

    @property
    def rank(self) -> int:
        return _RANKS[self]


_RANKS = {Priority.CRITICAL: 0, Priority.WARNING: 1, Priority.WATCH: 2, Priority.OK: 3}


def days_of_stock_remaining(current_stock: float, avg_daily_sales: float) -> float | None:
    """Runway in days at current velocity (None when not selling)."""
    if avg_daily_sales <= 0:
        return None
    return max(0.0, current_stock) / avg_daily_sales


def classify_priority(
    current_stock: float,
    reorder_point: float | None = None,
    days_remaining: float | None = None,
) -> tuple[Priority, str]:
    """Assign an urgency tier and a short reason.

    Args:
        current_stock: Units on hand
        reorder_point: Optional threshold that forces critical
        days_remaining: Days of stock remaining (None if unknown)

    Returns:
        Tuple (priority, reason)

    """
    if current_stock <= 0:
        return Priority.CRITICAL, "Out of stock"

    if reorder_point is not None and current_stock <= reorder_point:
        return Priority.CRITICAL, f"Below reorder point ({reorder_point:g})"

    if days_remaining is not None:
        if days_remaining < CRITICAL_DAYS:
            return Priority.CRITICAL, f"Only {days_remaining:.1f} days of stock"
        if days_remaining < WARNING_DAYS:
            return Priority.WARNING, f"{days_remaining:.1f} days of stock remaining"
        if days_remaining < WATCH_DAYS:
            return Priority.WATCH, f"{days_remaining:.1f} days of stock"

    return Priority.OK, "Stock levels healthy"


def suggested_reorder_qty(
    avg_daily_sales: float,
    current_stock: float,
    target_days: int = DEFAULT_TARGET_DAYS,
) -> int:
    """Units needed to bring runway up to target_days (0 without velocity)."""
    if avg_daily_sales <= 0:
        return 0
    current_days = max(0.0, current_stock) / avg_daily_sales
    needed = (target_days - current_days) * avg_daily_sales
    return max(0, math.ceil(round(needed, 6)))


@dataclass
class StockPosition:
    """Inventory snapshot fields the classifier needs, plus display info."""

    item_id: str
    name: str
    current_stock: float
    reorder_point: float | None = None
    category: str = ""
    vendor_name: str | None = None


@dataclass
class LowStockAlert:
    """Classified item for the low-stock report."""

    item_id: str
    name: str
    category: str
    vendor_name: str | None
    current_stock: float
    reorder_point: float | None
    avg_daily_sales: float
    days_of_stock_remaining: float | None
    priority: Priority
    reason: str
    suggested_reorder_qty: int


@dataclass
class LowStockReport:
    """Sorted alert list with per-tier counts."""

    generated_at: datetime
    period_days: int
    alerts: list[LowStockAlert] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        counts = {p.value: 0 for p in (Priority.CRITICAL, Priority.WARNING, Priority.WATCH)}
        for alert in self.alerts:
            if alert.priority.value in counts:
                counts[alert.priority.value] += 1
        return {"total": len(self.alerts), **counts}


def alert_sort_key(alert: LowStockAlert) -> tuple[int, float]:
    """Priority rank first, then days remaining ascending (unknown last)."""
    days = alert.days_of_stock_remaining
    return (alert.priority.rank, days if days is not None else math.inf)


def sort_alerts(alerts: Iterable[LowStockAlert]) -> list[LowStockAlert]:
    return sorted(alerts, key=alert_sort_key)


def build_alert(
    position: StockPosition,
    avg_daily_sales: float,
    target_days: int = DEFAULT_TARGET_DAYS,
) -> LowStockAlert:
    """Classify one stock position."""
    stock = clamp_stock(position.current_stock, key=position.name)
    days = days_of_stock_remaining(stock, avg_daily_sales)
    priority, reason = classify_priority(stock, position.reorder_point, days)

    return LowStockAlert(
        item_id=position.item_id,
        name=position.name,
        category=position.category,
        vendor_name=position.vendor_name,
        current_stock=stock,
        reorder_point=position.reorder_point,
        avg_daily_sales=max(0.0, avg_daily_sales),
        days_of_stock_remaining=days,
        priority=priority,
        reason=reason,
        suggested_reorder_qty=suggested_reorder_qty(avg_daily_sales, stock, target_days),
    )


def needs_attention(alert: LowStockAlert, attention_days: int = WATCH_DAYS) -> bool:
    """Critical and warning always; watch only within attention_days."""
    if alert.priority in (Priority.CRITICAL, Priority.WARNING):
        return True
    if alert.priority == Priority.WATCH:
        days = alert.days_of_stock_remaining
        return days is not None and days < attention_days
    return False


def build_low_stock_report(
    positions: Iterable[StockPosition],
    summaries: Mapping[str, SalesSummary],
    period_days: int,
    generated_at: datetime,
    urgent_only: bool = False,
    attention_days: int = WATCH_DAYS,
    target_days: int = DEFAULT_TARGET_DAYS,
) -> LowStockReport:
    """Classify every stock position and keep the ones needing attention.

    Args:
        positions: Current stock positions
        summaries: Sales summaries keyed by normalized item name
            (from aggregate_sales); missing items have zero velocity
        period_days: Analyzed period (for the report header)
        generated_at: Report timestamp
        urgent_only: Keep only critical items
        attention_days: Watch items are kept below this runway
        target_days: Runway the suggested reorder aims for

    Returns:
        LowStockReport with alerts sorted by priority then runway

    """
    alerts: list[LowStockAlert] = []
    for position in positions:
        summary = summaries.get(normalize_item_key(position.name))
        velocity = velocity_from_summary(summary)
        alert = build_alert(position, velocity.avg_daily, target_days)

        if urgent_only and alert.priority != Priority.CRITICAL:
            continue
        if not needs_attention(alert, attention_days):
            continue
        alerts.append(alert)

    return LowStockReport(
        generated_at=generated_at,
        period_days=period_days,
        alerts=sort_alerts(alerts),
    )


__all__ = [
    "Priority",
    "days_of_stock_remaining",
    "classify_priority",
    "suggested_reorder_qty",
    "StockPosition",
    "LowStockAlert",
    "LowStockReport",
    "alert_sort_key",
    "sort_alerts",
    "build_alert",
    "needs_attention",
    "build_low_stock_report",
]

"""Stock-aware order sizing and pack-size rounding.

suggested_order = max(0, ceil(avg_weekly * order_frequency) - current_stock),
then rounded up to the item's pack size.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from app.domain.replenishment.errors import InvalidFrequency
from app.domain.replenishment.velocity import round_display

logger = logging.getLogger(__name__)

# Order cycle length in weeks -> label
ORDER_FREQUENCIES: dict[float, str] = {
    0.5: "Semi-weekly (Twice per week)",
    1: "Weekly",
    2: "Bi-weekly (Every 2 weeks)",
    3: "3 Weeks",
    4: "Monthly (Every 4 weeks)",
    6: "6 Weeks",
    8: "Every 8 weeks",
    12: "Every 12 weeks",
    26: "Every 26 weeks",
}

LOW_SELLER_WEEKLY = 0.3
MEDIUM_SELLER_WEEKLY = 2.0
DEFAULT_HIGH_SELLER_WEEKLY = 5.0


def ceil_qty(value: float) -> int:
    """Round a quantity up to a whole unit, ignoring float noise below 1e-6."""
    return math.ceil(round(value, 6))


def validate_frequency(order_frequency: float, key: str | None = None) -> float:
    """Check that an order frequency is one of the allowed cycle lengths.

    Raises:
        InvalidFrequency: If frequency is not in ORDER_FREQUENCIES

    """
    if isinstance(order_frequency, bool):
        raise InvalidFrequency(order_frequency, key)
    try:
        value = float(order_frequency)
    except (TypeError, ValueError) as e:
        raise InvalidFrequency(order_frequency, key) from e

    if value <= 0 or value not in ORDER_FREQUENCIES:
        raise InvalidFrequency(order_frequency, key)
    return value


def frequency_label(order_frequency: float) -> str:
    """Human label for an order frequency."""
    label = ORDER_FREQUENCIES.get(float(order_frequency))
    if label:
        return label
    return f"Every {order_frequency:g} weeks"


def clamp_stock(current_stock: float | None, key: str | None = None) -> float:
    """Clamp manual stock entries to >= 0 (None counts as 0)."""
    if current_stock is None:
        return 0.0
    if current_stock < 0:
        logger.warning(
            "negative_stock_clamped",
            extra={"item": key, "current_stock": current_stock},
        )
        return 0.0
    return float(current_stock)


def suggested_order(avg_weekly: float, order_frequency: float, current_stock: float) -> int:
    """Raw suggested order quantity (before pack rounding).

    Args:
        avg_weekly: Average units sold per week
        order_frequency: Order cycle length in weeks (see ORDER_FREQUENCIES)
        current_stock: Units on hand

    Returns:
        Units to order (>= 0)

    Raises:
        InvalidFrequency: If order_frequency is not allowed

    Examples:
        >>> suggested_order(10, 2, 5)
        15
        >>> suggested_order(0, 1, 3)
        0

    """
    freq = validate_frequency(order_frequency)
    weekly = max(0.0, avg_weekly)
    stock = clamp_stock(current_stock)
    return max(0, ceil_qty(ceil_qty(weekly * freq) - stock))


def round_to_pack_size(quantity: int, pack_size: int | None) -> int:
    """Round quantity up to the nearest multiple of pack_size.

    Quantity is returned unchanged when pack_size is unset, zero or negative,
    or when quantity <= 0.

    Examples:
        >>> round_to_pack_size(15, 6)
        18
        >>> round_to_pack_size(15, None)
        15

    """
    if not pack_size or pack_size <= 0 or quantity <= 0:
        return quantity
    return math.ceil(quantity / pack_size) * pack_size


def high_seller_threshold(avg_weekly_values: Iterable[float]) -> float:
    """Avg/week marking the top 20% of sellers (5.0 when unknown)."""
    ranked = sorted(avg_weekly_values, reverse=True)
    if not ranked:
        return DEFAULT_HIGH_SELLER_WEEKLY
    return ranked[int(len(ranked) * 0.2)] or DEFAULT_HIGH_SELLER_WEEKLY


def performance_label(avg_weekly: float, high_threshold: float) -> str:
    """Sales performance band: HIGH / LOW / MEDIUM / NORMAL."""
    if avg_weekly >= high_threshold:
        return "HIGH"
    if avg_weekly < LOW_SELLER_WEEKLY:
        return "LOW"
    if avg_weekly < MEDIUM_SELLER_WEEKLY:
        return "MEDIUM"
    return "NORMAL"


@dataclass
class ReplenishmentItem:
    """Per-item order recommendation on an order sheet.

    ``suggested_order`` is always derived. ``order_quantity`` is the user's
    override; the engine only re-rounds it to the pack size.
    """

    item_name: str
    vendor_name: str
    category: str
    avg_weekly: float
    current_stock: float
    suggested_order: int = 0
    pack_size: int | None = None
    order_quantity: int | None = None
    variation_name: str | None = None
    item_id: str | None = None
    total_units: float = 0.0
    weeks: list[float] = field(default_factory=list)
    sell_price: float | None = None
    cost_price: float | None = None
    raw_suggested: int = field(default=0, repr=False)

    @property
    def margin(self) -> float | None:
        if self.sell_price is None or self.cost_price is None:
            return None
        return self.sell_price - self.cost_price

    @property
    def margin_percent(self) -> float | None:
        margin = self.margin
        if margin is None:
            return None
        return (margin / self.sell_price * 100) if self.sell_price > 0 else 0.0

    def recalculate(self, order_frequency: float, period_weeks: float | None = None) -> None:
        """Recompute the suggestion for a (possibly new) order frequency.

        When no average is stored yet, it is derived from total_units over
        period_weeks.
        """
        freq = validate_frequency(order_frequency, key=self.item_name)
        if self.avg_weekly <= 0 and self.total_units > 0 and period_weeks and period_weeks > 0:
            self.avg_weekly = self.total_units / period_weeks

        self.raw_suggested = suggested_order(self.avg_weekly, freq, self.current_stock)
        self.suggested_order = round_to_pack_size(self.raw_suggested, self.pack_size)

    def update_stock(self, current_stock: float, order_frequency: float) -> None:
        """Apply a new on-hand count and recompute the suggestion."""
        self.current_stock = clamp_stock(current_stock, key=self.item_name)
        self.recalculate(order_frequency)

    def set_order_quantity(self, quantity: int | None) -> None:
        """Set the user's order quantity, rounded up to the pack size."""
        if quantity is None:
            self.order_quantity = None
            return
        self.order_quantity = round_to_pack_size(max(0, int(quantity)), self.pack_size)

    def set_pack_size(self, pack_size: int | None) -> None:
        """Change the pack size and re-round existing quantities."""
        self.pack_size = pack_size if pack_size and pack_size > 0 else None
        if self.order_quantity:
            self.order_quantity = round_to_pack_size(self.order_quantity, self.pack_size)
        self.suggested_order = round_to_pack_size(self.raw_suggested, self.pack_size)


def build_replenishment_item(
    *,
    item_name: str,
    avg_weekly: float,
    current_stock: float | None,
    order_frequency: float,
    vendor_name: str = "",
    category: str = "",
    pack_size: int | None = None,
    order_quantity: int | None = None,
    **extra,
) -> ReplenishmentItem:
    """Create an order sheet item with its suggestion computed.

    Extra keyword arguments are passed to ReplenishmentItem (item_id,
    variation_name, total_units, weeks, sell_price, cost_price).
    """
    item = ReplenishmentItem(
        item_name=item_name,
        vendor_name=vendor_name,
        category=category,
        avg_weekly=max(0.0, avg_weekly),
        current_stock=clamp_stock(current_stock, key=item_name),
        pack_size=pack_size if pack_size and pack_size > 0 else None,
        **extra,
    )
    item.recalculate(order_frequency)
    item.set_order_quantity(order_quantity)
    return item


def order_sheet_columns(weeks: int = 0) -> list[str]:
    """Export columns for an order sheet with ``weeks`` weekly columns."""
    return [
        "Item",
        "Vendor",
        "Category",
        *[f"WK{i + 1}" for i in range(weeks)],
        "Total",
        "Avg/Week",
        "Performance",
        "Price",
        "Cost",
        "Margin $",
        "Margin %",
        "On Hand",
        "Suggested",
        "Pack Size",
        "Order Qty",
    ]


def _money(value: float | None) -> str:
    return f"{value:.2f}" if value is not None else ""


def order_sheet_rows(
    items: list[ReplenishmentItem],
    only_ordered: bool = True,
) -> tuple[list[str], list[dict]]:
    """Flatten order sheet items into export rows.

    Args:
        items: Order sheet items
        only_ordered: Keep only items with a positive order quantity

    Returns:
        Tuple (columns, rows)

    """
    weeks = max((len(i.weeks) for i in items), default=0)
    columns = order_sheet_columns(weeks)
    threshold = high_seller_threshold(i.avg_weekly for i in items)

    rows: list[dict] = []
    for item in items:
        if only_ordered and not item.order_quantity:
            continue

        row = {
            "Item": (
                f"{item.item_name} - {item.variation_name}" if item.variation_name else item.item_name
            ),
            "Vendor": item.vendor_name,
            "Category": item.category,
            "Total": item.total_units,
            "Avg/Week": round_display(item.avg_weekly),
            "Performance": performance_label(item.avg_weekly, threshold),
            "Price": _money(item.sell_price),
            "Cost": _money(item.cost_price),
            "Margin $": _money(item.margin),
            "Margin %": f"{item.margin_percent:.1f}" if item.margin_percent is not None else "",
            "On Hand": item.current_stock,
            "Suggested": item.suggested_order,
            "Pack Size": item.pack_size or "",
            "Order Qty": item.order_quantity if item.order_quantity is not None else "",
        }
        for i in range(weeks):
            row[f"WK{i + 1}"] = item.weeks[i] if i < len(item.weeks) else 0
        rows.append(row)

    return columns, rows


__all__ = [
    "ORDER_FREQUENCIES",
    "ceil_qty",
    "validate_frequency",
    "frequency_label",
    "clamp_stock",
    "suggested_order",
    "round_to_pack_size",
    "high_seller_threshold",
    "performance_label",
    "ReplenishmentItem",
    "build_replenishment_item",
    "order_sheet_columns",
    "order_sheet_rows",
]

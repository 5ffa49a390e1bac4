"""Pydantic schemas for API requests and responses."""

from __future__ import annotations

import datetime as dt
import math
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.domain.replenishment.deadlines import VendorDeadline, VendorReminder
from app.domain.replenishment.delivery import DayOfWeek, DeliverySheet, DeliveryWindow
from app.domain.replenishment.ordering import ReplenishmentItem
from app.domain.replenishment.priority import LowStockAlert, LowStockReport
from app.domain.replenishment.sales import SalesRecord
from app.domain.replenishment.velocity import round_display
from app.services.stock_repository import InventorySnapshot


# Input schemas
class SalesRecordIn(BaseModel):
    """One sales row (transaction line or daily rollup)."""

    item_name: str = Field(..., min_length=1)
    date: dt.date
    quantity_sold: float = Field(..., ge=0)
    revenue: float = 0.0
    variation_name: str | None = None

    def to_domain(self) -> SalesRecord:
        return SalesRecord(
            item_name=self.item_name,
            date=self.date,
            quantity_sold=self.quantity_sold,
            revenue=self.revenue,
            variation_name=self.variation_name,
        )


class StockItemIn(BaseModel):
    """Inventory snapshot supplied inline instead of read from the store."""

    item_id: str | None = None
    name: str = Field(..., min_length=1)
    current_stock: float = 0.0
    reorder_point: float | None = Field(None, ge=0)
    pack_size: int | None = Field(None, ge=1)
    category: str = ""
    vendor_name: str | None = None
    sell_price: float | None = None
    cost_price: float | None = None

    def to_domain(self) -> InventorySnapshot:
        return InventorySnapshot(
            item_id=self.item_id or self.name,
            name=self.name,
            current_stock=self.current_stock,
            reorder_point=self.reorder_point,
            pack_size=self.pack_size,
            category=self.category,
            vendor_name=self.vendor_name,
            sell_price=self.sell_price,
            cost_price=self.cost_price,
        )


class OrderSheetRequest(BaseModel):
    """Order sheet computation request."""

    sales: list[SalesRecordIn] = Field(default_factory=list)
    stock: list[StockItemIn] | None = Field(
        None, description="Inline stock; omitted = read from the inventory store"
    )
    start: date | None = Field(
        None, description="First sales day; omitted = DEFAULT_ANALYSIS_WEEKS before end"
    )
    end: date
    order_frequency: float | None = Field(None, description="Order cycle in weeks")
    period_weeks: float | None = Field(None, gt=0, description="Declared analyzed period")
    item_frequencies: dict[str, float] = Field(default_factory=dict)
    order_quantities: dict[str, int] = Field(default_factory=dict)
    by_variation: bool = Field(False, description="One line per variation")


class DeliveryWindowIn(BaseModel):
    """Delivery window: order day, delivery day, covered days."""

    name: str | None = None
    order_day: str
    delivery_day: str
    coverage_days: list[str] = Field(..., min_length=1)

    @field_validator("order_day", "delivery_day")
    @classmethod
    def _check_day(cls, v: str) -> str:
        DayOfWeek.parse(v)
        return v

    @field_validator("coverage_days")
    @classmethod
    def _check_days(cls, v: list[str]) -> list[str]:
        for day in v:
            DayOfWeek.parse(day)
        return v

    def to_domain(self) -> DeliveryWindow:
        return DeliveryWindow.build(
            self.order_day, self.delivery_day, self.coverage_days, name=self.name
        )


class DeliveryRequest(BaseModel):
    """Delivery-window order request."""

    sales: list[SalesRecordIn] = Field(default_factory=list)
    stock: dict[str, float] | None = Field(
        None, description="Variation name -> on hand; omitted = inventory store"
    )
    start: date
    end: date
    windows: list[DeliveryWindowIn] | None = None
    general_buffer_pct: float | None = Field(None, ge=0)
    delivery_buffer_pct: float | None = Field(None, ge=0)
    mode: Literal["per_window", "global"] = "per_window"
    tracked: list[str] | None = None
    today: date | None = Field(None, description="Flags the window taking orders that day")


class LowStockRequest(BaseModel):
    """Low-stock report request."""

    sales: list[SalesRecordIn] = Field(default_factory=list)
    stock: list[StockItemIn] | None = None
    now: datetime | None = None
    period_days: int | None = Field(None, ge=1)
    urgent_only: bool = False


class VendorDeadlineIn(BaseModel):
    """Vendor ordering schedule entry."""

    vendor_name: str = Field(..., min_length=1)
    order_day: str
    deadline: str | None = Field(None, description='Local time, e.g. "2:30 PM"')
    delivery_day: str | None = None
    frequency: str = "weekly"
    notes: str | None = None
    is_active: bool = True

    @field_validator("order_day", "delivery_day")
    @classmethod
    def _check_day(cls, v: str | None) -> str | None:
        if v is not None:
            DayOfWeek.parse(v)
        return v

    def to_domain(self) -> VendorDeadline:
        return VendorDeadline(
            vendor_name=self.vendor_name,
            order_day=DayOfWeek.parse(self.order_day),
            deadline=self.deadline,
            delivery_day=DayOfWeek.parse(self.delivery_day) if self.delivery_day else None,
            frequency=self.frequency,
            notes=self.notes,
            is_active=self.is_active,
        )


class VendorRemindersRequest(BaseModel):
    """Vendor reminder request."""

    schedules: list[VendorDeadlineIn] | None = Field(
        None, description="Inline schedules; omitted = stored vendor schedules"
    )
    now: datetime | None = None
    hours_ahead: float | None = Field(None, gt=0)
    include_all: bool = False
    include_no_deadline: bool = False


class StockUpdateRequest(BaseModel):
    """Explicit on-hand count update."""

    current_stock: float


# Output schemas
class FrequencyOut(BaseModel):
    """Allowed order frequency."""

    value: float
    label: str


class ReplenishmentItemOut(BaseModel):
    """Order sheet line."""

    item_id: str | None = None
    item_name: str
    variation_name: str | None = None
    vendor_name: str
    category: str
    total_units: float
    weeks: list[float]
    avg_weekly: float = Field(..., description="Unrounded average units per week")
    avg_weekly_display: float
    current_stock: float
    suggested_order: int
    pack_size: int | None = None
    order_quantity: int | None = None
    sell_price: float | None = None
    cost_price: float | None = None
    margin: float | None = None
    margin_percent: float | None = None

    @classmethod
    def from_domain(cls, item: ReplenishmentItem) -> ReplenishmentItemOut:
        return cls(
            item_id=item.item_id,
            item_name=item.item_name,
            variation_name=item.variation_name,
            vendor_name=item.vendor_name,
            category=item.category,
            total_units=item.total_units,
            weeks=item.weeks,
            avg_weekly=item.avg_weekly,
            avg_weekly_display=round_display(item.avg_weekly),
            current_stock=item.current_stock,
            suggested_order=item.suggested_order,
            pack_size=item.pack_size,
            order_quantity=item.order_quantity,
            sell_price=item.sell_price,
            cost_price=item.cost_price,
            margin=item.margin,
            margin_percent=item.margin_percent,
        )


class OrderSheetResponse(BaseModel):
    """Order sheet."""

    order_frequency: float
    frequency_label: str
    start: date
    end: date
    period_days: int
    total_items: int
    items_to_order: int
    items: list[ReplenishmentItemOut]


class DayQuantity(BaseModel):
    day: str
    quantity: int


class DeliveryLineOut(BaseModel):
    """Box order for one variation."""

    name: str
    total_needed: int
    current_stock: float
    net_needed: int
    box_size: int
    boxes_needed: int
    total_ordered: int
    days_breakdown: list[DayQuantity]


class DeliverySheetOut(BaseModel):
    """Box orders for one delivery window."""

    window: str
    order_day: str
    delivery_day: str
    coverage_days: list[str]
    is_active: bool
    total_boxes: int
    total_units: int
    lines: list[DeliveryLineOut]

    @classmethod
    def from_domain(cls, sheet: DeliverySheet) -> DeliverySheetOut:
        return cls(
            window=sheet.window.name,
            order_day=sheet.window.order_day.label,
            delivery_day=sheet.window.delivery_day.label,
            coverage_days=[d.label for d in sheet.coverage_days],
            is_active=sheet.is_active,
            total_boxes=sheet.total_boxes,
            total_units=sheet.total_units,
            lines=[
                DeliveryLineOut(
                    name=line.name,
                    total_needed=line.total_needed,
                    current_stock=line.current_stock,
                    net_needed=line.net_needed,
                    box_size=line.box_size,
                    boxes_needed=line.boxes_needed,
                    total_ordered=line.total_ordered,
                    days_breakdown=[
                        DayQuantity(day=day.label, quantity=qty)
                        for day, qty in line.days_breakdown
                    ],
                )
                for line in sheet.lines
            ],
        )


class LowStockAlertOut(BaseModel):
    """Classified low-stock item."""

    item_id: str
    name: str
    category: str
    vendor_name: str | None = None
    current_stock: float
    reorder_point: float | None = None
    avg_daily_sales: float
    days_of_stock_remaining: float | None = None
    priority: str
    reason: str
    suggested_reorder_qty: int

    @classmethod
    def from_domain(cls, alert: LowStockAlert) -> LowStockAlertOut:
        days = alert.days_of_stock_remaining
        return cls(
            item_id=alert.item_id,
            name=alert.name,
            category=alert.category,
            vendor_name=alert.vendor_name,
            current_stock=alert.current_stock,
            reorder_point=alert.reorder_point,
            avg_daily_sales=round(alert.avg_daily_sales, 2),
            days_of_stock_remaining=round(days, 1) if days is not None else None,
            priority=alert.priority.value,
            reason=alert.reason,
            suggested_reorder_qty=alert.suggested_reorder_qty,
        )


class LowStockReportOut(BaseModel):
    """Low-stock report."""

    generated_at: datetime
    period_days: int
    summary: dict[str, int]
    alerts: list[LowStockAlertOut]

    @classmethod
    def from_domain(cls, report: LowStockReport) -> LowStockReportOut:
        return cls(
            generated_at=report.generated_at,
            period_days=report.period_days,
            summary=report.summary,
            alerts=[LowStockAlertOut.from_domain(a) for a in report.alerts],
        )


class VendorReminderOut(BaseModel):
    """Vendor order due today."""

    vendor_name: str
    order_day: str
    deadline: str | None = None
    delivery_day: str | None = None
    minutes_until_deadline: float | None = Field(
        None, description="Null when there is no usable deadline"
    )
    is_overdue: bool
    urgency: str
    time_remaining: str | None = None
    frequency: str
    notes: str | None = None

    @classmethod
    def from_domain(cls, reminder: VendorReminder) -> VendorReminderOut:
        minutes = reminder.minutes_until_deadline
        return cls(
            vendor_name=reminder.vendor_name,
            order_day=reminder.order_day.label,
            deadline=reminder.deadline,
            delivery_day=reminder.delivery_day.label if reminder.delivery_day else None,
            minutes_until_deadline=minutes if minutes is not None and math.isfinite(minutes) else None,
            is_overdue=reminder.is_overdue,
            urgency=reminder.urgency.value,
            time_remaining=reminder.time_remaining,
            frequency=reminder.frequency,
            notes=reminder.notes,
        )


class StockItemOut(BaseModel):
    """Inventory snapshot."""

    item_id: str
    name: str
    current_stock: float
    reorder_point: float | None = None
    pack_size: int | None = None
    category: str = ""
    vendor_name: str | None = None

    class Config:
        from_attributes = True

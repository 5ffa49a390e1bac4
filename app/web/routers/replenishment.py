"""Replenishment API endpoints."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Response, status
from fastapi.responses import PlainTextResponse

from app.domain.replenishment.buffers import BufferSettings
from app.domain.replenishment.digest import format_low_stock_digest, format_reminder_digest
from app.domain.replenishment.errors import UnknownItem
from app.domain.replenishment.ordering import ORDER_FREQUENCIES, order_sheet_rows
from app.services.replenishment import (
    OrderSheet,
    build_delivery_sheets,
    build_order_sheet,
    generate_low_stock_report,
    generate_vendor_reminders,
    load_vendor_schedules,
    local_now,
)
from app.web.deps import AppSettings, DBSession, Stock
from app.web.schemas import (
    DeliveryRequest,
    DeliverySheetOut,
    FrequencyOut,
    LowStockReportOut,
    LowStockRequest,
    OrderSheetRequest,
    OrderSheetResponse,
    ReplenishmentItemOut,
    StockItemOut,
    StockUpdateRequest,
    VendorReminderOut,
    VendorRemindersRequest,
)
from app.web.utils import export_filename, to_csv, to_xlsx

router = APIRouter(prefix="/api/v1/replenishment", tags=["replenishment"])


def _order_sheet(payload: OrderSheetRequest, repo: Stock, settings: AppSettings) -> OrderSheet:
    if payload.stock is not None:
        snapshots = [s.to_domain() for s in payload.stock]
    else:
        snapshots = repo.list_items()

    order_frequency = payload.order_frequency
    if order_frequency is None:
        order_frequency = settings.default_order_frequency

    start = payload.start
    if start is None:
        start = payload.end - timedelta(days=settings.default_analysis_weeks * 7 - 1)

    return build_order_sheet(
        [r.to_domain() for r in payload.sales],
        snapshots,
        start=start,
        end=payload.end,
        order_frequency=order_frequency,
        period_weeks=payload.period_weeks,
        item_frequencies=payload.item_frequencies,
        order_quantities=payload.order_quantities,
        by_variation=payload.by_variation,
    )


@router.get("/frequencies", response_model=list[FrequencyOut])
def list_frequencies():
    """Allowed order frequencies (weeks) with labels."""
    return [FrequencyOut(value=value, label=label) for value, label in ORDER_FREQUENCIES.items()]


@router.post("/order-sheet", response_model=OrderSheetResponse)
def compute_order_sheet(payload: OrderSheetRequest, repo: Stock, settings: AppSettings):
    """Compute suggested orders from sales velocity and current stock."""
    sheet = _order_sheet(payload, repo, settings)
    return OrderSheetResponse(
        order_frequency=sheet.order_frequency,
        frequency_label=sheet.frequency_label,
        start=sheet.start,
        end=sheet.end,
        period_days=sheet.period_days,
        total_items=len(sheet.items),
        items_to_order=sum(1 for i in sheet.items if i.suggested_order > 0),
        items=[ReplenishmentItemOut.from_domain(i) for i in sheet.items],
    )


@router.post("/order-sheet/export")
def export_order_sheet(
    payload: OrderSheetRequest,
    repo: Stock,
    settings: AppSettings,
    fmt: Literal["csv", "xlsx"] = Query("csv", description="Export format"),
    only_ordered: bool = Query(True, description="Only rows with an order quantity"),
) -> Response:
    """Export the order sheet as CSV or XLSX."""
    sheet = _order_sheet(payload, repo, settings)
    columns, rows = order_sheet_rows(sheet.items, only_ordered=only_ordered)
    filename = export_filename(f"order-sheet {sheet.frequency_label}", sheet.end, fmt)

    if fmt == "xlsx":
        content = to_xlsx(rows, columns, title=f"Order Sheet - {sheet.frequency_label}")
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    else:
        content = to_csv(rows, columns)
        media_type = "text/csv"

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/delivery", response_model=list[DeliverySheetOut])
def compute_delivery(payload: DeliveryRequest, repo: Stock, settings: AppSettings):
    """Box orders per delivery window."""
    stock = payload.stock if payload.stock is not None else repo.list_items()
    buffers = BufferSettings(
        general_pct=(
            payload.general_buffer_pct
            if payload.general_buffer_pct is not None
            else settings.general_buffer_pct
        ),
        delivery_pct=(
            payload.delivery_buffer_pct
            if payload.delivery_buffer_pct is not None
            else settings.delivery_buffer_pct
        ),
    )

    sheets = build_delivery_sheets(
        [r.to_domain() for r in payload.sales],
        stock,
        start=payload.start,
        end=payload.end,
        windows=[w.to_domain() for w in payload.windows] if payload.windows else None,
        buffers=buffers,
        mode=payload.mode,
        tracked=payload.tracked,
        today=payload.today,
    )
    return [DeliverySheetOut.from_domain(s) for s in sheets]


@router.post("/low-stock", response_model=None)
def low_stock(
    payload: LowStockRequest,
    repo: Stock,
    fmt: Literal["json", "digest"] = Query("json", alias="format"),
):
    """Low-stock report, as JSON or a chat-ready digest."""
    snapshots = (
        [s.to_domain() for s in payload.stock] if payload.stock is not None else repo.list_items()
    )
    report = generate_low_stock_report(
        [r.to_domain() for r in payload.sales],
        snapshots,
        now=payload.now,
        period_days=payload.period_days,
        urgent_only=payload.urgent_only,
    )

    if fmt == "digest":
        return PlainTextResponse(format_low_stock_digest(report))
    return LowStockReportOut.from_domain(report)


@router.post("/vendor-reminders", response_model=None)
def vendor_reminders(
    payload: VendorRemindersRequest,
    db: DBSession,
    fmt: Literal["json", "digest"] = Query("json", alias="format"),
):
    """Vendor orders due today, most urgent first."""
    if payload.schedules is not None:
        schedules = [s.to_domain() for s in payload.schedules]
    else:
        schedules = load_vendor_schedules(db)

    now = payload.now or local_now()
    reminders = generate_vendor_reminders(
        schedules,
        now=now,
        hours_ahead=payload.hours_ahead,
        include_all=payload.include_all,
        include_no_deadline=payload.include_no_deadline,
    )

    if fmt == "digest":
        return PlainTextResponse(format_reminder_digest(reminders, now))
    return [VendorReminderOut.from_domain(r) for r in reminders]


@router.get("/stock", response_model=list[StockItemOut])
def list_stock(repo: Stock):
    """Current inventory snapshots."""
    return [StockItemOut.model_validate(s) for s in repo.list_items()]


@router.put("/stock/{item_id}", response_model=StockItemOut)
def update_stock(item_id: str, payload: StockUpdateRequest, repo: Stock):
    """Set an item's on-hand count (negative counts are stored as 0)."""
    try:
        snapshot = repo.update_stock(item_id, payload.current_stock)
    except UnknownItem as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return StockItemOut.model_validate(snapshot)

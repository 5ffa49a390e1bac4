"""CSV/XLSX export utilities for order sheets."""

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

# Columns holding the user's order decision; highlighted in XLSX
_HIGHLIGHT_COLUMNS = ("Suggested", "Order Qty")


def to_csv(data: list[dict[str, Any]], columns: list[str]) -> str:
    """Convert rows to CSV string.

    Args:
        data: List of dictionaries to export
        columns: Column names to include (in order)

    Returns:
        CSV string

    """
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    writer.writerows(data)
    return output.getvalue()


def to_xlsx(
    data: list[dict[str, Any]],
    columns: list[str],
    sheet_name: str = "Order Sheet",
    title: str | None = None,
) -> bytes:
    """Convert rows to XLSX bytes.

    Args:
        data: List of dictionaries to export
        columns: Column names to include (in order)
        sheet_name: Name for the Excel sheet
        title: Optional title line above the header (e.g. order frequency)

    Returns:
        XLSX file as bytes

    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    header_row = 1
    if title:
        ws.cell(row=1, column=1, value=title).font = Font(bold=True, size=12)
        header_row = 3

    # Header row with bold font
    header_font = Font(bold=True)
    highlight = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
    for col_idx, col_name in enumerate(columns, start=1):
        cell = ws.cell(row=header_row, column=col_idx, value=col_name)
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center")
        if col_name in _HIGHLIGHT_COLUMNS:
            cell.fill = highlight

    # Data rows
    for row_idx, row_data in enumerate(data, start=header_row + 1):
        for col_idx, col_name in enumerate(columns, start=1):
            value = row_data.get(col_name)
            cell = ws.cell(row=row_idx, column=col_idx, value=value if value != "" else None)
            if col_name in _HIGHLIGHT_COLUMNS:
                cell.fill = highlight

    ws.freeze_panes = ws.cell(row=header_row + 1, column=2)

    # Auto-adjust column widths
    for column_cells in ws.columns:
        max_length = 0
        column_letter = column_cells[0].column_letter
        for cell in column_cells:
            if cell.value:
                max_length = max(max_length, len(str(cell.value)))
        ws.column_dimensions[column_letter].width = min(max_length + 2, 50)

    # Save to bytes
    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()


def export_filename(prefix: str, day: date, ext: str) -> str:
    """Download filename, e.g. ``order-sheet-weekly-2025-11-03.csv``."""
    slug = "-".join(prefix.lower().replace("(", " ").replace(")", " ").split())
    return f"{slug}-{day.isoformat()}.{ext}"

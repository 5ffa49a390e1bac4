"""Web utilities."""

from __future__ import annotations

from app.web.utils.exporters import export_filename, to_csv, to_xlsx

__all__ = ["export_filename", "to_csv", "to_xlsx"]

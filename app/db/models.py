"""SQLAlchemy ORM models for the inventory store.

The replenishment engine only reads these rows (through the stock
repository) and writes stock counts on explicit update.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class InventoryItem(Base):
    """Inventory snapshot row - one per sellable item."""

    __tablename__ = "inventory_item"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    category: Mapped[str] = mapped_column(String(100), default="")
    vendor_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    current_stock: Mapped[float] = mapped_column(Float, default=0.0)
    reorder_point: Mapped[float | None] = mapped_column(Float, nullable=True)
    pack_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sell_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    cost_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class VendorSchedule(Base):
    """Vendor ordering schedule (order day, deadline, delivery day)."""

    __tablename__ = "vendor_schedule"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    vendor_name: Mapped[str] = mapped_column(String(255), index=True)
    order_day: Mapped[int] = mapped_column(Integer)  # 0=Monday
    order_deadline: Mapped[str | None] = mapped_column(String(16), nullable=True)  # "2:30 PM"
    delivery_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    frequency: Mapped[str] = mapped_column(String(32), default="weekly")
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

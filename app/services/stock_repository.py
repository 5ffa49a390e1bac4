"""Stock repository: the read/update boundary around inventory snapshots.

The engine reads stock at call time and never caches it. Writes happen only
through update_stock().
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.metrics import data_quality_issues_total
from app.db.models import InventoryItem
from app.domain.replenishment.errors import UnknownItem
from app.domain.replenishment.priority import StockPosition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InventorySnapshot:
    """Current stock state of one item."""

    item_id: str
    name: str
    current_stock: float
    reorder_point: float | None = None
    pack_size: int | None = None
    category: str = ""
    vendor_name: str | None = None
    sell_price: float | None = None
    cost_price: float | None = None

    def to_position(self) -> StockPosition:
        return StockPosition(
            item_id=self.item_id,
            name=self.name,
            current_stock=self.current_stock,
            reorder_point=self.reorder_point,
            category=self.category,
            vendor_name=self.vendor_name,
        )


class StockRepository(Protocol):
    """Inventory store the replenishment services read from."""

    def list_items(self) -> list[InventorySnapshot]: ...

    def get(self, item_id: str) -> InventorySnapshot | None: ...

    def update_stock(self, item_id: str, current_stock: float) -> InventorySnapshot: ...


def _checked_stock(item_id: str, current_stock: float) -> float:
    if current_stock < 0:
        logger.warning(
            "negative_stock_clamped",
            extra={"item_id": item_id, "current_stock": current_stock},
        )
        data_quality_issues_total.labels(issue="negative_stock").inc()
        return 0.0
    return float(current_stock)


def stock_by_name(snapshots: Iterable[InventorySnapshot]) -> dict[str, float]:
    """Map item name -> units on hand."""
    return {s.name: s.current_stock for s in snapshots}


class InMemoryStockRepository:
    """Process-local stock store; updates are serialized by a lock."""

    def __init__(self, items: Iterable[InventorySnapshot] = ()):
        self._lock = threading.Lock()
        self._items: dict[str, InventorySnapshot] = {i.item_id: i for i in items}

    def list_items(self) -> list[InventorySnapshot]:
        with self._lock:
            return list(self._items.values())

    def get(self, item_id: str) -> InventorySnapshot | None:
        with self._lock:
            return self._items.get(item_id)

    def update_stock(self, item_id: str, current_stock: float) -> InventorySnapshot:
        """Set the on-hand count for an item (negative counts become 0).

        Raises:
            UnknownItem: If item_id is not in the store

        """
        stock = _checked_stock(item_id, current_stock)
        with self._lock:
            existing = self._items.get(item_id)
            if existing is None:
                raise UnknownItem(item_id)
            updated = replace(existing, current_stock=stock)
            self._items[item_id] = updated

        logger.info("stock_updated", extra={"item_id": item_id, "current_stock": stock})
        return updated


def _to_snapshot(row: InventoryItem) -> InventorySnapshot:
    return InventorySnapshot(
        item_id=row.id,
        name=row.name,
        current_stock=row.current_stock or 0.0,
        reorder_point=row.reorder_point,
        pack_size=row.pack_size,
        category=row.category or "",
        vendor_name=row.vendor_name,
        sell_price=row.sell_price,
        cost_price=row.cost_price,
    )


class SqlStockRepository:
    """Stock store backed by the inventory_item table."""

    def __init__(self, db: Session):
        self.db = db

    def list_items(self) -> list[InventorySnapshot]:
        rows = self.db.execute(select(InventoryItem).order_by(InventoryItem.name)).scalars()
        return [_to_snapshot(r) for r in rows]

    def get(self, item_id: str) -> InventorySnapshot | None:
        row = self.db.get(InventoryItem, item_id)
        return _to_snapshot(row) if row else None

    def update_stock(self, item_id: str, current_stock: float) -> InventorySnapshot:
        """Set the on-hand count for an item and commit.

        Raises:
            UnknownItem: If item_id is not in the table

        """
        stock = _checked_stock(item_id, current_stock)
        row = self.db.get(InventoryItem, item_id)
        if row is None:
            raise UnknownItem(item_id)

        row.current_stock = stock
        self.db.commit()
        self.db.refresh(row)

        logger.info("stock_updated", extra={"item_id": item_id, "current_stock": stock})
        return _to_snapshot(row)


__all__ = [
    "InventorySnapshot",
    "StockRepository",
    "stock_by_name",
    "InMemoryStockRepository",
    "SqlStockRepository",
]

"""Tests for the stock repository boundary."""

from __future__ import annotations

import threading

import pytest
from prometheus_client import REGISTRY

from app.db.models import InventoryItem
from app.domain.replenishment.errors import UnknownItem
from app.services.stock_repository import (
    InMemoryStockRepository,
    InventorySnapshot,
    SqlStockRepository,
    stock_by_name,
)


def _negative_stock_count() -> float:
    return REGISTRY.get_sample_value("data_quality_issues_total", {"issue": "negative_stock"}) or 0


def test_in_memory_update_stock(stock_repo):
    updated = stock_repo.update_stock("SKU-1", 42)

    assert updated.current_stock == 42
    assert stock_repo.get("SKU-1").current_stock == 42
    assert stock_repo.get("SKU-1").pack_size == 6


def test_in_memory_unknown_item(stock_repo):
    with pytest.raises(UnknownItem) as exc:
        stock_repo.update_stock("nope", 1)

    assert exc.value.item_id == "nope"
    assert isinstance(exc.value, KeyError)


def test_negative_stock_stored_as_zero(stock_repo):
    before = _negative_stock_count()

    updated = stock_repo.update_stock("SKU-2", -7)

    assert updated.current_stock == 0
    assert _negative_stock_count() == before + 1


def test_in_memory_concurrent_updates():
    """Concurrent writers leave exactly one of the written values."""
    repo = InMemoryStockRepository([InventorySnapshot("A", "Apples", 0)])

    threads = [
        threading.Thread(target=repo.update_stock, args=("A", value)) for value in range(1, 51)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert 1 <= repo.get("A").current_stock <= 50
    assert len(repo.list_items()) == 1


def test_stock_by_name(stock_repo):
    assert stock_by_name(stock_repo.list_items()) == {"Oat Milk": 5, "Honey": 3}


def test_snapshot_to_position(stock_repo):
    position = stock_repo.get("SKU-2").to_position()

    assert position.name == "Honey"
    assert position.reorder_point == 5
    assert position.vendor_name == "Bee Farm"


def test_sql_repository_reads_items(seeded_db):
    repo = SqlStockRepository(seeded_db)

    items = repo.list_items()

    assert [i.name for i in items] == ["Honey", "Oat Milk"]
    assert repo.get("SKU-1").sell_price == 5.0
    assert repo.get("missing") is None


def test_sql_repository_update_commits(seeded_db):
    repo = SqlStockRepository(seeded_db)

    updated = repo.update_stock("SKU-1", 12)

    assert updated.current_stock == 12
    assert seeded_db.get(InventoryItem, "SKU-1").current_stock == 12


def test_sql_repository_unknown_item(seeded_db):
    with pytest.raises(UnknownItem):
        SqlStockRepository(seeded_db).update_stock("missing", 1)

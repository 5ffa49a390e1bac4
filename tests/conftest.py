"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import os

# Settings are read at import time by app.db.session and app.web.main
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("APP_TIMEZONE", "Australia/Sydney")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.db.models import Base, InventoryItem, VendorSchedule
from app.services.stock_repository import InMemoryStockRepository, InventorySnapshot
from app.web.deps import get_db, get_stock_repository
from app.web.main import app


@pytest.fixture
def db_session():
    """In-memory SQLite session with the schema created."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = Session(engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def seeded_db(db_session):
    """Inventory and vendor schedules for a small grocery store."""
    db_session.add_all(
        [
            InventoryItem(
                id="SKU-1",
                name="Oat Milk",
                category="Fridge",
                vendor_name="Dairy Co",
                current_stock=5,
                pack_size=6,
                sell_price=5.0,
                cost_price=3.0,
            ),
            InventoryItem(
                id="SKU-2",
                name="Honey",
                category="Pantry",
                vendor_name="Bee Farm",
                current_stock=3,
                reorder_point=5,
            ),
            VendorSchedule(
                vendor_name="Dairy Co",
                order_day=1,
                order_deadline="3:00 PM",
                delivery_day=3,
                notes="Order via portal",
            ),
            VendorSchedule(vendor_name="Bee Farm", order_day=1, order_deadline="9:00 AM", is_active=False),
        ]
    )
    db_session.commit()
    return db_session


@pytest.fixture
def stock_repo():
    """In-memory inventory store."""
    return InMemoryStockRepository(
        [
            InventorySnapshot(
                item_id="SKU-1",
                name="Oat Milk",
                current_stock=5,
                pack_size=6,
                category="Fridge",
                vendor_name="Dairy Co",
                sell_price=5.0,
                cost_price=3.0,
            ),
            InventorySnapshot(
                item_id="SKU-2",
                name="Honey",
                current_stock=3,
                reorder_point=5,
                category="Pantry",
                vendor_name="Bee Farm",
            ),
        ]
    )


@pytest.fixture
def client(stock_repo, seeded_db):
    """Test client backed by the in-memory store and seeded database."""
    app.dependency_overrides[get_stock_repository] = lambda: stock_repo
    app.dependency_overrides[get_db] = lambda: seeded_db
    yield TestClient(app)
    app.dependency_overrides.clear()

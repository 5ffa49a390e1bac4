"""FastAPI dependencies for database and inventory store."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.db.session import SessionLocal
from app.services.stock_repository import SqlStockRepository, StockRepository


def get_db() -> Session:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_stock_repository(db: Annotated[Session, Depends(get_db)]) -> StockRepository:
    """Inventory store dependency (overridden in tests)."""
    return SqlStockRepository(db)


# Type aliases for cleaner endpoints
DBSession = Annotated[Session, Depends(get_db)]
Stock = Annotated[StockRepository, Depends(get_stock_repository)]
AppSettings = Annotated[Settings, Depends(get_settings)]

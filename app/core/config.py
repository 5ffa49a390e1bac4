"""Configuration management with pydantic-settings.

Provides type-safe configuration with environment variable validation.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domain.replenishment.delivery import BoxSizeTable
from app.domain.replenishment.ordering import ORDER_FREQUENCIES

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Database ===
    database_url: str = Field(
        "sqlite:///./replenishment.db",
        description="Database URL for the inventory store",
    )

    # === Application settings ===
    app_timezone: str = Field("Australia/Sydney", description="Store local timezone")
    app_version: str = Field("1.0.0", description="Application version (app_info metric)")
    environment: str = Field("production", description="Deployment environment name")
    cors_origins: str = Field("*", description="Comma-separated allowed CORS origins")

    # === Logging ===
    log_level: str = Field("INFO", description="Root log level")
    log_file_path: str | None = Field(
        None, description="JSON log file path (unset = stdout only)"
    )

    # === Order sheet ===
    default_order_frequency: float = Field(1, description="Default order cycle in weeks")
    default_analysis_weeks: int = Field(
        6, ge=1, description="Sales window in weeks when a request gives no start date"
    )

    # === Delivery windows ===
    general_buffer_pct: float = Field(0.0, description="Buffer applied to every day (%)")
    delivery_buffer_pct: float = Field(0.0, description="Extra buffer on delivery days (%)")
    box_size_keywords_json: str = Field(
        '{"cheese": 16, "spinach": 16, "energy": 16}',
        description="Keyword -> box size table (JSON)",
    )
    default_box_size: int = Field(12, description="Box size when no keyword matches")

    # === Low stock ===
    low_stock_attention_days: int = Field(
        14, description="Watch items are reported below this many days of stock"
    )
    low_stock_target_days: int = Field(30, description="Runway the suggested reorder aims for")
    low_stock_period_days: int = Field(30, description="Sales lookback for velocity (days)")

    # === Vendor reminders ===
    reminder_hours_ahead: float = Field(2.0, description="Remind about deadlines within N hours")

    @field_validator("default_order_frequency")
    @classmethod
    def _check_frequency(cls, v: float) -> float:
        if v not in ORDER_FREQUENCIES:
            allowed = ", ".join(f"{f:g}" for f in ORDER_FREQUENCIES)
            raise ValueError(f"must be one of: {allowed}")
        return v

    @field_validator("default_box_size")
    @classmethod
    def _check_box_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("general_buffer_pct", "delivery_buffer_pct")
    @classmethod
    def _check_buffer(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    def box_size_table(self) -> BoxSizeTable:
        """Box size lookup built from box_size_keywords_json.

        Malformed JSON (or a non-positive size) falls back to an empty
        keyword table with the default box size.
        """
        try:
            raw = json.loads(self.box_size_keywords_json or "{}")
            keywords = {str(k): int(v) for k, v in raw.items()}
            return BoxSizeTable(keywords=keywords, default_size=self.default_box_size)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("box_size_table_invalid", extra={"error": str(e)})
            return BoxSizeTable(keywords={}, default_size=self.default_box_size)

    @property
    def cors_origin_list(self) -> list[str]:
        """Get list of allowed CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        RuntimeError: If environment variables are missing or invalid.

    """
    try:
        return Settings()
    except ValidationError as e:
        bad_fields = []
        for error in e.errors():
            field_name = str(error["loc"][0]) if error["loc"] else "?"
            bad_fields.append(f"{field_name.upper()} ({error['msg']})")

        error_msg = (
            f"Configuration error: Invalid environment variables: "
            f"{', '.join(bad_fields)}\n"
            f"Please fix them in .env file or the environment.\n"
            f"See .env.example for reference."
        )
        raise RuntimeError(error_msg) from e


__all__ = ["Settings", "get_settings"]

"""Safety buffers for per-day recommended quantities."""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.replenishment.ordering import ceil_qty


@dataclass(frozen=True)
class BufferSettings:
    """Per-invocation buffer percentages (not stored on items)."""

    general_pct: float = 0.0
    delivery_pct: float = 0.0

    def __post_init__(self):
        if self.general_pct < 0 or self.delivery_pct < 0:
            raise ValueError(
                f"Buffer percentages must be >= 0, got general={self.general_pct}, "
                f"delivery={self.delivery_pct}"
            )


NO_BUFFER = BufferSettings()


def apply_buffers(
    base: float,
    is_delivery_day: bool,
    general_pct: float = 0.0,
    delivery_pct: float = 0.0,
) -> int:
    """Inflate a per-day quantity by the general and delivery-day buffers.

    result = ceil(base * (1 + general/100) * (1 + delivery/100 on delivery days))

    Always rounds up: under-buffering is worse than a slight over-order.

    Examples:
        >>> apply_buffers(4, True, 10, 15)
        6
        >>> apply_buffers(4, False, 10, 15)
        5

    """
    if general_pct < 0 or delivery_pct < 0:
        raise ValueError("Buffer percentages must be >= 0")

    adjusted = base * (1 + general_pct / 100)
    if is_delivery_day:
        adjusted *= 1 + delivery_pct / 100
    return ceil_qty(adjusted)


def apply_buffer_settings(base: float, is_delivery_day: bool, buffers: BufferSettings) -> int:
    """apply_buffers() with a BufferSettings bundle."""
    return apply_buffers(base, is_delivery_day, buffers.general_pct, buffers.delivery_pct)


__all__ = ["BufferSettings", "NO_BUFFER", "apply_buffers", "apply_buffer_settings"]

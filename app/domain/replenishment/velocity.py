"""Sales velocity (average units per day / per week).

Values stay unrounded for downstream multiplication; rounding to one decimal
happens only where results are displayed.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.replenishment.sales import SalesSummary


@dataclass(frozen=True)
class Velocity:
    """Average sales rate over an analyzed period."""

    avg_daily: float
    avg_weekly: float

    def display(self) -> dict[str, float]:
        """Rounded values for presentation."""
        return {
            "avg_daily": round_display(self.avg_daily),
            "avg_weekly": round_display(self.avg_weekly),
        }


ZERO_VELOCITY = Velocity(avg_daily=0.0, avg_weekly=0.0)


def round_display(value: float, digits: int = 1) -> float:
    """Round a rate for display."""
    return round(value, digits)


def compute_velocity(total_units: float, period_days: int) -> Velocity:
    """Calculate sales velocity from period totals.

    avg_daily = total_units / period_days
    avg_weekly = avg_daily * 7

    Args:
        total_units: Units sold in the period
        period_days: Length of the analyzed period in days

    Returns:
        Velocity; zero when period_days <= 0 or nothing sold

    Examples:
        >>> compute_velocity(28, 14).avg_weekly
        14.0
        >>> compute_velocity(5, 0)
        Velocity(avg_daily=0.0, avg_weekly=0.0)

    """
    if period_days <= 0 or total_units <= 0:
        return ZERO_VELOCITY

    avg_daily = total_units / period_days
    return Velocity(avg_daily=avg_daily, avg_weekly=avg_daily * 7)


def velocity_from_summary(summary: SalesSummary | None) -> Velocity:
    """Velocity for an aggregated summary (missing summary -> zero)."""
    if summary is None:
        return ZERO_VELOCITY
    return compute_velocity(summary.total_units, summary.period_days)


__all__ = [
    "Velocity",
    "ZERO_VELOCITY",
    "round_display",
    "compute_velocity",
    "velocity_from_summary",
]

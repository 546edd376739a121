# sim/clock.py
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta

MIN = 60.0
HOUR = 3600.0


def hours(x: float) -> float:
    return x * HOUR


@dataclass(frozen=True)
class SimClock:
    epoch: datetime  # wall time at t=0
    time_scale: float = 1.0  # wall seconds per simulated second

    @classmethod
    def starting_at(cls, hour: float, *, time_scale: float = 60.0) -> SimClock:
        """Clock whose t=0 falls at `hour` o'clock on an arbitrary reference day."""
        midnight = datetime(2025, 1, 1, tzinfo=UTC)
        return cls(midnight + timedelta(seconds=hours(hour % 24.0)), time_scale)

    # sim seconds -> wall
    def to_wall(self, t: float) -> datetime:
        return self.epoch + timedelta(seconds=t * self.time_scale)

    def hour_of_day(self, t: float) -> float:
        """Fractional hour of day in [0, 24)."""
        w = self.to_wall(t)
        return w.hour + w.minute / MIN + (w.second + w.microsecond / 1e6) / HOUR

    def with_hour_at(self, hour: float, t: float) -> SimClock:
        """Same time scale, shifted so that hour_of_day(t) == hour."""
        w = self.to_wall(t)
        target = w.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(
            seconds=hours(hour % 24.0)
        )
        return replace(self, epoch=target - timedelta(seconds=t * self.time_scale))

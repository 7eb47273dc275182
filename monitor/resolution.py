from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
# Fixed lengths, not calendar-aware.
MONTH_MS = 30 * DAY_MS
YEAR_MS = 365 * DAY_MS

Bucket = Literal["coarse", "fine"]


class Resolution(str, Enum):
    S30 = "30s"
    M1 = "1m"
    H1 = "1h"
    D1 = "1d"

    @property
    def interval_ms(self) -> int:
        return _INTERVALS[self]

    @staticmethod
    def parse(label: str) -> "Resolution":
        s = (label or "").strip().lower()
        for r in Resolution:
            if r.value == s:
                return r
        raise ValueError(f"unknown resolution: {label!r}")

    def __str__(self) -> str:
        return self.value


_INTERVALS: dict[Resolution, int] = {
    Resolution.S30: 30 * SECOND_MS,
    Resolution.M1: MINUTE_MS,
    Resolution.H1: HOUR_MS,
    Resolution.D1: DAY_MS,
}

# finest -> coarsest
RESOLUTIONS: tuple[Resolution, ...] = (Resolution.S30, Resolution.M1, Resolution.H1, Resolution.D1)


@dataclass(frozen=True)
class TimeWindow:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"window start must be before end (start={self.start}, end={self.end})")

    @property
    def duration(self) -> int:
        return self.end - self.start

    @staticmethod
    def trailing(now_ms: int, duration_ms: int) -> "TimeWindow":
        return TimeWindow(start=int(now_ms) - int(duration_ms), end=int(now_ms))


def resolution_for_duration(duration_ms: float) -> Resolution:
    d = max(0.0, float(duration_ms))
    if d >= YEAR_MS:
        return Resolution.D1
    if d >= MONTH_MS:
        return Resolution.H1
    if d >= HOUR_MS:
        return Resolution.M1
    return Resolution.S30


def resolution_for(window: TimeWindow) -> Resolution:
    return resolution_for_duration(window.duration)


def bucket_for(resolution: Resolution) -> Bucket:
    if resolution in (Resolution.D1, Resolution.H1):
        return "coarse"
    return "fine"

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from monitor.resolution import Resolution


@dataclass(frozen=True)
class DataPoint:
    t: int
    values: dict[str, float] = field(default_factory=dict)

    def value(self, metric: str) -> float:
        return float(self.values.get(metric) or 0.0)


@dataclass(frozen=True)
class MetricSeries:
    resolution: Resolution
    points: list[DataPoint]

    def __len__(self) -> int:
        return len(self.points)

    @property
    def first_ts(self) -> int | None:
        return self.points[0].t if self.points else None

    @property
    def last_ts(self) -> int | None:
        return self.points[-1].t if self.points else None

    def pairs(self, metric: str) -> list[list[float]]:
        return [[p.t, p.value(metric)] for p in self.points]

    def to_payload(self) -> dict[str, Any]:
        return {
            "step": self.resolution.value,
            "points": [{"t": p.t, **p.values} for p in self.points],
        }

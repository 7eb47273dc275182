from __future__ import annotations

import asyncio
import math
import random
from typing import Sequence

from monitor.resolution import YEAR_MS, Resolution, TimeWindow
from monitor.series import DataPoint, MetricSeries

DEFAULT_METRICS: tuple[str, ...] = ("cpu_1", "cpu_2", "cpu_3", "gpu_1", "gpu_2", "memory")
DEFAULT_MAX_POINTS = 10_000


class RemoteFetchError(Exception):
    """Transient failure of the metrics source."""


def point_count(duration_ms: int, resolution: Resolution, *, max_points: int = DEFAULT_MAX_POINTS) -> int:
    n = int(math.ceil(max(0, duration_ms) / resolution.interval_ms))
    return max(1, min(n, max(1, int(max_points))))


def _base_range(metric: str) -> tuple[float, float]:
    if metric.startswith("cpu"):
        return 30.0, 50.0
    if metric.startswith("gpu"):
        return 40.0, 70.0
    if metric == "memory":
        return 60.0, 80.0
    return 50.0, 80.0


def _volatility(metric: str) -> float:
    if metric.startswith("cpu"):
        return {"cpu_1": 10.0, "cpu_2": 8.0}.get(metric, 12.0)
    if metric.startswith("gpu"):
        return 15.0 if metric == "gpu_1" else 12.0
    if metric == "memory":
        return 8.0
    return 15.0


class SeriesSynthesizer:
    """Stand-in for the remote metrics service.

    ``fetch_remote`` is the "network" path (latency plus occasional
    transient failure); ``synthesize`` is used directly for the fallback
    and for first paint.
    """

    def __init__(
        self,
        *,
        max_points: int = DEFAULT_MAX_POINTS,
        failure_rate: float = 0.0,
        latency_ms: tuple[float, float] = (100.0, 300.0),
        rng: random.Random | None = None,
    ) -> None:
        self.max_points = max(1, int(max_points))
        self.failure_rate = max(0.0, min(1.0, float(failure_rate)))
        lo, hi = latency_ms
        self.latency_ms = (max(0.0, float(lo)), max(float(lo), float(hi)))
        self._rng = rng or random.Random()

    def _value(self, base: float, spread: float) -> float:
        r = self._rng
        v = base + (r.random() - 0.5) * spread + (r.random() - 0.5) * 0.1 * spread
        return round(max(0.0, min(100.0, v)), 1)

    def synthesize(
        self,
        resolution: Resolution,
        window: TimeWindow,
        metrics: Sequence[str] | None = None,
    ) -> MetricSeries:
        names = list(DEFAULT_METRICS if metrics is None else metrics)
        duration = window.duration
        count = point_count(duration, resolution, max_points=self.max_points)

        bases: dict[str, float] = {}
        for m in names:
            lo, hi = _base_range(m)
            bases[m] = lo + self._rng.random() * (hi - lo)

        step = duration / (count - 1) if count > 1 else float(duration)
        points: list[DataPoint] = []
        for i in range(count):
            ts = int(round(window.start + i * step))
            values = {m: self._value(bases[m], _volatility(m)) for m in names}
            points.append(DataPoint(t=ts, values=values))
        return MetricSeries(resolution=resolution, points=points)

    async def fetch_remote(
        self,
        window: TimeWindow,
        metrics: Sequence[str],
        resolution: Resolution,
    ) -> MetricSeries:
        lo, hi = self.latency_ms
        delay_ms = lo + self._rng.random() * (hi - lo)
        await asyncio.sleep(delay_ms / 1000.0)
        if self.failure_rate > 0 and self._rng.random() < self.failure_rate:
            raise RemoteFetchError(f"metrics source unavailable for {window.start}-{window.end} ({resolution.value})")
        return self.synthesize(resolution, window, metrics)

    def initial(self, now_ms: int, metrics: Sequence[str] | None = None) -> MetricSeries:
        return self.synthesize(Resolution.D1, TimeWindow.trailing(now_ms, YEAR_MS), metrics)

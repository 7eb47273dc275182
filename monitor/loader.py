from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Awaitable, Protocol, Sequence

from monitor.resolution import Resolution, TimeWindow, resolution_for
from monitor.series import MetricSeries
from monitor.synth import SeriesSynthesizer
from monitor.window_cache import Clock, WindowCache, composite_key, now_ms

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 5.0


class MetricsSource(Protocol):
    def fetch_remote(
        self, window: TimeWindow, metrics: Sequence[str], resolution: Resolution
    ) -> Awaitable[MetricSeries]: ...

    def synthesize(
        self, resolution: Resolution, window: TimeWindow, metrics: Sequence[str] | None = None
    ) -> MetricSeries: ...

    def initial(self, now_ms: int, metrics: Sequence[str] | None = None) -> MetricSeries: ...


@dataclass
class LoaderStats:
    hits: int = 0
    misses: int = 0
    fetches: int = 0
    fallbacks: int = 0
    coalesced: int = 0


class DataLoader:
    def __init__(
        self,
        *,
        source: MetricsSource | None = None,
        cache: WindowCache | None = None,
        fetch_timeout_seconds: float | None = DEFAULT_FETCH_TIMEOUT_SECONDS,
        clock: Clock | None = None,
    ) -> None:
        self._clock: Clock = clock or now_ms
        self.source: MetricsSource = source or SeriesSynthesizer()
        self.cache = cache or WindowCache(clock=self._clock)
        self.fetch_timeout_seconds = fetch_timeout_seconds
        self._stats = LoaderStats()
        self._inflight: dict[str, asyncio.Future[MetricSeries]] = {}

    def get_resolution(self, window: TimeWindow) -> Resolution:
        return resolution_for(window)

    async def get_data(self, window: TimeWindow, metrics: Sequence[str]) -> MetricSeries:
        resolution = resolution_for(window)
        names = list(metrics)
        key = composite_key(window.start, window.end, resolution, names)

        cached = self.cache.get(key)
        if cached is not None:
            self._stats.hits += 1
            logger.debug("cache hit %s", key)
            return cached
        self._stats.misses += 1

        pending = self._inflight.get(key)
        if pending is not None:
            self._stats.coalesced += 1
            logger.debug("joining in-flight fetch %s", key)
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._fetch(key, window, names, resolution))
        self._inflight[key] = task
        task.add_done_callback(lambda _t: self._inflight.pop(key, None))
        return await asyncio.shield(task)

    async def _fetch(
        self, key: str, window: TimeWindow, metrics: list[str], resolution: Resolution
    ) -> MetricSeries:
        self._stats.fetches += 1
        try:
            coro = self.source.fetch_remote(window, metrics, resolution)
            if self.fetch_timeout_seconds is not None and self.fetch_timeout_seconds > 0:
                series = await asyncio.wait_for(coro, timeout=self.fetch_timeout_seconds)
            else:
                series = await coro
        except asyncio.TimeoutError:
            self._stats.fallbacks += 1
            logger.warning(
                "Fetch timed out after %.1fs for %s, serving synthesized fallback",
                self.fetch_timeout_seconds,
                key,
            )
            return self.source.synthesize(resolution, window, metrics)
        except Exception as e:
            self._stats.fallbacks += 1
            logger.warning("Failed to fetch monitor data for %s (%s: %s), serving synthesized fallback", key, type(e).__name__, e)
            return self.source.synthesize(resolution, window, metrics)

        self.cache.put(key, series)
        return series

    def get_initial_data(self, metrics: Sequence[str] | None = None) -> MetricSeries:
        return self.source.initial(self._clock(), metrics)

    def clear_cache(self, window: TimeWindow | None = None, metrics: Sequence[str] | None = None) -> None:
        if window is not None and metrics is not None:
            key = composite_key(window.start, window.end, resolution_for(window), metrics)
            self.cache.evict(key)
            logger.debug("evicted %s", key)
            return
        self.cache.clear()
        logger.debug("cache cleared")

    def stats(self) -> dict:
        d = asdict(self._stats)
        d["cached_windows"] = len(self.cache)
        d["in_flight"] = len(self._inflight)
        return d

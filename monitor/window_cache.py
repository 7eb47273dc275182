from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable

from monitor.resolution import Resolution
from monitor.series import MetricSeries

Clock = Callable[[], int]

DEFAULT_EXPIRY_MS = 5 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def composite_key(start: int, end: int, resolution: Resolution, metrics: Iterable[str]) -> str:
    # sorted() copies, so the caller's list keeps its order.
    return f"{int(start)}-{int(end)}-{Resolution(resolution).value}-{','.join(sorted(metrics))}"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    series: MetricSeries
    fetched_at: int


class WindowCache:
    """In-memory store of fetched windows.

    Expiry is checked lazily on read; an expired entry reads as a miss but
    stays in place until it is overwritten, evicted or cleared.
    """

    def __init__(self, *, expiry_ms: int = DEFAULT_EXPIRY_MS, clock: Clock | None = None) -> None:
        self.expiry_ms = int(expiry_ms)
        self._clock: Clock = clock or now_ms
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> MetricSeries | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if (self._clock() - entry.fetched_at) < self.expiry_ms:
            return entry.series
        return None

    def put(self, key: str, series: MetricSeries) -> None:
        self._entries[key] = CacheEntry(key=key, series=series, fetched_at=self._clock())

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

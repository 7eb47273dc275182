from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Sequence, Union

from monitor.resolution import TimeWindow
from monitor.series import MetricSeries
from monitor.view import AxisExtent, ChartView

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.2


@dataclass(frozen=True)
class AbsoluteZoom:
    start: float
    end: float


@dataclass(frozen=True)
class PercentZoom:
    start_pct: float
    end_pct: float


ZoomEvent = Union[AbsoluteZoom, PercentZoom]


def _num(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        v = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(v):
        return None
    return v


def parse_zoom_payload(raw: Any) -> ZoomEvent | None:
    """Normalize a chart widget zoom event.

    Handles batch events (slider drag) carrying either absolute
    ``startValue``/``endValue`` or percentage ``start``/``end``, and single
    events (wheel zoom) carrying percentages at the top level.
    """
    if not isinstance(raw, dict):
        return None
    item: Any = raw
    batch = raw.get("batch")
    if isinstance(batch, list):
        if not batch or not isinstance(batch[0], dict):
            return None
        item = batch[0]

    for a, b in (("startValue", "endValue"), ("start_value", "end_value")):
        s, e = _num(item.get(a)), _num(item.get(b))
        if s is not None and e is not None:
            return AbsoluteZoom(start=s, end=e)

    for a, b in (("start", "end"), ("start_pct", "end_pct")):
        s, e = _num(item.get(a)), _num(item.get(b))
        if s is not None and e is not None:
            return PercentZoom(start_pct=s, end_pct=e)
    return None


def resolve_zoom(event: ZoomEvent, extent: AxisExtent | None) -> TimeWindow | None:
    if isinstance(event, AbsoluteZoom):
        start, end = event.start, event.end
    elif isinstance(event, PercentZoom):
        if extent is None or extent.max <= extent.min:
            return None
        span = extent.max - extent.min
        start = extent.min + span * event.start_pct / 100.0
        end = extent.min + span * event.end_pct / 100.0
    else:
        return None
    if not (math.isfinite(start) and math.isfinite(end)):
        return None
    s, e = int(round(start)), int(round(end))
    if s >= e:
        return None
    return TimeWindow(start=s, end=e)


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class Loader(Protocol):
    async def get_data(self, window: TimeWindow, metrics: Sequence[str]) -> MetricSeries: ...


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Pending:
    window: TimeWindow
    deadline: float


DebounceState = Union[Idle, Pending]


class ZoomCoordinator:
    """Debounces zoom events for one chart into settled loads.

    Every event re-arms the timer; only when the timer fires is the latest
    window loaded. Each load gets a sequence number and only the newest
    result is applied to the view.
    """

    def __init__(
        self,
        *,
        loader: Loader,
        view: ChartView,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        scheduler: Scheduler | None = None,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        self.loader = loader
        self.view = view
        self.debounce_seconds = max(0.0, float(debounce_seconds))
        self._scheduler = scheduler
        self._monotonic = monotonic or time.monotonic
        self.state: DebounceState = Idle()
        self._handle: TimerHandle | None = None
        self._seq = 0
        self._tasks: set[asyncio.Future[None]] = set()

    @property
    def latest_seq(self) -> int:
        return self._seq

    def _sched(self) -> Scheduler:
        return self._scheduler or asyncio.get_running_loop()

    def submit(self, event: ZoomEvent) -> bool:
        window = resolve_zoom(event, self.view.extent)
        if window is None:
            logger.debug("dropping unresolvable zoom event %r (extent=%r)", event, self.view.extent)
            return False
        self.submit_window(window)
        return True

    def submit_window(self, window: TimeWindow) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self.state = Pending(window=window, deadline=self._monotonic() + self.debounce_seconds)
        self._handle = self._sched().call_later(self.debounce_seconds, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.state = Idle()
        # Loads already in flight become stale.
        self._seq += 1
        self.view.loading = False

    def _fire(self) -> None:
        state = self.state
        self._handle = None
        self.state = Idle()
        if not isinstance(state, Pending):
            return
        self._seq += 1
        task = asyncio.ensure_future(self._load(self._seq, state.window))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._log_failure)

    def _log_failure(self, task: asyncio.Future[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("zoom load failed (%s: %s)", type(exc).__name__, exc, exc_info=exc)

    async def _load(self, seq: int, window: TimeWindow) -> None:
        self.view.loading = True
        try:
            series = await self.loader.get_data(window, self.view.metrics)
        finally:
            if seq == self._seq:
                self.view.loading = False
        if seq != self._seq:
            logger.debug("discarding stale result seq=%d (latest=%d)", seq, self._seq)
            return
        self.view.apply(series, window)
        logger.debug("applied %s for %d-%d", series.resolution.value, window.start, window.end)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

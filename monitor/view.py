from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from monitor.resolution import Bucket, Resolution, TimeWindow, bucket_for
from monitor.sampler import sample
from monitor.series import MetricSeries


@dataclass(frozen=True)
class AxisExtent:
    min: int
    max: int


def visible_from_legend(selected: dict[str, bool]) -> list[str]:
    # Legend entries are the upper-cased metric names.
    return [str(name).lower() for name, on in selected.items() if on]


class ChartView:
    """Display state of one chart: two resolution tiers with a cross-fade.

    The tier that received the latest result is opaque. The other tier keeps
    its data at opacity 0 until ``settle()`` so the chart never goes blank
    between frames.

    A view has a single consumer. The HTTP host settles right after serving
    a frame, so with several viewers polling one chart only the first of them
    sees the faded-out tier.
    """

    def __init__(self, metrics: Iterable[str]) -> None:
        self.metrics: list[str] = list(metrics)
        self.visible: set[str] = set(self.metrics)
        self.coarse: MetricSeries | None = None
        self.fine: MetricSeries | None = None
        self.active_bucket: Bucket = "coarse"
        self.active_resolution: Resolution = Resolution.H1
        self.extent: AxisExtent | None = None
        self.loading = False

    def _get(self, bucket: Bucket) -> MetricSeries | None:
        return self.coarse if bucket == "coarse" else self.fine

    def _set(self, bucket: Bucket, series: MetricSeries | None) -> None:
        if bucket == "coarse":
            self.coarse = series
        else:
            self.fine = series

    @property
    def inactive_bucket(self) -> Bucket:
        return "fine" if self.active_bucket == "coarse" else "coarse"

    @property
    def in_transition(self) -> bool:
        return self._get(self.inactive_bucket) is not None

    def opacity(self, bucket: Bucket) -> int:
        return 1 if bucket == self.active_bucket else 0

    def apply(self, series: MetricSeries, window: TimeWindow | None = None) -> None:
        bucket = bucket_for(series.resolution)
        self._set(bucket, series)
        self.active_bucket = bucket
        self.active_resolution = series.resolution
        if window is not None:
            self.extent = AxisExtent(min=window.start, max=window.end)
        elif series.points:
            self.extent = AxisExtent(min=series.points[0].t, max=series.points[-1].t)

    def settle(self) -> None:
        self._set(self.inactive_bucket, None)

    def reset(self, initial: MetricSeries) -> None:
        self.fine = None
        self.coarse = None
        self.apply(initial)

    def set_visible(self, metrics: Iterable[str]) -> None:
        self.visible = {m for m in metrics if m in self.metrics}

    def frame(self, max_points: int) -> dict[str, Any]:
        series: list[dict[str, Any]] = []
        for bucket in ("coarse", "fine"):
            data = self._get(bucket)
            if data is None:
                continue
            points = sample(data.points, max_points)
            for metric in self.metrics:
                if metric not in self.visible:
                    continue
                series.append(
                    {
                        "name": metric.upper(),
                        "metric": metric,
                        "bucket": bucket,
                        "opacity": self.opacity(bucket),
                        "data": [[p.t, p.value(metric)] for p in points],
                    }
                )
        return {
            "resolution": self.active_resolution.value,
            "active_bucket": self.active_bucket,
            "loading": self.loading,
            "extent": None if self.extent is None else {"min": self.extent.min, "max": self.extent.max},
            "visible": [m for m in self.metrics if m in self.visible],
            "max_points": max_points,
            "series": series,
        }

from __future__ import annotations

from dataclasses import dataclass, field

from monitor.loader import DataLoader
from monitor.view import ChartView
from monitor.zoom import Scheduler, ZoomCoordinator


@dataclass(frozen=True)
class ChartPanel:
    id: str
    title: str
    metrics: tuple[str, ...]


DEFAULT_PANELS: tuple[ChartPanel, ...] = (
    ChartPanel(id="overview", title="System resources", metrics=("cpu_1", "cpu_2", "cpu_3", "gpu_1", "gpu_2")),
    ChartPanel(id="cpu", title="CPU cores", metrics=("cpu_1", "cpu_2", "cpu_3")),
    ChartPanel(id="gpu", title="GPU detail", metrics=("gpu_1", "gpu_2")),
    ChartPanel(id="memory", title="Memory and storage", metrics=("memory", "disk")),
)


@dataclass
class ChartSession:
    panel: ChartPanel
    view: ChartView
    zoom: ZoomCoordinator

    def reset(self, loader: DataLoader) -> None:
        self.zoom.cancel()
        self.view.reset(loader.get_initial_data(self.panel.metrics))


@dataclass
class ChartRegistry:
    """One view and one zoom coordinator per panel, all sharing a loader."""

    loader: DataLoader
    debounce_seconds: float
    scheduler: Scheduler | None = None
    sessions: dict[str, ChartSession] = field(default_factory=dict)

    @staticmethod
    def build(
        *,
        loader: DataLoader,
        panels: tuple[ChartPanel, ...] = DEFAULT_PANELS,
        debounce_seconds: float,
        scheduler: Scheduler | None = None,
    ) -> "ChartRegistry":
        reg = ChartRegistry(loader=loader, debounce_seconds=debounce_seconds, scheduler=scheduler)
        for p in panels:
            view = ChartView(p.metrics)
            view.apply(loader.get_initial_data(p.metrics))
            zoom = ZoomCoordinator(loader=loader, view=view, debounce_seconds=debounce_seconds, scheduler=scheduler)
            reg.sessions[p.id] = ChartSession(panel=p, view=view, zoom=zoom)
        return reg

    def get(self, chart_id: str) -> ChartSession | None:
        return self.sessions.get(chart_id)

    def cancel_all(self) -> None:
        for s in self.sessions.values():
            s.zoom.cancel()

    async def wait_idle(self) -> None:
        for s in self.sessions.values():
            await s.zoom.wait_idle()

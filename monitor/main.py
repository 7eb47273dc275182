from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from monitor.charts import ChartRegistry, ChartSession
from monitor.loader import DataLoader
from monitor.log import setup_logging
from monitor.resolution import TimeWindow, resolution_for
from monitor.sampler import max_points_for_width, sample
from monitor.series import MetricSeries
from monitor.settings import Settings, effective_settings_dict
from monitor.synth import DEFAULT_METRICS, SeriesSynthesizer
from monitor.view import visible_from_legend
from monitor.window_cache import WindowCache
from monitor.zoom import Scheduler, parse_zoom_payload

logger = logging.getLogger(__name__)


class ApiLegendRequest(BaseModel):
    selected: dict[str, bool] = {}


def build_loader(settings: Settings, *, rng: random.Random | None = None) -> DataLoader:
    source = SeriesSynthesizer(
        max_points=settings.max_points,
        failure_rate=settings.fetch_failure_rate,
        latency_ms=(settings.fetch_latency_min_ms, settings.fetch_latency_max_ms),
        rng=rng,
    )
    return DataLoader(
        source=source,
        cache=WindowCache(expiry_ms=settings.cache_ttl_ms),
        fetch_timeout_seconds=settings.fetch_timeout_seconds,
    )


def _parse_metrics(raw: str | None) -> list[str]:
    if raw is None:
        return list(DEFAULT_METRICS)
    return [m.strip().lower() for m in raw.split(",") if m.strip()]


def _parse_window(start: str | None, end: str | None) -> TimeWindow:
    try:
        s = int(float((start or "").strip()))
        e = int(float((end or "").strip()))
        return TimeWindow(start=s, end=e)
    except (ValueError, OverflowError):
        raise HTTPException(status_code=400, detail="start and end must be epoch milliseconds with start < end")


def _series_payload(series: MetricSeries, metrics: list[str], max_points: int) -> list[dict[str, Any]]:
    points = sample(series.points, max_points)
    return [{"name": m, "data": [[p.t, p.value(m)] for p in points]} for m in metrics]


def create_app(
    settings: Settings | None = None,
    *,
    loader: DataLoader | None = None,
    scheduler: Scheduler | None = None,
) -> FastAPI:
    settings = settings or Settings.load()
    setup_logging(settings.log_level)

    loader = loader or build_loader(settings)
    charts = ChartRegistry.build(loader=loader, debounce_seconds=settings.debounce_seconds, scheduler=scheduler)

    @asynccontextmanager
    async def _lifespan(_app: FastAPI):
        yield
        charts.cancel_all()
        await charts.wait_idle()

    app = FastAPI(title="Telemetry Monitor", lifespan=_lifespan)
    app.state.settings = settings
    app.state.loader = loader
    app.state.charts = charts

    def _width(request: Request) -> int:
        raw = request.query_params.get("width")
        return max_points_for_width(raw if raw else settings.default_width)

    def _session(chart_id: str) -> ChartSession:
        s = charts.get(chart_id)
        if s is None:
            raise HTTPException(status_code=404, detail=f"unknown chart: {chart_id}")
        return s

    @app.get("/health")
    async def health() -> dict:
        return {
            "ok": True,
            "loader": loader.stats(),
            "settings": effective_settings_dict(settings),
        }

    @app.get("/api/resolution")
    async def api_resolution(start: str | None = None, end: str | None = None) -> JSONResponse:
        window = _parse_window(start, end)
        return JSONResponse({"resolution": resolution_for(window).value, "duration_ms": window.duration})

    @app.get("/api/metrics")
    async def api_metrics(request: Request) -> JSONResponse:
        q = request.query_params
        window = _parse_window(q.get("start"), q.get("end"))
        metrics = _parse_metrics(q.get("metrics"))
        max_points = _width(request)
        series = await loader.get_data(window, metrics)
        return JSONResponse(
            {
                "step": series.resolution.value,
                "window": {"start": window.start, "end": window.end},
                "point_count": len(series),
                "max_points": max_points,
                "series": _series_payload(series, metrics, max_points),
            }
        )

    @app.get("/api/metrics/initial")
    async def api_metrics_initial(request: Request) -> JSONResponse:
        metrics = _parse_metrics(request.query_params.get("metrics"))
        max_points = _width(request)
        series = loader.get_initial_data(metrics)
        return JSONResponse(
            {
                "step": series.resolution.value,
                "point_count": len(series),
                "max_points": max_points,
                "series": _series_payload(series, metrics, max_points),
            }
        )

    @app.get("/api/charts")
    async def api_charts() -> JSONResponse:
        return JSONResponse(
            {
                "charts": [
                    {"id": s.panel.id, "title": s.panel.title, "metrics": list(s.panel.metrics)}
                    for s in charts.sessions.values()
                ]
            }
        )

    @app.get("/api/charts/{chart_id}")
    async def api_chart_frame(chart_id: str, request: Request) -> JSONResponse:
        s = _session(chart_id)
        frame = s.view.frame(_width(request))
        # One viewer per chart: the faded-out tier is shown in exactly one frame.
        s.view.settle()
        frame["id"] = chart_id
        frame["title"] = s.panel.title
        return JSONResponse(frame)

    @app.post("/api/charts/{chart_id}/zoom")
    async def api_chart_zoom(chart_id: str, request: Request) -> JSONResponse:
        s = _session(chart_id)
        try:
            raw = await request.json()
        except ValueError:
            raw = None
        event = parse_zoom_payload(raw)
        accepted = event is not None and s.zoom.submit(event)
        return JSONResponse({"ok": True, "accepted": accepted})

    @app.post("/api/charts/{chart_id}/legend")
    async def api_chart_legend(chart_id: str, req: ApiLegendRequest) -> JSONResponse:
        s = _session(chart_id)
        s.view.set_visible(visible_from_legend(req.selected))
        return JSONResponse({"ok": True, "visible": sorted(s.view.visible)})

    @app.post("/api/charts/{chart_id}/reset")
    async def api_chart_reset(chart_id: str) -> JSONResponse:
        s = _session(chart_id)
        s.reset(loader)
        return JSONResponse({"ok": True, "resolution": s.view.active_resolution.value})

    @app.delete("/api/cache")
    async def api_cache_clear(request: Request) -> JSONResponse:
        q = request.query_params
        if q.get("start") is not None or q.get("end") is not None:
            window = _parse_window(q.get("start"), q.get("end"))
            loader.clear_cache(window, _parse_metrics(q.get("metrics")))
        else:
            loader.clear_cache()
        return JSONResponse({"ok": True, "cached_windows": len(loader.cache)})

    logger.info(
        "monitor ready: %d charts, cache ttl %ss, debounce %sms",
        len(charts.sessions),
        settings.cache_ttl_seconds,
        settings.debounce_ms,
    )
    return app


app = create_app()

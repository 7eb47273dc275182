from monitor.resolution import Resolution, TimeWindow
from monitor.series import DataPoint, MetricSeries
from monitor.view import AxisExtent, ChartView, visible_from_legend


def _series(resolution: Resolution, n: int, t0: int = 0, step: int = 1000) -> MetricSeries:
    return MetricSeries(
        resolution=resolution,
        points=[DataPoint(t=t0 + i * step, values={"cpu_1": 10.0, "gpu_1": 20.0}) for i in range(n)],
    )


def _buckets(frame: dict) -> dict[str, int]:
    return {s["bucket"]: s["opacity"] for s in frame["series"]}


def test_switching_tiers_keeps_old_tier_until_settled() -> None:
    view = ChartView(["cpu_1", "gpu_1"])
    view.apply(_series(Resolution.D1, 5))
    assert view.active_bucket == "coarse"
    assert not view.in_transition

    view.apply(_series(Resolution.M1, 5), TimeWindow(0, 4000))
    assert view.active_bucket == "fine"
    assert view.active_resolution == Resolution.M1
    assert view.coarse is not None
    assert view.in_transition

    frame = view.frame(200)
    assert _buckets(frame) == {"coarse": 0, "fine": 1}
    assert frame["resolution"] == "1m"

    view.settle()
    assert view.coarse is None
    assert _buckets(view.frame(200)) == {"fine": 1}


def test_same_tier_replaces_in_place() -> None:
    view = ChartView(["cpu_1"])
    view.apply(_series(Resolution.D1, 5))
    first = view.coarse
    view.apply(_series(Resolution.H1, 7))
    assert view.coarse is not first
    assert view.fine is None
    assert view.active_resolution == Resolution.H1


def test_extent_tracks_window_or_points() -> None:
    view = ChartView(["cpu_1"])
    view.apply(_series(Resolution.D1, 3, t0=100))
    assert view.extent == AxisExtent(100, 2100)
    view.apply(_series(Resolution.M1, 3), TimeWindow(50, 5000))
    assert view.extent == AxisExtent(50, 5000)


def test_frame_downsamples_and_respects_legend() -> None:
    view = ChartView(["cpu_1", "gpu_1", "disk"])
    view.apply(_series(Resolution.S30, 1000))
    view.set_visible(visible_from_legend({"CPU_1": True, "GPU_1": False, "DISK": True}))
    frame = view.frame(200)
    names = [s["name"] for s in frame["series"]]
    assert names == ["CPU_1", "DISK"]
    cpu = frame["series"][0]["data"]
    assert len(cpu) <= 200
    assert cpu[0] == [0, 10.0]
    assert cpu[-1] == [999_000, 10.0]
    # disk was never fetched for this series: rendered as zeros
    assert all(v == 0.0 for _, v in frame["series"][1]["data"])
    assert frame["visible"] == ["cpu_1", "disk"]


def test_set_visible_ignores_unknown_metrics() -> None:
    view = ChartView(["cpu_1"])
    view.set_visible(["cpu_1", "network"])
    assert view.visible == {"cpu_1"}


def test_reset_returns_to_initial_tier() -> None:
    view = ChartView(["cpu_1"])
    view.apply(_series(Resolution.D1, 3))
    view.apply(_series(Resolution.S30, 3))
    view.reset(_series(Resolution.D1, 4))
    assert view.fine is None
    assert view.active_bucket == "coarse"
    assert len(view.coarse) == 4

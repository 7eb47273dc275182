import pytest

from monitor.resolution import (
    DAY_MS,
    HOUR_MS,
    MONTH_MS,
    YEAR_MS,
    Resolution,
    TimeWindow,
    bucket_for,
    resolution_for,
    resolution_for_duration,
)

T0 = 1_700_000_000_000


def test_resolution_thresholds_both_sides() -> None:
    assert resolution_for_duration(YEAR_MS) == Resolution.D1
    assert resolution_for_duration(YEAR_MS - 1) == Resolution.H1
    assert resolution_for_duration(MONTH_MS) == Resolution.H1
    assert resolution_for_duration(MONTH_MS - 1) == Resolution.M1
    assert resolution_for_duration(HOUR_MS) == Resolution.M1
    assert resolution_for_duration(HOUR_MS - 1) == Resolution.S30


def test_resolution_zero_and_negative_duration() -> None:
    assert resolution_for_duration(0) == Resolution.S30
    assert resolution_for_duration(-5) == Resolution.S30


def test_resolution_for_window() -> None:
    assert resolution_for(TimeWindow(T0, T0 + 5 * YEAR_MS)) == Resolution.D1
    assert resolution_for(TimeWindow(T0, T0 + 90 * DAY_MS)) == Resolution.H1
    assert resolution_for(TimeWindow(T0, T0 + 2 * DAY_MS)) == Resolution.M1
    assert resolution_for(TimeWindow(T0, T0 + 10 * 60 * 1000)) == Resolution.S30


def test_intervals_and_parse() -> None:
    assert Resolution.S30.interval_ms == 30_000
    assert Resolution.M1.interval_ms == 60_000
    assert Resolution.H1.interval_ms == HOUR_MS
    assert Resolution.D1.interval_ms == DAY_MS
    assert Resolution.parse(" 1H ") == Resolution.H1
    with pytest.raises(ValueError):
        Resolution.parse("5m")


def test_buckets() -> None:
    assert bucket_for(Resolution.D1) == "coarse"
    assert bucket_for(Resolution.H1) == "coarse"
    assert bucket_for(Resolution.M1) == "fine"
    assert bucket_for(Resolution.S30) == "fine"


def test_window_requires_start_before_end() -> None:
    with pytest.raises(ValueError):
        TimeWindow(T0, T0)
    with pytest.raises(ValueError):
        TimeWindow(T0, T0 - 1)
    w = TimeWindow.trailing(T0, HOUR_MS)
    assert w.end == T0 and w.duration == HOUR_MS

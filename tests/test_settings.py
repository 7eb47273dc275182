from monitor.settings import Settings, effective_settings_dict


def test_settings_defaults(monkeypatch) -> None:
    for name in (
        "MON_CACHE_TTL_SECONDS",
        "MON_MAX_POINTS",
        "MON_DEBOUNCE_MS",
        "MON_FETCH_TIMEOUT_SECONDS",
        "MON_FETCH_FAILURE_RATE",
        "MON_FETCH_LATENCY_MIN_MS",
        "MON_FETCH_LATENCY_MAX_MS",
        "MON_DEFAULT_WIDTH",
        "MON_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    s = Settings.load()
    assert s.cache_ttl_seconds == 300
    assert s.cache_ttl_ms == 300_000
    assert s.max_points == 10_000
    assert s.debounce_ms == 200
    assert s.debounce_seconds == 0.2
    assert s.fetch_timeout_seconds == 5.0
    assert s.log_level == "INFO"


def test_settings_env_overrides_and_clamps(monkeypatch) -> None:
    monkeypatch.setenv("MON_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("MON_MAX_POINTS", "not-a-number")
    monkeypatch.setenv("MON_FETCH_FAILURE_RATE", "3")
    monkeypatch.setenv("MON_FETCH_LATENCY_MIN_MS", "500")
    monkeypatch.setenv("MON_FETCH_LATENCY_MAX_MS", "100")
    monkeypatch.setenv("MON_LOG_LEVEL", "debug")
    s = Settings.load()
    assert s.cache_ttl_seconds == 60
    assert s.max_points == 10_000
    assert s.fetch_failure_rate == 1.0
    assert s.fetch_latency_max_ms == s.fetch_latency_min_ms == 500.0
    assert s.log_level == "DEBUG"

    d = effective_settings_dict(s)
    assert d["cache_ttl_seconds"] == 60

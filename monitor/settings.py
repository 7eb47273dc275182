from __future__ import annotations

import os
from dataclasses import asdict, dataclass


def _get_int(name: str, default: int) -> int:
    v = os.environ.get(name)
    if v is None:
        return default
    try:
        return int(v)
    except Exception:
        return default


def _get_float(name: str, default: float) -> float:
    v = os.environ.get(name)
    if v is None:
        return default
    try:
        return float(v)
    except Exception:
        return default


def _get_str(name: str, default: str | None = None) -> str | None:
    v = os.environ.get(name)
    if v is None:
        return default
    s = v.strip()
    return s if s else default


@dataclass(frozen=True)
class Settings:
    cache_ttl_seconds: int
    max_points: int
    debounce_ms: int
    fetch_timeout_seconds: float
    fetch_failure_rate: float
    fetch_latency_min_ms: float
    fetch_latency_max_ms: float
    default_width: int
    log_level: str

    @property
    def cache_ttl_ms(self) -> int:
        return self.cache_ttl_seconds * 1000

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    @staticmethod
    def load() -> "Settings":
        lat_min = max(0.0, _get_float("MON_FETCH_LATENCY_MIN_MS", 100.0))
        lat_max = max(lat_min, _get_float("MON_FETCH_LATENCY_MAX_MS", 300.0))
        return Settings(
            cache_ttl_seconds=max(1, _get_int("MON_CACHE_TTL_SECONDS", 300)),
            max_points=max(1, min(100_000, _get_int("MON_MAX_POINTS", 10_000))),
            debounce_ms=max(0, _get_int("MON_DEBOUNCE_MS", 200)),
            fetch_timeout_seconds=max(0.1, _get_float("MON_FETCH_TIMEOUT_SECONDS", 5.0)),
            fetch_failure_rate=max(0.0, min(1.0, _get_float("MON_FETCH_FAILURE_RATE", 0.05))),
            fetch_latency_min_ms=lat_min,
            fetch_latency_max_ms=lat_max,
            default_width=max(1, _get_int("MON_DEFAULT_WIDTH", 800)),
            log_level=(_get_str("MON_LOG_LEVEL", "INFO") or "INFO").upper(),
        )


def effective_settings_dict(settings: Settings) -> dict:
    return asdict(settings)

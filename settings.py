from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_STORE_URL_ENV = "WATER_STORE_URL"
_STORE_SEED_ENV = "WATER_STORE_SEED_PATH"
_STORE_TIMEOUT_ENV = "STORE_TIMEOUT_SECONDS"
_REFRESH_INTERVAL_ENV = "REFRESH_INTERVAL_SECONDS"
_POINT_COUNT_ENV = "DEFAULT_POINT_COUNT"
_TABLE_LIMIT_ENV = "TABLE_ROW_LIMIT"
_LIVE_METRICS_ENV = "LIVE_METRICS"
_DEMO_PLACEHOLDERS_ENV = "DEMO_PLACEHOLDERS"
_PREFER_PUSH_ENV = "PREFER_PUSH"
_TIMEZONE_ENV = "DISPLAY_TIMEZONE"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    store_url: Optional[str]
    store_seed_path: Optional[str]
    store_timeout: Optional[float]
    refresh_interval: float
    default_point_count: int
    table_row_limit: int
    live_metrics: Tuple[str, ...]
    demo_placeholders: bool
    prefer_push: bool
    display_timezone: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_csv_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(part.strip().lower() for part in value.split(",") if part.strip())
    return items or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_url=_read_optional_env(_STORE_URL_ENV, None),
        store_seed_path=_read_optional_env(_STORE_SEED_ENV, None),
        store_timeout=_read_positive_float(_STORE_TIMEOUT_ENV, None),
        refresh_interval=_read_positive_float(_REFRESH_INTERVAL_ENV, 10.0) or 10.0,
        default_point_count=_read_positive_int(_POINT_COUNT_ENV, 100),
        table_row_limit=_read_positive_int(_TABLE_LIMIT_ENV, 60),
        live_metrics=_read_csv_list(_LIVE_METRICS_ENV, ("ec", "tds")),
        demo_placeholders=_read_bool(_DEMO_PLACEHOLDERS_ENV, True),
        prefer_push=_read_bool(_PREFER_PUSH_ENV, True),
        display_timezone=_read_str_env(_TIMEZONE_ENV, "UTC"),
        log_level=_read_log_level("INFO"),
    )

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import typer

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_TIMEOUT = 30.0
DEFAULT_TABLE_ROWS = 10

_BASE_URL_ENV = "API_BASE_URL"
_POLL_INTERVAL_ENV = "CLI_POLL_INTERVAL"
_TIMEOUT_ENV = "CLI_REQUEST_TIMEOUT"
_TABLE_ROWS_ENV = "CLI_TABLE_ROWS"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: float = DEFAULT_TIMEOUT
    table_rows: int = DEFAULT_TABLE_ROWS


def _positive(value: Optional[str], cast, default):
    if value is None or not value.strip():
        return default
    try:
        parsed = cast(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _normalize_base_url(url: str) -> str:
    candidate = url.strip().rstrip("/")
    parts = urlsplit(candidate)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise typer.BadParameter(f"Base URL must be an http(s) URL, got {url!r}.")
    return candidate


def load_config(
    base_url: Optional[str] = None,
    poll_interval: Optional[float] = None,
    request_timeout: Optional[float] = None,
) -> CLIConfig:
    """Flags win over environment variables, which win over defaults."""
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if poll_interval is None:
        poll_interval = _positive(os.getenv(_POLL_INTERVAL_ENV), float, DEFAULT_POLL_INTERVAL)
    if request_timeout is None:
        request_timeout = _positive(os.getenv(_TIMEOUT_ENV), float, DEFAULT_TIMEOUT)
    return CLIConfig(
        base_url=_normalize_base_url(url),
        poll_interval=poll_interval,
        request_timeout=request_timeout,
        table_rows=_positive(os.getenv(_TABLE_ROWS_ENV), int, DEFAULT_TABLE_ROWS),
    )

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

import httpx
import typer

from cli.config import CLIConfig

_FILENAME = re.compile(r'filename="?([^";]+)"?')


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def get_dashboard(self) -> Dict[str, Any]:
        try:
            response = self._client.get("/api/dashboard")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def update_filters(self, filters: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.put("/api/filters", json=filters)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def get_devices(self) -> List[str]:
        try:
            response = self._client.get("/api/devices")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        payload = response.json()
        if not isinstance(payload, list):
            raise typer.BadParameter("Unexpected response payload when listing devices.")
        return [str(device) for device in payload]

    def export_csv(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        device: Optional[str] = None,
    ) -> Tuple[str, str]:
        """Return ``(filename, csv_text)`` for the requested range."""
        params = {
            key: value
            for key, value in (("start", start), ("end", end), ("device", device))
            if value
        }
        try:
            response = self._client.get("/api/export", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        disposition = response.headers.get("content-disposition", "")
        match = _FILENAME.search(disposition)
        filename = match.group(1) if match else "water-quality-export.csv"
        return filename, response.text

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

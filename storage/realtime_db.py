"""HTTP client for a Firebase-style Realtime Database."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional

import httpx
from httpx_sse import aconnect_sse

from storage.base import ChangeEvent, StoreError

logger = logging.getLogger(__name__)

_IGNORED_EVENTS = {"keep-alive"}
_TERMINAL_EVENTS = {"cancel", "auth_revoked"}


class RealtimeDatabaseStore:
    """Reads JSON snapshots and streams change events over REST."""

    supports_push = True

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}.json"

    async def read(self, path: str) -> Any:
        response = await self._client.get(
            self.url_for(path), headers={"Cache-Control": "no-store"}
        )
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(f"Store returned invalid JSON for {path!r}.") from exc

    async def watch(self, path: str) -> AsyncIterator[ChangeEvent]:
        """Yield change events for ``path`` until the stream ends."""
        async with aconnect_sse(self._client, "GET", self.url_for(path)) as source:
            source.response.raise_for_status()
            async for sse in source.aiter_sse():
                if sse.event in _IGNORED_EVENTS:
                    continue
                if sse.event in _TERMINAL_EVENTS:
                    raise StoreError(f"Subscription to {path!r} ended by store: {sse.event}.")
                try:
                    payload = sse.json() if sse.data else None
                except ValueError as exc:
                    raise StoreError(f"Malformed event payload for {path!r}.") from exc
                if not isinstance(payload, dict):
                    logger.debug("Ignoring event without payload", extra={"event": sse.event})
                    continue
                changed = str(payload.get("path") or "/")
                yield ChangeEvent(
                    event=sse.event,
                    path=changed,
                    exists=_snapshot_exists(sse.event, changed, payload.get("data")),
                )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _snapshot_exists(event: str, path: str, data: Any) -> bool:
    # Only replacing the watched root with null removes the whole snapshot;
    # a null under a child path is a deletion inside a tree that still exists.
    return not (event == "put" and path == "/" and data is None)

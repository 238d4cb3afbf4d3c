from __future__ import annotations

import asyncio
import copy
import json
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

from storage.base import ChangeEvent, StoreError

logger = logging.getLogger(__name__)


class InMemoryDeviceStore:
    """Device tree held in memory, laid out like the remote database."""

    supports_push = True

    def __init__(self, name: str = "devices", persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self.persistence_path = persistence_path
        self._devices: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._subscribers: List[asyncio.Queue[ChangeEvent]] = []
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_reading(self, device: str, reading_id: str, record: Mapping[str, Any]) -> None:
        self._devices.setdefault(device, {})[reading_id] = copy.deepcopy(dict(record))
        self._persist()
        self._notify(f"/{device}/readings/{reading_id}")

    def put_readings(self, device: str, records: Mapping[str, Mapping[str, Any]]) -> None:
        readings = self._devices.setdefault(device, {})
        for reading_id, record in records.items():
            readings[reading_id] = copy.deepcopy(dict(record))
        self._persist()
        self._notify(f"/{device}/readings")

    def clear(self) -> None:
        self._devices.clear()
        self._persist()
        self._notify("/", exists=False)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def read(self, path: str) -> Any:
        parts = [part for part in path.strip("/").split("/") if part]
        if parts == ["devices"]:
            if not self._devices:
                return None
            return {
                device: {"readings": copy.deepcopy(readings)}
                for device, readings in self._devices.items()
            }
        if len(parts) == 3 and parts[0] == "devices" and parts[2] == "readings":
            readings = self._devices.get(parts[1])
            return copy.deepcopy(readings) if readings else None
        raise StoreError(f"Unsupported path {path!r} for store {self.name!r}.")

    async def watch(self, path: str) -> AsyncIterator[ChangeEvent]:
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self._subscribers.append(queue)
        try:
            yield ChangeEvent(event="put", path="/", exists=bool(self._devices))
            while True:
                yield await queue.get()
        finally:
            self._subscribers.remove(queue)

    async def aclose(self) -> None:
        return None

    def _notify(self, path: str, exists: bool = True) -> None:
        event = ChangeEvent(event="put", path=path, exists=exists)
        for queue in list(self._subscribers):
            queue.put_nowait(event)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            device: {"readings": readings} for device, readings in self._devices.items()
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable store seed file",
                extra={"path": str(self.persistence_path)},
            )
            data = {}

        if not isinstance(data, dict):
            return
        for device, payload in data.items():
            readings = payload.get("readings") if isinstance(payload, dict) else None
            if isinstance(readings, dict):
                self._devices[device] = {
                    str(reading_id): record
                    for reading_id, record in readings.items()
                    if isinstance(record, dict)
                }

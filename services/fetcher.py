"""Retrieval of raw reading records from the device store."""

from __future__ import annotations

import logging
import time
from datetime import timezone, tzinfo
from typing import Any, Dict, List, Mapping, Optional

import httpx

from services.timestamps import DayBound, coerce_day, parse_timestamp, sort_key, within_days
from storage.base import DEVICES_PATH, DeviceStore, StoreError, readings_path

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]


class ReadingFetcher:
    """Reads, flattens, date-filters, orders and truncates raw records."""

    def __init__(self, store: DeviceStore, tz: tzinfo = timezone.utc) -> None:
        self.store = store
        self.tz = tz

    async def fetch(
        self,
        limit: Optional[int] = None,
        start_date: DayBound = None,
        end_date: DayBound = None,
        device: Optional[str] = None,
    ) -> List[RawRecord]:
        """Return raw records newest first; any store failure yields ``[]``."""
        start_time = time.perf_counter()
        try:
            start = coerce_day(start_date)
            end = coerce_day(end_date)
            if device:
                payload = await self.store.read(readings_path(device))
                records = _tag_readings(payload, device)
            else:
                payload = await self.store.read(DEVICES_PATH)
                records = _flatten_devices(payload)
        except (httpx.HTTPError, StoreError, ValueError) as exc:
            logger.warning(
                "Fetching readings failed: %s",
                exc,
                extra={"device": device, "reason": type(exc).__name__},
            )
            return []

        if start or end:
            records = [
                record
                for record in records
                if within_days(parse_timestamp(record.get("timestamp"), self.tz), start, end, self.tz)
            ]

        records.sort(
            key=lambda record: sort_key(parse_timestamp(record.get("timestamp"), self.tz)),
            reverse=True,
        )

        if limit is not None and limit > 0:
            records = records[:limit]

        logger.debug(
            "Fetched readings",
            extra={
                "device": device,
                "record_count": len(records),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return records


def _tag_readings(payload: Any, device: str) -> List[RawRecord]:
    if payload is None:
        return []
    if not isinstance(payload, Mapping):
        raise StoreError(f"Unexpected readings payload for device {device!r}.")
    records: List[RawRecord] = []
    for reading_id, value in payload.items():
        if not isinstance(value, Mapping):
            continue
        records.append({**value, "id": reading_id, "device": device})
    return records


def _flatten_devices(payload: Any) -> List[RawRecord]:
    if payload is None:
        return []
    if not isinstance(payload, Mapping):
        raise StoreError("Unexpected devices payload.")
    records: List[RawRecord] = []
    for device, device_data in payload.items():
        if not isinstance(device_data, Mapping):
            continue
        records.extend(_tag_readings(device_data.get("readings"), str(device)))
    return records

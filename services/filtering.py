"""Device and date filters over the reading cache."""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Sequence, Tuple

from models.records import Reading
from services.timestamps import DayBound, within_days

_DEVICE_NAME = re.compile(r"^(.+?)-?(\d+)$")


def filter_readings(
    readings: Iterable[Reading],
    device: Optional[str] = None,
    start_date: DayBound = None,
    end_date: DayBound = None,
    tz: tzinfo = timezone.utc,
) -> List[Reading]:
    """Apply the device filter, then the inclusive day-range filter."""
    filtered = list(readings)
    if device:
        filtered = [reading for reading in filtered if reading.device == device]
    if start_date or end_date:
        filtered = [
            reading
            for reading in filtered
            if within_days(reading.timestamp, start_date, end_date, tz)
        ]
    return filtered


def filter_instants(
    readings: Iterable[Reading],
    device: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Reading]:
    """Like :func:`filter_readings` but with sub-day bounds (aware datetimes)."""
    filtered = list(readings)
    if device:
        filtered = [reading for reading in filtered if reading.device == device]
    if start is not None or end is not None:
        filtered = [
            reading
            for reading in filtered
            if reading.timestamp is not None
            and (start is None or reading.timestamp >= start)
            and (end is None or reading.timestamp <= end)
        ]
    return filtered


def _device_sort_key(device: str) -> Tuple[str, int, str]:
    match = _DEVICE_NAME.match(device)
    if match:
        return match.group(1).lower(), int(match.group(2)), device
    return device.lower(), 0, device


def sort_devices(devices: Iterable[str]) -> List[str]:
    unique = {device for device in devices if device}
    return sorted(unique, key=_device_sort_key)


def device_list(readings: Sequence[Reading]) -> List[str]:
    return sort_devices(reading.device for reading in readings)

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from services.fetcher import ReadingFetcher
from storage.base import StoreError
from storage.memory_store import InMemoryDeviceStore


def _seeded_store() -> InMemoryDeviceStore:
    store = InMemoryDeviceStore()
    store.put_readings(
        "tank-1",
        {
            "r1": {"timestamp": "2024-01-01T08:00:00Z", "ec_uS_cm": 500},
            "r2": {"timestamp": "2024-01-03T08:00:00Z", "ec_uS_cm": 510},
        },
    )
    store.put_readings(
        "tank-2",
        {
            "r3": {"timestamp": "2024-01-02T08:00:00Z", "ec_uS_cm": 520},
            "r4": {"ec_uS_cm": 530},
            "r5": {"timestamp": "2024-01-04T08:00:00Z", "ec_uS_cm": 540},
        },
    )
    store.put_readings("pond-1", {"r6": {"timestamp": "2024-01-05T08:00:00Z"}})
    return store


def test_fetch_all_devices_flattens_and_tags() -> None:
    fetcher = ReadingFetcher(_seeded_store())

    records = asyncio.run(fetcher.fetch())

    assert len(records) == 6
    by_id = {record["id"]: record["device"] for record in records}
    assert by_id == {
        "r1": "tank-1",
        "r2": "tank-1",
        "r3": "tank-2",
        "r4": "tank-2",
        "r5": "tank-2",
        "r6": "pond-1",
    }


def test_fetch_sorts_newest_first_with_missing_timestamp_last() -> None:
    fetcher = ReadingFetcher(_seeded_store())

    records = asyncio.run(fetcher.fetch())

    assert [record["id"] for record in records] == ["r6", "r5", "r2", "r3", "r1", "r4"]


def test_fetch_single_device_applies_limit() -> None:
    fetcher = ReadingFetcher(_seeded_store())

    records = asyncio.run(fetcher.fetch(limit=2, device="tank-2"))

    assert [record["id"] for record in records] == ["r5", "r3"]
    assert all(record["device"] == "tank-2" for record in records)


def test_fetch_date_range_is_inclusive_and_drops_missing_timestamps() -> None:
    fetcher = ReadingFetcher(_seeded_store())

    records = asyncio.run(fetcher.fetch(start_date="2024-01-02", end_date="2024-01-04"))

    assert [record["id"] for record in records] == ["r5", "r2", "r3"]


def test_fetch_unknown_device_returns_empty() -> None:
    fetcher = ReadingFetcher(_seeded_store())

    assert asyncio.run(fetcher.fetch(device="missing")) == []


class _FailingStore:
    supports_push = False

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def read(self, path: str) -> Any:
        raise self.error

    async def aclose(self) -> None:
        return None


def test_fetch_degrades_to_empty_on_transport_failure(caplog) -> None:
    request = httpx.Request("GET", "https://example.invalid/devices.json")
    fetcher = ReadingFetcher(_FailingStore(httpx.ConnectError("boom", request=request)))

    with caplog.at_level("WARNING"):
        records = asyncio.run(fetcher.fetch())

    assert records == []
    assert any("Fetching readings failed" in record.getMessage() for record in caplog.records)


def test_fetch_degrades_to_empty_on_bad_payload() -> None:
    fetcher = ReadingFetcher(_FailingStore(StoreError("bad json")))

    assert asyncio.run(fetcher.fetch(device="tank-1")) == []

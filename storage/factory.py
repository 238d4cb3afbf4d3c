from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from settings import get_settings
from storage.base import DeviceStore
from storage.memory_store import InMemoryDeviceStore
from storage.realtime_db import RealtimeDatabaseStore


@lru_cache
def build_default_store(
    url: Optional[str] = None,
    seed_path: Optional[str] = None,
) -> DeviceStore:
    """Remote store when a URL is configured, otherwise the in-memory one."""
    settings = get_settings()
    store_url = settings.store_url if url is None else url
    if store_url:
        return RealtimeDatabaseStore(store_url, timeout=settings.store_timeout)
    store_seed = settings.store_seed_path if seed_path is None else seed_path
    persistence = Path(store_seed) if store_seed else None
    return InMemoryDeviceStore(persistence_path=persistence)

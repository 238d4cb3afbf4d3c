from __future__ import annotations

from typing import Iterable

from services.normalizer import NoPlaceholders
from services.orchestrator import build_default_orchestrator
from settings import get_settings
from storage.factory import build_default_store
from storage.memory_store import InMemoryDeviceStore
from storage.realtime_db import RealtimeDatabaseStore


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (get_settings, build_default_store, build_default_orchestrator)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    seed_path = tmp_path / "devices.json"

    monkeypatch.delenv("WATER_STORE_URL", raising=False)
    monkeypatch.setenv("WATER_STORE_SEED_PATH", str(seed_path))
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("DEFAULT_POINT_COUNT", "25")
    monkeypatch.setenv("TABLE_ROW_LIMIT", "15")
    monkeypatch.setenv("LIVE_METRICS", "EC, ph, bogus")
    monkeypatch.setenv("DEMO_PLACEHOLDERS", "off")
    monkeypatch.setenv("PREFER_PUSH", "no")
    _clear_caches(CACHES)

    try:
        orchestrator = build_default_orchestrator()
        store = build_default_store()

        assert isinstance(store, InMemoryDeviceStore)
        assert store.persistence_path == seed_path
        assert orchestrator.store is store
        assert orchestrator.interval == 2.5
        assert orchestrator.prefer_push is False
        assert orchestrator.session.filters.points == 25
        assert orchestrator.pipeline.presenter.table_limit == 15
        assert orchestrator.pipeline.normalizer.live_metrics == {"ec", "ph"}
        assert isinstance(orchestrator.pipeline.normalizer.policy, NoPlaceholders)
    finally:
        _clear_caches(CACHES)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "-1")
    monkeypatch.setenv("DEFAULT_POINT_COUNT", "many")
    monkeypatch.setenv("LIVE_METRICS", " , ")
    monkeypatch.setenv("DEMO_PLACEHOLDERS", "maybe")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    get_settings.cache_clear()

    try:
        settings = get_settings()

        assert settings.refresh_interval == 10.0
        assert settings.default_point_count == 100
        assert settings.live_metrics == ("ec", "tds")
        assert settings.demo_placeholders is True
        assert settings.log_level == "DEBUG"
    finally:
        get_settings.cache_clear()


def test_store_url_selects_remote_store(monkeypatch) -> None:
    monkeypatch.setenv("WATER_STORE_URL", "https://water-quality.example.test/")
    _clear_caches(CACHES)

    try:
        store = build_default_store()
        assert isinstance(store, RealtimeDatabaseStore)
        assert store.url_for("/devices") == "https://water-quality.example.test/devices.json"
    finally:
        _clear_caches(CACHES)

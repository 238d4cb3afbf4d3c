"""Decides when the dashboard pipeline runs: timer, change feed or filter edits."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Set

from app.schemas import (
    MAX_POINT_COUNT,
    CsvExport,
    DashboardSnapshot,
    FilterState,
    RefreshMode,
    StatusResponse,
)
from models.metrics import resolve_live_metrics
from models.records import Reading
from services.fetcher import ReadingFetcher
from services.normalizer import NoPlaceholders, Normalizer, RandomDemoPlaceholders
from services.pipeline import DashboardPipeline, PipelineResult
from services.presenter import Presenter
from services.timestamps import resolve_timezone
from settings import get_settings
from storage.base import DEVICES_PATH, DeviceStore
from storage.factory import build_default_store

logger = logging.getLogger(__name__)


class TriggerReason(str, Enum):
    startup = "startup"
    timer = "timer"
    push = "push"
    filters = "filters"
    manual = "manual"


@dataclass
class DashboardSession:
    """Mutable dashboard state owned by one orchestrator."""

    filters: FilterState = field(default_factory=FilterState)
    cache: List[Reading] = field(default_factory=list)
    devices: List[str] = field(default_factory=list)
    snapshot: Optional[DashboardSnapshot] = None
    issued_runs: int = 0
    applied_run: int = 0

    def begin_run(self) -> int:
        self.issued_runs += 1
        return self.issued_runs

    def apply(self, run_id: int, result: PipelineResult) -> bool:
        """Install a run's output unless a newer run already landed."""
        if run_id < self.applied_run:
            return False
        self.applied_run = run_id
        self.cache = result.cache
        self.devices = result.devices
        self.snapshot = result.snapshot
        return True


class RefreshOrchestrator:
    """Feeds timer and change-feed triggers into one queue of pipeline runs."""

    def __init__(
        self,
        pipeline: DashboardPipeline,
        store: DeviceStore,
        session: Optional[DashboardSession] = None,
        interval: float = 10.0,
        prefer_push: bool = True,
    ) -> None:
        self.pipeline = pipeline
        self.store = store
        self.session = session or DashboardSession()
        self.interval = interval
        self.prefer_push = prefer_push
        self.mode = RefreshMode.idle
        self._triggers: Optional[asyncio.Queue[TriggerReason]] = None
        self._producer: Optional[asyncio.Task[None]] = None
        self._dispatcher: Optional[asyncio.Task[None]] = None
        self._runs: Set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._dispatcher is not None

    async def start(self) -> None:
        if self.running:
            return
        self._triggers = asyncio.Queue()
        self._dispatcher = asyncio.create_task(self._dispatch_loop())
        if self.prefer_push and getattr(self.store, "supports_push", False):
            self._start_push()
        else:
            self._start_polling()
        # Queued rather than awaited so a hung first fetch cannot hold up startup.
        self._enqueue(TriggerReason.startup)

    async def stop(self) -> None:
        tasks = [task for task in (self._producer, self._dispatcher) if task is not None]
        tasks.extend(self._runs)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._producer = None
        self._dispatcher = None
        self._runs.clear()
        self._triggers = None
        self.mode = RefreshMode.idle

    async def aclose(self) -> None:
        await self.stop()
        await self.store.aclose()

    def trigger(self, reason: TriggerReason = TriggerReason.manual) -> None:
        """Queue a run without waiting for it."""
        if self._triggers is None:
            raise RuntimeError("Orchestrator is not running.")
        self._triggers.put_nowait(reason)

    async def refresh(self, reason: TriggerReason = TriggerReason.manual) -> DashboardSnapshot:
        run_id = self.session.begin_run()
        result = await self.pipeline.run(self.session.filters, run_id=run_id, mode=self.mode)
        if self.session.apply(run_id, result):
            logger.debug(
                "Applied pipeline run",
                extra={"run_id": run_id, "reason": reason.value, "mode": self.mode.value},
            )
        else:
            logger.info(
                "Discarding out-of-order pipeline run",
                extra={"run_id": run_id, "reason": reason.value},
            )
        return self.current_snapshot()

    async def update_filters(self, filters: FilterState) -> DashboardSnapshot:
        self.session.filters = filters
        return await self.refresh(TriggerReason.filters)

    def current_snapshot(self) -> DashboardSnapshot:
        if self.session.snapshot is not None:
            return self.session.snapshot
        return self.pipeline.render([], self.session.filters, run_id=0, mode=self.mode)

    def export_csv(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        device: Optional[str] = None,
    ) -> CsvExport:
        filters = self.session.filters
        return self.pipeline.presenter.export_csv(
            self.session.cache,
            start=start,
            end=end,
            device=device,
            fallback_start=filters.start_date,
            fallback_end=filters.end_date,
        )

    def status(self) -> StatusResponse:
        return StatusResponse(
            mode=self.mode,
            issued_runs=self.session.issued_runs,
            applied_run=self.session.applied_run,
            cached_readings=len(self.session.cache),
            devices=list(self.session.devices),
        )

    def _start_push(self) -> None:
        self.mode = RefreshMode.push
        self._producer = asyncio.create_task(self._feed_loop())
        logger.info("Listening for store changes", extra={"mode": self.mode.value})

    def _start_polling(self) -> None:
        self.mode = RefreshMode.polling
        self._producer = asyncio.create_task(self._timer_loop())
        logger.info(
            "Polling store every %.1fs", self.interval, extra={"mode": self.mode.value}
        )

    async def _timer_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._enqueue(TriggerReason.timer)

    async def _feed_loop(self) -> None:
        try:
            async for event in self.store.watch(DEVICES_PATH):
                if event.exists:
                    self._enqueue(TriggerReason.push)
        except Exception as exc:  # noqa: BLE001 - any feed failure means polling
            logger.warning(
                "Change feed unavailable, falling back to polling: %s",
                exc,
                extra={"reason": type(exc).__name__},
            )
        else:
            logger.warning("Change feed closed, falling back to polling")
        self._start_polling()

    async def _dispatch_loop(self) -> None:
        assert self._triggers is not None
        while True:
            reason = await self._triggers.get()
            task = asyncio.create_task(self._guarded_refresh(reason))
            self._runs.add(task)
            task.add_done_callback(self._runs.discard)

    async def _guarded_refresh(self, reason: TriggerReason) -> None:
        try:
            await self.refresh(reason)
        except Exception:  # noqa: BLE001 - a failed run must not stop the producers
            logger.exception("Pipeline run failed", extra={"reason": reason.value})

    def _enqueue(self, reason: TriggerReason) -> None:
        if self._triggers is not None:
            self._triggers.put_nowait(reason)


@lru_cache
def build_default_orchestrator() -> RefreshOrchestrator:
    """Factory that wires the orchestrator from settings."""
    settings = get_settings()
    tz = resolve_timezone(settings.display_timezone)
    live_metrics = resolve_live_metrics(settings.live_metrics)
    policy = RandomDemoPlaceholders() if settings.demo_placeholders else NoPlaceholders()
    store = build_default_store()
    pipeline = DashboardPipeline(
        fetcher=ReadingFetcher(store, tz=tz),
        normalizer=Normalizer(policy=policy, live_metrics=live_metrics, tz=tz),
        presenter=Presenter(
            live_metrics=live_metrics,
            tz=tz,
            table_limit=settings.table_row_limit,
        ),
    )
    points = min(settings.default_point_count, MAX_POINT_COUNT)
    session = DashboardSession(filters=FilterState(points=points))
    return RefreshOrchestrator(
        pipeline=pipeline,
        store=store,
        session=session,
        interval=settings.refresh_interval,
        prefer_push=settings.prefer_push,
    )

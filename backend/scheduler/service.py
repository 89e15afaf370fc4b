"""
Scheduler service for Gameday Status.

Drives the engine on two cadences:
1. A coarse schedule sync for every sport at startup and then daily at
   ``schedule_sync_hour`` local time.
2. A fine monitoring probe for every sport every ``monitor_probe_interval_s``.

Sports are processed concurrently; each sport's writes are serialized by the
state store.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from shared.config import Settings, get_settings
from shared.utils.logging import get_logger
from shared.utils.state_store import GameStateStore

from ingest.providers.base import ScheduleProvider
from ingest.providers.espn import ESPNScheduleProvider
from scheduler.monitor import ResultMonitor
from scheduler.synchronizer import Clock, ScheduleSynchronizer, utc_now

logger = get_logger(__name__)


def seconds_until_daily(now: datetime, hour: int, settings: Settings) -> float:
    """Seconds from ``now`` until the next ``hour``:00 in the configured timezone."""
    local_now = now.astimezone(settings.tz)
    target = datetime.combine(local_now.date(), time(hour=hour), tzinfo=settings.tz)
    if target <= local_now:
        target = datetime.combine(local_now.date() + timedelta(days=1), time(hour=hour), tzinfo=settings.tz)
    # same-zone subtraction is wall-clock; compare instants in UTC
    delta = target.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    return max(delta.total_seconds(), 0.0)


class SchedulerService:
    def __init__(
        self,
        synchronizer: ScheduleSynchronizer,
        monitor: ResultMonitor,
        sports: list[str],
        settings: Settings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._synchronizer = synchronizer
        self._monitor = monitor
        self._sports = list(sports)
        self._settings = settings or get_settings()
        self._clock = clock
        self._tasks: list[asyncio.Task[None]] = []
        self._shutdown = asyncio.Event()

    async def sync_all(self) -> None:
        await asyncio.gather(*(self._synchronizer.sync(s) for s in self._sports))

    async def probe_all(self) -> None:
        await asyncio.gather(*(self._monitor.probe(s) for s in self._sports))

    async def _daily_sync_loop(self) -> None:
        try:
            await self.sync_all()
        except Exception as exc:
            logger.error("startup_sync_error", error=str(exc), exc_info=True)
        while not self._shutdown.is_set():
            delay = seconds_until_daily(self._clock(), self._settings.schedule_sync_hour, self._settings)
            logger.debug("daily_sync_scheduled", in_s=round(delay))
            try:
                await asyncio.sleep(delay)
                await self.sync_all()
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error("daily_sync_error", error=str(exc), exc_info=True)
                await asyncio.sleep(60)

    async def _probe_loop(self) -> None:
        while not self._shutdown.is_set():
            try:
                await self.probe_all()
                await asyncio.sleep(self._settings.monitor_probe_interval_s)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                logger.error("monitor_probe_error", error=str(exc), exc_info=True)
                await asyncio.sleep(10)

    async def start(self) -> None:
        """Launch the sync loop (which syncs once immediately) and the probe loop."""
        logger.info("scheduler_starting", sports=self._sports)
        self._tasks = [
            asyncio.create_task(self._daily_sync_loop(), name="daily-sync"),
            asyncio.create_task(self._probe_loop(), name="monitor-probe"),
        ]

    async def stop(self) -> None:
        self._shutdown.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        await self._monitor.close()
        logger.info("scheduler_stopped")

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def request_shutdown(self) -> None:
        self._shutdown.set()


@dataclass
class Engine:
    store: GameStateStore
    provider: ScheduleProvider
    synchronizer: ScheduleSynchronizer
    monitor: ResultMonitor
    scheduler: SchedulerService


def build_engine(
    settings: Optional[Settings] = None,
    provider: Optional[ScheduleProvider] = None,
) -> Engine:
    """Wire store, provider, synchronizer, monitor and scheduler for the configured sports."""
    settings = settings or get_settings()
    provider = provider or ESPNScheduleProvider()
    store = GameStateStore(settings.sports)
    synchronizer = ScheduleSynchronizer(store, provider, settings=settings)
    monitor = ResultMonitor(store, provider, synchronizer, settings=settings)
    scheduler = SchedulerService(synchronizer, monitor, store.sports, settings=settings)
    return Engine(store, provider, synchronizer, monitor, scheduler)

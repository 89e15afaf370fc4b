"""Scheduler cadence and wiring."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.config import Settings
from scheduler.monitor import ResultMonitor
from scheduler.service import SchedulerService, build_engine, seconds_until_daily
from scheduler.synchronizer import ScheduleSynchronizer

from factories import NOW, ScriptedFeed


def _mocks() -> tuple[MagicMock, MagicMock]:
    synchronizer = MagicMock(spec=ScheduleSynchronizer)
    synchronizer.sync = AsyncMock(return_value=True)
    monitor = MagicMock(spec=ResultMonitor)
    monitor.probe = AsyncMock(return_value=False)
    monitor.close = AsyncMock()
    return synchronizer, monitor


def test_daily_sync_later_today(settings: Settings) -> None:
    # NOW is noon in Chicago
    assert seconds_until_daily(NOW, 13, settings) == 3600


def test_daily_sync_rolls_to_tomorrow(settings: Settings) -> None:
    assert seconds_until_daily(NOW, 8, settings) == 20 * 3600


def test_daily_sync_across_dst_change(settings: Settings) -> None:
    # 09:00 CST Saturday; clocks spring forward overnight, next 08:00 is CDT
    before = datetime(2025, 3, 8, 15, 0, tzinfo=timezone.utc)
    assert seconds_until_daily(before, 8, settings) == 22 * 3600


@pytest.mark.asyncio
async def test_sync_and_probe_every_sport(settings: Settings) -> None:
    synchronizer, monitor = _mocks()
    service = SchedulerService(synchronizer, monitor, ["basketball", "football"], settings=settings)

    await service.sync_all()
    await service.probe_all()

    assert sorted(c.args[0] for c in synchronizer.sync.await_args_list) == ["basketball", "football"]
    assert sorted(c.args[0] for c in monitor.probe.await_args_list) == ["basketball", "football"]


@pytest.mark.asyncio
async def test_start_syncs_immediately_and_stop_cancels(settings: Settings) -> None:
    synchronizer, monitor = _mocks()
    service = SchedulerService(
        synchronizer, monitor, ["basketball"], settings=settings, clock=lambda: NOW
    )

    await service.start()
    for _ in range(10):
        await asyncio.sleep(0)
    assert service.running
    synchronizer.sync.assert_awaited_once_with("basketball")
    monitor.probe.assert_awaited_once_with("basketball")

    await service.stop()
    assert not service.running
    monitor.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_startup_sync_failure_does_not_stop_loops(settings: Settings) -> None:
    synchronizer, monitor = _mocks()
    synchronizer.sync.side_effect = RuntimeError("feed exploded")
    service = SchedulerService(
        synchronizer, monitor, ["basketball"], settings=settings, clock=lambda: NOW
    )

    await service.start()
    for _ in range(10):
        await asyncio.sleep(0)
    assert service.running

    await service.stop()


def test_build_engine_wires_one_store(settings: Settings) -> None:
    feed = ScriptedFeed()
    engine = build_engine(settings, provider=feed.provider)

    assert engine.provider is feed.provider
    assert engine.store.sports == ["basketball", "football"]
    assert engine.synchronizer is not None
    assert engine.monitor is not None

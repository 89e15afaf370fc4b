"""
Live result monitor.

Per sport the monitor is in one of three states, derived from the store:

    IDLE    no next game
    ARMED   a next game exists and nobody is watching it yet
    ACTIVE  ``monitoring`` is set; a refresh loop watches ``next_game``

``probe`` moves ARMED to ACTIVE once the start instant has passed. While
ACTIVE, ``refresh`` runs every ``live_refresh_interval_s``; the first refresh
that sees a completed game moves it to ``last_game``, returns to IDLE and
schedules one synchronization pass after a short settle delay.
"""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Mapping, Optional

from shared.config import Settings, SportConfig, get_settings
from shared.models.domain import SportState, SportStatePatch
from shared.models.enums import MonitorState
from shared.utils.logging import get_logger
from shared.utils.metrics import MONITOR_REFRESHES
from shared.utils.state_store import GameStateStore

from ingest.normalization.normalizer import merge_detail
from ingest.providers.base import FeedError, ScheduleProvider
from scheduler.synchronizer import Clock, ScheduleSynchronizer, utc_now

logger = get_logger(__name__)


def monitor_state(state: SportState) -> MonitorState:
    if state.monitoring:
        return MonitorState.ACTIVE
    if state.next_game is not None:
        return MonitorState.ARMED
    return MonitorState.IDLE


class ResultMonitor:
    def __init__(
        self,
        store: GameStateStore,
        provider: ScheduleProvider,
        synchronizer: ScheduleSynchronizer,
        sports: Mapping[str, SportConfig] | None = None,
        settings: Settings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store
        self._provider = provider
        self._synchronizer = synchronizer
        self._sports = dict(sports if sports is not None else self._settings.sports)
        self._clock = clock
        self._watchers: dict[str, asyncio.Task[None]] = {}
        self._background: set[asyncio.Task[None]] = set()

    def state(self, sport_key: str) -> MonitorState:
        return monitor_state(self._store.snapshot(sport_key))

    async def probe(self, sport_key: str, now: Optional[datetime] = None) -> bool:
        """
        Start monitoring if the next game's start instant has passed.

        Returns True when this call moved the sport to ACTIVE. Calls while
        already ACTIVE, with no next game, or before kickoff do nothing.
        """
        now = now or self._clock()
        async with self._store.exclusive(sport_key) as txn:
            current = txn.state
            if current.monitoring or current.next_game is None:
                return False
            if now < current.next_game.start_instant:
                return False
            txn.apply(SportStatePatch(monitoring=True))
            game_id = current.next_game.id

        logger.info("monitoring_started", sport=sport_key, game_id=game_id)
        try:
            await self.refresh(sport_key)
        except Exception as exc:
            MONITOR_REFRESHES.labels(sport=sport_key, outcome="error").inc()
            logger.error(
                "monitor_first_refresh_error",
                sport=sport_key,
                game_id=game_id,
                error=str(exc),
                exc_info=True,
            )
        # the loop owns retries from here on
        if self.state(sport_key) == MonitorState.ACTIVE:
            self._start_watcher(sport_key)
        return True

    async def refresh(self, sport_key: str) -> MonitorState:
        """
        Re-check the watched game once.

        Feed failures are logged and leave the sport ACTIVE so the next tick
        retries.
        """
        sport = self._sports[sport_key]
        async with self._store.exclusive(sport_key) as txn:
            current = txn.state
            watched = current.next_game
            if not current.monitoring or watched is None:
                return monitor_state(current)

            try:
                detail = await self._provider.fetch_game_detail(sport, watched.id)
            except FeedError as exc:
                MONITOR_REFRESHES.labels(sport=sport_key, outcome="error").inc()
                logger.warning(
                    "monitor_refresh_failed",
                    sport=sport_key,
                    game_id=watched.id,
                    error=str(exc),
                )
                return MonitorState.ACTIVE

            updated = merge_detail(watched, detail)
            if detail.completed:
                txn.apply(SportStatePatch(last_game=updated, next_game=None, monitoring=False))
                MONITOR_REFRESHES.labels(sport=sport_key, outcome="final").inc()
                logger.info(
                    "game_final",
                    sport=sport_key,
                    game_id=updated.id,
                    home=f"{updated.home.code} {updated.home.score}",
                    away=f"{updated.away.code} {updated.away.score}",
                )
                self._spawn(self._sync_after_settle(sport_key))
                return MonitorState.IDLE

            txn.apply(SportStatePatch(next_game=updated))

        MONITOR_REFRESHES.labels(sport=sport_key, outcome="live").inc()
        logger.debug(
            "game_live_update",
            sport=sport_key,
            game_id=updated.id,
            score=f"{updated.home.score}-{updated.away.score}",
        )
        return MonitorState.ACTIVE

    def _start_watcher(self, sport_key: str) -> None:
        existing = self._watchers.get(sport_key)
        if existing is not None and not existing.done():
            return
        task = asyncio.create_task(self._watch(sport_key), name=f"monitor:{sport_key}")
        self._watchers[sport_key] = task

    async def _watch(self, sport_key: str) -> None:
        interval = self._settings.live_refresh_interval_s
        while self.state(sport_key) == MonitorState.ACTIVE:
            await asyncio.sleep(interval)
            try:
                await self.refresh(sport_key)
            except Exception as exc:
                logger.error("monitor_loop_error", sport=sport_key, error=str(exc), exc_info=True)
        logger.info("monitoring_stopped", sport=sport_key)

    async def _sync_after_settle(self, sport_key: str) -> None:
        await asyncio.sleep(self._settings.post_final_sync_delay_s)
        await self._synchronizer.sync(sport_key)

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def close(self) -> None:
        """Cancel refresh loops and pending post-game syncs."""
        tasks = [t for t in (*self._watchers.values(), *self._background) if not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._watchers.clear()
        self._background.clear()

"""
Schedule synchronization: recompute one sport's last and next game.

A pass resolves the season, fetches the schedule, picks the most recent
completed game and the live-or-upcoming game, and merges both into the state
store. Failures leave the cached state exactly as it was.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Mapping, Optional

from shared.config import Settings, SportConfig, get_settings
from shared.models.domain import Game, SportStatePatch
from shared.models.enums import GameStatus
from shared.utils.logging import get_logger
from shared.utils.metrics import SYNC_DURATION, SYNC_PASSES, atrack_latency
from shared.utils.state_store import GameStateStore

from ingest.providers.base import FeedRequestError, ScheduleProvider, ScheduleResult
from ingest.season import is_in_season, resolve_season

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def completed_games(games: list[Game], now: datetime) -> list[Game]:
    """Final games that started strictly before ``now``, oldest first."""
    return [g for g in games if g.is_completed_before(now)]


def pick_next_game(games: list[Game], now: datetime) -> Optional[Game]:
    """An in-progress game if any, else the earliest non-final game starting after ``now``."""
    for game in games:
        if game.status == GameStatus.IN_PROGRESS:
            return game
    for game in games:
        if not game.status.is_terminal and game.start_instant > now:
            return game
    return None


class ScheduleSynchronizer:
    def __init__(
        self,
        store: GameStateStore,
        provider: ScheduleProvider,
        sports: Mapping[str, SportConfig] | None = None,
        settings: Settings | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store
        self._provider = provider
        self._sports = dict(sports if sports is not None else self._settings.sports)
        self._clock = clock

    async def sync(self, sport_key: str, now: datetime | None = None) -> bool:
        """
        Run one synchronization pass for ``sport_key``.

        Returns:
            True when the state was recomputed, False when the pass failed and
            the cached state was left untouched.
        """
        sport = self._sports[sport_key]
        now = now or self._clock()
        today = now.astimezone(self._settings.tz).date()
        season = resolve_season(today, sport)
        in_season = is_in_season(today, sport)

        async with self._store.exclusive(sport_key) as txn:
            try:
                async with atrack_latency(SYNC_DURATION, sport=sport_key):
                    patch = await self._recompute(sport, season, in_season, now)
            except Exception as exc:
                SYNC_PASSES.labels(sport=sport_key, outcome="error").inc()
                logger.error(
                    "schedule_sync_failed",
                    sport=sport_key,
                    season=season,
                    error=str(exc),
                    exc_info=True,
                )
                return False

            current = txn.state
            if current.monitoring:
                watched = current.next_game.id if current.next_game else None
                fresh = patch.next_game.id if patch.next_game else None
                if watched != fresh:
                    logger.info(
                        "monitoring_released_by_sync",
                        sport=sport_key,
                        watched_game=watched,
                        next_game=fresh,
                    )
                    patch.monitoring = False
                else:
                    # live scores from the monitor are fresher than the schedule's
                    patch.next_game = current.next_game

            state = txn.apply(patch)
            self._store.mark_synced(sport_key)

        SYNC_PASSES.labels(sport=sport_key, outcome="ok").inc()
        logger.info(
            "schedule_synced",
            sport=sport_key,
            season=season,
            in_season=in_season,
            last_game=state.last_game.id if state.last_game else None,
            next_game=state.next_game.id if state.next_game else None,
        )
        return True

    async def _fetch(self, sport: SportConfig, season: int) -> ScheduleResult:
        result = await self._provider.fetch_schedule_result(sport, season)
        if result.feed_unavailable:
            raise FeedRequestError(
                sport.feed_url, f"every phase request failed for season {season}"
            )
        return result

    async def _recompute(
        self, sport: SportConfig, season: int, in_season: bool, now: datetime
    ) -> SportStatePatch:
        primary = (await self._fetch(sport, season)).games
        prior: Optional[list[Game]] = None

        if not in_season and not primary:
            # Off-season feeds are often still keyed to the season that just ended.
            logger.info("schedule_fallback_prior_season", sport=sport.key, season=season - 1)
            prior = (await self._provider.fetch_schedule_result(sport, season - 1)).games
            primary = prior

        completed = completed_games(primary, now)
        if not completed:
            if prior is None:
                prior = (await self._provider.fetch_schedule_result(sport, season - 1)).games
            completed = completed_games(prior, now)

        patch = SportStatePatch(last_refreshed_at=now)
        if completed:
            patch.last_game = completed[-1]

        if in_season:
            patch.next_game = pick_next_game(primary, now)
        else:
            patch.next_game = None
        return patch

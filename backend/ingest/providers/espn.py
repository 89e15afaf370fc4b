"""
ESPN provider connector.
Fetches team schedules and single-game summaries from ESPN's public site API
and normalizes them to canonical Game records.
"""
from __future__ import annotations

from typing import Any

from shared.config import SportConfig
from shared.models.domain import Game
from shared.models.enums import SeasonPhase
from shared.models.feed import FeedEventDetail
from shared.utils.http_client import FeedHTTPClient
from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_EVENTS_SKIPPED

from ingest.normalization.normalizer import parse_event_detail, parse_schedule_event, to_game
from ingest.providers.base import (
    FeedConfigurationError,
    FeedError,
    FeedParseError,
    ScheduleProvider,
    ScheduleResult,
)

logger = get_logger(__name__)


class ESPNScheduleProvider(ScheduleProvider):
    """ESPN schedule and summary connector."""

    def __init__(self, http_client: FeedHTTPClient | None = None) -> None:
        self._http = http_client or FeedHTTPClient(provider_name="espn")

    async def start(self) -> None:
        await self._http.start()

    async def close(self) -> None:
        await self._http.close()

    @staticmethod
    def _check_config(sport: SportConfig) -> str:
        base = sport.feed_url.strip().rstrip("/")
        if not base:
            raise FeedConfigurationError(f"sport {sport.key!r} has no feed_url")
        if not sport.team_id:
            raise FeedConfigurationError(f"sport {sport.key!r} has no team_id")
        return base

    def schedule_url(self, sport: SportConfig) -> str:
        return f"{self._check_config(sport)}/teams/{sport.team_id}/schedule"

    def summary_url(self, sport: SportConfig) -> str:
        return f"{self._check_config(sport)}/summary"

    async def fetch_schedule_result(self, sport: SportConfig, season: int) -> ScheduleResult:
        url = self.schedule_url(sport)
        result = ScheduleResult()
        seen: set[str] = set()

        for phase in sport.phases:
            try:
                data = await self._http.get_json(
                    url,
                    params={"season": season, "seasontype": int(phase)},
                    endpoint="schedule",
                )
            except FeedError as exc:
                result.phases_failed.append(phase)
                logger.warning(
                    "schedule_phase_failed",
                    sport=sport.key,
                    season=season,
                    phase=phase.name.lower(),
                    error=str(exc),
                )
                continue

            result.phases_ok.append(phase)
            games = self._normalize_events(data, sport, season, phase)
            for game in games:
                if game.id in seen:
                    logger.debug("schedule_duplicate_event", sport=sport.key, game_id=game.id)
                    continue
                seen.add(game.id)
                result.games.append(game)

        result.games.sort(key=lambda g: g.start_instant)
        logger.info(
            "schedule_fetched",
            sport=sport.key,
            season=season,
            games=len(result.games),
            phases_failed=[p.name.lower() for p in result.phases_failed],
        )
        return result

    def _normalize_events(
        self, data: Any, sport: SportConfig, season: int, phase: SeasonPhase
    ) -> list[Game]:
        events = data.get("events") if isinstance(data, dict) else None
        if not isinstance(events, list) or not events:
            logger.info(
                "schedule_phase_empty",
                sport=sport.key,
                season=season,
                phase=phase.name.lower(),
            )
            return []

        games: list[Game] = []
        for raw in events:
            try:
                games.append(to_game(parse_schedule_event(raw)))
            except FeedParseError as exc:
                FEED_EVENTS_SKIPPED.labels(sport=sport.key).inc()
                logger.warning(
                    "schedule_event_skipped",
                    sport=sport.key,
                    event_id=raw.get("id") if isinstance(raw, dict) else None,
                    error=str(exc),
                )
        return games

    async def fetch_game_detail(self, sport: SportConfig, game_id: str) -> FeedEventDetail:
        data = await self._http.get_json(
            self.summary_url(sport),
            params={"event": game_id},
            endpoint="summary",
        )
        return parse_event_detail(data, game_id)

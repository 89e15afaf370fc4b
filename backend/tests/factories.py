"""Builders for raw ESPN payloads and canonical games used across tests."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from shared.models.domain import Game, TeamSnapshot
from shared.models.enums import GameStatus, SeasonPhase

from ingest.providers.base import ScheduleProvider, ScheduleResult

# Mid-season for a November to April program: Wednesday 15 Jan 2025, noon Central.
NOW = datetime(2025, 1, 15, 18, 0, tzinfo=timezone.utc)


def feed_date(instant: datetime) -> str:
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%MZ")


def espn_competitor(
    side: str, code: str, score: Any = None, winner: bool = False
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "homeAway": side,
        "winner": winner,
        "team": {"id": "0", "abbreviation": code.upper(), "displayName": code.title()},
    }
    if score is not None:
        raw["score"] = {"value": float(score), "displayValue": str(score)}
    return raw


def espn_event(
    event_id: str,
    start: datetime,
    *,
    completed: bool = False,
    status_name: str = "STATUS_SCHEDULED",
    home: tuple[str, Any, bool] = ("ku", None, False),
    away: tuple[str, Any, bool] = ("mizz", None, False),
) -> dict[str, Any]:
    return {
        "id": event_id,
        "date": feed_date(start),
        "competitions": [
            {
                "status": {"type": {"completed": completed, "name": status_name}},
                "competitors": [
                    espn_competitor("home", *home),
                    espn_competitor("away", *away),
                ],
            }
        ],
    }


def espn_summary(
    event_id: str,
    *,
    completed: bool,
    status_name: str = "STATUS_IN_PROGRESS",
    home: tuple[str, str, bool] = ("ku", "0", False),
    away: tuple[str, str, bool] = ("mizz", "0", False),
) -> dict[str, Any]:
    competitors = []
    for side, (code, score, winner) in (("home", home), ("away", away)):
        competitors.append({
            "homeAway": side,
            "score": score,
            "winner": winner,
            "team": {"abbreviation": code.upper()},
        })
    return {
        "header": {
            "id": event_id,
            "competitions": [
                {
                    "status": {"type": {"completed": completed, "name": status_name}},
                    "competitors": competitors,
                }
            ],
        }
    }


def make_game(
    game_id: str,
    start: datetime,
    status: GameStatus = GameStatus.SCHEDULED,
    home: tuple[str, str, bool] = ("ku", "0", False),
    away: tuple[str, str, bool] = ("mizz", "0", False),
) -> Game:
    return Game(
        id=game_id,
        date=start.date(),
        start_instant=start,
        status=status,
        home=TeamSnapshot(code=home[0], score=home[1], winner=home[2]),
        away=TeamSnapshot(code=away[0], score=away[1], winner=away[2]),
    )


def ok_result(games: list[Game]) -> ScheduleResult:
    return ScheduleResult(
        games=sorted(games, key=lambda g: g.start_instant),
        phases_ok=[SeasonPhase.REGULAR, SeasonPhase.POSTSEASON],
    )


def down_result() -> ScheduleResult:
    return ScheduleResult(phases_failed=[SeasonPhase.REGULAR, SeasonPhase.POSTSEASON])


class ScriptedFeed:
    """Season → ScheduleResult table behind an AsyncMock provider."""

    def __init__(self) -> None:
        self.seasons: dict[int, ScheduleResult] = {}
        self.provider = MagicMock(spec=ScheduleProvider)
        self.provider.fetch_schedule_result = AsyncMock(side_effect=self._schedule)
        self.provider.fetch_game_detail = AsyncMock()

    async def _schedule(self, sport: Any, season: int) -> ScheduleResult:
        return self.seasons.get(season) or ok_result([])

    def set_season(self, season: int, games: list[Game]) -> None:
        self.seasons[season] = ok_result(games)

    def fail_season(self, season: int) -> None:
        self.seasons[season] = down_result()

    def seasons_requested(self) -> list[int]:
        return [c.args[1] for c in self.provider.fetch_schedule_result.await_args_list]

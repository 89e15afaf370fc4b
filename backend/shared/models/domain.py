"""
Pydantic v2 domain models shared across the Gameday Status service.
These are the canonical internal and wire representations.
"""
from __future__ import annotations

from datetime import date as Date, datetime
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from shared.models.enums import GameStatus


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ── Game ────────────────────────────────────────────────────────────────
class TeamSnapshot(DomainModel):
    """One side of a game as last reported by the feed."""
    code: str
    score: str = "0"
    winner: bool = False


class Game(DomainModel):
    id: str
    date: Date
    start_instant: datetime
    status: GameStatus = GameStatus.SCHEDULED
    home: TeamSnapshot
    away: TeamSnapshot

    def sides(self, team_codes: Iterable[str]) -> tuple[TeamSnapshot, TeamSnapshot]:
        """
        Return (ours, theirs) by short-code match.

        When neither side carries one of the monitored codes, home is treated
        as ours. This can misattribute a result if the feed changes its code
        format; it is kept as the documented fallback.
        """
        codes = {c.lower() for c in team_codes}
        if self.home.code.lower() in codes:
            return self.home, self.away
        if self.away.code.lower() in codes:
            return self.away, self.home
        return self.home, self.away

    def is_completed_before(self, now: datetime) -> bool:
        return self.status.is_terminal and self.start_instant < now


# ── Per-sport cached state ──────────────────────────────────────────────
class SportState(DomainModel):
    last_game: Optional[Game] = None
    next_game: Optional[Game] = None
    monitoring: bool = False
    last_refreshed_at: Optional[datetime] = None


class SportStatePatch(DomainModel):
    """
    Partial update to a SportState.

    Only fields explicitly passed to the constructor are applied, so
    ``SportStatePatch(next_game=None)`` clears ``next_game`` while
    ``SportStatePatch(monitoring=True)`` leaves it alone.
    """
    last_game: Optional[Game] = None
    next_game: Optional[Game] = None
    monitoring: bool = False
    last_refreshed_at: Optional[datetime] = None


def apply_patch(state: SportState, patch: SportStatePatch) -> SportState:
    """Merge ``patch`` into ``state``; patch wins for every field it names."""
    owned = patch.model_copy(deep=True)
    updates = {name: getattr(owned, name) for name in owned.model_fields_set}
    return state.model_copy(update=updates, deep=True)


# ── Status payload ──────────────────────────────────────────────────────
class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScoreLink(WireModel):
    text: str
    url: str


class StatusPayload(WireModel):
    did_win: Optional[bool] = None
    score_link: Optional[ScoreLink] = None
    is_live: bool = False
    live_score: Optional[str] = None
    last_updated: Optional[datetime] = None


class SportSummary(WireModel):
    sport: str
    monitor_state: str
    synced: bool = False
    last_updated: Optional[datetime] = None

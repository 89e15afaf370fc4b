"""
Normalization of raw ESPN payloads.

Two steps: raw JSON is parsed into the strict feed models (FeedEvent,
FeedEventDetail), then feed models are converted into canonical Game records.
Live detail is merged into an existing Game rather than replacing it.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from shared.models.domain import Game, TeamSnapshot
from shared.models.enums import LIVE_STATUS_NAMES, GameStatus
from shared.models.feed import FeedCompetitor, FeedEvent, FeedEventDetail, FeedStatus

from ingest.providers.base import FeedParseError


# ── Scalars ─────────────────────────────────────────────────────────────

def normalize_score(raw: Any) -> str:
    """
    Render a feed score as a string.

    Accepts the schedule shape ({"value": 78.0, "displayValue": "78"}) and the
    plain scoreboard/summary shape ("78"). Anything absent or non-numeric
    becomes "0".
    """
    if isinstance(raw, dict):
        raw = raw.get("displayValue") or raw.get("value")
    if raw is None or isinstance(raw, bool):
        return "0"
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip()
        try:
            value = float(text)
        except ValueError:
            return "0"
    if not math.isfinite(value):
        return "0"
    if value.is_integer():
        return str(int(value))
    return str(value)


def parse_instant(raw: Any) -> datetime:
    """Parse an ISO-ish feed timestamp ("2025-01-04T19:00Z") into an aware UTC datetime."""
    if not isinstance(raw, str) or not raw:
        raise FeedParseError(f"missing event date: {raw!r}")
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise FeedParseError(f"unparsable event date: {raw!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def derive_status(status: FeedStatus) -> GameStatus:
    """Completed flag first, then a live status name, otherwise scheduled."""
    if status.completed:
        return GameStatus.FINAL
    if status.name in LIVE_STATUS_NAMES:
        return GameStatus.IN_PROGRESS
    return GameStatus.SCHEDULED


# ── Raw JSON → feed models ──────────────────────────────────────────────

def _parse_status(raw: Any) -> FeedStatus:
    status_type = raw.get("type") if isinstance(raw, dict) else None
    if not isinstance(status_type, dict):
        return FeedStatus()
    name = status_type.get("name")
    return FeedStatus(
        completed=status_type.get("completed") is True,
        name=name if isinstance(name, str) else None,
    )


def _parse_competitor(raw: Any) -> FeedCompetitor:
    if not isinstance(raw, dict):
        raise FeedParseError("competitor is not an object")
    team = raw.get("team")
    abbreviation = team.get("abbreviation") if isinstance(team, dict) else None
    try:
        return FeedCompetitor(
            side=raw.get("homeAway"),
            code=str(abbreviation or "").strip().lower(),
            score=normalize_score(raw.get("score")),
            winner=raw.get("winner") is True,
        )
    except ValidationError as exc:
        raise FeedParseError(f"invalid competitor: {exc.errors()[0]['msg']}") from exc


def _first_competition(container: Any) -> dict[str, Any]:
    competitions = container.get("competitions") if isinstance(container, dict) else None
    if not isinstance(competitions, list) or not competitions or not isinstance(competitions[0], dict):
        raise FeedParseError("event has no competitions")
    return competitions[0]


def _parse_competitors(competition: dict[str, Any]) -> tuple[FeedCompetitor, ...]:
    raw_competitors = competition.get("competitors")
    if not isinstance(raw_competitors, list):
        raise FeedParseError("competitors is not a list")
    competitors = tuple(_parse_competitor(c) for c in raw_competitors)
    sides = {c.side for c in competitors}
    if sides != {"home", "away"}:
        raise FeedParseError(f"expected home and away competitors, got {sorted(sides)}")
    return competitors


def parse_schedule_event(raw: Any) -> FeedEvent:
    """
    Validate one schedule entry.

    Raises:
        FeedParseError: when the id, date or home/away competitors are missing.
    """
    if not isinstance(raw, dict):
        raise FeedParseError("event is not an object")
    event_id = raw.get("id")
    if event_id in (None, ""):
        raise FeedParseError("event has no id")
    competition = _first_competition(raw)
    try:
        return FeedEvent(
            id=str(event_id),
            start_instant=parse_instant(raw.get("date") or competition.get("date")),
            status=_parse_status(competition.get("status")),
            competitors=_parse_competitors(competition),
        )
    except ValidationError as exc:
        raise FeedParseError(f"invalid event {event_id}: {exc.errors()[0]['msg']}") from exc


def parse_event_detail(raw: Any, game_id: str) -> FeedEventDetail:
    """
    Validate a summary payload for ``game_id``.

    Only ``header.competitions[0]`` is consulted: its status and per-side
    scores and winner flags.
    """
    header = raw.get("header") if isinstance(raw, dict) else None
    if not isinstance(header, dict):
        raise FeedParseError(f"summary for {game_id} has no header")
    competition = _first_competition(header)
    return FeedEventDetail(
        id=str(header.get("id") or game_id),
        status=_parse_status(competition.get("status")),
        competitors=_parse_competitors(competition),
    )


# ── Feed models → Game ──────────────────────────────────────────────────

def _snapshot(competitor: Optional[FeedCompetitor]) -> TeamSnapshot:
    if competitor is None:
        return TeamSnapshot(code="")
    return TeamSnapshot(code=competitor.code, score=competitor.score, winner=competitor.winner)


def to_game(event: FeedEvent) -> Game:
    return Game(
        id=event.id,
        date=event.start_instant.date(),
        start_instant=event.start_instant,
        status=derive_status(event.status),
        home=_snapshot(event.competitor("home")),
        away=_snapshot(event.competitor("away")),
    )


def merge_detail(game: Game, detail: FeedEventDetail) -> Game:
    """
    Fold a live detail into the watched game.

    A completed detail yields a final record carrying the new scores and
    winner flags. Otherwise only scores move, and the status becomes
    in-progress when the feed says the game is live. Codes, ids and the start
    instant always come from ``game``.
    """
    final = detail.completed
    update: dict[str, Any] = {}
    for side in ("home", "away"):
        current: TeamSnapshot = getattr(game, side)
        fresh = detail.competitor(side)
        if fresh is None:
            continue
        changes: dict[str, Any] = {"score": fresh.score}
        if final:
            changes["winner"] = fresh.winner
        update[side] = current.model_copy(update=changes)

    status = derive_status(detail.status)
    if final:
        update["status"] = GameStatus.FINAL
    elif status == GameStatus.IN_PROGRESS:
        update["status"] = GameStatus.IN_PROGRESS
    return game.model_copy(update=update, deep=True)

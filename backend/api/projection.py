"""
Status projection: cached sport state → public status payload.

Pure and synchronous. Never fetches, never mutates, safe to call from any
request handler at any rate.
"""
from __future__ import annotations

from shared.config import SportConfig
from shared.models.domain import ScoreLink, SportState, StatusPayload
from shared.models.enums import GameStatus


def project_status(state: SportState, sport: SportConfig) -> StatusPayload:
    payload = StatusPayload(last_updated=state.last_refreshed_at)

    if state.monitoring and state.next_game is not None:
        ours, theirs = state.next_game.sides(sport.team_codes)
        payload.is_live = True
        payload.live_score = f"{ours.score}-{theirs.score}"
        return payload

    game = state.last_game
    if game is not None and game.status == GameStatus.FINAL:
        ours, theirs = game.sides(sport.team_codes)
        payload.did_win = ours.winner
        prefix = "W" if ours.winner else "L"
        payload.score_link = ScoreLink(
            text=f"{prefix} {ours.score}-{theirs.score}",
            url=f"{sport.display_url_prefix}{game.id}",
        )
    return payload

"""
Status REST endpoints.

GET /api/status?sport=basketball   Win/loss and live status for one program.
GET /v1/sports                     Configured programs and their monitor state.
GET /v1/sports/{sport}/status      Same payload as /api/status.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from shared.config import Settings
from shared.models.domain import SportSummary, StatusPayload
from shared.utils.logging import get_logger
from shared.utils.state_store import GameStateStore

from api.dependencies import get_app_settings, get_store
from api.projection import project_status
from scheduler.monitor import monitor_state

logger = get_logger(__name__)
router = APIRouter(tags=["status"])


def _status_for(sport_key: str, store: GameStateStore, settings: Settings) -> StatusPayload:
    sport = settings.sports.get(sport_key)
    if sport is None:
        raise HTTPException(status_code=404, detail=f"Unknown sport: {sport_key}")
    return project_status(store.snapshot(sport_key), sport)


@router.get("/api/status", response_model=StatusPayload)
async def get_status(
    sport: Optional[str] = Query(None, description="Configured sport key. Defaults to the default sport."),
    store: GameStateStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> StatusPayload:
    """
    Did the team win its last game, and is a game live right now?

    Served from the in-memory cache only; during a feed outage this returns
    the last known state with a stale ``lastUpdated``.
    """
    return _status_for(sport or settings.default_sport, store, settings)


@router.get("/v1/sports", response_model=list[SportSummary])
async def list_sports(
    store: GameStateStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> list[SportSummary]:
    summaries: list[SportSummary] = []
    for key in settings.sports:
        state = store.snapshot(key)
        summaries.append(SportSummary(
            sport=key,
            monitor_state=monitor_state(state).value,
            synced=store.has_synced(key),
            last_updated=state.last_refreshed_at,
        ))
    return summaries


@router.get("/v1/sports/{sport}/status", response_model=StatusPayload)
async def get_sport_status(
    sport: str,
    store: GameStateStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> StatusPayload:
    return _status_for(sport, store, settings)

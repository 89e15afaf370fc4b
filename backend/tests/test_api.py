"""API route tests. The lifespan is disabled; the store is seeded directly."""
from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from shared.config import Settings
from shared.models.domain import SportStatePatch
from shared.models.enums import GameStatus
from shared.utils.state_store import GameStateStore

from api import dependencies
from api.app import create_app
from api.dependencies import get_app_settings, init_dependencies

from factories import NOW, make_game


def _seed(store: GameStateStore, sport: str, patch: SportStatePatch) -> None:
    async def write() -> None:
        async with store.exclusive(sport) as txn:
            txn.apply(patch)

    asyncio.run(write())


@pytest.fixture
def client(store: GameStateStore, settings: Settings, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """Test client with lifespan disabled so routes are served from the seeded store."""
    monkeypatch.setattr(dependencies, "_store", None)
    init_dependencies(store)
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_app_settings] = lambda: settings
    with TestClient(app) as c:
        yield c


def test_health_returns_ok(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "api"}
    assert r.headers.get("content-type", "").startswith("application/json")


def test_request_id_is_echoed(client: TestClient) -> None:
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"


def test_status_defaults_to_default_sport(client: TestClient, store: GameStateStore) -> None:
    game = make_game("401", NOW - timedelta(days=3), GameStatus.FINAL,
                     home=("ku", "78", True), away=("mizz", "70", False))
    _seed(store, "basketball", SportStatePatch(last_game=game, last_refreshed_at=NOW))

    r = client.get("/api/status")
    assert r.status_code == 200
    data = r.json()
    assert data["didWin"] is True
    assert data["scoreLink"] == {
        "text": "W 78-70",
        "url": "https://www.espn.com/mens-college-basketball/game/_/gameId/401",
    }
    assert data["isLive"] is False
    assert data["liveScore"] is None
    assert data["lastUpdated"].startswith("2025-01-15T18:00:00")


def test_status_for_live_game(client: TestClient, store: GameStateStore) -> None:
    live = make_game("500", NOW - timedelta(minutes=25), GameStatus.IN_PROGRESS,
                     home=("ku", "21", False), away=("mizz", "19", False))
    _seed(store, "basketball", SportStatePatch(next_game=live, monitoring=True))

    data = client.get("/api/status", params={"sport": "basketball"}).json()
    assert data["isLive"] is True
    assert data["liveScore"] == "21-19"


def test_status_before_first_sync_is_empty(client: TestClient) -> None:
    data = client.get("/v1/sports/football/status").json()
    assert data == {
        "didWin": None,
        "scoreLink": None,
        "isLive": False,
        "liveScore": None,
        "lastUpdated": None,
    }


def test_unknown_sport_is_404(client: TestClient) -> None:
    r = client.get("/api/status", params={"sport": "curling"}, headers={"X-Request-ID": "req-42"})
    assert r.status_code == 404
    assert r.json() == {"error": "not_found", "message": "Unknown sport: curling", "requestId": "req-42"}

    assert client.get("/v1/sports/curling/status").status_code == 404


def test_list_sports(client: TestClient, store: GameStateStore) -> None:
    _seed(store, "basketball", SportStatePatch(next_game=make_game("402", NOW + timedelta(days=1))))
    store.mark_synced("basketball")

    data = client.get("/v1/sports").json()
    by_sport = {row["sport"]: row for row in data}
    assert set(by_sport) == {"basketball", "football"}
    assert by_sport["basketball"]["monitorState"] == "armed"
    assert by_sport["basketball"]["synced"] is True
    assert by_sport["football"]["monitorState"] == "idle"
    assert by_sport["football"]["synced"] is False


def test_ready_tracks_first_sync(client: TestClient, store: GameStateStore) -> None:
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "degraded", "basketball": False, "football": False}

    store.mark_synced("basketball")
    store.mark_synced("football")
    assert client.get("/ready").json()["status"] == "ok"


def test_ready_before_startup(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(dependencies, "_store", None)
    r = client.get("/ready")
    assert r.status_code == 503
    assert r.json() == {"status": "starting"}

"""Shared fixtures: settings, store, and a scriptable schedule feed."""
from __future__ import annotations

import pytest

from shared.config import DEFAULT_SPORTS, Settings, SportConfig
from shared.utils.state_store import GameStateStore

from factories import ScriptedFeed


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        metrics_enabled=False,
        post_final_sync_delay_s=0.0,
        live_refresh_interval_s=300.0,
    )


@pytest.fixture
def basketball() -> SportConfig:
    return DEFAULT_SPORTS["basketball"]


@pytest.fixture
def store(settings: Settings) -> GameStateStore:
    return GameStateStore(settings.sports)


@pytest.fixture
def feed() -> ScriptedFeed:
    return ScriptedFeed()

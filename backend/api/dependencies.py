"""
Dependency injection for the API service.
Provides the game state store and settings to route handlers.
"""
from __future__ import annotations

from shared.config import Settings, get_settings
from shared.utils.state_store import GameStateStore

# Module-level singleton, initialized at startup
_store: GameStateStore | None = None


def init_dependencies(store: GameStateStore) -> None:
    """Initialize module-level singletons. Called once at startup."""
    global _store
    _store = store


def get_store() -> GameStateStore:
    """FastAPI dependency: returns the shared GameStateStore."""
    if _store is None:
        raise RuntimeError("GameStateStore not initialized; call init_dependencies first")
    return _store


def get_app_settings() -> Settings:
    """FastAPI dependency: returns the cached Settings."""
    return get_settings()

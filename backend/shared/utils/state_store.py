"""
In-memory per-sport game state.

GameStateStore is the only owner of SportState. Readers get deep-copied
snapshots; writers enter ``exclusive(sport)``, which serializes every
read-decide-write for that sport behind one asyncio lock. Different sports
never share a lock.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from shared.models.domain import SportState, SportStatePatch, apply_patch
from shared.utils.logging import get_logger
from shared.utils.metrics import MONITORING_ACTIVE

logger = get_logger(__name__)


class UnknownSportError(KeyError):
    """Raised for a sport key that was not configured."""


class SportStateTxn:
    """Handle given to the holder of a sport's exclusive section."""

    def __init__(self, store: GameStateStore, sport: str) -> None:
        self._store = store
        self.sport = sport
        self.state = store.snapshot(sport)

    def apply(self, patch: SportStatePatch) -> SportState:
        self.state = self._store._commit(self.sport, patch)
        return self.state


class GameStateStore:
    def __init__(self, sports: Iterable[str]) -> None:
        self._states: dict[str, SportState] = {s: SportState() for s in sports}
        self._locks: dict[str, asyncio.Lock] = {s: asyncio.Lock() for s in self._states}
        self._synced: set[str] = set()

    @property
    def sports(self) -> list[str]:
        return list(self._states)

    def _require(self, sport: str) -> None:
        if sport not in self._states:
            raise UnknownSportError(sport)

    def snapshot(self, sport: str) -> SportState:
        """Deep copy of the committed state; never suspends."""
        self._require(sport)
        return self._states[sport].model_copy(deep=True)

    def has_synced(self, sport: str) -> bool:
        self._require(sport)
        return sport in self._synced

    def mark_synced(self, sport: str) -> None:
        self._require(sport)
        self._synced.add(sport)

    def is_busy(self, sport: str) -> bool:
        self._require(sport)
        return self._locks[sport].locked()

    @asynccontextmanager
    async def exclusive(self, sport: str) -> AsyncIterator[SportStateTxn]:
        """Hold the sport's writer lock for a read-decide-write sequence."""
        self._require(sport)
        async with self._locks[sport]:
            yield SportStateTxn(self, sport)

    def _commit(self, sport: str, patch: SportStatePatch) -> SportState:
        if not self._locks[sport].locked():
            raise RuntimeError(f"write to {sport!r} outside its exclusive section")
        updated = apply_patch(self._states[sport], patch)
        self._states[sport] = updated
        MONITORING_ACTIVE.labels(sport=sport).set(1 if updated.monitoring else 0)
        logger.debug("sport_state_committed", sport=sport, fields=sorted(patch.model_fields_set))
        return updated.model_copy(deep=True)

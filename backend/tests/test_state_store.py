"""Patch semantics and isolation of the per-sport state store."""
from __future__ import annotations

from datetime import timedelta

import pytest

from shared.models.domain import SportState, SportStatePatch, apply_patch
from shared.models.enums import GameStatus
from shared.utils.state_store import GameStateStore, UnknownSportError

from factories import NOW, make_game


def test_patch_applies_only_named_fields() -> None:
    upcoming = make_game("500", NOW + timedelta(hours=2))
    state = SportState(next_game=upcoming, last_refreshed_at=NOW)

    updated = apply_patch(state, SportStatePatch(monitoring=True))

    assert updated.monitoring is True
    assert updated.next_game == upcoming
    assert updated.last_refreshed_at == NOW


def test_explicit_none_clears_field() -> None:
    state = SportState(next_game=make_game("500", NOW), monitoring=True)

    updated = apply_patch(state, SportStatePatch(next_game=None, monitoring=False))

    assert updated.next_game is None
    assert updated.monitoring is False


def test_attribute_assignment_counts_as_named() -> None:
    patch = SportStatePatch()
    patch.last_game = make_game("401", NOW - timedelta(days=1), GameStatus.FINAL)

    updated = apply_patch(SportState(), patch)

    assert updated.last_game is not None
    assert updated.last_game.id == "401"


def test_state_does_not_alias_patch_objects() -> None:
    game = make_game("500", NOW)
    updated = apply_patch(SportState(), SportStatePatch(next_game=game))

    game.home.score = "99"

    assert updated.next_game.home.score == "0"


@pytest.mark.asyncio
async def test_commit_and_snapshot(store: GameStateStore) -> None:
    async with store.exclusive("basketball") as txn:
        assert txn.state == SportState()
        state = txn.apply(SportStatePatch(next_game=make_game("500", NOW)))
        assert txn.state == state

    assert store.snapshot("basketball").next_game.id == "500"
    assert store.snapshot("football").next_game is None


@pytest.mark.asyncio
async def test_snapshot_is_isolated(store: GameStateStore) -> None:
    async with store.exclusive("basketball") as txn:
        txn.apply(SportStatePatch(next_game=make_game("500", NOW)))

    copy = store.snapshot("basketball")
    copy.next_game.home.score = "12"
    copy.monitoring = True

    fresh = store.snapshot("basketball")
    assert fresh.next_game.home.score == "0"
    assert fresh.monitoring is False


@pytest.mark.asyncio
async def test_write_outside_exclusive_section_rejected(store: GameStateStore) -> None:
    async with store.exclusive("basketball") as txn:
        assert store.is_busy("basketball")
        assert not store.is_busy("football")

    assert not store.is_busy("basketball")
    with pytest.raises(RuntimeError):
        txn.apply(SportStatePatch(monitoring=True))
    assert store.snapshot("basketball").monitoring is False


def test_sync_marker(store: GameStateStore) -> None:
    assert not store.has_synced("basketball")
    store.mark_synced("basketball")
    assert store.has_synced("basketball")
    assert not store.has_synced("football")


def test_unknown_sport(store: GameStateStore) -> None:
    with pytest.raises(UnknownSportError):
        store.snapshot("curling")
    with pytest.raises(KeyError):
        store.has_synced("curling")

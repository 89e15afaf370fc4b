"""
Abstract base class for schedule/result feed providers.
Defines the contract the synchronizer and monitor consume, plus feed errors.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass, field

from shared.config import SportConfig
from shared.models.domain import Game
from shared.models.enums import SeasonPhase
from shared.models.feed import FeedEventDetail


class FeedError(Exception):
    """Base class for feed failures."""


class FeedRequestError(FeedError):
    """Feed unreachable, timed out, or answered with a non-2xx status."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"{url}: {reason}")


class FeedParseError(FeedError):
    """A feed record is missing fields the engine needs."""


class FeedConfigurationError(FeedError):
    """No request can be attempted (e.g. missing feed address)."""


@dataclass
class ScheduleResult:
    """Games for one season plus which phase requests worked."""
    games: list[Game] = field(default_factory=list)
    phases_ok: list[SeasonPhase] = field(default_factory=list)
    phases_failed: list[SeasonPhase] = field(default_factory=list)

    @property
    def feed_unavailable(self) -> bool:
        """True when every phase request failed."""
        return not self.phases_ok and bool(self.phases_failed)


class ScheduleProvider(abc.ABC):
    """Feed connector used by the synchronizer and the result monitor."""

    async def start(self) -> None:
        """Acquire network resources."""

    async def close(self) -> None:
        """Release network resources."""

    async def fetch_schedule(self, sport: SportConfig, season: int) -> list[Game]:
        """Fetch every phase of ``season``, sorted ascending by start instant."""
        result = await self.fetch_schedule_result(sport, season)
        return result.games

    @abc.abstractmethod
    async def fetch_schedule_result(self, sport: SportConfig, season: int) -> ScheduleResult:
        """
        Fetch and normalize a season schedule.

        Never raises for per-event or per-phase failures; those are logged and
        reflected in the result. Raises FeedConfigurationError only when no
        request can be attempted.
        """
        ...

    @abc.abstractmethod
    async def fetch_game_detail(self, sport: SportConfig, game_id: str) -> FeedEventDetail:
        """
        Fetch the live detail of one game.

        Raises:
            FeedRequestError: transport failure.
            FeedParseError: payload lacks the expected competition block.
        """
        ...

"""Domain enumerations for the Gameday Status service."""
from __future__ import annotations

from enum import Enum


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"

    @property
    def is_terminal(self) -> bool:
        return self == GameStatus.FINAL


class SeasonPhase(int, Enum):
    """Feed season types, queried one request per phase."""
    REGULAR = 2
    POSTSEASON = 3


class MonitorState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    ACTIVE = "active"


# Feed status names that mean the contest is under way.
LIVE_STATUS_NAMES: frozenset[str] = frozenset({
    "STATUS_IN_PROGRESS",
    "STATUS_HALFTIME",
    "STATUS_END_PERIOD",
    "STATUS_FIRST_HALF",
    "STATUS_SECOND_HALF",
    "STATUS_OVERTIME",
})

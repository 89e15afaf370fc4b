"""
Intermediate parse results for ESPN feed payloads.

Raw feed JSON is validated into these models once, at the ingestion boundary.
Optional fields carry explicit fallbacks so nothing downstream needs to probe
dicts defensively.
"""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FeedModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class FeedCompetitor(FeedModel):
    side: Literal["home", "away"]
    code: str = ""           # lower-cased team abbreviation
    score: str = "0"         # absent or unparsable scores fall back to "0"
    winner: bool = False


class FeedStatus(FeedModel):
    completed: bool = False
    name: Optional[str] = None


class FeedEvent(FeedModel):
    """One schedule entry."""
    id: str = Field(min_length=1)
    start_instant: datetime
    status: FeedStatus = Field(default_factory=FeedStatus)
    competitors: tuple[FeedCompetitor, ...] = ()

    def competitor(self, side: str) -> Optional[FeedCompetitor]:
        return next((c for c in self.competitors if c.side == side), None)


class FeedEventDetail(FeedModel):
    """Live detail for a single event (summary endpoint header)."""
    id: str
    status: FeedStatus = Field(default_factory=FeedStatus)
    competitors: tuple[FeedCompetitor, ...] = ()

    @property
    def completed(self) -> bool:
        return self.status.completed

    def competitor(self, side: str) -> Optional[FeedCompetitor]:
        return next((c for c in self.competitors if c.side == side), None)

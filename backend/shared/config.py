"""
Central configuration for the Gameday Status service.
Uses pydantic-settings for env-based config with validation.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models.enums import SeasonPhase


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class SportConfig(BaseModel):
    """Static description of one monitored program."""

    model_config = ConfigDict(frozen=True)

    key: str
    feed_url: str
    team_id: str
    team_codes: frozenset[str]
    season_months: frozenset[int]
    rollover_month: int
    display_url_prefix: str
    phases: tuple[SeasonPhase, ...] = (SeasonPhase.REGULAR, SeasonPhase.POSTSEASON)

    @field_validator("team_codes")
    @classmethod
    def lower_team_codes(cls, codes: frozenset[str]) -> frozenset[str]:
        return frozenset(c.strip().lower() for c in codes if c.strip())

    @field_validator("season_months")
    @classmethod
    def check_months(cls, months: frozenset[int]) -> frozenset[int]:
        bad = [m for m in months if not 1 <= m <= 12]
        if bad:
            raise ValueError(f"invalid month(s): {sorted(bad)}")
        return months

    @field_validator("rollover_month")
    @classmethod
    def check_rollover(cls, month: int) -> int:
        if not 1 <= month <= 12:
            raise ValueError(f"invalid rollover month: {month}")
        return month


ESPN_SITE_API = "https://site.api.espn.com/apis/site/v2/sports"

DEFAULT_SPORTS: dict[str, SportConfig] = {
    "basketball": SportConfig(
        key="basketball",
        feed_url=f"{ESPN_SITE_API}/basketball/mens-college-basketball",
        team_id="2305",
        team_codes=frozenset({"ku", "kansas"}),
        season_months=frozenset({11, 12, 1, 2, 3, 4}),
        rollover_month=11,
        display_url_prefix="https://www.espn.com/mens-college-basketball/game/_/gameId/",
    ),
    "football": SportConfig(
        key="football",
        feed_url=f"{ESPN_SITE_API}/football/college-football",
        team_id="2305",
        team_codes=frozenset({"ku", "kansas"}),
        season_months=frozenset({8, 9, 10, 11, 12, 1}),
        rollover_month=8,
        display_url_prefix="https://www.espn.com/college-football/game/_/gameId/",
    ),
}


class Settings(BaseSettings):
    """Root settings for the API process and its background scheduler."""

    model_config = SettingsConfigDict(
        env_prefix="GD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────
    environment: Environment = Environment.DEV
    log_level: str = "INFO"
    local_timezone: str = "America/Chicago"

    # ── API ──────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_origins: list[str] = ["*"]

    # ── Scheduler ────────────────────────────────────────────
    schedule_sync_hour: int = Field(default=8, ge=0, le=23)
    monitor_probe_interval_s: float = 300.0
    live_refresh_interval_s: float = 300.0
    post_final_sync_delay_s: float = 5.0

    # ── Feed ─────────────────────────────────────────────────
    feed_request_timeout_s: float = 10.0
    feed_max_retries: int = 2

    # ── Sports ───────────────────────────────────────────────
    default_sport: str = "basketball"
    sports: dict[str, SportConfig] = Field(default_factory=lambda: dict(DEFAULT_SPORTS))

    # ── Observability ────────────────────────────────────────
    metrics_enabled: bool = True
    metrics_port: int = 9090

    @model_validator(mode="after")
    def check_sports(self) -> "Settings":
        """Sport keys must match their config and the default must exist."""
        for key, sport in self.sports.items():
            if sport.key != key:
                raise ValueError(f"sport key mismatch: {key!r} != {sport.key!r}")
        if self.default_sport not in self.sports:
            raise ValueError(f"default_sport {self.default_sport!r} is not configured")
        return self

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.local_timezone)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton access to validated settings."""
    return Settings()

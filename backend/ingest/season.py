"""
Season label resolution.

The feed keys a season that spans two calendar years by its starting year, so
January 2025 of a November-to-April program belongs to season 2024.
"""
from __future__ import annotations

from datetime import date

from shared.config import SportConfig


def resolve_season(day: date, sport: SportConfig) -> int:
    """Season label the feed expects for ``day``."""
    if day.month >= sport.rollover_month:
        return day.year
    return day.year - 1


def is_in_season(day: date, sport: SportConfig) -> bool:
    return day.month in sport.season_months

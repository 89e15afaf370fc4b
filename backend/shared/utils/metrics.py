"""
Prometheus metrics for the Gameday Status service.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
FEED_REQUESTS = Counter(
    "gd_feed_requests_total",
    "Total feed HTTP requests",
    ["endpoint", "status"],
)
FEED_EVENTS_SKIPPED = Counter(
    "gd_feed_events_skipped_total",
    "Feed events dropped during normalization",
    ["sport"],
)
SYNC_PASSES = Counter(
    "gd_sync_passes_total",
    "Schedule synchronization passes",
    ["sport", "outcome"],
)
MONITOR_REFRESHES = Counter(
    "gd_monitor_refreshes_total",
    "Live result refreshes",
    ["sport", "outcome"],
)

# ── Histograms ──────────────────────────────────────────────────────────
FEED_LATENCY = Histogram(
    "gd_feed_latency_seconds",
    "Feed request latency in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
SYNC_DURATION = Histogram(
    "gd_sync_duration_seconds",
    "Duration of one schedule synchronization pass",
    ["sport"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# ── Gauges ──────────────────────────────────────────────────────────────
MONITORING_ACTIVE = Gauge(
    "gd_monitoring_active",
    "1 while a live game is being watched",
    ["sport"],
)


@asynccontextmanager
async def atrack_latency(histogram: Histogram, **labels: str) -> AsyncIterator[None]:
    """Async context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        histogram.labels(**labels).observe(elapsed)


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)

"""
Async HTTP client wrapper for feed requests.
Includes retry logic, timeout management, and metrics collection.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

import httpx

from shared.config import get_settings
from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_LATENCY, FEED_REQUESTS

from ingest.providers.base import FeedRequestError

logger = get_logger(__name__)


class FeedHTTPClient:
    """
    Async HTTP client for the schedule feed.
    Retries timeouts, 429 and 5xx responses; other 4xx fail immediately.
    """

    def __init__(
        self,
        provider_name: str,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_backoff_s: float = 1.0,
    ) -> None:
        settings = get_settings()
        self._provider = provider_name
        self._timeout = timeout_s or settings.feed_request_timeout_s
        self._max_retries = max(1, max_retries or settings.feed_max_retries)
        self._default_headers = headers or {}
        self._transport = transport
        self._backoff = retry_backoff_s
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            headers=self._default_headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        endpoint: str = "unknown",
    ) -> Any:
        """
        GET ``url`` and decode the JSON body.

        Args:
            url: Absolute feed URL.
            params: Query parameters.
            endpoint: Endpoint label for metrics (schedule, summary).

        Raises:
            FeedRequestError: Transport failure, non-2xx status once retries
                are exhausted, or a body that is not JSON.
        """
        if not self._client:
            raise RuntimeError("FeedHTTPClient not started. Call start() first.")

        last_error: Optional[FeedRequestError] = None

        for attempt in range(1, self._max_retries + 1):
            start_time = time.perf_counter()
            status = "unknown"
            try:
                resp = await self._client.get(url, params=params)
                status = str(resp.status_code)

                if resp.status_code == 429 or resp.status_code >= 500:
                    last_error = FeedRequestError(url, f"HTTP {resp.status_code}", resp.status_code)
                    logger.warning(
                        "feed_retryable_status",
                        provider=self._provider,
                        url=url,
                        status=resp.status_code,
                        attempt=attempt,
                    )
                    if attempt < self._max_retries:
                        retry_after = resp.headers.get("Retry-After")
                        delay = float(retry_after) if retry_after and retry_after.isdigit() else self._backoff * attempt
                        await asyncio.sleep(min(delay, 10.0))
                        continue
                    raise last_error

                if resp.status_code >= 400:
                    logger.error(
                        "feed_http_error",
                        provider=self._provider,
                        url=url,
                        status=resp.status_code,
                    )
                    raise FeedRequestError(url, f"HTTP {resp.status_code}", resp.status_code)

                try:
                    payload = resp.json()
                except ValueError as exc:
                    raise FeedRequestError(url, f"invalid JSON body: {exc}", resp.status_code) from exc

                logger.debug(
                    "feed_request_success",
                    provider=self._provider,
                    url=url,
                    status=resp.status_code,
                    latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
                return payload

            except httpx.TimeoutException as exc:
                status = "timeout"
                last_error = FeedRequestError(url, "timeout")
                logger.warning("feed_timeout", provider=self._provider, url=url, attempt=attempt)
                if attempt < self._max_retries:
                    await asyncio.sleep(self._backoff * attempt)
                    continue
                raise last_error from exc

            except httpx.HTTPError as exc:
                status = "error"
                logger.error(
                    "feed_transport_error",
                    provider=self._provider,
                    url=url,
                    error=str(exc),
                    attempt=attempt,
                )
                raise FeedRequestError(url, str(exc) or type(exc).__name__) from exc

            finally:
                FEED_REQUESTS.labels(endpoint=endpoint, status=status).inc()
                FEED_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - start_time)

        # All retries exhausted
        if last_error:
            raise last_error
        raise FeedRequestError(url, f"failed after {self._max_retries} attempts")

"""Readiness probe for the shop API.

Polls an endpoint until the server answers with a 2xx status, instead of
sleeping a fixed delay while the server boots.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

import httpx

from .shared.logging import get_logger

logger = get_logger(__name__)

AttemptCallback = Callable[[int, int, "str | None"], None]


@dataclass
class HealthCheckResult:
    """Result of a readiness wait."""

    healthy: bool
    status_code: int | None = None
    attempts: int = 0
    elapsed_seconds: float = 0.0
    error: str | None = None


class HealthPoller:
    """Poll an API endpoint until it answers."""

    def __init__(
        self,
        max_attempts: int = 30,
        interval_seconds: float = 1.0,
        timeout_seconds: float = 5.0,
    ):
        """Initialize health poller.

        Args:
            max_attempts: Maximum number of attempts.
            interval_seconds: Seconds between attempts.
            timeout_seconds: Timeout for each HTTP request.
        """
        self.max_attempts = max_attempts
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds

    @classmethod
    def for_timeout(cls, total_seconds: float, interval_seconds: float = 1.0) -> HealthPoller:
        """Build a poller that gives up after roughly ``total_seconds``."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        attempts = max(1, int(total_seconds / interval_seconds) + 1)
        return cls(max_attempts=attempts, interval_seconds=interval_seconds)

    async def wait_for_healthy(
        self,
        url: str,
        path: str = "/health",
        on_attempt: AttemptCallback | None = None,
        insecure: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HealthCheckResult:
        """Poll ``url + path`` until it answers 2xx or attempts run out.

        Args:
            url: API base URL.
            path: Endpoint to poll, relative to ``url``.
            on_attempt: Optional callback called with (attempt, max_attempts, error)
                after each failed attempt.
            insecure: Skip SSL certificate verification.
            transport: Optional httpx transport override.

        Returns:
            HealthCheckResult with status information.
        """
        start = datetime.now()
        last_error: str | None = None
        target = url.rstrip("/") + "/" + path.lstrip("/")

        for attempt in range(1, self.max_attempts + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds, verify=not insecure, transport=transport
                ) as client:
                    response = await client.get(target)
                    if 200 <= response.status_code < 300:
                        elapsed = (datetime.now() - start).total_seconds()
                        logger.info("server_ready", url=target, attempts=attempt)
                        return HealthCheckResult(
                            healthy=True,
                            status_code=response.status_code,
                            attempts=attempt,
                            elapsed_seconds=elapsed,
                        )
                    last_error = f"HTTP {response.status_code}"
            except httpx.ConnectError:
                last_error = "Connection refused"
            except httpx.TimeoutException:
                last_error = "Request timeout"
            except httpx.HTTPError as e:
                last_error = str(e) or e.__class__.__name__

            logger.debug("server_not_ready", url=target, attempt=attempt, error=last_error)
            if on_attempt:
                on_attempt(attempt, self.max_attempts, last_error)

            if attempt < self.max_attempts:
                await asyncio.sleep(self.interval_seconds)

        elapsed = (datetime.now() - start).total_seconds()
        return HealthCheckResult(
            healthy=False,
            attempts=self.max_attempts,
            elapsed_seconds=elapsed,
            error=f"Server did not become ready at {target}. Last error: {last_error}",
        )

    def wait_for_healthy_sync(
        self,
        url: str,
        path: str = "/health",
        on_attempt: AttemptCallback | None = None,
    ) -> HealthCheckResult:
        """Synchronous wrapper for wait_for_healthy."""
        return asyncio.run(self.wait_for_healthy(url, path, on_attempt))

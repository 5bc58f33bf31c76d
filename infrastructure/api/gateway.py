"""Single choke point for provider calls: token buckets plus 429 handling."""
import asyncio
from typing import Awaitable, Callable, Optional

import httpx

from core.logging import get_logger
from domain.errors import RateLimited
from .rate_limiter import RateLimiter, Sleeper

logger = get_logger(__name__, service="gateway")

RequestFn = Callable[[], Awaitable[httpx.Response]]


class RateLimitedGateway:
    """Runs request callables through the shared limiter.

    A 429 is retried after ``Retry-After`` seconds (``default_retry_after_ms``
    when the header is missing or unparsable), up to ``max_attempts`` calls in
    total. Every other response is handed back untouched, and exceptions
    raised by the callable propagate on the first attempt.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        *,
        max_attempts: int = 5,
        default_retry_after_ms: int = 2000,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.limiter = limiter
        self.max_attempts = max(1, max_attempts)
        self.default_retry_after_ms = default_retry_after_ms
        self._sleep = sleep

    def _retry_after_seconds(self, response: httpx.Response) -> float:
        raw: Optional[str] = response.headers.get("Retry-After")
        if raw:
            try:
                return max(0.0, float(raw))
            except ValueError:
                pass
        return self.default_retry_after_ms / 1000.0

    async def call(self, request_fn: RequestFn) -> httpx.Response:
        for attempt in range(1, self.max_attempts + 1):
            await self.limiter.acquire()
            response = await request_fn()
            if response.status_code != 429:
                return response

            if attempt == self.max_attempts:
                break
            wait = self._retry_after_seconds(response)
            logger.warning(
                lambda: f"429 rate-limited, retrying in {wait:.2f}s",
                extra={"attempt": attempt},
            )
            await self._sleep(wait)

        raise RateLimited(
            f"still rate-limited after {self.max_attempts} attempts", status_code=429
        )

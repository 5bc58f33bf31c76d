"""Rate limiter matching Riot API's application limits."""
import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Tuple

from core.logging import get_logger
from domain.errors import RateLimitUnavailable

logger = get_logger(__name__, service="gateway")

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class _Window:
    """One refilling bucket: ``capacity`` tokens per ``period`` seconds.

    Spent tokens are remembered by timestamp and return to the bucket once
    they are ``period`` seconds old.
    """

    def __init__(self, capacity: int, period: float) -> None:
        self.capacity = capacity
        self.period = period
        self._spent: Deque[float] = deque()

    def _expire(self, now: float) -> None:
        while self._spent and now - self._spent[0] >= self.period:
            self._spent.popleft()

    def available(self, now: float) -> int:
        self._expire(now)
        return self.capacity - len(self._spent)

    def take(self, now: float) -> None:
        self._spent.append(now)

    def wait_time(self, now: float) -> float:
        if not self._spent:
            return 0.0
        return max(0.0, self.period - (now - self._spent[0]))

    def clear(self) -> None:
        self._spent.clear()


class RateLimiter:
    """
    Two buckets that must BOTH have a token before a call proceeds:
      - Short : N requests per 1 second
      - Long  : N requests per 120 seconds

    The instance is the shared budget for every caller in the process; pass the
    same object wherever provider calls are made. Acquisition is serialized by
    an asyncio lock so parallel callers cannot overspend either bucket.
    """

    def __init__(
        self,
        requests_per_1_sec: int = 20,
        requests_per_2_min: int = 100,
        *,
        max_acquire_attempts: int = 100,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.requests_per_1_sec = requests_per_1_sec
        self.requests_per_2_min = requests_per_2_min
        self.max_acquire_attempts = max_acquire_attempts

        self._short = _Window(requests_per_1_sec, 1.0)
        self._long = _Window(requests_per_2_min, 120.0)
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Take one token from each bucket, polling until both have one.

        Raises ``RateLimitUnavailable`` after ``max_acquire_attempts`` polls
        instead of waiting forever.
        """
        async with self._lock:
            for attempt in range(1, self.max_acquire_attempts + 1):
                now = self._clock()
                short_free = self._short.available(now)
                long_free = self._long.available(now)

                if short_free > 0 and long_free > 0:
                    self._short.take(now)
                    self._long.take(now)
                    return

                wait = 0.05
                if short_free <= 0:
                    wait = max(wait, self._short.wait_time(now) + 0.01)
                if long_free <= 0:
                    wait = max(wait, self._long.wait_time(now) + 0.01)

                logger.debug(lambda: f"rate-limit wait={wait:.2f}s attempt={attempt}")
                await self._sleep(wait)

        raise RateLimitUnavailable(
            f"no rate-limit token after {self.max_acquire_attempts} attempts"
        )

    def get_status(self) -> Tuple[int, int, int, int]:
        """(used_1s, limit_1s, used_2min, limit_2min)."""
        now = self._clock()
        return (
            self._short.capacity - self._short.available(now), self.requests_per_1_sec,
            self._long.capacity - self._long.available(now), self.requests_per_2_min,
        )

    async def reset(self) -> None:
        async with self._lock:
            self._short.clear()
            self._long.clear()

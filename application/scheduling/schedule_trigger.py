"""Time-based triggers for the batch passes.

Each supported region gets its own daily-decrement task firing at local
``DECAY_RUN_TIME`` (midnight by default) in that region's timezone; one
global task runs the match-history check every ``MATCH_HISTORY_INTERVAL_MIN``
minutes. Precision is "roughly on time": a loop that wakes late simply runs
late.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, time as dtime, timedelta, timezone
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from config import settings
from core.logging import context, get_logger
from domain.entities.account import utcnow
from domain.enums import Region
from application.services.batch_processor import (
    DAILY_DECREMENT,
    MATCH_HISTORY,
    BatchProcessor,
    BatchResult,
    CancellationToken,
)

logger = get_logger(__name__, service="scheduler")

Clock = Callable[[], datetime]


def next_daily_run(now: datetime, tz: Union[ZoneInfo, str], at: Tuple[int, int] = (0, 0)) -> datetime:
    """Next occurrence of local wall-clock ``at`` in ``tz`` strictly after ``now``, in UTC."""
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    hour, minute = at

    local_now = now.astimezone(zone)
    candidate = datetime.combine(local_now.date(), dtime(hour, minute), tzinfo=zone)
    if candidate <= local_now:
        candidate = datetime.combine(local_now.date() + timedelta(days=1), dtime(hour, minute), tzinfo=zone)
    return candidate.astimezone(timezone.utc)


def _default_timezones() -> Dict[Region, str]:
    return {Region.from_string(code): tz for code, tz in settings.DECAY_REGION_TIMEZONES.items()}


class ScheduleTrigger:
    """Owns the scheduler tasks and the manual triggers.

    Runs of the same batch (same region for the daily decrement) never
    overlap; a run that would is skipped and logged.
    """

    def __init__(
        self,
        processor: BatchProcessor,
        region_timezones: Optional[Mapping[Region, str]] = None,
        decay_time: Optional[Tuple[int, int]] = None,
        match_interval_min: Optional[float] = None,
        *,
        clock: Clock = utcnow,
    ):
        self.processor = processor
        timezones = dict(region_timezones) if region_timezones is not None else _default_timezones()
        self.region_timezones: Dict[Region, ZoneInfo] = {}
        for region, tz in timezones.items():
            if not region.is_supported:
                logger.warning(lambda: f"skipping schedule for unsupported region {region.value}")
                continue
            self.region_timezones[region] = ZoneInfo(tz)
        self.decay_time = decay_time or settings.decay_run_time()
        self.match_interval = timedelta(minutes=match_interval_min or settings.MATCH_HISTORY_INTERVAL_MIN)
        self._clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}
        self._cancel = CancellationToken()
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def _lock(self, key: str) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def _run_exclusive(
        self, key: str, run: Callable[[], Awaitable[BatchResult]]
    ) -> Optional[BatchResult]:
        lock = self._lock(key)
        if lock.locked():
            logger.warning(lambda: f"{key} is still running, skipping this trigger")
            return None
        async with lock:
            return await run()

    # ── Manual triggers ────────────────────────────────────────────────

    async def trigger_decay(self, region: Optional[Region] = None) -> List[BatchResult]:
        """Daily decrement for one region, or every scheduled region in turn."""
        if region is not None:
            regions = [region.require_supported()]
        else:
            regions = list(self.region_timezones)

        results = []
        for r in regions:
            result = await self._run_exclusive(
                f"{DAILY_DECREMENT}:{r.value}",
                lambda r=r: self.processor.run_daily_decrement(region=r, cancel=self._cancel),
            )
            if result is not None:
                results.append(result)
        return results

    async def trigger_match_history(self) -> Optional[BatchResult]:
        return await self._run_exclusive(
            MATCH_HISTORY,
            lambda: self.processor.run_match_history_check(cancel=self._cancel),
        )

    # ── Loops ──────────────────────────────────────────────────────────

    async def _sleep(self, seconds: float) -> bool:
        """Sleep unless stopped first. Returns True when the trigger was stopped."""
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout=max(seconds, 0))
            return True
        except asyncio.TimeoutError:
            return self._cancel.cancelled

    async def _daily_loop(self, region: Region, zone: ZoneInfo) -> None:
        last_run: Optional[datetime] = None
        with context(batch=DAILY_DECREMENT, region=region.value):
            while not self._cancel.cancelled:
                now = self._clock()
                # an early wake-up must not schedule the same slot twice
                next_run = next_daily_run(max(now, last_run) if last_run else now, zone, self.decay_time)
                logger.info(lambda: f"next decrement for {region.value} at {next_run.astimezone(zone).isoformat()}")
                if await self._sleep((next_run - now).total_seconds()):
                    break
                last_run = next_run
                try:
                    await self.trigger_decay(region)
                except Exception:
                    logger.exception(lambda: f"daily decrement for {region.value} crashed")

    async def _match_history_loop(self) -> None:
        with context(batch=MATCH_HISTORY):
            while not self._cancel.cancelled:
                if await self._sleep(self.match_interval.total_seconds()):
                    break
                try:
                    await self.trigger_match_history()
                except Exception:
                    logger.exception("match-history check crashed")

    def start(self) -> None:
        """Spawn one task per scheduled region plus the match-history task."""
        if self.running:
            raise RuntimeError("scheduler already started")
        self._cancel = CancellationToken()
        self._tasks = [
            asyncio.create_task(self._daily_loop(region, zone), name=f"decay-{region.value}")
            for region, zone in self.region_timezones.items()
        ]
        self._tasks.append(asyncio.create_task(self._match_history_loop(), name="match-history"))
        logger.info(
            lambda: f"scheduler started: decay at {self.decay_time[0]:02d}:{self.decay_time[1]:02d} local in "
                    f"{', '.join(r.value for r in self.region_timezones)}; match history every "
                    f"{int(self.match_interval.total_seconds() // 60)} min"
        )

    async def stop(self) -> None:
        """Signal every loop and in-flight batch to stop, then wait for them."""
        self._cancel.cancel()
        tasks, self._tasks = self._tasks, []
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("scheduler stopped")

    async def run_forever(self) -> None:
        self.start()
        try:
            await self._cancel.wait()
        finally:
            await self.stop()

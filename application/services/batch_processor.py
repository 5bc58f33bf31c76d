"""Batch passes over the tracked population.

Two batches exist:
  - daily decrement: Diamond+ links, no network, one region at a time when
    the scheduler fires at that region's midnight
  - match-history check: every active link, one provider snapshot per
    distinct account per pass

Both continue past per-account failures; the failure is recorded on the
``BatchResult`` and logged with the run id, batch and account bound.
"""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from core.logging import context, get_logger
from domain.entities import Account, AccountSnapshot, ReconcileEvent
from domain.entities.account import utcnow
from domain.enums import Region, Tier
from domain.errors import DecayTrackerError
from domain.interfaces import ILinkRepository, LinkQueryOptions, TrackedLink
from .reconciliation_service import ReconciliationService

logger = get_logger(__name__, service="batch")

DAILY_DECREMENT = "daily_decrement"
MATCH_HISTORY = "match_history"

ProgressCallback = Callable[[int, int], None]


class CancellationToken:
    """Cooperative stop signal checked between accounts."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


@dataclass
class BatchError:
    link_id: Optional[int]
    riot_id: str
    error: str
    error_type: str

    def to_dict(self) -> dict:
        return {
            'link_id': self.link_id,
            'riot_id': self.riot_id,
            'error': self.error,
            'error_type': self.error_type,
        }


@dataclass
class BatchResult:
    batch: str
    region: Optional[Region] = None
    total_found: int = 0
    processed: int = 0
    results: List[ReconcileEvent] = field(default_factory=list)
    errors: List[BatchError] = field(default_factory=list)
    cancelled: bool = False
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def changed(self) -> int:
        return sum(1 for event in self.results if event.changed)

    def to_dict(self) -> dict:
        return {
            'batch': self.batch,
            'run_id': self.run_id,
            'region': self.region.value if self.region else None,
            'total_found': self.total_found,
            'processed': self.processed,
            'succeeded': self.succeeded,
            'changed': self.changed,
            'failed': self.failed,
            'cancelled': self.cancelled,
            'results': [event.to_dict() for event in self.results],
            'errors': [error.to_dict() for error in self.errors],
            'started_at': self.started_at.isoformat(),
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
        }


class BatchProcessor:

    def __init__(
        self,
        service: ReconciliationService,
        links: ILinkRepository,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.service = service
        self.links = links
        self._progress_cb = progress_callback

    def _record_error(self, result: BatchResult, tracked: TrackedLink, exc: Exception) -> None:
        result.errors.append(BatchError(
            link_id=tracked.link.id,
            riot_id=tracked.account.riot_id,
            error=str(exc),
            error_type=type(exc).__name__,
        ))

    def _progress(self, result: BatchResult) -> None:
        if self._progress_cb:
            self._progress_cb(result.processed, result.total_found)

    def _finish(self, result: BatchResult) -> BatchResult:
        result.finished_at = utcnow()
        log = logger.warning if result.errors or result.cancelled else logger.success
        log(
            lambda: f"{result.batch} finished: {result.succeeded}/{result.total_found} ok, "
                    f"{result.changed} changed, {result.failed} failed"
                    + (" (cancelled)" if result.cancelled else ""),
            extra={"processed": result.processed, "failed": result.failed},
        )
        return result

    async def run_daily_decrement(
        self,
        region: Optional[Region] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> BatchResult:
        """Take one day off every Diamond+ link (optionally in one region)."""
        result = BatchResult(batch=DAILY_DECREMENT, region=region)
        with context(run_id=result.run_id, batch=result.batch, region=region.value if region else None):
            population = self.links.list_tracked(
                LinkQueryOptions(tiers=frozenset(Tier.decay_tracked()), region=region)
            )
            result.total_found = len(population)
            logger.info(lambda: f"daily decrement over {result.total_found} link(s)")

            for tracked in population:
                if cancel is not None and cancel.cancelled:
                    result.cancelled = True
                    break
                with context(account=tracked.account.riot_id, link_id=tracked.link.id):
                    try:
                        outcome = self.service.decrement_one(tracked.account, tracked.link)
                        result.results.append(outcome.event)
                    except DecayTrackerError as exc:
                        logger.warning(lambda: f"decrement failed for {tracked.account.riot_id}: {exc}")
                        self._record_error(result, tracked, exc)
                    except Exception as exc:
                        logger.exception(lambda: f"unexpected error decrementing {tracked.account.riot_id}")
                        self._record_error(result, tracked, exc)
                result.processed += 1
                self._progress(result)
                await asyncio.sleep(0)

            return self._finish(result)

    async def run_match_history_check(self, cancel: Optional[CancellationToken] = None) -> BatchResult:
        """Reconcile every active link against fresh provider data."""
        result = BatchResult(batch=MATCH_HISTORY)
        with context(run_id=result.run_id, batch=result.batch):
            population = self.links.list_tracked(LinkQueryOptions())
            result.total_found = len(population)
            logger.info(lambda: f"match-history check over {result.total_found} link(s)")

            snapshots: Dict[int, AccountSnapshot] = {}
            fetch_failures: Dict[int, Exception] = {}
            # Every link of a shared account is reconciled against the account
            # as it was before this pass, so each user is credited the same games.
            baselines: Dict[int, Account] = {}

            for tracked in population:
                if cancel is not None and cancel.cancelled:
                    result.cancelled = True
                    break
                account_id = tracked.account.id
                account = baselines.setdefault(account_id, tracked.account)
                with context(account=account.riot_id, link_id=tracked.link.id):
                    try:
                        if account_id in fetch_failures:
                            raise fetch_failures[account_id]
                        if account_id not in snapshots:
                            try:
                                snapshots[account_id] = await self.service.fetch_snapshot(account)
                            except Exception as exc:
                                fetch_failures[account_id] = exc
                                raise
                        outcome = await self.service.reconcile_one(
                            account, tracked.link, snapshot=snapshots[account_id]
                        )
                        result.results.append(outcome.event)
                    except DecayTrackerError as exc:
                        logger.warning(lambda: f"match check failed for {account.riot_id}: {exc}")
                        self._record_error(result, tracked, exc)
                    except Exception as exc:
                        logger.exception(lambda: f"unexpected error checking {account.riot_id}")
                        self._record_error(result, tracked, exc)
                result.processed += 1
                self._progress(result)

            return self._finish(result)

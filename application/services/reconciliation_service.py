"""Fetch, reconcile and persist one tracked account."""
from typing import Optional

from config import settings
from core.logging import get_logger
from core.logging.logger import traceable
from domain.entities import Account, AccountSnapshot, UserAccountLink
from domain.errors import LinkNotFound, PersistenceError
from domain.interfaces import IAccountRepository, ILinkRepository, IRankProvider
from infrastructure.persistence import Database
from . import decay_engine
from .decay_engine import ReconcileResult

logger = get_logger(__name__, service="reconcile")


class ReconciliationService:
    """Glue between the provider, the decay rules and storage.

    The Account row and the UserAccountLink row are written in one sqlite
    transaction. A failed fetch writes nothing; re-running after any failure
    converges to the same state.
    """

    def __init__(
        self,
        provider: IRankProvider,
        db: Database,
        accounts: IAccountRepository,
        links: ILinkRepository,
        match_history_count: Optional[int] = None,
    ):
        self.provider = provider
        self.db = db
        self.accounts = accounts
        self.links = links
        self.match_history_count = match_history_count or settings.MATCH_HISTORY_COUNT

    async def fetch_snapshot(self, account: Account) -> AccountSnapshot:
        return await self.provider.fetch_snapshot(account.puuid, account.region, self.match_history_count)

    @traceable
    async def reconcile_one(
        self,
        account: Account,
        link: UserAccountLink,
        snapshot: Optional[AccountSnapshot] = None,
    ) -> ReconcileResult:
        """Steps 1-3 for one link. Provider and storage errors propagate."""
        if snapshot is None:
            snapshot = await self.fetch_snapshot(account)
        result = decay_engine.reconcile(account, link, snapshot)
        self.persist(result, account, link)
        if result.event.changed:
            logger.info(
                lambda: f"{account.riot_id}: {result.event.kind.value} "
                        f"{result.event.previous_decay_days} -> {result.event.current_decay_days}",
                extra={"games_played": result.event.games_played},
            )
        return result

    def decrement_one(self, account: Account, link: UserAccountLink) -> ReconcileResult:
        """Step 4 for one link; only the link row is written."""
        result = decay_engine.decrement(account, link)
        if result.event.changed:
            with self.db.transaction():
                self.links.save(result.link)
            logger.debug(
                lambda: f"{account.riot_id}: {result.event.kind.value} "
                        f"{result.event.previous_decay_days} -> {result.event.current_decay_days}"
            )
        return result

    def persist(self, result: ReconcileResult, account: Account, link: UserAccountLink) -> bool:
        """Write the rows that differ from ``account``/``link``. Returns True if anything was written."""
        account_changed = result.account != account
        link_changed = result.link != link
        if not (account_changed or link_changed):
            return False
        with self.db.transaction():
            if account_changed:
                self.accounts.save(result.account)
            if link_changed:
                self.links.save(result.link)
        return True

    async def refresh_link(self, link_id: int) -> ReconcileResult:
        """On-demand refresh of a single link, e.g. after a user asks for it."""
        link = self.links.get(link_id)
        if link is None:
            raise LinkNotFound(f"link {link_id} does not exist")
        account = self.accounts.get(link.account_id)
        if account is None:
            raise PersistenceError(f"link {link_id} points at missing account {link.account_id}")
        return await self.reconcile_one(account, link)

"""Users, their tracked accounts and manual corrections."""
from dataclasses import asdict, dataclass, replace
from typing import List, Optional

from config import settings
from core.logging import get_logger
from domain.entities import Account, IMMUNE, MAX_DECAY_DAYS, User, UserAccountLink
from domain.enums import Region, Tier
from domain.errors import InvariantViolation, LinkNotFound
from domain.interfaces import (
    IAccountRepository,
    ILinkRepository,
    IRankProvider,
    IUserRepository,
    LinkQueryOptions,
    TrackedLink,
)
from infrastructure.persistence import Database
from .decay_engine import ceiling_tier

logger = get_logger(__name__, service="accounts")

CRITICAL_DAYS = 3
WARNING_DAYS = 7


@dataclass(frozen=True)
class UserStats:
    """Decay summary over every link a user owns.

    Immune links are counted on their own and left out of the day buckets
    and the average.
    """

    total_accounts: int
    active_accounts: int
    immune: int
    critical: int
    warning: int
    safe: int
    regions: List[str]
    average_decay_days: float

    def to_dict(self) -> dict:
        return asdict(self)


def _initial_decay_days(requested: int, tier: Optional[Tier]) -> int:
    if requested < IMMUNE or requested > MAX_DECAY_DAYS:
        raise InvariantViolation(f"remaining_decay_days must be in [-1, {MAX_DECAY_DAYS}], got {requested}")
    if tier is Tier.EMERALD:
        return IMMUNE
    if tier is not None and tier.decay_ceiling is not None and requested > tier.decay_ceiling:
        return tier.decay_ceiling
    return requested


class AccountRegistrationService:
    """Add, list, correct and remove the accounts a user tracks."""

    def __init__(
        self,
        provider: IRankProvider,
        db: Database,
        users: IUserRepository,
        accounts: IAccountRepository,
        links: ILinkRepository,
    ):
        self.provider = provider
        self.db = db
        self.users = users
        self.accounts = accounts
        self.links = links

    def ensure_user(self, auth_id: str, email: str, name: str) -> User:
        existing = self.users.get_by_auth_id(auth_id)
        if existing is not None:
            return existing
        return self.users.create(User(auth_id=auth_id, email=email, name=name))

    async def register(
        self,
        user_id: int,
        game_name: str,
        tag_line: str,
        region: Region,
        remaining_decay_days: int = MAX_DECAY_DAYS,
    ) -> TrackedLink:
        """Start tracking ``game_name#tag_line`` for a user.

        The account row is shared between users; the newest ranked game at
        registration time becomes the last seen game, so nothing played before
        tracking started is credited.

        Raises:
            UnsupportedRegion: region outside the allow-list (no network call made)
            AccountNotFound: the riot id does not exist
            DuplicateLinkError: the user already tracks this account
        """
        region.require_supported()
        identity = await self.provider.resolve_identity(game_name, tag_line, region)
        snapshot = await self.provider.fetch_snapshot(identity.puuid, region, settings.MATCH_HISTORY_COUNT)
        days = _initial_decay_days(remaining_decay_days, snapshot.rank.tier)

        candidate = Account(
            puuid=identity.puuid,
            game_name=identity.game_name,
            tag_line=identity.tag_line,
            region=region,
            profile_icon_id=snapshot.profile.icon_id,
            summoner_level=snapshot.profile.level,
            tier=snapshot.rank.tier,
            division=snapshot.rank.division,
            league_points=snapshot.rank.league_points,
        )
        if snapshot.match_ids:
            candidate.last_solo_duo_game_id = snapshot.match_ids[0]

        with self.db.transaction():
            account = self.accounts.find_or_create(candidate)
            link = self.links.create(UserAccountLink(
                user_id=user_id,
                account_id=account.id,
                remaining_decay_days=days,
                is_decaying=days == 0,
            ))

        logger.success(lambda: f"user {user_id} now tracks {account.riot_id} ({account.rank_display})")
        return TrackedLink(link=link, account=account)

    def list_accounts(self, user_id: int, options: LinkQueryOptions = LinkQueryOptions()) -> List[TrackedLink]:
        return self.links.list_for_user(user_id, options)

    def stats(self, user_id: int) -> UserStats:
        rows = self.links.list_for_user(user_id, LinkQueryOptions(include_inactive=True))
        counting = [t.link.remaining_decay_days for t in rows if not t.link.is_immune]
        return UserStats(
            total_accounts=len(rows),
            active_accounts=sum(1 for t in rows if t.link.is_active),
            immune=len(rows) - len(counting),
            critical=sum(1 for days in counting if days <= CRITICAL_DAYS),
            warning=sum(1 for days in counting if CRITICAL_DAYS < days <= WARNING_DAYS),
            safe=sum(1 for days in counting if days > WARNING_DAYS),
            regions=sorted({t.account.region.value for t in rows}),
            average_decay_days=round(sum(counting) / len(counting), 1) if counting else 0.0,
        )

    def _require_link(self, link_id: int, user_id: Optional[int] = None) -> UserAccountLink:
        link = self.links.get(link_id)
        if link is None or (user_id is not None and link.user_id != user_id):
            raise LinkNotFound(f"link {link_id} does not exist")
        return link

    def update_settings(
        self,
        link_id: int,
        *,
        is_active: Optional[bool] = None,
        is_special: Optional[bool] = None,
        remaining_decay_days: Optional[int] = None,
    ) -> UserAccountLink:
        """Manual correction of a link's decay state."""
        link = self._require_link(link_id)
        changes = {}
        if is_active is not None:
            changes['is_active'] = is_active
        if is_special is not None:
            changes['is_special'] = is_special
        if remaining_decay_days is not None:
            changes['remaining_decay_days'] = remaining_decay_days
            changes['is_decaying'] = remaining_decay_days == 0

        updated = replace(link, **changes)
        account = self.accounts.get(link.account_id)
        updated.check_invariants(ceiling_tier(account.tier, updated) if account else None)
        with self.db.transaction():
            self.links.save(updated)
        logger.info(lambda: f"link {link_id} updated: {changes}")
        return updated

    def remove(self, user_id: int, link_id: int) -> None:
        self._require_link(link_id, user_id)
        with self.db.transaction():
            self.links.delete(link_id)
        logger.info(lambda: f"user {user_id} stopped tracking link {link_id}")

    def delete_user(self, user_id: int) -> None:
        self.users.delete(user_id)
        logger.info(lambda: f"user {user_id} deleted with all links")

"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database and a fake rank provider
that never touches the network.
"""
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from domain.entities import (
    Account,
    Identity,
    Profile,
    RankSnapshot,
    UNRANKED,
    User,
    UserAccountLink,
)
from domain.enums import Region, Tier
from domain.errors import AccountNotFound
from domain.interfaces import IRankProvider, TrackedLink
from infrastructure.persistence import Database
from infrastructure.repositories import (
    SqliteAccountRepository,
    SqliteLinkRepository,
    SqliteUserRepository,
)
from application.services import (
    AccountRegistrationService,
    BatchProcessor,
    ReconciliationService,
)


class FakeRankProvider(IRankProvider):
    """In-memory provider keyed by puuid; ``failures`` makes a puuid raise."""

    def __init__(self) -> None:
        self.identities: Dict[Tuple[str, str], Identity] = {}
        self.profiles: Dict[str, Profile] = {}
        self.ranks: Dict[str, RankSnapshot] = {}
        self.matches: Dict[str, List[str]] = {}
        self.failures: Dict[str, Exception] = {}
        self.calls: List[Tuple[str, str]] = []

    def add(
        self,
        puuid: str,
        game_name: str,
        tag_line: str,
        rank: RankSnapshot = UNRANKED,
        match_ids: Sequence[str] = (),
    ) -> None:
        self.identities[(game_name, tag_line)] = Identity(puuid, game_name, tag_line)
        self.profiles[puuid] = Profile(icon_id=29, level=300)
        self.ranks[puuid] = rank
        self.matches[puuid] = list(match_ids)

    def _check(self, call: str, puuid: str, region: Region) -> None:
        region.require_supported()
        self.calls.append((call, puuid))
        if puuid in self.failures:
            raise self.failures[puuid]

    async def resolve_identity(self, game_name: str, tag_line: str, region: Region) -> Identity:
        region.require_supported()
        self.calls.append(("identity", f"{game_name}#{tag_line}"))
        try:
            return self.identities[(game_name, tag_line)]
        except KeyError:
            raise AccountNotFound(f"{game_name}#{tag_line} not found", status_code=404) from None

    async def fetch_profile(self, puuid: str, region: Region) -> Profile:
        self._check("profile", puuid, region)
        return self.profiles.get(puuid, Profile(icon_id=0, level=1))

    async def fetch_rank_tier(self, puuid: str, region: Region) -> RankSnapshot:
        self._check("rank", puuid, region)
        return self.ranks.get(puuid, UNRANKED)

    async def fetch_recent_ranked_match_ids(self, puuid: str, region: Region, count: int) -> List[str]:
        self._check("matches", puuid, region)
        return list(self.matches.get(puuid, []))[:count]

    def fetches_for(self, puuid: str) -> int:
        return sum(1 for call, who in self.calls if call == "profile" and who == puuid)


@pytest.fixture
def db():
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def users(db):
    return SqliteUserRepository(db)


@pytest.fixture
def accounts(db):
    return SqliteAccountRepository(db)


@pytest.fixture
def links(db):
    return SqliteLinkRepository(db)


@pytest.fixture
def provider():
    return FakeRankProvider()


@pytest.fixture
def reconciliation(provider, db, accounts, links):
    return ReconciliationService(provider, db, accounts, links, match_history_count=20)


@pytest.fixture
def processor(reconciliation, links):
    return BatchProcessor(reconciliation, links)


@pytest.fixture
def registration(provider, db, users, accounts, links):
    return AccountRegistrationService(provider, db, users, accounts, links)


@pytest.fixture
def user(users):
    return users.create(User(auth_id="auth-1", email="Player@Example.com", name="Player One"))


@pytest.fixture
def make_tracked(accounts, links, user):
    """Insert an account plus a link for ``user`` and return the pair."""

    def _make(
        puuid: str,
        tier: Optional[Tier] = Tier.DIAMOND,
        days: int = 28,
        *,
        division: Optional[str] = "IV",
        lp: int = 0,
        last_game: str = "NO_GAMES_YET",
        region: Region = Region.EUW1,
        is_decaying: bool = False,
        is_special: bool = False,
        user_id: Optional[int] = None,
        game_name: Optional[str] = None,
    ) -> TrackedLink:
        account = accounts.get_by_puuid(puuid) or accounts.save(Account(
            puuid=puuid,
            game_name=game_name or puuid,
            tag_line="EUW",
            region=region,
            tier=tier,
            division=None if tier is None or tier.is_apex else division,
            league_points=lp,
            last_solo_duo_game_id=last_game,
        ))
        link = links.create(UserAccountLink(
            user_id=user_id if user_id is not None else user.id,
            account_id=account.id,
            remaining_decay_days=days,
            is_decaying=is_decaying,
            is_special=is_special,
        ))
        return TrackedLink(link=link, account=account)

    return _make

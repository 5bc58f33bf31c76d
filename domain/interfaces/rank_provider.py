"""Interface of the external rank/match provider."""
from abc import ABC, abstractmethod
from typing import List

from ..entities import AccountSnapshot, Identity, Profile, RankSnapshot
from ..enums import Region


class IRankProvider(ABC):
    """Read-only view of the provider, one method per upstream call class.

    Implementations raise ``UnsupportedRegion`` before any network call for
    regions outside the allow-list.
    """

    @abstractmethod
    async def resolve_identity(self, game_name: str, tag_line: str, region: Region) -> Identity:
        pass

    @abstractmethod
    async def fetch_profile(self, puuid: str, region: Region) -> Profile:
        pass

    @abstractmethod
    async def fetch_rank_tier(self, puuid: str, region: Region) -> RankSnapshot:
        pass

    @abstractmethod
    async def fetch_recent_ranked_match_ids(self, puuid: str, region: Region, count: int) -> List[str]:
        pass

    async def fetch_snapshot(self, puuid: str, region: Region, count: int) -> AccountSnapshot:
        profile = await self.fetch_profile(puuid, region)
        rank = await self.fetch_rank_tier(puuid, region)
        match_ids = await self.fetch_recent_ranked_match_ids(puuid, region, count)
        return AccountSnapshot(profile=profile, rank=rank, match_ids=list(match_ids))

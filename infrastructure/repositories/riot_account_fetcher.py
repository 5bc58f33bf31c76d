"""Account snapshot fetcher backed by the Riot API."""
from typing import List

from core.logging import get_logger
from domain.entities import Identity, Profile, RankSnapshot, UNRANKED
from domain.enums import Region, QueueType, Tier
from domain.errors import AccountNotFound
from domain.interfaces import IRankProvider
from infrastructure.api import RiotAPIClient

logger = get_logger(__name__, service="fetcher")


class RiotAccountFetcher(IRankProvider):
    """Maps Riot API payloads onto snapshot value objects.

    "No data" is never an error here: a missing solo/duo entry yields
    ``UNRANKED`` and a missing history yields ``[]``.
    """

    def __init__(self, api_client: RiotAPIClient):
        """
        Initialize the fetcher.

        Args:
            api_client: Riot API client instance (shares the process limiter)
        """
        self.api_client = api_client

    async def resolve_identity(self, game_name: str, tag_line: str, region: Region) -> Identity:
        region.require_supported()
        data = await self.api_client.get_account_by_riot_id(region, game_name, tag_line)
        return Identity(
            puuid=data['puuid'],
            game_name=data.get('gameName') or game_name,
            tag_line=data.get('tagLine') or tag_line,
        )

    async def fetch_profile(self, puuid: str, region: Region) -> Profile:
        region.require_supported()
        data = await self.api_client.get_summoner_by_puuid(region, puuid)
        return Profile(
            icon_id=int(data.get('profileIconId') or 0),
            level=int(data.get('summonerLevel') or 1),
        )

    async def fetch_rank_tier(self, puuid: str, region: Region) -> RankSnapshot:
        region.require_supported()
        try:
            entries = await self.api_client.get_league_entries_by_puuid(region, puuid)
        except AccountNotFound:
            return UNRANKED

        solo_queue = QueueType.RANKED_SOLO_5x5.api_queue_name
        for entry in entries:
            if entry.get('queueType') != solo_queue:
                continue
            tier = Tier.parse(entry.get('tier'))
            if tier is None:
                return UNRANKED
            return RankSnapshot(
                tier=tier,
                division=None if tier.is_apex else entry.get('rank'),
                league_points=int(entry.get('leaguePoints') or 0),
            )
        return UNRANKED

    async def fetch_recent_ranked_match_ids(self, puuid: str, region: Region, count: int) -> List[str]:
        region.require_supported()
        try:
            return await self.api_client.get_match_ids_by_puuid(
                region, puuid, queue=QueueType.RANKED_SOLO_5x5, count=count
            )
        except AccountNotFound:
            return []

    async def validate_api_key(self) -> bool:
        """Probe a riot id that does not exist; a 404 proves the key is accepted."""
        try:
            await self.api_client.get_account_by_riot_id(Region.NA1, "test", "test")
        except AccountNotFound:
            pass
        logger.info("Riot API key accepted")
        return True

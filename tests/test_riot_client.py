"""Tests for the Riot API client and the snapshot fetcher over a mock transport."""
import httpx
import pytest
import pytest_asyncio

from domain.entities import UNRANKED
from domain.enums import Region, Tier
from domain.errors import (
    AccountNotFound,
    InvalidCredential,
    ProviderError,
    RateLimited,
    UnsupportedRegion,
    UpstreamUnavailable,
)
from infrastructure.api import RateLimitedGateway, RateLimiter, RiotAPIClient
from infrastructure.repositories import RiotAccountFetcher

PUUID = "puuid-abc"


async def _no_sleep(_seconds: float) -> None:
    return None


def _gateway() -> RateLimitedGateway:
    return RateLimitedGateway(RateLimiter(1000, 1000, sleep=_no_sleep), sleep=_no_sleep)


class RiotStub:
    """Routes requests by path; ``overrides`` maps a path fragment to a Response."""

    def __init__(self) -> None:
        self.requests = []
        self.overrides = {}
        self.league_entries = [
            {"queueType": "RANKED_FLEX_SR", "tier": "GOLD", "rank": "I", "leaguePoints": 10},
            {"queueType": "RANKED_SOLO_5x5", "tier": "DIAMOND", "rank": "II", "leaguePoints": 75},
        ]
        self.match_ids = ["EUW1_3", "EUW1_2", "EUW1_1"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        for fragment, response in self.overrides.items():
            if fragment in path:
                return response
        if "/riot/account/v1/accounts/by-riot-id/" in path:
            return httpx.Response(200, json={"puuid": PUUID, "gameName": "Hide on bush", "tagLine": "KR1"})
        if "/lol/summoner/v4/summoners/by-puuid/" in path:
            return httpx.Response(200, json={"puuid": PUUID, "profileIconId": 6, "summonerLevel": 800})
        if "/lol/league/v4/entries/by-puuid/" in path:
            return httpx.Response(200, json=self.league_entries)
        if "/lol/match/v5/matches/by-puuid/" in path:
            return httpx.Response(200, json=self.match_ids)
        return httpx.Response(404, json={"status": {"message": "not found"}})


@pytest.fixture
def stub():
    return RiotStub()


@pytest_asyncio.fixture
async def client(stub):
    async with RiotAPIClient("RGAPI-test", _gateway(), transport=httpx.MockTransport(stub)) as api:
        yield api


@pytest.fixture
def fetcher(client):
    return RiotAccountFetcher(client)


# ── Client ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_requests_carry_the_api_key_and_routes(client, stub):
    await client.get_account_by_riot_id(Region.KR, "Hide on bush", "KR1")
    await client.get_summoner_by_puuid(Region.KR, PUUID)

    account_req, summoner_req = stub.requests
    assert account_req.headers["X-Riot-Token"] == "RGAPI-test"
    assert account_req.url.host == "asia.api.riotgames.com"
    assert account_req.url.raw_path.endswith(b"/Hide%20on%20bush/KR1")
    assert summoner_req.url.host == "kr.api.riotgames.com"


@pytest.mark.asyncio
async def test_match_ids_query_is_ranked_solo(client, stub):
    ids = await client.get_match_ids_by_puuid(Region.EUW1, PUUID, count=150)

    assert ids == ["EUW1_3", "EUW1_2", "EUW1_1"]
    params = stub.requests[0].url.params
    assert params["queue"] == "420"
    assert params["type"] == "ranked"
    assert params["count"] == "100"
    assert stub.requests[0].url.host == "europe.api.riotgames.com"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error",
    [
        (404, AccountNotFound),
        (401, InvalidCredential),
        (403, InvalidCredential),
        (500, UpstreamUnavailable),
        (503, UpstreamUnavailable),
        (400, ProviderError),
    ],
)
async def test_status_codes_map_to_provider_errors(client, stub, status, error):
    stub.overrides["/summoners/"] = httpx.Response(status)

    with pytest.raises(error) as exc_info:
        await client.get_summoner_by_puuid(Region.NA1, PUUID)

    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_exhausted_429_surfaces_as_rate_limited(client, stub):
    stub.overrides["/summoners/"] = httpx.Response(429, headers={"Retry-After": "0"})

    with pytest.raises(RateLimited):
        await client.get_summoner_by_puuid(Region.NA1, PUUID)

    assert len(stub.requests) == 5


@pytest.mark.asyncio
async def test_timeouts_become_upstream_unavailable_without_retry():
    attempts = []

    def _timeout(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ReadTimeout("slow", request=request)

    async with RiotAPIClient("RGAPI-test", _gateway(), transport=httpx.MockTransport(_timeout)) as api:
        with pytest.raises(UpstreamUnavailable):
            await api.get_summoner_by_puuid(Region.NA1, PUUID)

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_client_outside_context_manager_refuses_to_call():
    api = RiotAPIClient("RGAPI-test", _gateway())

    with pytest.raises(RuntimeError):
        await api.get_summoner_by_puuid(Region.NA1, PUUID)


# ── Fetcher ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_resolve_identity(fetcher):
    identity = await fetcher.resolve_identity("hide on bush", "kr1", Region.KR)

    assert identity.puuid == PUUID
    assert identity.game_name == "Hide on bush"
    assert identity.tag_line == "KR1"


@pytest.mark.asyncio
async def test_snapshot_picks_the_solo_queue_entry(fetcher):
    snapshot = await fetcher.fetch_snapshot(PUUID, Region.EUW1, 20)

    assert snapshot.profile.icon_id == 6
    assert snapshot.profile.level == 800
    assert snapshot.rank.tier is Tier.DIAMOND
    assert snapshot.rank.division == "II"
    assert snapshot.rank.league_points == 75
    assert snapshot.match_ids == ["EUW1_3", "EUW1_2", "EUW1_1"]


@pytest.mark.asyncio
async def test_apex_tiers_have_no_division(fetcher, stub):
    stub.league_entries = [{"queueType": "RANKED_SOLO_5x5", "tier": "MASTER", "rank": "I", "leaguePoints": 40}]

    rank = await fetcher.fetch_rank_tier(PUUID, Region.NA1)

    assert rank.tier is Tier.MASTER
    assert rank.division is None
    assert rank.league_points == 40


@pytest.mark.asyncio
async def test_no_solo_entry_is_unranked(fetcher, stub):
    stub.league_entries = [{"queueType": "RANKED_FLEX_SR", "tier": "GOLD", "rank": "I", "leaguePoints": 0}]

    assert await fetcher.fetch_rank_tier(PUUID, Region.NA1) == UNRANKED


@pytest.mark.asyncio
async def test_missing_league_and_history_are_not_errors(fetcher, stub):
    stub.overrides["/entries/"] = httpx.Response(404)
    stub.overrides["/matches/"] = httpx.Response(404)

    assert await fetcher.fetch_rank_tier(PUUID, Region.NA1) == UNRANKED
    assert await fetcher.fetch_recent_ranked_match_ids(PUUID, Region.NA1, 20) == []


@pytest.mark.asyncio
async def test_empty_history(fetcher, stub):
    stub.match_ids = []

    assert await fetcher.fetch_recent_ranked_match_ids(PUUID, Region.KR, 20) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("region", [Region.EUN1, Region.BR1, Region.OC1])
async def test_unsupported_region_fails_before_any_request(fetcher, stub, region):
    with pytest.raises(UnsupportedRegion):
        await fetcher.fetch_snapshot(PUUID, region, 20)
    with pytest.raises(UnsupportedRegion):
        await fetcher.resolve_identity("a", "b", region)

    assert stub.requests == []


@pytest.mark.asyncio
async def test_snapshot_is_all_or_nothing(fetcher, stub):
    stub.overrides["/matches/"] = httpx.Response(500)

    with pytest.raises(UpstreamUnavailable):
        await fetcher.fetch_snapshot(PUUID, Region.EUW1, 20)


@pytest.mark.asyncio
async def test_validate_api_key_accepts_404_probe(fetcher, stub):
    stub.overrides["/by-riot-id/"] = httpx.Response(404)

    assert await fetcher.validate_api_key() is True


@pytest.mark.asyncio
async def test_validate_api_key_rejects_bad_key(fetcher, stub):
    stub.overrides["/by-riot-id/"] = httpx.Response(403)

    with pytest.raises(InvalidCredential):
        await fetcher.validate_api_key()

"""Riot Games API client."""
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from config import settings
from core.logging import get_logger
from domain.enums import Region, QueueType
from domain.errors import (
    AccountNotFound,
    InvalidCredential,
    ProviderError,
    UpstreamUnavailable,
)
from .gateway import RateLimitedGateway
from .rate_limiter import RateLimiter

logger = get_logger(__name__, service="riot-api")


class RiotAPIClient:
    """Asynchronous Riot API client; every request goes through the gateway.

    HTTP status codes are translated into the provider error taxonomy:
    404 -> AccountNotFound, 401/403 -> InvalidCredential, 5xx and transport
    failures -> UpstreamUnavailable. 429 is handled (and exhausted) by the
    gateway.
    """

    def __init__(
        self,
        api_key: str,
        gateway: Optional[RateLimitedGateway] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.gateway = gateway or RateLimitedGateway(
            RateLimiter(
                requests_per_1_sec=settings.RATE_LIMIT_PER_1_SEC,
                requests_per_2_min=settings.RATE_LIMIT_PER_2_MIN,
                max_acquire_attempts=settings.MAX_TOKEN_ACQUIRE_ATTEMPTS,
            ),
            max_attempts=settings.MAX_REQUEST_ATTEMPTS,
            default_retry_after_ms=settings.RETRY_AFTER_DEFAULT_MS,
        )
        self._transport = transport
        self.session: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "RiotAPIClient":
        self.session = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"X-Riot-Token": self.api_key, "Accept": "application/json"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self.session:
            await self.session.aclose()
            self.session = None

    def _get_platform_url(self, region: Region) -> str:
        return f"https://{region.platform_route}.api.riotgames.com"

    def _get_regional_url(self, region: Region) -> str:
        return f"https://{region.regional_route}.api.riotgames.com"

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if self.session is None:
            raise RuntimeError("RiotAPIClient used outside of 'async with'")

        async def _request() -> httpx.Response:
            try:
                return await self.session.get(url, params=params)
            except httpx.TimeoutException as exc:
                raise UpstreamUnavailable(f"timeout calling {url}") from exc
            except httpx.HTTPError as exc:
                raise UpstreamUnavailable(f"network error calling {url}: {exc}") from exc

        response = await self.gateway.call(_request)
        status = response.status_code

        if status == 200:
            return response.json()
        if status == 404:
            raise AccountNotFound(f"not found: {url}", status_code=status)
        if status in (401, 403):
            logger.error(lambda: f"{status} from Riot API, check RIOT_API_KEY")
            raise InvalidCredential("Riot API rejected the API key", status_code=status)
        if status >= 500:
            raise UpstreamUnavailable(f"HTTP {status} for {url}", status_code=status)

        logger.warning(lambda: f"HTTP {status} for {url}")
        raise ProviderError(f"unexpected HTTP {status} for {url}", status_code=status)

    # ── Account API ────────────────────────────────────────────────────

    async def get_account_by_riot_id(self, region: Region, game_name: str, tag_line: str) -> Dict:
        base = self._get_regional_url(region)
        path = f"/riot/account/v1/accounts/by-riot-id/{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
        return await self._get_json(base + path)

    # ── Summoner API ───────────────────────────────────────────────────

    async def get_summoner_by_puuid(self, region: Region, puuid: str) -> Dict:
        base = self._get_platform_url(region)
        return await self._get_json(f"{base}/lol/summoner/v4/summoners/by-puuid/{puuid}")

    # ── League API ─────────────────────────────────────────────────────

    async def get_league_entries_by_puuid(self, region: Region, puuid: str) -> List[Dict]:
        base = self._get_platform_url(region)
        result = await self._get_json(f"{base}/lol/league/v4/entries/by-puuid/{puuid}")
        return result if isinstance(result, list) else []

    # ── Match API ──────────────────────────────────────────────────────

    async def get_match_ids_by_puuid(
        self,
        region: Region,
        puuid: str,
        queue: QueueType = QueueType.RANKED_SOLO_5x5,
        start: int = 0,
        count: int = 20,
    ) -> List[str]:
        base = self._get_regional_url(region)
        params = {
            "queue": queue.queue_id,
            "type": "ranked",
            "start": start,
            "count": min(count, 100),
        }
        result = await self._get_json(f"{base}/lol/match/v5/matches/by-puuid/{puuid}/ids", params)
        return result if isinstance(result, list) else []

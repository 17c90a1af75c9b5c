"""Riot API adapter: Account-V1, Summoner-V4, Match-V5, League-V4 over aiohttp.

Every call is cache-first. On a miss the request waits for the spread rate
limiter, then hits the network; successful payloads are cached with a
per-endpoint TTL.

Status handling:
- 404 -> ``None`` (absence is not an error)
- 429 -> ``RateLimitError`` (retryable, caller decides)
- 5xx -> ``RiotServerError`` (retryable, distinct from rate limiting)
- network errors and timeouts propagate unchanged

No retry loop lives here; retry policy belongs to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote, urlencode

import aiohttp

from jungle_coach.adapters.cache import cache_key
from jungle_coach.config.settings import ConfigurationError, Settings
from jungle_coach.core.metrics import mark_cache_lookup, mark_riot_request
from jungle_coach.core.observability import trace_adapter
from jungle_coach.core.ports import CachePort, MatchAPIPort
from jungle_coach.core.rate_limiter import SpreadRateLimiter


class RiotAPIError(Exception):
    def __init__(
        self, message: str, status_code: int | None = None, retry_after: int | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class RateLimitError(RiotAPIError):
    def __init__(self, retry_after: int) -> None:
        super().__init__("Rate limit exceeded", status_code=429, retry_after=retry_after)


class RiotServerError(RiotAPIError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Riot API server error: {status_code}", status_code=status_code)


logger = logging.getLogger(__name__)

_REGIONAL_ROUTING = {
    "americas": {"NA1", "BR1", "LA1", "LA2"},
    "europe": {"EUN1", "EUW1", "RU", "TR1", "ME1"},
    "asia": {"KR", "JP1"},
    "sea": {"OC1", "PH2", "SG2", "TH2", "TW2", "VN2"},
}


def _retry_after(value: str | None, default: int = 1) -> int:
    """Seconds from a ``Retry-After`` header; unparseable values fall back."""
    try:
        return max(0, int(float(value))) if value is not None else default
    except (TypeError, ValueError, OverflowError):
        return default


def regional_route(platform: str) -> str:
    pr = platform.upper()
    for region, platforms in _REGIONAL_ROUTING.items():
        if pr in platforms:
            return region
    return "europe"


class RiotAPIAdapter(MatchAPIPort):
    """Cached, rate-limited Riot API client."""

    def __init__(
        self,
        settings: Settings,
        cache: CachePort,
        rate_limiter: SpreadRateLimiter | None = None,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.rate_limiter = rate_limiter or SpreadRateLimiter(
            requests_per_second=settings.riot_api_rate_limit_per_second,
            requests_per_two_minutes=settings.riot_api_rate_limit_per_two_minutes,
        )
        self.platform = settings.riot_platform.lower()
        self._session: aiohttp.ClientSession | None = None
        self._session_loop: asyncio.AbstractEventLoop | None = None
        logger.info("Riot API adapter initialized")

    @property
    def platform_url(self) -> str:
        return f"https://{self.platform}.api.riotgames.com"

    @property
    def regional_url(self) -> str:
        return f"https://{regional_route(self.platform)}.api.riotgames.com"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        loop = asyncio.get_running_loop()
        needs_new_session = (
            self._session is None
            or self._session.closed
            or self._session_loop is None
            or self._session_loop is not loop
        )
        if needs_new_session:
            if self._session is not None and not self._session.closed:
                try:
                    await self._session.close()
                except Exception:
                    logger.warning("Failed to close stale Riot API session", exc_info=True)
            timeout = aiohttp.ClientTimeout(total=self.settings.riot_request_timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._session_loop = loop
        return self._session

    async def close(self) -> None:
        try:
            if self._session and not self._session.closed:
                await self._session.close()
        finally:
            self._session = None
            self._session_loop = None

    async def _request(self, endpoint: str, url: str, key: str, ttl: int) -> Any | None:
        if not self.settings.riot_api_key:
            raise ConfigurationError(["RIOT_API_KEY"])

        cached = await self.cache.get(key)
        mark_cache_lookup(endpoint, cached is not None)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        await self.rate_limiter.acquire()

        session = await self._ensure_session()
        headers = {"X-Riot-Token": self.settings.riot_api_key}
        async with session.get(url, headers=headers) as resp:
            mark_riot_request(endpoint, resp.status)
            if resp.status == 200:
                data = await resp.json()
                await self.cache.set(key, data, ttl)
                return data
            if resp.status == 404:
                logger.info(f"404 Not Found: {endpoint} {key}")
                return None
            if resp.status == 429:
                retry_after = _retry_after(resp.headers.get("Retry-After"))
                logger.warning(f"429 rate-limited on {endpoint}, retry after {retry_after}s")
                raise RateLimitError(retry_after)
            if resp.status >= 500:
                logger.error(f"Riot API server error {resp.status} on {endpoint}")
                raise RiotServerError(resp.status)
            body = await resp.text()
            logger.error(f"Riot API error {resp.status} on {endpoint}: {body}")
            raise RiotAPIError(f"Riot API error {resp.status}", status_code=resp.status)

    @trace_adapter
    async def get_account_by_riot_id(self, game_name: str, tag_line: str) -> dict[str, Any] | None:
        url = (
            f"{self.regional_url}/riot/account/v1/accounts/by-riot-id/"
            f"{quote(game_name)}/{quote(tag_line)}"
        )
        key = cache_key("account", f"{game_name}#{tag_line}")
        return await self._request("account", url, key, self.settings.cache_ttl_summoner)

    @trace_adapter
    async def get_summoner_by_puuid(self, puuid: str) -> dict[str, Any] | None:
        url = f"{self.platform_url}/lol/summoner/v4/summoners/by-puuid/{puuid}"
        key = cache_key("summoner", puuid)
        return await self._request("summoner", url, key, self.settings.cache_ttl_summoner)

    @trace_adapter
    async def get_match_ids(
        self,
        puuid: str,
        *,
        queue: int | None = None,
        type: str | None = None,
        start: int | None = None,
        count: int | None = None,
    ) -> list[str] | None:
        params: dict[str, Any] = {}
        if queue is not None:
            params["queue"] = int(queue)
        if type:
            params["type"] = type
        if start:
            params["start"] = start
        if count is not None:
            params["count"] = max(1, min(count, 100))
        query = urlencode(params)
        url = f"{self.regional_url}/lol/match/v5/matches/by-puuid/{puuid}/ids"
        if query:
            url = f"{url}?{query}"
        key = cache_key("matchlist", puuid, query or None)
        data = await self._request("matchlist", url, key, self.settings.cache_ttl_match_history)
        if data is None:
            return None
        return [str(m) for m in data] if isinstance(data, list) else []

    @trace_adapter
    async def get_match(self, match_id: str) -> dict[str, Any] | None:
        url = f"{self.regional_url}/lol/match/v5/matches/{match_id}"
        key = cache_key("match", match_id)
        data = await self._request("match", url, key, self.settings.cache_ttl_match)
        return data if isinstance(data, dict) else None

    async def get_matches(self, match_ids: list[str]) -> list[dict[str, Any] | None]:
        """Fetch matches in fixed-size groups with a pause between groups.

        Calls inside a group run concurrently and are still individually paced
        by the rate limiter. Output order equals input order.
        """
        logger.info(f"Fetching {len(match_ids)} matches")
        batch_size = self.settings.match_batch_size
        results: list[dict[str, Any] | None] = []

        for i in range(0, len(match_ids), batch_size):
            batch = match_ids[i : i + batch_size]
            results.extend(await asyncio.gather(*(self.get_match(mid) for mid in batch)))
            if i + batch_size < len(match_ids):
                await self.rate_limiter.pause(self.settings.match_batch_delay_seconds)

        return results

    @trace_adapter
    async def get_ranked_entries(self, summoner_id: str) -> list[dict[str, Any]] | None:
        url = f"{self.platform_url}/lol/league/v4/entries/by-summoner/{summoner_id}"
        key = cache_key("ranked", summoner_id)
        return await self._request("ranked", url, key, self.settings.cache_ttl_rank)

    async def health_check(self) -> bool:
        url = f"{self.platform_url}/lol/status/v4/platform-data"
        try:
            data = await self._request(
                "status", url, cache_key("health", self.platform), self.settings.cache_ttl_health
            )
            return data is not None
        except Exception as e:
            logger.error(f"Riot API health check failed: {e}")
            return False

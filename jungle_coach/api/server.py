"""Dashboard HTTP service (aiohttp).

Endpoints:
- GET  /health                       → cache and Riot API health
- GET  /metrics                      → Prometheus exposition
- GET  /api/games?limit=             → recent jungle games; stored games when Riot is down
- GET  /api/analytics?limit=         → KPIs, insights, champion stats, trends
- GET  /api/session                  → active coaching session
- POST /api/sync                     → scrape and mirror recent games
- POST /api/sync-dates               → backfill missing game dates
- POST /api/riot-webhook             → shared-secret automation hook
- POST /api/webhook/coaching-alerts  → evaluate alerts for one game
- POST /api/webhook/store            → store page events, dispatches alerts

A data source that cannot be reached maps to 503 with a remediation hint; an
empty but healthy result is a 200 with an empty list.
"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import aiohttp
from aiohttp import web

from jungle_coach.adapters.notion_store import NotionGameStore, NotionStoreError
from jungle_coach.config.settings import ConfigurationError, Settings
from jungle_coach.contracts import PersistedGameRecord, ScrapeResult, ScrapeStatus, deaths_from_kda
from jungle_coach.core import analytics
from jungle_coach.core.metrics import render_latest
from jungle_coach.core.observability import trace_wrapper
from jungle_coach.core.ports import AlertPort, CachePort, GameStorePort
from jungle_coach.core.services.alert_service import dispatch_alerts, evaluate_alerts
from jungle_coach.core.services.match_scraper import MatchScraper
from jungle_coach.core.services.sync_service import GameSyncService

logger = logging.getLogger(__name__)

MAX_GAME_LIMIT = 50
WEBHOOK_REFRESH_COUNT = 10
ANALYTICS_DEFAULT_LIMIT = 25

UNAVAILABLE_HINT = (
    "Riot API unavailable. Check RIOT_API_KEY, RIOT_GAME_NAME and RIOT_TAG_LINE, "
    "then retry."
)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _dump(models: list[Any]) -> list[dict[str, Any]]:
    return [m.model_dump(mode="json", by_alias=True) for m in models]


class DashboardServer:
    """HTTP surface over the scraper, analytics, sync and alert services."""

    def __init__(
        self,
        settings: Settings,
        cache: CachePort,
        riot_client: Any | None = None,
        scraper: MatchScraper | None = None,
        sync_service: GameSyncService | None = None,
        store: NotionGameStore | GameStorePort | None = None,
        alerter: AlertPort | None = None,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.riot = riot_client
        self.scraper = scraper
        self.sync = sync_service
        self.store = store
        self.alerter = alerter
        self._identity_lock = asyncio.Lock()
        self.app = web.Application()
        self._runner: web.AppRunner | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_get("/health", self.health_check)
        self.app.router.add_get("/metrics", self.metrics)
        self.app.router.add_get("/api/games", self.get_games)
        self.app.router.add_get("/api/analytics", self.get_analytics)
        self.app.router.add_get("/api/session", self.get_session)
        self.app.router.add_post("/api/sync", self.sync_recent)
        self.app.router.add_post("/api/sync-dates", self.sync_dates)
        self.app.router.add_post("/api/riot-webhook", self.riot_webhook)
        self.app.router.add_post("/api/webhook/coaching-alerts", self.coaching_alerts)
        self.app.router.add_post("/api/webhook/store", self.store_webhook)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _limit(self, request: web.Request, default: int | None = None) -> int:
        raw = request.query.get("limit")
        if raw is None:
            return default or self.settings.default_game_limit
        try:
            value = int(raw)
        except ValueError as e:
            raise web.HTTPBadRequest(
                text='{"error": "limit must be an integer"}', content_type="application/json"
            ) from e
        return max(1, min(value, MAX_GAME_LIMIT))

    async def _resolve_scraper(self) -> MatchScraper | None:
        """Scraper for the tracked player, resolving the Riot ID on first success.

        A failed lookup is retried on the next request instead of disabling
        the data routes until restart.
        """
        if self.scraper is not None or self.riot is None:
            return self.scraper
        async with self._identity_lock:
            if self.scraper is None:
                try:
                    self.settings.require_riot()
                    self.scraper = await MatchScraper.for_riot_id(
                        self.riot, self.settings.riot_game_name, self.settings.riot_tag_line
                    )
                except ConfigurationError as e:
                    logger.error(f"Riot API disabled: {e}")
                except Exception as e:
                    logger.warning(f"Player identity lookup failed, will retry: {e}")
        return self.scraper

    async def _scrape(self, limit: int) -> ScrapeResult:
        scraper = await self._resolve_scraper()
        if scraper is None:
            return ScrapeResult.unavailable("player identity could not be resolved")
        return await scraper.fetch_recent(limit)

    async def _stored_games(self, limit: int) -> list[PersistedGameRecord] | None:
        """Persisted records, newest first; ``None`` when the store cannot serve them."""
        if self.store is None:
            return None
        try:
            return await self.store.recent_records(limit)
        except (NotionStoreError, ConfigurationError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Stored games fallback failed: {e}")
            return None

    @staticmethod
    def _unavailable(error: str | None) -> web.Response:
        return web.json_response(
            {
                "status": ScrapeStatus.UNAVAILABLE.value,
                "error": error or "data source unavailable",
                "remediation": UNAVAILABLE_HINT,
            },
            status=503,
        )

    def _authorize_webhook(self, request: web.Request) -> bool:
        token = request.headers.get("x-webhook-secret")
        expected = self.settings.webhook_secret
        return bool(expected and token and token == expected)

    @staticmethod
    async def _json_body(request: web.Request) -> dict[str, Any]:
        try:
            body = await request.json()
        except ValueError as e:
            raise web.HTTPBadRequest(
                text='{"error": "invalid JSON body"}', content_type="application/json"
            ) from e
        if not isinstance(body, dict):
            raise web.HTTPBadRequest(
                text='{"error": "JSON object expected"}', content_type="application/json"
            )
        return body

    # ------------------------------------------------------------------
    # health and metrics
    # ------------------------------------------------------------------

    async def health_check(self, request: web.Request) -> web.Response:
        cache_ok = await self.cache.health_check()
        riot_ok = await self.riot.health_check() if self.riot is not None else False
        status = "healthy" if cache_ok and riot_ok else "degraded"
        return web.json_response(
            {"status": status, "cache": cache_ok, "riotApi": riot_ok, "timestamp": _now_iso()}
        )

    async def metrics(self, request: web.Request) -> web.Response:
        payload, content_type = render_latest()
        return web.Response(body=payload, headers={"Content-Type": content_type})

    # ------------------------------------------------------------------
    # dashboard data
    # ------------------------------------------------------------------

    @trace_wrapper(capture_args=False, log_level="INFO", add_metadata={"endpoint": "/api/games"})
    async def get_games(self, request: web.Request) -> web.Response:
        limit = self._limit(request)
        result = await self._scrape(limit)
        if result.status == ScrapeStatus.UNAVAILABLE:
            records = await self._stored_games(limit)
            if records is None:
                return self._unavailable(result.error)
            logger.warning(f"Riot API unavailable ({result.error}), serving stored games")
            return web.json_response(
                {
                    "status": (ScrapeStatus.OK if records else ScrapeStatus.EMPTY).value,
                    "games": _dump(records),
                    "count": len(records),
                    "dataSource": "notion",
                    "riotError": result.error,
                    "lastUpdated": _now_iso(),
                }
            )
        return web.json_response(
            {
                "status": result.status.value,
                "games": _dump(result.games),
                "count": len(result.games),
                "dataSource": "riot_api",
                "lastUpdated": _now_iso(),
            }
        )

    @trace_wrapper(capture_args=False, log_level="INFO", add_metadata={"endpoint": "/api/analytics"})
    async def get_analytics(self, request: web.Request) -> web.Response:
        result = await self._scrape(self._limit(request, ANALYTICS_DEFAULT_LIMIT))
        if result.status == ScrapeStatus.UNAVAILABLE:
            return self._unavailable(result.error)

        games = result.games
        overview = analytics.build_overview(games)
        return web.json_response(
            {
                "status": result.status.value,
                "kpis": analytics.calculate_kpis(games).model_dump(mode="json", by_alias=True),
                "insights": _dump(analytics.generate_insights(games)),
                "championStats": _dump(analytics.analyze_champion_performance(games)),
                "trends": _dump(analytics.get_performance_trends(games)),
                "overview": overview.model_dump(mode="json", by_alias=True),
                "dataSource": "riot_api",
                "lastUpdated": _now_iso(),
                "gameCount": len(games),
            }
        )

    async def get_session(self, request: web.Request) -> web.Response:
        if self.store is None:
            return web.json_response({"error": "store not configured"}, status=503)
        try:
            session = await self.store.get_active_session()
        except (NotionStoreError, ConfigurationError) as e:
            logger.error(f"Session lookup failed: {e}")
            return web.json_response({"error": "session lookup failed"}, status=502)
        if session is None:
            return web.json_response({"session": None})
        return web.json_response({"session": session.model_dump(mode="json", by_alias=True)})

    # ------------------------------------------------------------------
    # sync
    # ------------------------------------------------------------------

    @trace_wrapper(capture_args=False, log_level="INFO", add_metadata={"endpoint": "/api/sync"})
    async def sync_recent(self, request: web.Request) -> web.Response:
        if self.sync is None:
            return web.json_response({"error": "store not configured"}, status=503)
        result = await self._scrape(self._limit(request, WEBHOOK_REFRESH_COUNT))
        if result.status == ScrapeStatus.UNAVAILABLE:
            return self._unavailable(result.error)
        report = await self.sync.sync_games(result.games)
        return web.json_response(
            {"success": True, "summary": report.model_dump(mode="json", by_alias=True)}
        )

    @trace_wrapper(capture_args=False, log_level="INFO", add_metadata={"endpoint": "/api/sync-dates"})
    async def sync_dates(self, request: web.Request) -> web.Response:
        if self.sync is None:
            return web.json_response(
                {"error": "Missing configuration - need NOTION_TOKEN, NOTION_GAMES_DB"}, status=400
            )
        try:
            report = await self.sync.backfill_missing_dates()
        except (NotionStoreError, ConfigurationError) as e:
            logger.error(f"Date sync failed: {e}")
            return web.json_response({"error": "Sync failed", "details": str(e)}, status=500)
        return web.json_response(
            {"success": True, "summary": report.model_dump(mode="json", by_alias=True)}
        )

    # ------------------------------------------------------------------
    # webhooks
    # ------------------------------------------------------------------

    @trace_wrapper(capture_args=False, log_level="INFO", add_metadata={"endpoint": "/api/riot-webhook"})
    async def riot_webhook(self, request: web.Request) -> web.Response:
        if not self._authorize_webhook(request):
            logger.warning("Invalid webhook secret")
            return web.json_response({"error": "Unauthorized"}, status=401)

        body = await self._json_body(request)
        action = body.get("action")
        match_id = body.get("matchId")

        if action == "match_completed" and match_id:
            scraper = await self._resolve_scraper()
            if scraper is None or self.sync is None:
                return web.json_response({"error": "pipeline not configured"}, status=503)
            game = await scraper.scrape_match(str(match_id))
            if game is None:
                logger.info(f"Match {match_id} not found or not a jungle game, skipping")
                outcome: dict[str, Any] | None = None
            else:
                outcome = (await self.sync.sync_game(game)).model_dump(mode="json", by_alias=True)
            return web.json_response(
                {"success": True, "action": action, "outcome": outcome, "timestamp": _now_iso()}
            )

        if action == "refresh_recent":
            if self.sync is None:
                return web.json_response({"error": "pipeline not configured"}, status=503)
            result = await self._scrape(WEBHOOK_REFRESH_COUNT)
            if result.status == ScrapeStatus.UNAVAILABLE:
                return self._unavailable(result.error)
            report = await self.sync.sync_games(result.games)
            return web.json_response(
                {
                    "success": True,
                    "action": action,
                    "summary": report.model_dump(mode="json", by_alias=True),
                    "timestamp": _now_iso(),
                }
            )

        logger.warning(f"Unknown webhook action: {action}")
        return web.json_response({"error": "Unknown action"}, status=400)

    async def coaching_alerts(self, request: web.Request) -> web.Response:
        body = await self._json_body(request)
        try:
            deaths = int(body.get("deaths") or 0)
        except (TypeError, ValueError):
            return web.json_response({"error": "deaths must be an integer"}, status=400)
        alerts = evaluate_alerts(
            champion=str(body.get("champion") or ""),
            deaths=deaths,
            result=body.get("result"),
            experimental_champions=self.settings.experimental_champions,
            kda=body.get("kda"),
        )
        return web.json_response({"alerts": _dump(alerts)})

    @trace_wrapper(capture_args=False, log_level="INFO", add_metadata={"endpoint": "/api/webhook/store"})
    async def store_webhook(self, request: web.Request) -> web.Response:
        body = await self._json_body(request)
        event_type = body.get("type")

        if event_type == "url_verification":
            return web.json_response({"challenge": body.get("challenge")})

        if event_type == "page" and body.get("event") == "updated":
            props = body.get("properties") or {}
            champion = ((props.get("champion") or {}).get("rich_text") or [{}])[0]
            champion_name = (champion.get("text") or {}).get("content") or "Unknown"
            kda_item = ((props.get("kda") or {}).get("rich_text") or [{}])[0]
            kda = (kda_item.get("text") or {}).get("content") or ""
            result = ((props.get("result") or {}).get("select") or {}).get("name")
            deaths = deaths_from_kda(kda)

            alerts = evaluate_alerts(
                champion=champion_name,
                deaths=deaths,
                result=result,
                experimental_champions=self.settings.experimental_champions,
                kda=kda,
            )
            delivered = await dispatch_alerts(self.alerter, alerts) if self.alerter else 0
            return web.json_response(
                {
                    "success": True,
                    "gameProcessed": {
                        "champion": champion_name,
                        "kda": kda,
                        "result": result,
                        "deaths": deaths,
                        "alerts": _dump(alerts),
                        "alertsDelivered": delivered,
                    },
                }
            )

        logger.info(f"Other store webhook type received: {event_type}")
        return web.json_response({"success": True, "type": event_type})

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def start(self, host: str = "0.0.0.0", port: int = 8080) -> None:
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host, port)
        await site.start()
        logger.info(f"Dashboard server started on {host}:{port}")

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Dashboard server stopped")

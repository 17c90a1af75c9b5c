"""
Main entry point for the jungle coach service.

Commands:
- serve       run the dashboard HTTP service
- sync        scrape recent jungle games and mirror them into Notion
- sync-dates  backfill missing game dates in Notion
- report      print KPIs, insights and overview for recent games as JSON
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import dataclass

from jungle_coach.adapters.cache import create_cache
from jungle_coach.adapters.discord_webhook import DiscordAlertWebhook
from jungle_coach.adapters.notion_store import NotionGameStore
from jungle_coach.adapters.riot_api import RiotAPIAdapter
from jungle_coach.api.server import DashboardServer
from jungle_coach.config.settings import ConfigurationError, Settings, get_settings
from jungle_coach.core import analytics
from jungle_coach.core.observability import configure_stdlib_json_logging
from jungle_coach.core.ports import CachePort
from jungle_coach.core.services.match_scraper import MatchScraper
from jungle_coach.core.services.sync_service import GameSyncService

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Structured JSON logging to stdout and ``logs/jungle_coach.log``."""
    try:
        os.makedirs("logs", exist_ok=True)
        file_target: str | None = os.path.join("logs", "jungle_coach.log")
    except OSError:
        file_target = None

    configure_stdlib_json_logging(level=settings.app_log_level, file_target=file_target)


@dataclass
class Components:
    settings: Settings
    cache: CachePort
    riot: RiotAPIAdapter
    scraper: MatchScraper | None
    store: NotionGameStore | None
    sync: GameSyncService | None
    alerter: DiscordAlertWebhook

    async def close(self) -> None:
        await self.riot.close()
        if self.store is not None:
            await self.store.close()
        await self.alerter.close()
        await self.cache.close()


def store_configured(settings: Settings) -> bool:
    try:
        settings.require_store()
    except ConfigurationError as e:
        logger.warning(f"Notion store disabled: {e}")
        return False
    return True


async def build_components(settings: Settings) -> Components:
    """Wire adapters and services once for the process."""
    cache = await create_cache(settings)
    riot = RiotAPIAdapter(settings, cache)

    scraper: MatchScraper | None = None
    try:
        settings.require_riot()
        scraper = await MatchScraper.for_riot_id(
            riot, settings.riot_game_name, settings.riot_tag_line
        )
    except ConfigurationError as e:
        logger.error(f"Riot API disabled: {e}")
    except Exception as e:
        logger.error(f"Could not resolve player identity: {e}")

    store = NotionGameStore(settings) if store_configured(settings) else None
    sync = GameSyncService(store, riot) if store is not None else None

    return Components(
        settings=settings,
        cache=cache,
        riot=riot,
        scraper=scraper,
        store=store,
        sync=sync,
        alerter=DiscordAlertWebhook(settings.alert_webhook_url),
    )


async def run_serve(components: Components) -> int:
    settings = components.settings
    server = DashboardServer(
        settings=settings,
        cache=components.cache,
        riot_client=components.riot,
        scraper=components.scraper,
        sync_service=components.sync,
        store=components.store,
        alerter=components.alerter,
    )
    await server.start(host=settings.app_host, port=settings.app_port)
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()
    return 0


async def run_sync(components: Components, count: int) -> int:
    if components.scraper is None or components.sync is None:
        logger.error("Sync requires a resolved Riot identity and a configured Notion store")
        return 1
    result = await components.scraper.fetch_recent(count)
    if result.error:
        logger.error(f"Scrape failed: {result.error}")
        return 1
    report = await components.sync.sync_games(result.games)
    print(report.model_dump_json(by_alias=True, indent=2))
    return 0 if report.errors == 0 else 2


async def run_sync_dates(components: Components) -> int:
    if components.sync is None:
        logger.error("Date sync requires NOTION_TOKEN, NOTION_GAMES_DB and NOTION_SESSIONS_DB")
        return 1
    report = await components.sync.backfill_missing_dates()
    print(report.model_dump_json(by_alias=True, indent=2))
    return 0 if report.errors == 0 else 2


async def run_report(components: Components, count: int) -> int:
    if components.scraper is None:
        logger.error("Report requires a resolved Riot identity")
        return 1
    result = await components.scraper.fetch_recent(count)
    games = result.games
    payload = {
        "status": result.status.value,
        "kpis": analytics.calculate_kpis(games).model_dump(mode="json", by_alias=True),
        "insights": [
            i.model_dump(mode="json", by_alias=True) for i in analytics.generate_insights(games)
        ],
        "overview": analytics.build_overview(games).model_dump(mode="json", by_alias=True),
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if result.error is None else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jungle-coach", description="Jungle performance coach")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve", help="Run the dashboard HTTP service")

    sync = sub.add_parser("sync", help="Mirror recent jungle games into Notion")
    sync.add_argument("--count", type=int, default=10)

    sub.add_parser("sync-dates", help="Backfill missing game dates in Notion")

    report = sub.add_parser("report", help="Print analytics for recent games")
    report.add_argument("--count", type=int, default=20)
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings)
    logger.info(f"Starting {settings.app_name} ({args.command})")

    components = await build_components(settings)
    try:
        if args.command == "serve":
            return await run_serve(components)
        if args.command == "sync":
            return await run_sync(components, args.count)
        if args.command == "sync-dates":
            return await run_sync_dates(components)
        return await run_report(components, args.count)
    finally:
        await components.close()
        logger.info("All services stopped")


def cli() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nStopped by user.")


if __name__ == "__main__":
    cli()

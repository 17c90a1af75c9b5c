"""Notion games database adapter (REST over aiohttp).

Property conventions of the games database:
- ``match_id``: title
- ``champion``, ``kda``, ``session``: rich text
- ``result``: select ``Win``/``Loss``
- ``role``: select ``JUNGLE``
- ``game_date``: date ``YYYY-MM-DD``
- ``analyzed``: checkbox
- ``duration_minutes``: number

Records are read through ``record_from_page`` only, so KDA and date coercion
happen in one place.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

import aiohttp

from jungle_coach.config.settings import Settings
from jungle_coach.contracts import (
    TRACKED_ROLE,
    GameResult,
    GameSession,
    NormalizedGame,
    PersistedGameRecord,
    deaths_from_kda,
)
from jungle_coach.core.observability import trace_adapter
from jungle_coach.core.ports import GameStorePort

logger = logging.getLogger(__name__)

NOTION_PAGE_SIZE = 100


class NotionStoreError(Exception):
    """Raised when the Notion API answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# ============================================================================
# Property helpers
# ============================================================================


def _text_of(prop: dict[str, Any] | None, kind: str) -> str:
    items = (prop or {}).get(kind) or []
    if not items:
        return ""
    first = items[0]
    return (first.get("text") or {}).get("content") or first.get("plain_text") or ""


def _select_of(prop: dict[str, Any] | None) -> str:
    return ((prop or {}).get("select") or {}).get("name") or ""


def _date_of(prop: dict[str, Any] | None) -> date | None:
    start = ((prop or {}).get("date") or {}).get("start")
    if not start:
        return None
    try:
        return date.fromisoformat(start[:10])
    except ValueError:
        logger.warning(f"Unparseable Notion date: {start!r}")
        return None


def _rich_text(content: str) -> dict[str, Any]:
    return {"rich_text": [{"text": {"content": content}}]}


def record_from_page(page: dict[str, Any]) -> PersistedGameRecord:
    """Parse one Notion page into a ``PersistedGameRecord``."""
    props = page.get("properties") or {}
    kda = _text_of(props.get("kda"), "rich_text")
    duration = (props.get("duration_minutes") or {}).get("number")
    return PersistedGameRecord(
        page_id=page.get("id", ""),
        match_id=_text_of(props.get("match_id"), "title"),
        champion=_text_of(props.get("champion"), "rich_text") or "Unknown",
        result=_select_of(props.get("result")),
        kda=kda,
        deaths=deaths_from_kda(kda),
        role=_select_of(props.get("role")) or TRACKED_ROLE,
        game_date=_date_of(props.get("game_date")),
        duration_minutes=duration,
        analyzed=bool((props.get("analyzed") or {}).get("checkbox", False)),
    )


def game_properties(game: NormalizedGame, session_name: str | None = None) -> dict[str, Any]:
    """Build the properties payload for a new games-database page."""
    properties: dict[str, Any] = {
        "match_id": {"title": [{"text": {"content": game.match_id}}]},
        "champion": _rich_text(game.champion),
        "result": {"select": {"name": "Win" if game.result == GameResult.WIN else "Loss"}},
        "kda": _rich_text(game.kda),
        "role": {"select": {"name": TRACKED_ROLE}},
        "game_date": {"date": {"start": game.game_day}},
        "analyzed": {"checkbox": False},
        "duration_minutes": {"number": game.game_duration_ms // 60000},
    }
    if session_name:
        properties["session"] = _rich_text(session_name)
    return properties


class NotionGameStore(GameStorePort):
    """Games and sessions databases behind the Notion REST API."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.base_url = settings.notion_api_base_url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None
        self._session_loop: asyncio.AbstractEventLoop | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.notion_token}",
            "Notion-Version": self.settings.notion_version,
            "Content-Type": "application/json",
        }

    async def _ensure_session(self) -> aiohttp.ClientSession:
        loop = asyncio.get_running_loop()
        if (
            self._session is None
            or self._session.closed
            or self._session_loop is not loop
        ):
            if self._session is not None and not self._session.closed:
                try:
                    await self._session.close()
                except Exception:
                    logger.warning("Failed to close stale Notion session", exc_info=True)
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=15))
            self._session_loop = loop
        return self._session

    async def close(self) -> None:
        try:
            if self._session and not self._session.closed:
                await self._session.close()
        finally:
            self._session = None
            self._session_loop = None

    async def _call(self, method: str, path: str, body: dict[str, Any]) -> dict[str, Any]:
        self.settings.require_store()
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"
        async with session.request(method, url, json=body, headers=self.headers) as resp:
            if resp.status >= 400:
                text = await resp.text()
                logger.error(f"Notion API error {resp.status} on {method} {path}: {text}")
                raise NotionStoreError(f"Notion API error {resp.status}", status_code=resp.status)
            return await resp.json()

    async def query(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        *,
        sorts: list[dict[str, Any]] | None = None,
        page_size: int = NOTION_PAGE_SIZE,
        start_cursor: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"page_size": max(1, min(page_size, NOTION_PAGE_SIZE))}
        if filter:
            body["filter"] = filter
        if sorts:
            body["sorts"] = sorts
        if start_cursor:
            body["start_cursor"] = start_cursor
        return await self._call("POST", f"/databases/{database_id}/query", body)

    @trace_adapter
    async def list_existing(self) -> list[PersistedGameRecord]:
        """All jungle records, following Notion's pagination cursor."""
        role_filter = {"property": "role", "select": {"equals": TRACKED_ROLE}}
        records: list[PersistedGameRecord] = []
        cursor: str | None = None
        while True:
            data = await self.query(
                self.settings.notion_games_db, role_filter, start_cursor=cursor
            )
            records.extend(record_from_page(page) for page in data.get("results", []))
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
        logger.info(f"Loaded {len(records)} game records from Notion")
        return records

    @trace_adapter
    async def find_by_match_id(self, match_id: str) -> PersistedGameRecord | None:
        data = await self.query(
            self.settings.notion_games_db,
            {"property": "match_id", "title": {"equals": match_id}},
            page_size=1,
        )
        results = data.get("results") or []
        return record_from_page(results[0]) if results else None

    @trace_adapter
    async def recent_records(self, limit: int) -> list[PersistedGameRecord]:
        """Latest jungle records by ``game_date``; the dashboard's fallback source."""
        data = await self.query(
            self.settings.notion_games_db,
            {"property": "role", "select": {"equals": TRACKED_ROLE}},
            sorts=[{"property": "game_date", "direction": "descending"}],
            page_size=limit,
        )
        return [record_from_page(page) for page in data.get("results") or []]

    @trace_adapter
    async def create_game(self, game: NormalizedGame, session_name: str | None = None) -> str:
        body = {
            "parent": {"database_id": self.settings.notion_games_db},
            "properties": game_properties(game, session_name),
        }
        page = await self._call("POST", "/pages", body)
        logger.info(f"Saved {game.champion} {game.result.value} ({game.match_id}) to Notion")
        return page.get("id", "")

    async def patch_properties(self, page_id: str, properties: dict[str, Any]) -> dict[str, Any]:
        return await self._call("PATCH", f"/pages/{page_id}", {"properties": properties})

    @trace_adapter
    async def update_game_date(self, page_id: str, game_day: str) -> None:
        await self.patch_properties(page_id, {"game_date": {"date": {"start": game_day}}})

    async def get_active_session(self) -> GameSession | None:
        """Most recent session whose status is ``Active``; None when absent."""
        data = await self.query(
            self.settings.notion_sessions_db,
            {"property": "status", "select": {"equals": "Active"}},
            sorts=[{"property": "start_date", "direction": "descending"}],
            page_size=1,
        )
        results = data.get("results") or []
        if not results:
            return None
        props = results[0].get("properties") or {}
        return GameSession(
            name=_text_of(props.get("session_name"), "title"),
            focus_area=_select_of(props.get("focus_area")),
            target_games=(props.get("target_games") or {}).get("number") or 0,
            start_date=_date_of(props.get("start_date")),
        )

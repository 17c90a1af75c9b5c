"""Unit tests for the Notion games store adapter."""

import asyncio
from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from jungle_coach.adapters.notion_store import (
    NotionGameStore,
    NotionStoreError,
    game_properties,
    record_from_page,
)
from jungle_coach.config.settings import ConfigurationError
from jungle_coach.contracts import GameResult


def _page(page_id: str, match_id: str, kda: str = "9/5/10", game_date: str | None = "2024-09-22") -> dict[str, Any]:
    return {
        "id": page_id,
        "properties": {
            "match_id": {"title": [{"text": {"content": match_id}}]},
            "champion": {"rich_text": [{"text": {"content": "Kindred"}}]},
            "result": {"select": {"name": "Win"}},
            "kda": {"rich_text": [{"text": {"content": kda}}]},
            "role": {"select": {"name": "JUNGLE"}},
            "game_date": {"date": {"start": game_date} if game_date else None},
            "duration_minutes": {"number": 31},
            "analyzed": {"checkbox": True},
        },
    }


def _response(status: int, payload: Any = None) -> MagicMock:
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value="notion error")
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


@pytest.fixture
def store(settings) -> NotionGameStore:
    return NotionGameStore(settings)


def _attach(store: NotionGameStore, *responses: MagicMock) -> MagicMock:
    session = MagicMock()
    session.closed = False
    session.request.side_effect = list(responses)
    store._session = session
    store._session_loop = asyncio.get_running_loop()
    return session


def test_record_from_page() -> None:
    record = record_from_page(_page("page-1", "EUN1_1"))

    assert record.page_id == "page-1"
    assert record.match_id == "EUN1_1"
    assert record.deaths == 5
    assert record.result == "Win"
    assert record.game_date == date(2024, 9, 22)
    assert record.duration_minutes == 31
    assert record.analyzed is True


def test_record_from_sparse_page() -> None:
    record = record_from_page({"id": "page-2", "properties": {"game_date": {"date": None}}})

    assert record.match_id == ""
    assert record.champion == "Unknown"
    assert record.deaths == 0
    assert record.game_date is None


def test_game_properties_mapping(make_game) -> None:
    game = make_game("EUN1_7", kills=9, deaths=5, assists=10, result=GameResult.LOSS, minutes=31.5)

    props = game_properties(game, session_name="Death Binary Protocol")

    assert props["match_id"] == {"title": [{"text": {"content": "EUN1_7"}}]}
    assert props["kda"]["rich_text"][0]["text"]["content"] == "9/5/10"
    assert props["result"] == {"select": {"name": "Loss"}}
    assert props["role"] == {"select": {"name": "JUNGLE"}}
    assert props["game_date"] == {"date": {"start": "2024-09-22"}}
    assert props["analyzed"] == {"checkbox": False}
    assert props["duration_minutes"] == {"number": 31}
    assert props["session"]["rich_text"][0]["text"]["content"] == "Death Binary Protocol"


@pytest.mark.asyncio
async def test_list_existing_follows_cursor(store) -> None:
    session = _attach(
        store,
        _response(200, {"results": [_page("p1", "EUN1_1")], "has_more": True, "next_cursor": "c2"}),
        _response(200, {"results": [_page("p2", "EUN1_2")], "has_more": False, "next_cursor": None}),
    )

    records = await store.list_existing()

    assert [r.match_id for r in records] == ["EUN1_1", "EUN1_2"]
    first_call, second_call = session.request.call_args_list
    assert first_call.args == ("POST", "https://api.notion.com/v1/databases/games-db/query")
    assert first_call.kwargs["json"]["filter"] == {"property": "role", "select": {"equals": "JUNGLE"}}
    assert first_call.kwargs["json"]["page_size"] == 100
    assert second_call.kwargs["json"]["start_cursor"] == "c2"
    headers = first_call.kwargs["headers"]
    assert headers["Authorization"] == "Bearer secret_test"
    assert headers["Notion-Version"] == "2022-06-28"


@pytest.mark.asyncio
async def test_find_by_match_id(store) -> None:
    session = _attach(store, _response(200, {"results": [_page("p9", "EUN1_9")]}), _response(200, {"results": []}))

    found = await store.find_by_match_id("EUN1_9")
    missing = await store.find_by_match_id("EUN1_10")

    assert found.page_id == "p9"
    assert missing is None
    body = session.request.call_args_list[0].kwargs["json"]
    assert body["filter"] == {"property": "match_id", "title": {"equals": "EUN1_9"}}
    assert body["page_size"] == 1


@pytest.mark.asyncio
async def test_create_game_and_update_date(store, make_game) -> None:
    session = _attach(store, _response(200, {"id": "new-page"}), _response(200, {"id": "new-page"}))

    page_id = await store.create_game(make_game("EUN1_5"))
    await store.update_game_date(page_id, "2024-09-20")

    create_call, patch_call = session.request.call_args_list
    assert page_id == "new-page"
    assert create_call.args == ("POST", "https://api.notion.com/v1/pages")
    assert create_call.kwargs["json"]["parent"] == {"database_id": "games-db"}
    assert patch_call.args == ("PATCH", "https://api.notion.com/v1/pages/new-page")
    assert patch_call.kwargs["json"] == {"properties": {"game_date": {"date": {"start": "2024-09-20"}}}}


@pytest.mark.asyncio
async def test_error_status_raises(store) -> None:
    _attach(store, _response(400))
    with pytest.raises(NotionStoreError) as exc_info:
        await store.find_by_match_id("EUN1_1")
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_missing_configuration_raises_before_request(settings) -> None:
    settings.notion_token = ""
    store = NotionGameStore(settings)
    session = _attach(store, _response(200, {}))

    with pytest.raises(ConfigurationError):
        await store.list_existing()
    session.request.assert_not_called()


@pytest.mark.asyncio
async def test_active_session(store) -> None:
    page = {
        "id": "s1",
        "properties": {
            "session_name": {"title": [{"text": {"content": "Death Binary Protocol"}}]},
            "focus_area": {"select": {"name": "Champion Mechanics"}},
            "target_games": {"number": 10},
            "start_date": {"date": {"start": "2025-09-22"}},
        },
    }
    session = _attach(store, _response(200, {"results": [page]}), _response(200, {"results": []}))

    active = await store.get_active_session()
    none = await store.get_active_session()

    assert active.name == "Death Binary Protocol"
    assert active.target_games == 10
    assert active.start_date == date(2025, 9, 22)
    assert none is None
    body = session.request.call_args_list[0].kwargs["json"]
    assert body["filter"] == {"property": "status", "select": {"equals": "Active"}}
    assert session.request.call_args_list[0].args[1].endswith("/databases/sessions-db/query")


@pytest.mark.asyncio
async def test_recent_records_sorted_by_game_date(store) -> None:
    session = _attach(
        store,
        _response(200, {"results": [_page("p2", "EUN1_2", kda="9/5"), _page("p1", "EUN1_1")]}),
    )

    records = await store.recent_records(10)

    assert [r.match_id for r in records] == ["EUN1_2", "EUN1_1"]
    assert records[0].deaths == 5
    body = session.request.call_args.kwargs["json"]
    assert body["sorts"] == [{"property": "game_date", "direction": "descending"}]
    assert body["filter"] == {"property": "role", "select": {"equals": "JUNGLE"}}
    assert body["page_size"] == 10

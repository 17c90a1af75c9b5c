"""Shared fixtures for jungle coach tests.

Builders produce Riot match-v5 shaped payloads and normalized games; the fake
client and store implement the ports in memory so services can be exercised
without network access.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from jungle_coach.config.settings import Settings
from jungle_coach.contracts import GameResult, NormalizedGame, PersistedGameRecord
from jungle_coach.core.ports import GameStorePort, MatchAPIPort

TRACKED_PUUID = "puuid-tracked"
BASE_CREATION_MS = 1_727_000_000_000


def _participant(puuid: str, **overrides: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "puuid": puuid,
        "teamPosition": "JUNGLE",
        "individualPosition": "JUNGLE",
        "lane": "JUNGLE",
        "role": "NONE",
        "championName": "Kindred",
        "win": True,
        "kills": 7,
        "deaths": 3,
        "assists": 9,
        "totalMinionsKilled": 30,
        "neutralMinionsKilled": 160,
        "damageDealtToObjectives": 12000,
        "visionScore": 35,
        "wardsPlaced": 10,
        "wardsKilled": 4,
        "goldEarned": 11000,
        "summoner1Id": 11,
        "summoner2Id": 4,
    }
    data.update(overrides)
    return data


def _match(
    match_id: str,
    *,
    creation_ms: int = BASE_CREATION_MS,
    duration_s: int = 1800,
    puuid: str = TRACKED_PUUID,
    **participant_overrides: Any,
) -> dict[str, Any]:
    return {
        "metadata": {"matchId": match_id, "participants": [puuid, "other"]},
        "info": {
            "gameCreation": creation_ms,
            "gameDuration": duration_s,
            "gameEndTimestamp": creation_ms + duration_s * 1000,
            "queueId": 420,
            "gameVersion": "14.19.1",
            "participants": [
                _participant(puuid, **participant_overrides),
                _participant("other", teamPosition="TOP", championName="Garen"),
            ],
        },
    }


def _game(
    match_id: str = "EUN1_1",
    *,
    champion: str = "Kindred",
    result: GameResult = GameResult.WIN,
    kills: int = 5,
    deaths: int = 3,
    assists: int = 7,
    minutes: float = 30,
    days_ago: int = 0,
    **overrides: Any,
) -> NormalizedGame:
    data: dict[str, Any] = {
        "match_id": match_id,
        "champion": champion,
        "result": result,
        "kills": kills,
        "deaths": deaths,
        "assists": assists,
        "jungle_cs": 150,
        "total_cs": 180,
        "vision_score": 30,
        "objectives_damage": 8000,
        "wards_placed": 8,
        "wards_killed": 3,
        "gold_earned": 11000,
        "game_date": datetime(2024, 9, 22, 18, 0, tzinfo=UTC) - timedelta(days=days_ago),
        "game_duration_ms": int(minutes * 60000),
    }
    data.update(overrides)
    return NormalizedGame(**data)


@pytest.fixture
def match_payload() -> Callable[..., dict[str, Any]]:
    return _match


@pytest.fixture
def make_game() -> Callable[..., NormalizedGame]:
    return _game


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        riot_api_key="RGAPI-test",
        riot_platform="eun1",
        riot_game_name="Feraxin",
        riot_tag_line="EUNE",
        notion_token="secret_test",
        notion_games_db="games-db",
        notion_sessions_db="sessions-db",
        webhook_secret="hook-secret",
        alert_webhook_url=None,
        redis_url=None,
    )


class FakeMatchClient(MatchAPIPort):
    """In-memory Riot client keyed by match id."""

    def __init__(
        self,
        matches: dict[str, dict[str, Any]] | None = None,
        account: dict[str, Any] | None = None,
    ) -> None:
        self.matches = dict(matches or {})
        self.account = account if account is not None else {"puuid": TRACKED_PUUID}
        self.match_ids: list[str] | None = list(self.matches)
        self.match_ids_error: Exception | None = None
        self.requested_counts: list[int | None] = []

    async def get_account_by_riot_id(self, game_name: str, tag_line: str) -> dict[str, Any] | None:
        return self.account or None

    async def get_match_ids(
        self,
        puuid: str,
        *,
        queue: int | None = None,
        type: str | None = None,
        start: int | None = None,
        count: int | None = None,
    ) -> list[str] | None:
        self.requested_counts.append(count)
        if self.match_ids_error is not None:
            raise self.match_ids_error
        return self.match_ids

    async def get_match(self, match_id: str) -> dict[str, Any] | None:
        return self.matches.get(match_id)

    async def get_matches(self, match_ids: list[str]) -> list[dict[str, Any] | None]:
        return [self.matches.get(mid) for mid in match_ids]


class FakeGameStore(GameStorePort):
    """In-memory games database honouring the match_id equality lookup."""

    def __init__(self, records: list[PersistedGameRecord] | None = None) -> None:
        self.records: dict[str, PersistedGameRecord] = {r.page_id: r for r in records or []}
        self.created: list[NormalizedGame] = []
        self.date_updates: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()

    async def list_existing(self) -> list[PersistedGameRecord]:
        return list(self.records.values())

    async def find_by_match_id(self, match_id: str) -> PersistedGameRecord | None:
        for record in self.records.values():
            if record.match_id == match_id:
                return record
        return None

    async def recent_records(self, limit: int) -> list[PersistedGameRecord]:
        dated = sorted(
            (r for r in self.records.values() if r.game_date is not None),
            key=lambda r: r.game_date,
            reverse=True,
        )
        undated = [r for r in self.records.values() if r.game_date is None]
        return (dated + undated)[:limit]

    async def create_game(self, game: NormalizedGame) -> str:
        if game.match_id in self.fail_on:
            raise RuntimeError(f"store rejected {game.match_id}")
        page_id = f"page-{len(self.records) + 1}"
        self.records[page_id] = PersistedGameRecord(
            page_id=page_id,
            match_id=game.match_id,
            champion=game.champion,
            result="Win" if game.is_win else "Loss",
            kda=game.kda,
            deaths=game.deaths,
            game_date=game.game_date.date(),
        )
        self.created.append(game)
        return page_id

    async def update_game_date(self, page_id: str, game_day: str) -> None:
        self.date_updates.append((page_id, game_day))
        record = self.records[page_id]
        self.records[page_id] = record.model_copy(
            update={"game_date": datetime.fromisoformat(game_day).date()}
        )


@pytest.fixture
def fake_client_factory() -> Callable[..., FakeMatchClient]:
    return FakeMatchClient


@pytest.fixture
def fake_store_factory() -> Callable[..., FakeGameStore]:
    return FakeGameStore

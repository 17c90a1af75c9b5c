"""Unit tests for MatchScraper against an in-memory match client."""

import pytest

from jungle_coach.adapters.riot_api import RiotServerError
from jungle_coach.contracts import GameResult, ScrapeStatus
from jungle_coach.core.services.match_scraper import MatchScraper

TRACKED_PUUID = "puuid-tracked"
BASE_CREATION_MS = 1_727_000_000_000
HOUR_MS = 3_600_000


@pytest.fixture
def three_matches(match_payload):
    return {
        "EUN1_1": match_payload("EUN1_1", creation_ms=BASE_CREATION_MS, championName="Kindred"),
        "EUN1_2": match_payload(
            "EUN1_2", creation_ms=BASE_CREATION_MS + HOUR_MS, teamPosition="TOP",
            individualPosition="TOP", lane="TOP", championName="Darius",
        ),
        "EUN1_3": match_payload(
            "EUN1_3", creation_ms=BASE_CREATION_MS + 2 * HOUR_MS, championName="Briar",
            win=False, deaths=8,
        ),
    }


@pytest.mark.asyncio
async def test_scrape_keeps_jungle_games_sorted_newest_first(fake_client_factory, three_matches) -> None:
    client = fake_client_factory(three_matches)
    scraper = MatchScraper(client, TRACKED_PUUID)

    result = await scraper.fetch_recent(20)

    assert result.status == ScrapeStatus.OK
    assert [g.match_id for g in result.games] == ["EUN1_3", "EUN1_1"]
    assert result.matches_fetched == 3
    assert result.matches_filtered == 1
    assert client.requested_counts == [40]

    briar = result.games[0]
    assert briar.result == GameResult.LOSS
    assert briar.kda == "7/8/9"
    assert briar.jungle_cs == 160
    assert briar.total_cs == 190
    assert briar.game_duration_ms == 1_800_000
    assert briar.role == "JUNGLE"


@pytest.mark.asyncio
async def test_truncates_to_requested_count(fake_client_factory, three_matches) -> None:
    scraper = MatchScraper(fake_client_factory(three_matches), TRACKED_PUUID)
    games = await scraper.scrape_recent_matches(1)
    assert [g.match_id for g in games] == ["EUN1_3"]


@pytest.mark.asyncio
async def test_match_id_count_is_capped(fake_client_factory) -> None:
    client = fake_client_factory({})
    await MatchScraper(client, TRACKED_PUUID).fetch_recent(80)
    assert client.requested_counts == [100]


@pytest.mark.asyncio
async def test_bad_matches_are_skipped_not_fatal(fake_client_factory, match_payload) -> None:
    broken = match_payload("EUN1_9")
    del broken["info"]["gameCreation"]
    client = fake_client_factory(
        {
            "EUN1_8": match_payload("EUN1_8", puuid="someone-else"),
            "EUN1_9": broken,
            "EUN1_10": match_payload("EUN1_10"),
        }
    )
    client.match_ids = ["EUN1_8", "EUN1_9", "EUN1_10", "EUN1_missing"]

    result = await MatchScraper(client, TRACKED_PUUID).fetch_recent(20)

    assert [g.match_id for g in result.games] == ["EUN1_10"]
    assert result.matches_skipped == 3


@pytest.mark.asyncio
async def test_malformed_shapes_are_skipped_not_fatal(fake_client_factory, match_payload) -> None:
    garbled = match_payload("EUN1_2")
    garbled["metadata"] = "garbled"
    client = fake_client_factory(
        {
            "EUN1_1": match_payload("EUN1_1"),
            "EUN1_2": garbled,
            "EUN1_3": match_payload("EUN1_3", creation_ms=10**22),
            "EUN1_4": ["not", "a", "match"],
        }
    )
    scraper = MatchScraper(client, TRACKED_PUUID)

    result = await scraper.fetch_recent(10)

    assert result.status == ScrapeStatus.OK
    assert [g.match_id for g in result.games] == ["EUN1_1"]
    assert result.matches_skipped == 3
    assert [g.match_id for g in await scraper.scrape_recent_matches(10)] == ["EUN1_1"]
    assert await scraper.scrape_match("EUN1_3") is None


@pytest.mark.asyncio
async def test_only_non_jungle_games_is_empty_not_unavailable(fake_client_factory, match_payload) -> None:
    client = fake_client_factory(
        {"EUN1_1": match_payload("EUN1_1", teamPosition="MIDDLE", lane="MIDDLE", individualPosition="MIDDLE")}
    )
    result = await MatchScraper(client, TRACKED_PUUID).fetch_recent(20)

    assert result.status == ScrapeStatus.EMPTY
    assert result.games == []
    assert result.error is None


@pytest.mark.asyncio
async def test_upstream_failure_is_unavailable(fake_client_factory) -> None:
    client = fake_client_factory({})
    client.match_ids_error = RiotServerError(503)

    scraper = MatchScraper(client, TRACKED_PUUID)
    result = await scraper.fetch_recent(20)

    assert result.status == ScrapeStatus.UNAVAILABLE
    assert "503" in result.error
    assert await scraper.scrape_recent_matches(20) == []


@pytest.mark.asyncio
async def test_no_match_history_is_unavailable(fake_client_factory) -> None:
    result = await MatchScraper(fake_client_factory({}), TRACKED_PUUID).fetch_recent(20)
    assert result.status == ScrapeStatus.UNAVAILABLE


@pytest.mark.asyncio
async def test_for_riot_id_resolves_identity_once(fake_client_factory) -> None:
    scraper = await MatchScraper.for_riot_id(fake_client_factory({}), "Feraxin", "EUNE")
    assert scraper is not None
    assert scraper.puuid == TRACKED_PUUID

    missing = await MatchScraper.for_riot_id(fake_client_factory({}, account={}), "Nobody", "0000")
    assert missing is None


@pytest.mark.asyncio
async def test_scrape_match(fake_client_factory, three_matches) -> None:
    scraper = MatchScraper(fake_client_factory(three_matches), TRACKED_PUUID)

    assert (await scraper.scrape_match("EUN1_1")).champion == "Kindred"
    assert await scraper.scrape_match("EUN1_2") is None
    assert await scraper.scrape_match("EUN1_unknown") is None


@pytest.mark.asyncio
async def test_jungle_stats_overview(fake_client_factory, three_matches) -> None:
    scraper = MatchScraper(fake_client_factory(three_matches), TRACKED_PUUID)
    games = await scraper.scrape_recent_matches(20)

    overview = scraper.get_jungle_stats(games)

    assert overview.total_games == 2
    assert overview.wins == 1
    assert overview.recent_form == "LW"
    assert scraper.get_jungle_stats([]) is None

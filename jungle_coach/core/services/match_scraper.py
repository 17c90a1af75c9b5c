"""Match scraper: recent ranked-solo jungle games of the tracked player.

Flow: match ids (over-fetched 2x to compensate for the role filter) ->
batched match details -> per match: parse, locate the tracked participant,
classify the role, project into a ``NormalizedGame`` -> sort by game date
descending -> truncate.

A bad match never aborts the batch; it is logged and skipped. Failure to get
the match list at all yields ``ScrapeStatus.UNAVAILABLE``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import ValidationError

from jungle_coach.contracts import (
    GameResult,
    NormalizedGame,
    Participant,
    PerformanceOverview,
    Queue,
    RawMatch,
    ScrapeResult,
    ScrapeStatus,
)
from jungle_coach.contracts.game import epoch_ms_to_datetime
from jungle_coach.core import analytics
from jungle_coach.core.metrics import mark_scraped
from jungle_coach.core.observability import trace_critical
from jungle_coach.core.ports import MatchAPIPort
from jungle_coach.core.roles import RoleClassifierChain

logger = logging.getLogger(__name__)

MAX_MATCH_IDS_PER_REQUEST = 100


class _ParseOutcome(str, Enum):
    JUNGLE = "jungle"
    FILTERED = "filtered"
    SKIPPED = "skipped"


def _match_id_of(payload: Any) -> str:
    metadata = payload.get("metadata") if isinstance(payload, dict) else None
    if isinstance(metadata, dict) and metadata.get("matchId"):
        return str(metadata["matchId"])
    return "<unknown>"


def normalize_game(match: RawMatch, participant: Participant) -> NormalizedGame:
    """Project one participant of a match into the canonical game record."""
    return NormalizedGame(
        match_id=match.match_id,
        champion=participant.champion_name,
        result=GameResult.WIN if participant.win else GameResult.LOSS,
        kills=participant.kills,
        deaths=participant.deaths,
        assists=participant.assists,
        jungle_cs=participant.neutral_minions_killed,
        total_cs=participant.total_minions_killed + participant.neutral_minions_killed,
        vision_score=participant.vision_score,
        objectives_damage=participant.damage_dealt_to_objectives,
        wards_placed=participant.wards_placed,
        wards_killed=participant.wards_killed,
        gold_earned=participant.gold_earned,
        game_date=epoch_ms_to_datetime(match.info.game_creation),
        game_duration_ms=match.duration_ms,
        queue_id=match.info.queue_id,
        game_version=match.info.game_version,
    )


class MatchScraper:
    """Fetches and normalizes jungle games for one resolved player."""

    def __init__(
        self,
        client: MatchAPIPort,
        puuid: str,
        role_classifier: RoleClassifierChain | None = None,
    ) -> None:
        self.client = client
        self.puuid = puuid
        self.role_classifier = role_classifier or RoleClassifierChain()

    @classmethod
    async def for_riot_id(
        cls,
        client: MatchAPIPort,
        game_name: str,
        tag_line: str,
        role_classifier: RoleClassifierChain | None = None,
    ) -> MatchScraper | None:
        """Resolve ``gameName#tagLine`` once and bind the scraper to that PUUID."""
        account = await client.get_account_by_riot_id(game_name, tag_line)
        if not account or not account.get("puuid"):
            logger.error(f"Could not find account {game_name}#{tag_line}")
            return None

        logger.info(f"Found account {game_name}#{tag_line}")
        return cls(client, account["puuid"], role_classifier)

    def _parse(self, payload: Any) -> tuple[_ParseOutcome, NormalizedGame | None]:
        match_id = _match_id_of(payload)
        try:
            match = RawMatch.model_validate(payload)
            participant = match.find_participant(self.puuid)
            if participant is None:
                logger.warning(f"Participant not found in match {match_id}")
                return _ParseOutcome.SKIPPED, None

            if not self.role_classifier.classify(participant):
                return _ParseOutcome.FILTERED, None

            game = normalize_game(match, participant)
        except ValidationError as e:
            logger.error(f"Invalid match payload {match_id}: {e.error_count()} errors")
            return _ParseOutcome.SKIPPED, None
        except Exception as e:
            # one unreadable match never aborts the batch
            logger.error(f"Error parsing match {match_id}: {type(e).__name__}: {e}")
            return _ParseOutcome.SKIPPED, None

        logger.debug(f"Parsed jungle game: {game.champion} {game.kda} {game.result.value}")
        return _ParseOutcome.JUNGLE, game

    def parse_jungle_game(self, payload: dict[str, Any]) -> NormalizedGame | None:
        return self._parse(payload)[1]

    @trace_critical
    async def fetch_recent(self, count: int = 20) -> ScrapeResult:
        """Scrape recent jungle games, reporting why the result may be empty."""
        try:
            match_ids = await self.client.get_match_ids(
                self.puuid,
                queue=Queue.RANKED_SOLO_5x5.value,
                count=min(count * 2, MAX_MATCH_IDS_PER_REQUEST),
            )
        except Exception as e:
            logger.error(f"Error fetching match history: {e}")
            return ScrapeResult.unavailable(f"match history lookup failed: {e}")

        if not match_ids:
            logger.warning("No match history found")
            return ScrapeResult.unavailable("no match history found")

        try:
            payloads = await self.client.get_matches(match_ids)
        except Exception as e:
            logger.error(f"Error fetching match details: {e}")
            return ScrapeResult.unavailable(f"match detail fetch failed: {e}")

        games: dict[str, NormalizedGame] = {}
        skipped = filtered = fetched = 0
        for payload in payloads:
            if payload is None:
                skipped += 1
                mark_scraped(_ParseOutcome.SKIPPED.value)
                continue
            fetched += 1
            outcome, game = self._parse(payload)
            mark_scraped(outcome.value)
            if outcome is _ParseOutcome.FILTERED:
                filtered += 1
            elif game is None:
                skipped += 1
            else:
                games.setdefault(game.match_id, game)

        ordered = sorted(games.values(), key=lambda g: g.game_date, reverse=True)[:count]
        logger.info(f"Found {len(games)} jungle games out of {fetched} matches")

        if fetched == 0:
            return ScrapeResult(
                status=ScrapeStatus.UNAVAILABLE,
                matches_skipped=skipped,
                error="no match details could be fetched",
            )

        return ScrapeResult(
            status=ScrapeStatus.OK if ordered else ScrapeStatus.EMPTY,
            games=ordered,
            matches_fetched=fetched,
            matches_skipped=skipped,
            matches_filtered=filtered,
        )

    async def scrape_recent_matches(self, count: int = 20) -> list[NormalizedGame]:
        return (await self.fetch_recent(count)).games

    async def scrape_match(self, match_id: str) -> NormalizedGame | None:
        """Single match; ``None`` when missing, not a jungle game, or unreadable."""
        try:
            payload = await self.client.get_match(match_id)
        except Exception as e:
            logger.error(f"Error scraping match {match_id}: {e}")
            return None
        if payload is None:
            return None
        return self.parse_jungle_game(payload)

    def get_jungle_stats(self, games: list[NormalizedGame]) -> PerformanceOverview | None:
        if not games:
            return None
        return analytics.build_overview(games)

"""Mirror normalized games into the persistent store.

Idempotent on ``match_id``: a record is only created after an equality lookup
finds nothing. Per-record failures are collected in the ``SyncReport`` and
never abort the run.
"""

import logging

from pydantic import ValidationError

from jungle_coach.contracts import (
    NormalizedGame,
    PersistedGameRecord,
    RawMatch,
    SyncOutcome,
    SyncReport,
    SyncStatus,
)
from jungle_coach.contracts.game import epoch_ms_to_datetime
from jungle_coach.core.metrics import mark_sync
from jungle_coach.core.observability import trace_critical
from jungle_coach.core.ports import GameStorePort, MatchAPIPort

logger = logging.getLogger(__name__)


class GameSyncService:
    def __init__(self, store: GameStorePort, client: MatchAPIPort) -> None:
        self.store = store
        self.client = client

    async def list_existing(self) -> list[PersistedGameRecord]:
        return await self.store.list_existing()

    async def upsert_if_absent(self, game: NormalizedGame) -> SyncOutcome:
        """Create the record unless one with the same match id exists.

        Store errors propagate; ``sync_games`` turns them into outcomes.
        """
        existing = await self.store.find_by_match_id(game.match_id)
        if existing is not None:
            logger.info(f"Match {game.match_id} already exists, skipping")
            return SyncOutcome(
                match_id=game.match_id,
                status=SyncStatus.SKIPPED,
                detail="already exists",
                game_date=existing.game_date,
            )

        page_id = await self.store.create_game(game)
        return SyncOutcome(
            match_id=game.match_id,
            status=SyncStatus.CREATED,
            detail=page_id or None,
            game_date=game.game_date.date(),
        )

    async def sync_game(self, game: NormalizedGame) -> SyncOutcome:
        """``upsert_if_absent`` with store failures reported as an error outcome."""
        try:
            outcome = await self.upsert_if_absent(game)
        except Exception as e:
            logger.error(f"Failed to sync match {game.match_id}: {e}")
            outcome = SyncOutcome(match_id=game.match_id, status=SyncStatus.ERROR, detail=str(e))
        mark_sync("sync", outcome.status.value)
        return outcome

    @trace_critical
    async def sync_games(self, games: list[NormalizedGame]) -> SyncReport:
        report = SyncReport()
        for game in games:
            report.record(await self.sync_game(game))

        logger.info(
            f"Sync complete: {report.created} created, {report.skipped} skipped, "
            f"{report.errors} errors"
        )
        return report

    async def _backfill_one(self, record: PersistedGameRecord) -> SyncOutcome:
        if not record.match_id:
            return SyncOutcome(
                match_id=record.page_id, status=SyncStatus.SKIPPED, detail="missing match_id"
            )
        if record.game_date is not None:
            return SyncOutcome(
                match_id=record.match_id,
                status=SyncStatus.SKIPPED,
                detail="already has date",
                game_date=record.game_date,
            )

        try:
            payload = await self.client.get_match(record.match_id)
            if payload is None:
                return SyncOutcome(
                    match_id=record.match_id, status=SyncStatus.ERROR, detail="match not found"
                )
            match = RawMatch.model_validate(payload)
            game_day = epoch_ms_to_datetime(match.info.game_creation).date()
            await self.store.update_game_date(record.page_id, game_day.isoformat())
        except (ValidationError, ValueError) as e:
            logger.error(f"Unreadable match payload for {record.match_id}: {e}")
            return SyncOutcome(
                match_id=record.match_id, status=SyncStatus.ERROR, detail="unreadable match"
            )
        except Exception as e:
            logger.error(f"Error backfilling {record.match_id}: {e}")
            return SyncOutcome(match_id=record.match_id, status=SyncStatus.ERROR, detail=str(e))

        logger.info(f"Updated {record.match_id} with date {game_day}")
        return SyncOutcome(
            match_id=record.match_id, status=SyncStatus.UPDATED, game_date=game_day
        )

    @trace_critical
    async def backfill_missing_dates(self) -> SyncReport:
        """Patch only ``game_date`` on records that lack one."""
        report = SyncReport()
        for record in await self.store.list_existing():
            outcome = await self._backfill_one(record)
            mark_sync("backfill", outcome.status.value)
            report.record(outcome)

        logger.info(f"Date backfill complete: {report.updated} updated, {report.errors} errors")
        return report

"""
Persistence and synchronization contracts (Notion games database).
"""

from datetime import date
from enum import Enum

from pydantic import Field

from .common import TRACKED_ROLE, BaseContract


class PersistedGameRecord(BaseContract):
    """A game page as stored in the Notion games database."""

    page_id: str = Field(..., alias="pageId")
    match_id: str = Field("", alias="matchId")
    champion: str = "Unknown"
    result: str = ""
    kda: str = ""
    deaths: int = Field(0, ge=0)
    role: str = TRACKED_ROLE
    game_date: date | None = Field(None, alias="gameDate")
    duration_minutes: float | None = Field(None, alias="durationMinutes")
    analyzed: bool = False


class SyncStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


class SyncOutcome(BaseContract):
    match_id: str = Field(..., alias="matchId")
    status: SyncStatus
    detail: str | None = None
    game_date: date | None = Field(None, alias="gameDate")


class SyncReport(BaseContract):
    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    outcomes: list[SyncOutcome] = Field(default_factory=list)

    def record(self, outcome: SyncOutcome) -> None:
        self.outcomes.append(outcome)
        self.total += 1
        if outcome.status == SyncStatus.CREATED:
            self.created += 1
        elif outcome.status == SyncStatus.UPDATED:
            self.updated += 1
        elif outcome.status == SyncStatus.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1


class GameSession(BaseContract):
    """Active coaching session from the sessions database."""

    name: str
    focus_area: str = Field("", alias="focusArea")
    target_games: int = Field(0, alias="targetGames", ge=0)
    start_date: date | None = Field(None, alias="startDate")

"""
Scrape outcome contract.

``unavailable`` and ``empty`` are different conditions: the first means no
data could be fetched (configuration or connectivity), the second means the
fetch worked but no game passed the role filter.
"""

from enum import Enum

from pydantic import Field

from .common import BaseContract
from .game import NormalizedGame


class ScrapeStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"


class ScrapeResult(BaseContract):
    status: ScrapeStatus
    games: list[NormalizedGame] = Field(default_factory=list)
    matches_fetched: int = Field(0, alias="matchesFetched", ge=0)
    matches_skipped: int = Field(0, alias="matchesSkipped", ge=0)
    matches_filtered: int = Field(0, alias="matchesFiltered", ge=0)
    error: str | None = None

    @classmethod
    def unavailable(cls, error: str) -> "ScrapeResult":
        return cls(status=ScrapeStatus.UNAVAILABLE, error=error)

"""Port interfaces for hexagonal architecture.

These ports define the contracts between the core pipeline and external
adapters. Core services depend only on these abstractions so tests can pass
doubles for the cache, the Riot client and the Notion store.
"""

from abc import ABC, abstractmethod
from typing import Any

from jungle_coach.contracts import Alert, NormalizedGame, PersistedGameRecord


class CachePort(ABC):
    """Port for caching operations.

    Implementations never raise: failures degrade to a miss (``None``) or a
    ``False`` acknowledgement.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get value from cache."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Set value in cache with optional TTL (seconds)."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete value from cache."""

    @abstractmethod
    async def flush(self) -> bool:
        """Remove every entry."""

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class MatchAPIPort(ABC):
    """Port for the Riot match/account endpoints consumed by the pipeline."""

    @abstractmethod
    async def get_account_by_riot_id(self, game_name: str, tag_line: str) -> dict[str, Any] | None:
        """Resolve a Riot ID (gameName#tagLine) to an account payload."""

    @abstractmethod
    async def get_match_ids(
        self,
        puuid: str,
        *,
        queue: int | None = None,
        type: str | None = None,
        start: int | None = None,
        count: int | None = None,
    ) -> list[str] | None:
        """Get recent match IDs, most recent first."""

    @abstractmethod
    async def get_match(self, match_id: str) -> dict[str, Any] | None:
        """Get match details from Match-V5."""

    @abstractmethod
    async def get_matches(self, match_ids: list[str]) -> list[dict[str, Any] | None]:
        """Get several matches; result order matches ``match_ids``."""


class GameStorePort(ABC):
    """Port for the persisted game record set."""

    @abstractmethod
    async def list_existing(self) -> list[PersistedGameRecord]:
        """List persisted jungle game records."""

    @abstractmethod
    async def find_by_match_id(self, match_id: str) -> PersistedGameRecord | None:
        """Equality lookup on the match identifier."""

    @abstractmethod
    async def recent_records(self, limit: int) -> list[PersistedGameRecord]:
        """Newest records first by game date, at most ``limit``."""

    @abstractmethod
    async def create_game(self, game: NormalizedGame) -> str:
        """Create one record, returning its page id."""

    @abstractmethod
    async def update_game_date(self, page_id: str, game_day: str) -> None:
        """Patch only the date field of an existing record."""


class AlertPort(ABC):
    """Port for outbound coaching alerts."""

    @abstractmethod
    async def send(self, alert: Alert) -> bool:
        """Deliver one alert; returns False when delivery did not happen."""

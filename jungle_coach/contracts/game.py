"""
Normalized per-game record, the canonical unit of the analytics pipeline.
"""

import re
from datetime import UTC, datetime

from pydantic import Field, computed_field

from .common import TRACKED_ROLE, BaseContract, GameResult

_KDA_RE = re.compile(r"^\s*(\d+)?\s*/\s*(\d+)?\s*(?:/\s*(\d+)?\s*)?$")


def parse_kda(text: str | None) -> tuple[int, int, int]:
    """Parse a ``"K/D/A"`` display string (``"K/D"`` is accepted too).

    Missing or malformed components come back as 0; a string that does not
    look like slash-separated counts at all yields ``(0, 0, 0)``.
    """
    if not text:
        return 0, 0, 0
    match = _KDA_RE.match(text)
    if match is None:
        return 0, 0, 0
    kills, deaths, assists = (int(part) if part else 0 for part in match.groups())
    return kills, deaths, assists


def deaths_from_kda(text: str | None) -> int:
    return parse_kda(text)[1]


def format_kda(kills: int, deaths: int, assists: int) -> str:
    return f"{kills}/{deaths}/{assists}"


def epoch_ms_to_datetime(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=UTC)


class NormalizedGame(BaseContract):
    """One jungle game of the tracked player."""

    match_id: str = Field(..., alias="matchId", min_length=1)
    champion: str
    result: GameResult

    kills: int = Field(..., ge=0)
    deaths: int = Field(..., ge=0)
    assists: int = Field(..., ge=0)

    jungle_cs: int = Field(0, alias="jungleCS", ge=0)
    total_cs: int = Field(0, alias="totalCS", ge=0)
    vision_score: float = Field(0, alias="visionScore", ge=0)
    objectives_damage: float = Field(0, alias="objectivesDamage", ge=0)
    wards_placed: int = Field(0, alias="wardsPlaced", ge=0)
    wards_killed: int = Field(0, alias="wardsKilled", ge=0)
    gold_earned: float = Field(0, alias="goldEarned", ge=0)

    game_date: datetime = Field(..., alias="gameDate")
    game_duration_ms: int = Field(0, alias="gameDurationMs", ge=0)
    role: str = TRACKED_ROLE
    queue_id: int | None = Field(None, alias="queueId")
    game_version: str | None = Field(None, alias="gameVersion")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def kda(self) -> str:
        return format_kda(self.kills, self.deaths, self.assists)

    @property
    def is_win(self) -> bool:
        return self.result == GameResult.WIN

    @property
    def game_minutes(self) -> float:
        return self.game_duration_ms / 60000

    @property
    def kda_ratio(self) -> float:
        return (self.kills + self.assists) / max(self.deaths, 1)

    @property
    def game_day(self) -> str:
        """ISO calendar day (``YYYY-MM-DD``) in UTC."""
        return self.game_date.astimezone(UTC).date().isoformat()

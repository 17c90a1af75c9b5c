"""
Match-V5 payload contracts.

Only the fields the pipeline consumes are modelled. Every optional field has
an explicit default so that upstream schema drift degrades to zeros and empty
strings instead of validation failures.
"""

from typing import Any

from pydantic import Field, model_validator

from .common import SMITE_SPELL_ID, UpstreamPayload

# Below this value gameDuration is in seconds (match-v5 after patch 11.20);
# above it the legacy millisecond unit is assumed.
_SECONDS_DURATION_CEILING = 100_000


def _drop_nulls(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


class Participant(UpstreamPayload):
    """One player's stats within a match."""

    puuid: str = ""
    team_position: str = ""
    individual_position: str = ""
    lane: str = ""
    role: str = ""
    champion_name: str = "Unknown"
    win: bool = False

    kills: int = Field(0, ge=0)
    deaths: int = Field(0, ge=0)
    assists: int = Field(0, ge=0)

    total_minions_killed: int = Field(0, ge=0)
    neutral_minions_killed: int = Field(0, ge=0)
    damage_dealt_to_objectives: int = Field(0, ge=0)
    vision_score: int = Field(0, ge=0)
    wards_placed: int = Field(0, ge=0)
    wards_killed: int = Field(0, ge=0)
    gold_earned: int = Field(0, ge=0)

    summoner1_id: int = 0
    summoner2_id: int = 0

    @model_validator(mode="before")
    @classmethod
    def _defaults_for_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)

    @property
    def has_smite(self) -> bool:
        return SMITE_SPELL_ID in (self.summoner1_id, self.summoner2_id)

    @property
    def has_structured_role(self) -> bool:
        """Whether any upstream role/lane label is populated."""
        labels = (self.team_position, self.individual_position, self.lane)
        return any(label and label.upper() not in ("NONE", "INVALID", "") for label in labels)


class MatchMetadata(UpstreamPayload):
    match_id: str


class MatchInfo(UpstreamPayload):
    game_creation: int = Field(..., ge=0, description="Epoch milliseconds")
    game_duration: int = Field(0, ge=0)
    game_end_timestamp: int | None = None
    queue_id: int | None = None
    game_version: str | None = None
    participants: list[Participant] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _defaults_for_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class RawMatch(UpstreamPayload):
    """Upstream match payload (``GET /lol/match/v5/matches/{matchId}``)."""

    metadata: MatchMetadata
    info: MatchInfo

    @property
    def match_id(self) -> str:
        return self.metadata.match_id

    @property
    def duration_ms(self) -> int:
        duration = self.info.game_duration
        if self.info.game_end_timestamp is not None or duration < _SECONDS_DURATION_CEILING:
            return duration * 1000
        return duration

    def find_participant(self, puuid: str) -> Participant | None:
        for participant in self.info.participants:
            if participant.puuid == puuid:
                return participant
        return None

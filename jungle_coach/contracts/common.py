"""
Common data types and base models for Jungle Coach.
All models use Pydantic V2.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Queue(int, Enum):
    """Game queue types."""

    RANKED_SOLO_5x5 = 420
    RANKED_FLEX_SR = 440
    NORMAL_DRAFT_PICK = 400
    NORMAL_BLIND_PICK = 430
    ARAM = 450


class GameResult(str, Enum):
    WIN = "WIN"
    LOSS = "LOSS"


TRACKED_ROLE = "JUNGLE"

# Summoner spell id for Smite
SMITE_SPELL_ID = 11


class BaseContract(BaseModel):
    """Base model for all data contracts with common configuration."""

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=False,
        populate_by_name=True,
        extra="ignore",
    )


class UpstreamPayload(BaseModel):
    """Base for models parsed from Riot JSON.

    camelCase aliases, unknown fields ignored, immutable once parsed.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

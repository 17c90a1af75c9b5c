"""
Analytics output contracts: KPIs, coaching insights, champion and trend stats.
"""

from enum import Enum
from typing import Any

from pydantic import Field

from .common import BaseContract


class InsightType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


class InsightPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class InsightCategory(str, Enum):
    POSITIONING = "positioning"
    JUNGLE_EFFICIENCY = "jungle_efficiency"
    VISION = "vision"
    CHAMPION_MASTERY = "champion_mastery"
    OBJECTIVES = "objectives"
    FORM = "form"


class KPISet(BaseContract):
    """Aggregate KPIs over a slice of games. Percentages are on a 0-100 scale."""

    winrate: float = Field(0.0, ge=0, le=100)
    avg_deaths: float = Field(0.0, alias="avgDeaths", ge=0)
    protocol_compliance: float = Field(0.0, alias="protocolCompliance", ge=0, le=100)
    jungle_efficiency: float = Field(0.0, alias="jungleEfficiency", ge=0, le=100)
    objective_control: float = Field(0.0, alias="objectiveControl", ge=0, le=100)
    vision_dominance: float = Field(0.0, alias="visionDominance", ge=0, le=100)
    # Proxies from whole-game KDA and gold, not phase-level timeline data.
    early_game_impact_estimate: float = Field(0.0, alias="earlyGameImpactEstimate", ge=0, le=100)
    late_game_impact_estimate: float = Field(0.0, alias="lateGameImpactEstimate", ge=0, le=100)


class CoachingInsight(BaseContract):
    type: InsightType
    category: InsightCategory
    title: str
    message: str
    action: str
    priority: InsightPriority
    data: dict[str, Any] = Field(default_factory=dict)


class ChampionStats(BaseContract):
    champion: str
    games: int = Field(..., ge=1)
    wins: int = Field(..., ge=0)
    losses: int = Field(..., ge=0)
    winrate: float = Field(..., ge=0, le=100)
    avg_deaths: float = Field(..., alias="avgDeaths", ge=0)
    avg_kda: float = Field(..., alias="avgKDA", ge=0)
    avg_cs: float = Field(..., alias="avgCS", ge=0)
    avg_vision_score: float = Field(..., alias="avgVisionScore", ge=0)


class TrendBucket(KPISet):
    period: str


class FavoriteChampion(BaseContract):
    champion: str
    games: int
    winrate: float
    avg_deaths: float = Field(..., alias="avgDeaths")


class PerformanceOverview(BaseContract):
    total_games: int = Field(..., alias="totalGames")
    wins: int
    losses: int
    winrate: float
    avg_deaths: float = Field(..., alias="avgDeaths")
    avg_vision_score: float = Field(..., alias="avgVisionScore")
    avg_objectives_damage: float = Field(..., alias="avgObjectivesDamage")
    protocol_compliance: float = Field(..., alias="protocolCompliance")
    recent_form: str = Field(..., alias="recentForm")
    favorite_champions: list[FavoriteChampion] = Field(
        default_factory=list, alias="favoriteChampions"
    )

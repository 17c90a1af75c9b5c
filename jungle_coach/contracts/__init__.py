"""Contract models for data validation."""

from .alerts import Alert, AlertLevel
from .analytics import (
    ChampionStats,
    CoachingInsight,
    FavoriteChampion,
    InsightCategory,
    InsightPriority,
    InsightType,
    KPISet,
    PerformanceOverview,
    TrendBucket,
)
from .common import TRACKED_ROLE, GameResult, Queue
from .game import NormalizedGame, deaths_from_kda, format_kda, parse_kda
from .match import MatchInfo, MatchMetadata, Participant, RawMatch
from .persistence import GameSession, PersistedGameRecord, SyncOutcome, SyncReport, SyncStatus
from .scrape import ScrapeResult, ScrapeStatus

__all__ = [
    "Alert",
    "AlertLevel",
    "ChampionStats",
    "CoachingInsight",
    "FavoriteChampion",
    "GameResult",
    "GameSession",
    "InsightCategory",
    "InsightPriority",
    "InsightType",
    "KPISet",
    "MatchInfo",
    "MatchMetadata",
    "NormalizedGame",
    "Participant",
    "PerformanceOverview",
    "PersistedGameRecord",
    "Queue",
    "RawMatch",
    "ScrapeResult",
    "ScrapeStatus",
    "SyncOutcome",
    "SyncReport",
    "SyncStatus",
    "TRACKED_ROLE",
    "TrendBucket",
    "deaths_from_kda",
    "format_kda",
    "parse_kda",
]

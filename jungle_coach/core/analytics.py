"""Jungle analytics - pure domain functions with zero I/O.

KPIs, coaching insights, per-champion statistics and trend buckets over a
list of ``NormalizedGame``. Nothing here raises for an empty list: the
result is an all-zero ``KPISet`` or an empty list.

Normalization targets (100%):
- jungle efficiency: 4 jungle CS per minute
- vision dominance: 1.5 vision score per minute
- objective control: 5000 damage to objectives
- late game impact estimate: 12000 gold earned
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence

import numpy as np

from jungle_coach.contracts import (
    ChampionStats,
    CoachingInsight,
    FavoriteChampion,
    InsightCategory,
    InsightPriority,
    InsightType,
    KPISet,
    NormalizedGame,
    PerformanceOverview,
    TrendBucket,
)

logger = logging.getLogger(__name__)

PROTOCOL_DEATH_THRESHOLD = 5
TARGET_JUNGLE_CS_PER_MIN = 4.0
TARGET_VISION_PER_MIN = 1.5
TARGET_OBJECTIVE_DAMAGE = 5000.0
TARGET_GOLD = 12000.0
MAX_EARLY_GAME_SCORE = 5.0

RECENT_FORM_WINDOW = 5
MIN_GAMES_FOR_CHAMPION_RULES = 3
MIN_GAMES_FOR_FAVORITE = 2
FAVORITE_CHAMPIONS_LIMIT = 5
MIN_TREND_CHUNK = 5


def _pct(value: float) -> float:
    """Clamp to [0, 100] and round for display."""
    return round(min(max(value, 0.0), 100.0), 2)


def _mean(values: Iterable[float]) -> float:
    data = list(values)
    return float(np.mean(data)) if data else 0.0


def _per_minute(value: float, game: NormalizedGame) -> float:
    minutes = game.game_minutes
    return value / minutes if minutes > 0 else 0.0


# ============================================================================
# Per-game normalized values (0-1)
# ============================================================================


def jungle_efficiency_ratio(game: NormalizedGame) -> float:
    return min(_per_minute(game.jungle_cs, game) / TARGET_JUNGLE_CS_PER_MIN, 1.0)


def vision_ratio(game: NormalizedGame) -> float:
    return min(_per_minute(game.vision_score, game) / TARGET_VISION_PER_MIN, 1.0)


def objective_ratio(game: NormalizedGame) -> float:
    return min(game.objectives_damage / TARGET_OBJECTIVE_DAMAGE, 1.0)


def early_game_ratio(game: NormalizedGame) -> float:
    """Estimate from whole-game KDA with a bonus for few deaths."""
    death_factor = max(0, PROTOCOL_DEATH_THRESHOLD - game.deaths) / PROTOCOL_DEATH_THRESHOLD
    return min(game.kda_ratio * death_factor, MAX_EARLY_GAME_SCORE) / MAX_EARLY_GAME_SCORE


def late_game_ratio(game: NormalizedGame) -> float:
    """Estimate from gold earned."""
    return min(game.gold_earned / TARGET_GOLD, 1.0)


# ============================================================================
# KPIs
# ============================================================================


def calculate_winrate(games: Sequence[NormalizedGame]) -> float:
    if not games:
        return 0.0
    return _pct(sum(1 for g in games if g.is_win) / len(games) * 100)


def calculate_avg_deaths(games: Sequence[NormalizedGame]) -> float:
    if not games:
        return 0.0
    return round(sum(g.deaths for g in games) / len(games), 2)


def calculate_protocol_compliance(
    games: Sequence[NormalizedGame], threshold: int = PROTOCOL_DEATH_THRESHOLD
) -> float:
    """Share of games with deaths at or below the coaching threshold."""
    if not games:
        return 0.0
    return _pct(sum(1 for g in games if g.deaths <= threshold) / len(games) * 100)


def _average_ratio(games: Sequence[NormalizedGame], ratio: Callable[[NormalizedGame], float]) -> float:
    return _pct(_mean(ratio(g) for g in games) * 100)


def calculate_kpis(games: Sequence[NormalizedGame]) -> KPISet:
    if not games:
        return KPISet()

    return KPISet(
        winrate=calculate_winrate(games),
        avg_deaths=calculate_avg_deaths(games),
        protocol_compliance=calculate_protocol_compliance(games),
        jungle_efficiency=_average_ratio(games, jungle_efficiency_ratio),
        objective_control=_average_ratio(games, objective_ratio),
        vision_dominance=_average_ratio(games, vision_ratio),
        early_game_impact_estimate=_average_ratio(games, early_game_ratio),
        late_game_impact_estimate=_average_ratio(games, late_game_ratio),
    )


# ============================================================================
# Champion statistics
# ============================================================================


def analyze_champion_performance(games: Sequence[NormalizedGame]) -> list[ChampionStats]:
    """Per-champion stats, most played first, ties broken by winrate."""
    by_champion: dict[str, list[NormalizedGame]] = defaultdict(list)
    for game in games:
        by_champion[game.champion].append(game)

    stats = []
    for champion, champ_games in by_champion.items():
        wins = sum(1 for g in champ_games if g.is_win)
        played = len(champ_games)
        stats.append(
            ChampionStats(
                champion=champion,
                games=played,
                wins=wins,
                losses=played - wins,
                winrate=round(wins / played * 100, 2),
                avg_deaths=round(_mean(g.deaths for g in champ_games), 2),
                avg_kda=round(_mean(g.kda_ratio for g in champ_games), 2),
                avg_cs=round(_mean(g.total_cs for g in champ_games), 2),
                avg_vision_score=round(_mean(g.vision_score for g in champ_games), 2),
            )
        )

    return sorted(stats, key=lambda s: (-s.games, -s.winrate))


# ============================================================================
# Trends
# ============================================================================


def get_performance_trends(games: Sequence[NormalizedGame]) -> list[TrendBucket]:
    """Contiguous chunks in input order, each with its own KPIs."""
    total = len(games)
    if total == 0:
        return []

    chunk_size = max(MIN_TREND_CHUNK, total // 4)
    buckets = []
    for index, start in enumerate(range(0, total, chunk_size)):
        chunk = games[start : start + chunk_size]
        end = min((index + 1) * chunk_size, total)
        buckets.append(
            TrendBucket(
                period=f"Games {start + 1}-{end}",
                **calculate_kpis(chunk).model_dump(),
            )
        )
    return buckets


# ============================================================================
# Coaching insights (rule table)
# ============================================================================


def _death_control_rule(kpis: KPISet) -> list[CoachingInsight]:
    compliance = kpis.protocol_compliance
    if compliance < 50:
        return [
            CoachingInsight(
                type=InsightType.ERROR,
                category=InsightCategory.POSITIONING,
                title="Critical Death Control Issue",
                message=f"Only {compliance:.1f}% protocol compliance (≤{PROTOCOL_DEATH_THRESHOLD} deaths)",
                action="Focus on safer pathing, ward river brushes before ganks, avoid risky invades",
                priority=InsightPriority.HIGH,
                data={"currentCompliance": compliance, "target": 80},
            )
        ]
    if compliance < 70:
        return [
            CoachingInsight(
                type=InsightType.WARNING,
                category=InsightCategory.POSITIONING,
                title="Death Control Needs Improvement",
                message=f"{compliance:.1f}% protocol compliance - room for improvement",
                action="Review VODs of high-death games, identify risky patterns",
                priority=InsightPriority.MEDIUM,
                data={"currentCompliance": compliance, "target": 80},
            )
        ]
    return []


def _jungle_efficiency_rule(kpis: KPISet) -> list[CoachingInsight]:
    if kpis.jungle_efficiency >= 70:
        return []
    return [
        CoachingInsight(
            type=InsightType.WARNING,
            category=InsightCategory.JUNGLE_EFFICIENCY,
            title="Jungle Clear Efficiency Low",
            message=f"{kpis.jungle_efficiency:.1f}% efficiency - optimize your clear paths",
            action="Practice full clears, avoid wasted time between camps, use AOE abilities effectively",
            priority=InsightPriority.MEDIUM,
            data={"currentEfficiency": kpis.jungle_efficiency, "target": 85},
        )
    ]


def _vision_rule(kpis: KPISet) -> list[CoachingInsight]:
    if kpis.vision_dominance >= 60:
        return []
    return [
        CoachingInsight(
            type=InsightType.WARNING,
            category=InsightCategory.VISION,
            title="Vision Score Below Expectations",
            message=f"{kpis.vision_dominance:.1f}% vision effectiveness",
            action="Place more wards in river, clear enemy wards when ganking, buy control wards",
            priority=InsightPriority.MEDIUM,
            data={"currentVision": kpis.vision_dominance, "target": 75},
        )
    ]


def _best_champion_rule(champions: list[ChampionStats]) -> list[CoachingInsight]:
    if not champions:
        return []
    best = champions[0]
    if best.winrate > 70 and best.games >= MIN_GAMES_FOR_CHAMPION_RULES:
        return [
            CoachingInsight(
                type=InsightType.SUCCESS,
                category=InsightCategory.CHAMPION_MASTERY,
                title="Champion Strength Identified",
                message=f"{best.champion}: {best.winrate:.1f}% WR in {best.games} games",
                action=f"Continue playing {best.champion} for consistent LP gains",
                priority=InsightPriority.HIGH,
                data=best.model_dump(),
            )
        ]
    return []


def _struggling_champion_rule(champions: list[ChampionStats]) -> list[CoachingInsight]:
    return [
        CoachingInsight(
            type=InsightType.WARNING,
            category=InsightCategory.CHAMPION_MASTERY,
            title="Champion Performance Issue",
            message=f"{champ.champion}: {champ.winrate:.1f}% WR in {champ.games} games",
            action=f"Consider dropping {champ.champion} or practice in normals first",
            priority=InsightPriority.MEDIUM,
            data=champ.model_dump(),
        )
        for champ in champions
        if champ.winrate < 40 and champ.games >= MIN_GAMES_FOR_CHAMPION_RULES
    ]


def _recent_form_rule(games: Sequence[NormalizedGame]) -> list[CoachingInsight]:
    recent = list(games[:RECENT_FORM_WINDOW])
    if not recent:
        return []
    recent_wins = sum(1 for g in recent if g.is_win)
    if recent_wins > 1:
        return []
    return [
        CoachingInsight(
            type=InsightType.ERROR,
            category=InsightCategory.FORM,
            title="Poor Recent Form",
            message=f"Only {recent_wins}/{len(recent)} wins in recent games",
            action="Take a break, review fundamentals, consider switching champions",
            priority=InsightPriority.HIGH,
            data={"recentForm": recent_form(recent)},
        )
    ]


def _objective_rule(kpis: KPISet) -> list[CoachingInsight]:
    if kpis.objective_control >= 60:
        return []
    return [
        CoachingInsight(
            type=InsightType.WARNING,
            category=InsightCategory.OBJECTIVES,
            title="Low Objective Participation",
            message=f"{kpis.objective_control:.1f}% objective control",
            action="Focus on dragon/baron timing, coordinate with team, prioritize smite control",
            priority=InsightPriority.MEDIUM,
            data={"currentControl": kpis.objective_control, "target": 75},
        )
    ]


def evaluate_insight_rules(
    kpis: KPISet,
    champions: list[ChampionStats],
    games: Sequence[NormalizedGame],
) -> list[CoachingInsight]:
    """Run the fixed rule table; every rule is independent."""
    insights: list[CoachingInsight] = []
    insights += _death_control_rule(kpis)
    insights += _jungle_efficiency_rule(kpis)
    insights += _vision_rule(kpis)
    insights += _best_champion_rule(champions)
    insights += _struggling_champion_rule(champions)
    insights += _recent_form_rule(games)
    insights += _objective_rule(kpis)
    # stable: rule order is kept within a priority level
    return sorted(insights, key=lambda i: -i.priority.rank)


def generate_insights(games: Sequence[NormalizedGame]) -> list[CoachingInsight]:
    if not games:
        return []
    return evaluate_insight_rules(
        calculate_kpis(games), analyze_champion_performance(games), games
    )


# ============================================================================
# Overview
# ============================================================================


def recent_form(games: Sequence[NormalizedGame], window: int = RECENT_FORM_WINDOW) -> str:
    return "".join("W" if g.is_win else "L" for g in games[:window])


def favorite_champions(games: Sequence[NormalizedGame]) -> list[FavoriteChampion]:
    """Champions with at least two games, best winrate first, top five."""
    favorites = [
        FavoriteChampion(
            champion=s.champion, games=s.games, winrate=s.winrate, avg_deaths=s.avg_deaths
        )
        for s in analyze_champion_performance(games)
        if s.games >= MIN_GAMES_FOR_FAVORITE
    ]
    favorites.sort(key=lambda f: -f.winrate)
    return favorites[:FAVORITE_CHAMPIONS_LIMIT]


def build_overview(games: Sequence[NormalizedGame]) -> PerformanceOverview:
    wins = sum(1 for g in games if g.is_win)
    return PerformanceOverview(
        total_games=len(games),
        wins=wins,
        losses=len(games) - wins,
        winrate=calculate_winrate(games),
        avg_deaths=calculate_avg_deaths(games),
        avg_vision_score=round(_mean(g.vision_score for g in games), 2),
        avg_objectives_damage=round(_mean(g.objectives_damage for g in games), 2),
        protocol_compliance=calculate_protocol_compliance(games),
        recent_form=recent_form(games),
        favorite_champions=favorite_champions(games),
    )


class JungleAnalytics:
    """Facade over the pure functions, injectable where an object is expected."""

    def calculate_kpis(self, games: Sequence[NormalizedGame]) -> KPISet:
        return calculate_kpis(games)

    def generate_insights(self, games: Sequence[NormalizedGame]) -> list[CoachingInsight]:
        return generate_insights(games)

    def analyze_champion_performance(self, games: Sequence[NormalizedGame]) -> list[ChampionStats]:
        return analyze_champion_performance(games)

    def get_performance_trends(self, games: Sequence[NormalizedGame]) -> list[TrendBucket]:
        return get_performance_trends(games)

    def build_overview(self, games: Sequence[NormalizedGame]) -> PerformanceOverview:
        return build_overview(games)

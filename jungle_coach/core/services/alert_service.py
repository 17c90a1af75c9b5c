"""Coaching alert rules for a single finished game."""

import logging
from collections.abc import Iterable

from jungle_coach.contracts import Alert, AlertLevel, GameResult
from jungle_coach.core.ports import AlertPort

logger = logging.getLogger(__name__)

CRITICAL_DEATHS = 10
CLEAN_GAME_DEATHS = 3


def _is_win(result: str | GameResult | None) -> bool:
    value = result.value if isinstance(result, GameResult) else str(result or "")
    return value.upper() == GameResult.WIN.value


def evaluate_alerts(
    champion: str,
    deaths: int,
    result: str | GameResult | None,
    experimental_champions: Iterable[str] = ("Karthus", "Nocturne"),
    kda: str | None = None,
) -> list[Alert]:
    """Independent rules; zero or more alerts in rule order."""
    alerts: list[Alert] = []

    if deaths > CRITICAL_DEATHS:
        alerts.append(
            Alert(
                level=AlertLevel.CRITICAL,
                message=f"🚨 CRITICAL: {deaths} deaths on {champion}! Protocol violation detected.",
                action="Review the replay, focus on positioning and map awareness",
            )
        )

    if champion in set(experimental_champions):
        alerts.append(
            Alert(
                level=AlertLevel.WARNING,
                message=f"⚠️ WARNING: Experimental pick {champion} detected.",
                action="Return to your core champion pool for consistency",
            )
        )

    if deaths <= CLEAN_GAME_DEATHS and _is_win(result):
        label = f"{champion} {kda}" if kda else champion
        alerts.append(
            Alert(
                level=AlertLevel.SUCCESS,
                message=f"✅ EXCELLENT: {label} WIN with perfect death control!",
                action="Maintain this level of positioning",
            )
        )

    return alerts


async def dispatch_alerts(sender: AlertPort, alerts: list[Alert]) -> int:
    """Deliver alerts one by one; returns how many were delivered."""
    delivered = 0
    for alert in alerts:
        if await sender.send(alert):
            delivered += 1
    if alerts:
        logger.info(f"Dispatched {delivered}/{len(alerts)} coaching alerts")
    return delivered

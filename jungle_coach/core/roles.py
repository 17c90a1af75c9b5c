"""Role classification strategies.

The Riot API has renamed its role fields across versions (``role``/``lane``
in match-v4, ``teamPosition``/``individualPosition`` in match-v5). Each
labelling scheme is one ``RoleClassifier``; ``RoleClassifierChain`` asks them
in order and the first positive answer wins. Supporting a new field name
means adding a strategy, not editing the existing ones.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from jungle_coach.contracts import TRACKED_ROLE, Participant

logger = logging.getLogger(__name__)

JUNGLE_CS_HEURISTIC_THRESHOLD = 50


class RoleClassifier(ABC):
    """Strategy: decide whether a participant played the tracked role."""

    name: str = "base"

    @abstractmethod
    def classify(self, participant: Participant) -> bool:
        """Return True when this strategy recognises the tracked role."""


class TeamPositionClassifier(RoleClassifier):
    """match-v5 ``teamPosition`` (primary, most reliable)."""

    name = "team_position"

    def __init__(self, role: str = TRACKED_ROLE) -> None:
        self.role = role

    def classify(self, participant: Participant) -> bool:
        return participant.team_position.upper() == self.role


class LegacyLaneClassifier(RoleClassifier):
    """``lane`` (match-v4 era) and ``individualPosition`` labels."""

    name = "legacy_lane"

    def __init__(self, role: str = TRACKED_ROLE) -> None:
        self.role = role

    def classify(self, participant: Participant) -> bool:
        return self.role in (participant.lane.upper(), participant.individual_position.upper())


class SmiteHeuristicClassifier(RoleClassifier):
    """Smite equipped and enough neutral monsters killed.

    Only used when the payload carries no structured role label at all, so it
    cannot override an explicit non-jungle position.
    """

    name = "smite_heuristic"

    def __init__(self, min_neutral_minions: int = JUNGLE_CS_HEURISTIC_THRESHOLD) -> None:
        self.min_neutral_minions = min_neutral_minions

    def classify(self, participant: Participant) -> bool:
        if participant.has_structured_role:
            return False
        return participant.has_smite and participant.neutral_minions_killed > self.min_neutral_minions


class RoleClassifierChain:
    """Ordered classifier strategies; first match wins."""

    def __init__(self, classifiers: Sequence[RoleClassifier] | None = None) -> None:
        self.classifiers: list[RoleClassifier] = list(
            classifiers
            if classifiers is not None
            else (TeamPositionClassifier(), LegacyLaneClassifier(), SmiteHeuristicClassifier())
        )

    def matching_strategy(self, participant: Participant) -> str | None:
        for classifier in self.classifiers:
            if classifier.classify(participant):
                return classifier.name
        return None

    def classify(self, participant: Participant) -> bool:
        strategy = self.matching_strategy(participant)
        if strategy == SmiteHeuristicClassifier.name:
            logger.info(f"Detected jungle role via smite + CS for {participant.champion_name}")
        return strategy is not None

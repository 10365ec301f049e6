# vpool_core/formulas/reputation.py
from dataclasses import dataclass
from typing import Iterable, List

from vpool_core.core.datatypes import (
    ACTIVE_REPUTATION_THRESHOLD,
    MAX_REPUTATION_SCORE,
    PerformanceRecord,
    PoolMember,
    ReputationTier,
)

# Tier lower bounds, inclusive. Checked from the top down.
EXCELLENT_THRESHOLD = 90
GOOD_THRESHOLD = 70
FAIR_THRESHOLD = 50


@dataclass(frozen=True)
class ReputationStatus:
    """Tier classification of a reputation score."""

    score: int
    tier: ReputationTier
    color: str
    can_validate: bool


def get_reputation_status(score: int) -> ReputationStatus:
    """
    Classify a reputation score into a tier.

    Args:
        score (int): Reputation score, 0-100.

    Returns:
        ReputationStatus: Score, tier, display color and whether the
        validator may validate.
    """
    if not 0 <= score <= MAX_REPUTATION_SCORE:
        raise ValueError(f"Reputation score must be within 0-{MAX_REPUTATION_SCORE}, got {score}")

    if score >= EXCELLENT_THRESHOLD:
        return ReputationStatus(score, ReputationTier.EXCELLENT, "green", True)
    elif score >= GOOD_THRESHOLD:
        return ReputationStatus(score, ReputationTier.GOOD, "blue", True)
    elif score >= FAIR_THRESHOLD:
        return ReputationStatus(score, ReputationTier.FAIR, "yellow", False)
    else:
        return ReputationStatus(score, ReputationTier.POOR, "red", False)


def score_performance(performance: PerformanceRecord) -> ReputationStatus:
    """
    Score a validator from its performance record.

    Args:
        performance (PerformanceRecord): Counters reported by the chain.

    Returns:
        ReputationStatus: Classification of the record's reputation score.
    """
    return get_reputation_status(performance.reputation_score)


def is_active_score(score: int) -> bool:
    """Pool membership is active from 70 upwards (independent of the tiers above)."""
    return score >= ACTIVE_REPUTATION_THRESHOLD


def rank_by_reputation(members: Iterable[PoolMember]) -> List[PoolMember]:
    """Members ordered by reputation score, highest first; ties by identity."""
    return sorted(members, key=lambda m: (-m.reputation_score, m.identity))

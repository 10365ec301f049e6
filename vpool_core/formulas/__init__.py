# vpool_core/formulas/__init__.py
from .incentive import estimate_era_rewards
from .reputation import (
    EXCELLENT_THRESHOLD,
    FAIR_THRESHOLD,
    GOOD_THRESHOLD,
    ReputationStatus,
    get_reputation_status,
    is_active_score,
    rank_by_reputation,
    score_performance,
)

__all__ = [
    "estimate_era_rewards",
    "get_reputation_status",
    "score_performance",
    "is_active_score",
    "rank_by_reputation",
    "ReputationStatus",
    "EXCELLENT_THRESHOLD",
    "GOOD_THRESHOLD",
    "FAIR_THRESHOLD",
]

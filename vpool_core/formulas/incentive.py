# vpool_core/formulas/incentive.py
from decimal import Decimal
from typing import Union

Amount = Union[int, float, str, Decimal]


def _to_decimal(value: Amount, name: str) -> Decimal:
    # Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    if isinstance(value, float):
        value = str(value)
    result = Decimal(value)
    if result < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return result


def estimate_era_rewards(
    era_points: Amount,
    total_era_points: Amount,
    total_rewards: Amount,
) -> Decimal:
    """
    Estimate a validator's share of the era rewards from its era points.

    Args:
        era_points: Points earned by the validator in the era.
        total_era_points: Points earned by all validators in the era.
        total_rewards: Total rewards distributed for the era.

    Returns:
        Decimal: era_points / total_era_points * total_rewards, or 0 when
        no points were earned in the era.
    """
    points = _to_decimal(era_points, "era_points")
    total_points = _to_decimal(total_era_points, "total_era_points")
    rewards = _to_decimal(total_rewards, "total_rewards")

    if total_points == 0:
        return Decimal(0)
    return points / total_points * rewards

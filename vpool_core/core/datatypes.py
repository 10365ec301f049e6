# vpool_core/core/datatypes.py
"""
Core data structures shared across the validator pool package.

Everything here is immutable: snapshots handed to readers are never
mutated after they are published.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple

# Membership is active from this reputation score upwards.
ACTIVE_REPUTATION_THRESHOLD = 70
MAX_REPUTATION_SCORE = 100


class PoolCategory(str, Enum):
    """Admission categories of the validator pool (values are the chain names)."""

    STAKE = "StakeValidator"
    PARLIAMENTARY = "ParliamentaryValidator"
    MERIT = "MeritValidator"

    @classmethod
    def from_chain(cls, value) -> "PoolCategory":
        """Parse a category as reported by the chain. Unknown values raise ValueError."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for category in cls:
                if category.value == value or category.name == value.upper():
                    return category
        raise ValueError(f"Unknown validator pool category: {value!r}")

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self][0]

    @property
    def label_kmr(self) -> str:
        return _CATEGORY_LABELS[self][1]

    @property
    def description(self) -> str:
        return _CATEGORY_LABELS[self][2]

    @property
    def requirements(self) -> Tuple[str, ...]:
        """Eligibility requirements a candidate must meet to join this category."""
        return _CATEGORY_REQUIREMENTS[self]


_CATEGORY_LABELS = {
    PoolCategory.STAKE: (
        "Stake Validator",
        "Validatorê Stake",
        "Economic commitment through token staking",
    ),
    PoolCategory.PARLIAMENTARY: (
        "Parliamentary Validator",
        "Validatorê Parlamentoyê",
        "Governance participation capability",
    ),
    PoolCategory.MERIT: (
        "Merit Validator",
        "Validatorê Şayisteyê",
        "Community recognition and engagement",
    ),
}

_CATEGORY_REQUIREMENTS = {
    PoolCategory.STAKE: (
        "Minimum stake amount (economic commitment)",
        "Trust score above threshold",
        "No slashing history",
    ),
    PoolCategory.PARLIAMENTARY: (
        "Parlementer Tiki (governance role)",
        "Active participation record",
    ),
    PoolCategory.MERIT: (
        "Special community Tikis",
        "Minimum referral count",
        "Community engagement metrics",
    ),
}


class ReputationTier(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


@dataclass(frozen=True)
class PerformanceRecord:
    """Block production counters of one validator, as last reported by the chain."""

    blocks_produced: int = 0
    blocks_missed: int = 0
    era_points: int = 0
    last_active_era: int = 0
    reputation_score: int = 0  # 0-100

    def __post_init__(self):
        for name in ("blocks_produced", "blocks_missed", "era_points", "last_active_era"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0 <= self.reputation_score <= MAX_REPUTATION_SCORE:
            raise ValueError(
                f"reputation_score must be within 0-{MAX_REPUTATION_SCORE}, got {self.reputation_score}"
            )

    @classmethod
    def empty(cls) -> "PerformanceRecord":
        """All-zero record used when the chain has no metrics for a member."""
        return cls()

    @property
    def production_rate(self) -> Optional[float]:
        """Share of assigned blocks actually produced, None before the first block."""
        total = self.blocks_produced + self.blocks_missed
        if total == 0:
            return None
        return self.blocks_produced / total


@dataclass(frozen=True)
class PoolMember:
    """A registered validator together with its category and performance."""

    identity: str
    category: PoolCategory
    performance: PerformanceRecord = field(default_factory=PerformanceRecord.empty)

    @property
    def is_active(self) -> bool:
        return self.performance.reputation_score >= ACTIVE_REPUTATION_THRESHOLD

    @property
    def reputation_score(self) -> int:
        return self.performance.reputation_score


@dataclass(frozen=True)
class EraState:
    """Era timing as seen from the latest chain height."""

    era_index: int
    era_length: int
    era_start_block: int
    current_block: int

    def __post_init__(self):
        for name in ("era_index", "era_length", "era_start_block", "current_block"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.era_start_block > self.current_block:
            raise ValueError(
                f"era_start_block {self.era_start_block} is ahead of current block {self.current_block}"
            )

    @property
    def next_era_block(self) -> int:
        return self.era_start_block + self.era_length

    @property
    def blocks_until_new_era(self) -> int:
        # Never negative, even when the chain has not rotated yet.
        return max(0, self.next_era_block - self.current_block)

    @property
    def rotation_due(self) -> bool:
        return self.current_block >= self.next_era_block


@dataclass(frozen=True)
class ValidatorSet:
    """The validators selected for one era, grouped by category."""

    era_index: int = 0
    stake_validators: FrozenSet[str] = frozenset()
    parliamentary_validators: FrozenSet[str] = frozenset()
    merit_validators: FrozenSet[str] = frozenset()

    def __post_init__(self):
        # Accept any iterable but store frozensets.
        for name in ("stake_validators", "parliamentary_validators", "merit_validators"):
            object.__setattr__(self, name, frozenset(getattr(self, name)))
        overlap = (
            (self.stake_validators & self.parliamentary_validators)
            | (self.stake_validators & self.merit_validators)
            | (self.parliamentary_validators & self.merit_validators)
        )
        if overlap:
            raise ValueError(
                f"Validator set for era {self.era_index} lists validators in more than one category: {sorted(overlap)}"
            )

    @classmethod
    def empty(cls) -> "ValidatorSet":
        return cls()

    def members_of(self, category: PoolCategory) -> FrozenSet[str]:
        return {
            PoolCategory.STAKE: self.stake_validators,
            PoolCategory.PARLIAMENTARY: self.parliamentary_validators,
            PoolCategory.MERIT: self.merit_validators,
        }[category]

    def all_validators(self) -> FrozenSet[str]:
        return self.stake_validators | self.parliamentary_validators | self.merit_validators

    def category_of(self, identity: str) -> Optional[PoolCategory]:
        for category in PoolCategory:
            if identity in self.members_of(category):
                return category
        return None

    @property
    def size(self) -> int:
        return len(self.stake_validators) + len(self.parliamentary_validators) + len(self.merit_validators)

    def __contains__(self, identity: object) -> bool:
        return identity in self.all_validators()

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.all_validators()))


@dataclass(frozen=True)
class PoolStats:
    """Pool-wide counters and era timing."""

    current_era: int
    pool_size: int
    era_length: int
    era_start_block: int
    current_block: int
    blocks_until_new_era: int

    @classmethod
    def from_era_state(cls, era_state: EraState, pool_size: int) -> "PoolStats":
        return cls(
            current_era=era_state.era_index,
            pool_size=pool_size,
            era_length=era_state.era_length,
            era_start_block=era_state.era_start_block,
            current_block=era_state.current_block,
            blocks_until_new_era=era_state.blocks_until_new_era,
        )


def members_in_category(members: Iterable[PoolMember], category: PoolCategory) -> List[PoolMember]:
    """Stable filter: keeps the relative order of `members`."""
    category = PoolCategory.from_chain(category)
    return [m for m in members if m.category is category]

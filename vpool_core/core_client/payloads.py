# vpool_core/core_client/payloads.py
"""
Decoding of raw validator pool storage values.

Chain storage comes back as camelCase JSON. Missing or null counters are
read as zero, the same way the pallet's JSON is coerced by front-ends.
"""
import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vpool_core.core.datatypes import (
    MAX_REPUTATION_SCORE,
    PerformanceRecord,
    PoolCategory,
    ValidatorSet,
)

logger = logging.getLogger(__name__)


def _zero_if_missing(value):
    return 0 if value is None else value


class PerformancePayload(BaseModel):
    """`validatorPool.performanceMetrics(account)` storage value."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    blocks_produced: int = Field(default=0, ge=0, alias="blocksProduced")
    blocks_missed: int = Field(default=0, ge=0, alias="blocksMissed")
    era_points: int = Field(default=0, ge=0, alias="eraPoints")
    last_active_era: int = Field(default=0, ge=0, alias="lastActiveEra")
    reputation_score: int = Field(default=0, ge=0, le=MAX_REPUTATION_SCORE, alias="reputationScore")

    @field_validator(
        "blocks_produced", "blocks_missed", "era_points", "last_active_era", "reputation_score", mode="before"
    )
    @classmethod
    def coerce_missing(cls, value):
        return _zero_if_missing(value)

    def to_record(self) -> PerformanceRecord:
        return PerformanceRecord(
            blocks_produced=self.blocks_produced,
            blocks_missed=self.blocks_missed,
            era_points=self.era_points,
            last_active_era=self.last_active_era,
            reputation_score=self.reputation_score,
        )


class ValidatorSetPayload(BaseModel):
    """`validatorPool.currentValidatorSet()` storage value."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    era_index: int = Field(default=0, ge=0, alias="eraIndex")
    stake_validators: List[str] = Field(default_factory=list, alias="stakeValidators")
    parliamentary_validators: List[str] = Field(default_factory=list, alias="parliamentaryValidators")
    merit_validators: List[str] = Field(default_factory=list, alias="meritValidators")

    @field_validator("era_index", mode="before")
    @classmethod
    def coerce_era(cls, value):
        return _zero_if_missing(value)

    @field_validator("stake_validators", "parliamentary_validators", "merit_validators", mode="before")
    @classmethod
    def coerce_list(cls, value):
        return [] if value is None else value

    def to_validator_set(self) -> ValidatorSet:
        return ValidatorSet(
            era_index=self.era_index,
            stake_validators=self.stake_validators,
            parliamentary_validators=self.parliamentary_validators,
            merit_validators=self.merit_validators,
        )


def decode_performance(raw: Union[None, PerformanceRecord, Mapping[str, Any]]) -> Optional[PerformanceRecord]:
    """
    Decode a performance storage value.

    Args:
        raw: Already-decoded record, raw JSON mapping, or None.

    Returns:
        Optional[PerformanceRecord]: None when the chain holds no metrics.
        Malformed values raise ValueError.
    """
    if raw is None:
        return None
    if isinstance(raw, PerformanceRecord):
        return raw
    try:
        return PerformancePayload.model_validate(raw).to_record()
    except ValidationError as e:
        logger.warning(f"Malformed performance payload: {raw!r}")
        raise ValueError(f"Malformed performance payload: {e}") from e


def decode_validator_set(raw: Union[None, ValidatorSet, Mapping[str, Any]]) -> ValidatorSet:
    """Decode the current validator set. Absent or empty values give an empty set."""
    if raw is None:
        return ValidatorSet.empty()
    if isinstance(raw, ValidatorSet):
        return raw
    if not raw:
        return ValidatorSet.empty()
    try:
        return ValidatorSetPayload.model_validate(raw).to_validator_set()
    except ValidationError as e:
        logger.warning(f"Malformed validator set payload: {raw!r}")
        raise ValueError(f"Malformed validator set payload: {e}") from e


def decode_category(raw: Union[str, PoolCategory]) -> PoolCategory:
    """Decode a `poolMembers` storage value. Unknown categories raise ValueError."""
    return PoolCategory.from_chain(raw)


def decode_selection_history(raw: Optional[List[Any]]) -> List[int]:
    if not raw:
        return []
    return [int(era) for era in raw]

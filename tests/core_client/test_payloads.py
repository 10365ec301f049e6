# tests/core_client/test_payloads.py
import pytest

from vpool_core.core.datatypes import PerformanceRecord, PoolCategory, ValidatorSet
from vpool_core.core_client.payloads import (
    decode_category,
    decode_performance,
    decode_selection_history,
    decode_validator_set,
)


def test_decode_performance_camel_case():
    record = decode_performance(
        {"blocksProduced": 100, "blocksMissed": 5, "eraPoints": 950, "lastActiveEra": 3, "reputationScore": 92}
    )
    assert record == PerformanceRecord(
        blocks_produced=100, blocks_missed=5, era_points=950, last_active_era=3, reputation_score=92
    )


def test_decode_performance_missing_and_null_fields_are_zero():
    record = decode_performance({"blocksProduced": 7, "eraPoints": None})
    assert record == PerformanceRecord(blocks_produced=7)


def test_decode_performance_none_means_no_metrics():
    assert decode_performance(None) is None


def test_decode_performance_passes_records_through():
    record = PerformanceRecord(reputation_score=10)
    assert decode_performance(record) is record


@pytest.mark.parametrize("raw", [{"reputationScore": 101}, {"blocksMissed": -1}, {"eraPoints": "lots"}])
def test_decode_performance_rejects_malformed(raw):
    with pytest.raises(ValueError):
        decode_performance(raw)


@pytest.mark.parametrize("raw", [None, {}])
def test_decode_absent_validator_set_is_empty(raw):
    assert decode_validator_set(raw) == ValidatorSet.empty()


def test_decode_validator_set():
    validator_set = decode_validator_set(
        {"eraIndex": 12, "stakeValidators": ["a", "b"], "parliamentaryValidators": None, "meritValidators": ["c"]}
    )
    assert validator_set.era_index == 12
    assert validator_set.stake_validators == frozenset({"a", "b"})
    assert validator_set.parliamentary_validators == frozenset()
    assert validator_set.category_of("c") is PoolCategory.MERIT


def test_decode_validator_set_rejects_overlap():
    with pytest.raises(ValueError):
        decode_validator_set({"eraIndex": 1, "stakeValidators": ["a"], "meritValidators": ["a"]})


def test_decode_category():
    assert decode_category("ParliamentaryValidator") is PoolCategory.PARLIAMENTARY
    with pytest.raises(ValueError):
        decode_category("Unknown")


def test_decode_selection_history():
    assert decode_selection_history(None) == []
    assert decode_selection_history([1, "2", 3]) == [1, 2, 3]

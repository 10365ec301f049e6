# tests/consensus/test_era_clock.py
import pytest

from vpool_core.consensus.era_clock import BlockTimeEstimate, EraClock, compute_era_state, get_era_summary


def test_countdown_inside_era():
    state = compute_era_state(current_era=7, era_length=100, era_start_block=1000, current_height=1050)
    assert state.blocks_until_new_era == 50
    assert state.next_era_block == 1100
    assert state.rotation_due is False


def test_countdown_floors_at_zero_after_boundary():
    state = compute_era_state(current_era=7, era_length=100, era_start_block=1000, current_height=1150)
    assert state.blocks_until_new_era == 0
    assert state.rotation_due is True


@pytest.mark.parametrize("height", [1000, 1099, 1100, 1101, 10**9])
def test_countdown_never_negative(height):
    state = compute_era_state(1, 100, 1000, height)
    assert state.blocks_until_new_era >= 0


def test_boundary_block_counts_as_crossed():
    assert compute_era_state(1, 100, 1000, 1100).rotation_due is True
    assert compute_era_state(1, 100, 1000, 1099).rotation_due is False


@pytest.mark.parametrize(
    "args",
    [(-1, 100, 0, 0), (0, -1, 0, 0), (0, 100, 50, 10)],
)
def test_invalid_inputs_rejected(args):
    with pytest.raises(ValueError):
        compute_era_state(*args)


def test_blocks_to_time_uses_six_second_blocks():
    clock = EraClock(block_time_seconds=6)
    # 14400 blocks * 6s = 1 day
    assert clock.blocks_to_time(14400) == BlockTimeEstimate(days=1, hours=0, minutes=0)
    # 650 blocks * 6s = 3900s = 1h 5m
    assert clock.blocks_to_time(650) == BlockTimeEstimate(days=0, hours=1, minutes=5)
    assert clock.blocks_to_time(5) == BlockTimeEstimate(days=0, hours=0, minutes=0)


def test_block_time_estimate_str():
    assert str(BlockTimeEstimate(1, 2, 3)) == "1d 2h 3m"
    assert str(BlockTimeEstimate(0, 2, 3)) == "2h 3m"
    assert str(BlockTimeEstimate(0, 0, 3)) == "3m"


def test_invalid_block_time_rejected():
    with pytest.raises(ValueError):
        EraClock(block_time_seconds=0)
    with pytest.raises(ValueError):
        EraClock(6).blocks_to_time(-1)


def test_has_rotated():
    clock = EraClock(6)
    before = compute_era_state(3, 100, 1000, 1050)
    same_era = compute_era_state(3, 100, 1000, 1060)
    next_era = compute_era_state(4, 100, 1100, 1101)
    overdue = compute_era_state(3, 100, 1000, 1100)

    assert clock.has_rotated(None, before) is False
    assert clock.has_rotated(before, same_era) is False
    assert clock.has_rotated(before, next_era) is True
    assert clock.has_rotated(before, overdue) is True


def test_era_summary():
    state = compute_era_state(3, 100, 1000, 1050)
    summary = get_era_summary(state, block_time_seconds=6)

    assert summary["era_index"] == 3
    assert summary["blocks_until_new_era"] == 50
    assert summary["era_progress"] == pytest.approx(0.5)
    assert summary["estimated_seconds_remaining"] == 300
    assert summary["estimated_time_remaining"] == "5m"


def test_log_era_status(caplog):
    clock = EraClock(6)
    with caplog.at_level("INFO", logger="vpool_core.consensus.era_clock"):
        clock.log_era_status(compute_era_state(3, 100, 1000, 1150))
    assert "waiting for the chain to rotate" in caplog.text

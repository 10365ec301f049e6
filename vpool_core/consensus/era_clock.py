"""
Era Clock for the validator pool

Turns the chain's era configuration and current height into an EraState
and answers timing questions about the next validator set rotation.

Rotation is decided by the chain. Everything computed here is advisory:
a crossed boundary only tells the caller that a re-poll is worthwhile.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from vpool_core.config.settings import settings
from vpool_core.core.datatypes import EraState

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


def compute_era_state(
    current_era: int, era_length: int, era_start_block: int, current_height: int
) -> EraState:
    """
    Build the era state seen at `current_height`.

    Args:
        current_era: Era index reported by the chain.
        era_length: Era length in blocks.
        era_start_block: Height at which the current era started.
        current_height: Latest block height.

    Returns:
        EraState: Validated era timing. Raises ValueError on negative
        inputs or when the era starts after the current height.
    """
    return EraState(
        era_index=int(current_era),
        era_length=int(era_length),
        era_start_block=int(era_start_block),
        current_block=int(current_height),
    )


@dataclass(frozen=True)
class BlockTimeEstimate:
    """Wall-clock approximation of a number of blocks."""

    days: int
    hours: int
    minutes: int

    @property
    def total_seconds(self) -> int:
        return self.days * SECONDS_PER_DAY + self.hours * SECONDS_PER_HOUR + self.minutes * SECONDS_PER_MINUTE

    def __str__(self) -> str:
        if self.days:
            return f"{self.days}d {self.hours}h {self.minutes}m"
        if self.hours:
            return f"{self.hours}h {self.minutes}m"
        return f"{self.minutes}m"


class EraClock:
    """
    Era timing helper.

    Holds the target block time used to convert block counts into
    durations. All methods are pure with respect to the EraState passed in.
    """

    def __init__(self, block_time_seconds: Optional[int] = None):
        """
        Args:
            block_time_seconds: Target block time (uses settings if None)
        """
        block_time = block_time_seconds if block_time_seconds is not None else settings.BLOCK_TIME_SECONDS
        if block_time <= 0:
            raise ValueError(f"block_time_seconds must be positive, got {block_time}")
        self.block_time_seconds = block_time
        logger.debug(f"🌐 Era clock initialized with {self.block_time_seconds}s blocks")

    def blocks_to_time(self, blocks: int) -> BlockTimeEstimate:
        """Approximate duration of `blocks` blocks, truncated to whole minutes."""
        if blocks < 0:
            raise ValueError(f"blocks must be non-negative, got {blocks}")
        seconds = blocks * self.block_time_seconds
        days, remainder = divmod(seconds, SECONDS_PER_DAY)
        hours, remainder = divmod(remainder, SECONDS_PER_HOUR)
        minutes = remainder // SECONDS_PER_MINUTE
        return BlockTimeEstimate(days=int(days), hours=int(hours), minutes=int(minutes))

    def time_until_new_era(self, state: EraState) -> BlockTimeEstimate:
        return self.blocks_to_time(state.blocks_until_new_era)

    def has_rotated(self, previous: Optional[EraState], current: EraState) -> bool:
        """
        Whether a rotation happened between two observations.

        True when the era index advanced, or when the current observation
        is already past its own boundary (chain rotation pending).
        """
        if current.rotation_due:
            return True
        if previous is None:
            return False
        return current.era_index > previous.era_index

    def get_era_summary(self, state: EraState) -> Dict[str, Any]:
        """
        Get a summary of the era timing.

        Returns:
            Dict with era index, boundaries, countdown and its estimated duration
        """
        remaining = self.time_until_new_era(state)
        elapsed = state.current_block - state.era_start_block
        progress = min(1.0, elapsed / state.era_length) if state.era_length else 1.0
        return {
            "era_index": state.era_index,
            "era_length": state.era_length,
            "era_start_block": state.era_start_block,
            "current_block": state.current_block,
            "next_era_block": state.next_era_block,
            "blocks_until_new_era": state.blocks_until_new_era,
            "era_progress": progress,
            "rotation_due": state.rotation_due,
            "estimated_seconds_remaining": remaining.total_seconds,
            "estimated_time_remaining": str(remaining),
        }

    def log_era_status(self, state: EraState):
        """Log the current era status"""
        summary = self.get_era_summary(state)
        logger.info(
            f"🌐 Era {summary['era_index']} | block {summary['current_block']} | "
            f"progress {summary['era_progress']:.0%}"
        )
        if summary["rotation_due"]:
            logger.info(
                f"🌐 Era boundary at block {summary['next_era_block']} passed, waiting for the chain to rotate"
            )
        else:
            logger.info(
                f"🌐 Next era in {summary['blocks_until_new_era']} blocks (~{summary['estimated_time_remaining']})"
            )


def get_era_summary(state: EraState, block_time_seconds: Optional[int] = None) -> Dict[str, Any]:
    """Convenience wrapper around EraClock.get_era_summary"""
    return EraClock(block_time_seconds).get_era_summary(state)

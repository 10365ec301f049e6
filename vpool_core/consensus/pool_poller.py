"""
Pool Poller

Background task that re-hydrates the pool registry on a fixed interval,
records each era's validator set into the selection history and reports
era rotations. A failed poll leaves the last good snapshot in place.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from vpool_core.config.settings import settings
from vpool_core.consensus.era_clock import EraClock
from vpool_core.core.exceptions import (
    CollaboratorError,
    CollaboratorErrorHandler,
    OutOfOrderEraError,
    PoolError,
)
from vpool_core.core_client.payloads import decode_selection_history
from vpool_core.metagraph.pool_registry import PoolRegistry, PoolSnapshot
from vpool_core.metagraph.selection_history import SelectionHistoryTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollOutcome:
    success: bool
    sequence: Optional[int]  # sequence of the snapshot being served after this poll
    era_index: Optional[int]
    rotated: bool = False
    selections_recorded: int = 0
    error: Optional[PoolError] = None


class PoolPoller:
    """
    Periodic hydration of a PoolRegistry.

    Attributes:
        registry (PoolRegistry): Registry to hydrate.
        tracker (Optional[SelectionHistoryTracker]): Receives each era's validator set.
        era_clock (EraClock): Used to detect and report era rotations.
        interval_seconds (float): Delay between the end of one poll and the next.
        sync_selection_history (bool): Also merge each member's chain-reported history.
    """

    def __init__(
        self,
        registry: PoolRegistry,
        tracker: Optional[SelectionHistoryTracker] = None,
        era_clock: Optional[EraClock] = None,
        interval_seconds: Optional[float] = None,
        sync_selection_history: Optional[bool] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.registry = registry
        self.tracker = tracker
        self.era_clock = era_clock or EraClock()
        self.interval_seconds = interval_seconds if interval_seconds is not None else settings.POOL_POLL_INTERVAL_SECONDS
        if self.interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {self.interval_seconds}")
        self.sync_selection_history = (
            sync_selection_history if sync_selection_history is not None else settings.POOL_SYNC_SELECTION_HISTORY
        )
        self._sleep = sleep

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.poll_count = 0
        self.last_outcome: Optional[PollOutcome] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def poll_once(self) -> PollOutcome:
        """Hydrate once and post-process the new snapshot. Never raises on pool errors."""
        previous_era = self.registry.era_state
        self.poll_count += 1

        try:
            snapshot = await self.registry.hydrate()
        except PoolError as e:
            served = self.registry.snapshot
            outcome = PollOutcome(
                success=False,
                sequence=served.sequence if served else None,
                era_index=served.era_state.era_index if served else None,
                error=e,
            )
            logger.warning(f"⚠️ Poll {self.poll_count} failed: {e}")
            self.last_outcome = outcome
            return outcome

        recorded = 0
        if self.tracker is not None:
            # Chain histories first, so the current era does not mask earlier ones.
            if self.sync_selection_history:
                recorded += await self._sync_histories(snapshot)
            recorded += self.tracker.record_validator_set(snapshot.validator_set)

        rotated = self.era_clock.has_rotated(previous_era, snapshot.era_state)
        if rotated:
            if previous_era is not None and snapshot.era_state.era_index > previous_era.era_index:
                logger.info(
                    f"🌐 Era rotated: era {previous_era.era_index} -> era {snapshot.era_state.era_index}"
                )
            self.era_clock.log_era_status(snapshot.era_state)

        outcome = PollOutcome(
            success=True,
            sequence=snapshot.sequence,
            era_index=snapshot.era_state.era_index,
            rotated=rotated,
            selections_recorded=recorded,
        )
        self.last_outcome = outcome
        return outcome

    async def _sync_histories(self, snapshot: PoolSnapshot) -> int:
        provider = self.registry.provider
        merged = 0
        for member in snapshot.members:
            try:
                with CollaboratorErrorHandler(f"selection_history_of({member.identity})"):
                    raw = await asyncio.wait_for(
                        provider.selection_history_of(member.identity),
                        timeout=self.registry.timeout_seconds,
                    )
                merged += self.tracker.load_history(member.identity, decode_selection_history(raw))
            except (CollaboratorError, OutOfOrderEraError) as e:
                logger.warning(f"Could not merge selection history of {member.identity}: {e}")
        return merged

    async def _poll_loop(self):
        try:
            while self._running:
                try:
                    await self.poll_once()
                except Exception as e:
                    logger.exception(f"Unexpected error in pool poll loop: {e}")
                await self._sleep(self.interval_seconds)
        except asyncio.CancelledError:
            logger.debug("Pool poll loop cancelled.")
            raise

    async def start(self):
        """Start polling in a background task. The first poll runs immediately."""
        if self._running:
            logger.warning("Pool poller already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(f"🔧 Pool poller started (interval {self.interval_seconds}s)")

    async def stop(self):
        """Stop polling and wait for the background task to finish."""
        if not self._running:
            return

        self._running = False
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Pool poller stopped.")

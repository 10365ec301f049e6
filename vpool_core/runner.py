import asyncio
import logging
from typing import Optional

from .config.config_loader import PoolConfig, get_config
from .consensus.era_clock import EraClock
from .consensus.pool_poller import PoolPoller
from .core_client.chain_provider import ChainStateProvider
from .core_client.pool_gateway import PoolCommandGateway
from .metagraph.pool_registry import PoolRegistry, RegistryHealth
from .metagraph.selection_history import SelectionHistoryTracker
from .monitoring.metrics import MetricsManager, get_metrics_manager

logger = logging.getLogger(__name__)


class PoolRunner:
    """
    Wires the validator pool components around one chain state provider and
    runs the periodic poll.

    Attributes:
        config (PoolConfig): Polling, chain and monitoring configuration.
        registry (PoolRegistry): Snapshot-based read surface.
        tracker (SelectionHistoryTracker): Per-validator selection history.
        era_clock (EraClock): Era timing helper.
        gateway (PoolCommandGateway): Write intent surface.
        poller (PoolPoller): Background hydration task.
    """

    def __init__(
        self,
        provider: ChainStateProvider,
        config: Optional[PoolConfig] = None,
        metrics: Optional[MetricsManager] = None,
    ):
        self.provider = provider
        self.config = config or get_config()
        if not self.config.validate_config():
            logger.warning("Runner: pool configuration has inconsistent values, continuing anyway.")

        # The default manager is process-wide; the config switch only applies to it
        # and an injected manager keeps its own setting.
        if metrics is None:
            metrics = get_metrics_manager()
            metrics.enabled = self.config.monitoring.metrics_enabled
        self.metrics = metrics

        polling = self.config.polling
        self.registry = PoolRegistry(
            provider,
            timeout_seconds=polling.timeout_seconds,
            max_snapshot_age_seconds=polling.max_snapshot_age_seconds,
            metrics=self.metrics,
        )
        self.tracker = SelectionHistoryTracker(metrics=self.metrics)
        self.era_clock = EraClock(self.config.chain.block_time_seconds)
        self.gateway = PoolCommandGateway(self.registry, timeout_seconds=polling.timeout_seconds, metrics=self.metrics)
        self.poller = PoolPoller(
            self.registry,
            tracker=self.tracker,
            era_clock=self.era_clock,
            interval_seconds=polling.interval_seconds,
            sync_selection_history=polling.sync_selection_history,
        )

    async def start(self, wait_until_ready: bool = False, ready_timeout: Optional[float] = None):
        """
        Start the background poll.

        Args:
            wait_until_ready: Block until the first snapshot is published.
            ready_timeout: Give up waiting after this many seconds (asyncio.TimeoutError).
        """
        logger.info("Runner: starting validator pool poller...")
        await self.poller.start()
        if wait_until_ready:
            await self.wait_until_ready(ready_timeout)

    async def wait_until_ready(self, timeout: Optional[float] = None):
        """Wait for the first published snapshot (asyncio.TimeoutError after `timeout`)."""

        async def _ready():
            while not self.registry.is_ready:
                await asyncio.sleep(0.05)

        await asyncio.wait_for(_ready(), timeout=timeout)

    async def stop(self):
        logger.info("Runner: stopping validator pool poller...")
        await self.poller.stop()

    def health(self) -> RegistryHealth:
        return self.registry.health()

    async def __aenter__(self) -> "PoolRunner":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

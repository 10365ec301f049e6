"""
Validator pool core: membership, reputation and era tracking for a
three-category validator pool.
"""

__version__ = "0.1.0"

from .core.datatypes import (
    EraState,
    PerformanceRecord,
    PoolCategory,
    PoolMember,
    PoolStats,
    ValidatorSet,
)
from .metagraph.pool_registry import PoolRegistry, PoolSnapshot, SnapshotFreshness
from .metagraph.selection_history import SelectionHistoryTracker
from .core_client.pool_gateway import PoolCommandGateway
from .consensus.pool_poller import PoolPoller
from .runner import PoolRunner

__all__ = [
    "EraState",
    "PerformanceRecord",
    "PoolCategory",
    "PoolMember",
    "PoolStats",
    "ValidatorSet",
    "PoolRegistry",
    "PoolSnapshot",
    "SnapshotFreshness",
    "SelectionHistoryTracker",
    "PoolCommandGateway",
    "PoolPoller",
    "PoolRunner",
]

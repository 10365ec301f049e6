# vpool_core/metagraph/__init__.py

from .pool_registry import (
    PoolQueryResult,
    PoolRegistry,
    PoolSnapshot,
    RegistryHealth,
    SnapshotFreshness,
    build_snapshot,
)
from .selection_history import SelectionHistoryTracker

__all__ = [
    "PoolQueryResult",
    "PoolRegistry",
    "PoolSnapshot",
    "RegistryHealth",
    "SnapshotFreshness",
    "build_snapshot",
    "SelectionHistoryTracker",
]

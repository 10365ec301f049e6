# vpool_core/consensus/__init__.py
# PoolPoller depends on the metagraph package; import it from .pool_poller.
from .era_clock import BlockTimeEstimate, EraClock, compute_era_state, get_era_summary

__all__ = [
    "BlockTimeEstimate",
    "EraClock",
    "compute_era_state",
    "get_era_summary",
]

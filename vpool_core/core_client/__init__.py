"""
Chain client package for the validator pool.
The command gateway lives in `pool_gateway` and is imported from there.
"""

from .chain_provider import ChainStateProvider
from .memory_provider import InMemoryChainStateProvider
from .payloads import decode_category, decode_performance, decode_validator_set

__all__ = [
    "ChainStateProvider",
    "InMemoryChainStateProvider",
    "decode_category",
    "decode_performance",
    "decode_validator_set",
]

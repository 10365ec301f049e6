"""
Chain State Provider contract

Read and write surface the validator pool needs from the chain. Transport,
signing and confirmation tracking live behind this protocol.
"""

from typing import Any, Mapping, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from vpool_core.core.datatypes import PerformanceRecord, PoolCategory, ValidatorSet

# (identity, category). The category may be the raw chain string.
MemberPair = Tuple[str, Union[PoolCategory, str]]
RawPerformance = Union[None, PerformanceRecord, Mapping[str, Any]]
RawValidatorSet = Union[None, ValidatorSet, Mapping[str, Any]]


@runtime_checkable
class ChainStateProvider(Protocol):
    """
    Point-in-time reads of the validator pool storage and submission of
    write intents.

    Submissions return once the intent is handed to the chain. They return
    an optional receipt (e.g. extrinsic hash) and never wait for inclusion.
    """

    async def current_era(self) -> int:
        ...

    async def era_length(self) -> int:
        ...

    async def era_start_block(self) -> int:
        ...

    async def current_height(self) -> int:
        ...

    async def pool_members(self) -> Sequence[MemberPair]:
        ...

    async def performance_of(self, identity: str) -> RawPerformance:
        ...

    async def current_validator_set(self) -> RawValidatorSet:
        ...

    async def selection_history_of(self, identity: str) -> Sequence[int]:
        ...

    async def submit_join(self, identity: str, category: PoolCategory) -> Optional[str]:
        ...

    async def submit_leave(self, identity: str) -> Optional[str]:
        ...

    async def submit_recategorize(self, identity: str, category: PoolCategory) -> Optional[str]:
        ...

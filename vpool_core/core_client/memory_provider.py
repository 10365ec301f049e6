"""
In-memory Chain State Provider

Holds validator pool storage in process. Used for local runs and tests;
it can apply submitted intents on the next block and can be switched
unavailable to simulate an RPC outage.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from vpool_core.core.datatypes import PerformanceRecord, PoolCategory, ValidatorSet
from vpool_core.core_client.chain_provider import MemberPair, RawPerformance, RawValidatorSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmittedIntent:
    """A write intent as received by the provider."""

    kind: str
    identity: str
    category: Optional[PoolCategory]
    receipt: str


class InMemoryChainStateProvider:
    """Process-local stand-in for the validator pool storage."""

    def __init__(
        self,
        members: Optional[Iterable[MemberPair]] = None,
        performance: Optional[Mapping[str, RawPerformance]] = None,
        era_index: int = 0,
        era_length: int = 100,
        era_start_block: int = 0,
        current_height: int = 0,
        validator_set: RawValidatorSet = None,
        selection_history: Optional[Mapping[str, Sequence[int]]] = None,
        auto_apply: bool = False,
        latency: float = 0.0,
    ):
        # Insertion order is the chain's enumeration order.
        self._members: Dict[str, object] = {}
        for identity, category in members or ():
            self._members[identity] = category
        self._performance: Dict[str, RawPerformance] = dict(performance or {})
        self._selection_history: Dict[str, List[int]] = {
            identity: list(eras) for identity, eras in (selection_history or {}).items()
        }
        self.era_index = era_index
        self.era_length_blocks = era_length
        self.era_start = era_start_block
        self.height = current_height
        self.validator_set = validator_set
        self.auto_apply = auto_apply
        self.latency = latency
        self.available = True
        self.submitted: List[SubmittedIntent] = []
        self._pending: List[SubmittedIntent] = []

    # --- Simulation controls ---

    def set_member(self, identity: str, category, performance: RawPerformance = None):
        self._members[identity] = category
        if performance is not None:
            self._performance[identity] = performance

    def remove_member(self, identity: str):
        self._members.pop(identity, None)
        self._performance.pop(identity, None)

    def set_performance(self, identity: str, performance: RawPerformance):
        self._performance[identity] = performance

    def advance_blocks(self, count: int = 1):
        """Produce `count` blocks. Pending intents are applied on the first one."""
        if count <= 0:
            return
        self.height += count
        if self._pending:
            self._apply_pending()

    def rotate_era(self, validator_set: Optional[ValidatorSet] = None):
        """Start a new era at the current height and select `validator_set` for it."""
        self.era_index += 1
        self.era_start = self.height
        if validator_set is None:
            validator_set = self._select_all()
        self.validator_set = validator_set
        for identity in validator_set.all_validators():
            self._selection_history.setdefault(identity, []).append(self.era_index)
        logger.debug(f"In-memory chain rotated to era {self.era_index} with {validator_set.size} validators")

    def _select_all(self) -> ValidatorSet:
        grouped: Dict[PoolCategory, List[str]] = {category: [] for category in PoolCategory}
        for identity, category in self._members.items():
            grouped[PoolCategory.from_chain(category)].append(identity)
        return ValidatorSet(
            era_index=self.era_index,
            stake_validators=grouped[PoolCategory.STAKE],
            parliamentary_validators=grouped[PoolCategory.PARLIAMENTARY],
            merit_validators=grouped[PoolCategory.MERIT],
        )

    def _apply_pending(self):
        pending, self._pending = self._pending, []
        for intent in pending:
            if intent.kind == "leave":
                self.remove_member(intent.identity)
            else:
                self._members[intent.identity] = intent.category
            logger.debug(f"In-memory chain applied {intent.kind} for {intent.identity}")

    async def _call(self):
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.available:
            raise ConnectionError("chain state provider unavailable")

    # --- Reads ---

    async def current_era(self) -> int:
        await self._call()
        return self.era_index

    async def era_length(self) -> int:
        await self._call()
        return self.era_length_blocks

    async def era_start_block(self) -> int:
        await self._call()
        return self.era_start

    async def current_height(self) -> int:
        await self._call()
        return self.height

    async def pool_members(self) -> List[Tuple[str, object]]:
        await self._call()
        return list(self._members.items())

    async def performance_of(self, identity: str) -> RawPerformance:
        await self._call()
        return self._performance.get(identity)

    async def current_validator_set(self) -> RawValidatorSet:
        await self._call()
        return self.validator_set

    async def selection_history_of(self, identity: str) -> List[int]:
        await self._call()
        return list(self._selection_history.get(identity, ()))

    # --- Writes ---

    async def _submit(self, kind: str, identity: str, category: Optional[PoolCategory]) -> str:
        await self._call()
        intent = SubmittedIntent(kind=kind, identity=identity, category=category, receipt=f"0x{uuid.uuid4().hex}")
        self.submitted.append(intent)
        if self.auto_apply:
            self._pending.append(intent)
        logger.debug(f"In-memory chain accepted {kind} intent for {identity}")
        return intent.receipt

    async def submit_join(self, identity: str, category: PoolCategory) -> str:
        return await self._submit("join", identity, category)

    async def submit_leave(self, identity: str) -> str:
        return await self._submit("leave", identity, None)

    async def submit_recategorize(self, identity: str, category: PoolCategory) -> str:
        return await self._submit("recategorize", identity, category)

"""
Validator Pool Registry

Queryable view of every pool member, refreshed by hydrating from the chain
state provider. Each hydration builds a new immutable PoolSnapshot and
publishes it with a single reference assignment, so readers never lock and
never observe a partially updated member set. A failed hydration keeps the
previous snapshot and marks the registry stale until the next success.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Awaitable, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, TypeVar, Union

from vpool_core.config.settings import settings
from vpool_core.consensus.era_clock import compute_era_state
from vpool_core.core.datatypes import (
    EraState,
    PerformanceRecord,
    PoolCategory,
    PoolMember,
    PoolStats,
    ValidatorSet,
    members_in_category,
)
from vpool_core.core.exceptions import (
    CollaboratorErrorHandler,
    CollaboratorUnavailableError,
    PoolError,
    StaleSnapshotError,
)
from vpool_core.core_client.chain_provider import ChainStateProvider, MemberPair, RawPerformance
from vpool_core.core_client.payloads import decode_category, decode_performance, decode_validator_set
from vpool_core.monitoring.metrics import MetricsManager, get_metrics_manager

logger = logging.getLogger(__name__)

T = TypeVar("T")

PerformanceLookup = Union[Mapping[str, RawPerformance], Callable[[str], RawPerformance]]


class SnapshotFreshness(str, Enum):
    NOT_READY = "not_ready"  # never hydrated
    FRESH = "fresh"
    STALE = "stale"  # last hydration failed or snapshot exceeded its max age


@dataclass(frozen=True)
class PoolSnapshot:
    """Point-in-time materialization of the pool. Never mutated once built."""

    members: Tuple[PoolMember, ...]
    era_state: EraState
    validator_set: ValidatorSet
    sequence: int
    hydrated_at: float
    _index: Mapping[str, PoolMember] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "members", tuple(self.members))
        index: Dict[str, PoolMember] = {}
        for member in self.members:
            if member.identity in index:
                raise ValueError(f"Duplicate pool member {member.identity} in snapshot {self.sequence}")
            index[member.identity] = member
        object.__setattr__(self, "_index", MappingProxyType(index))

    def get(self, identity: str) -> Optional[PoolMember]:
        return self._index.get(identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._index

    def __len__(self) -> int:
        return len(self.members)

    def by_category(self, category: PoolCategory) -> List[PoolMember]:
        return members_in_category(self.members, category)

    def active_members(self) -> List[PoolMember]:
        return [m for m in self.members if m.is_active]

    def category_counts(self) -> Dict[PoolCategory, int]:
        counts = {category: 0 for category in PoolCategory}
        for member in self.members:
            counts[member.category] += 1
        return counts

    @property
    def stats(self) -> PoolStats:
        return PoolStats.from_era_state(self.era_state, len(self.members))


def build_snapshot(
    member_pairs: Iterable[MemberPair],
    performance_lookup: PerformanceLookup,
    era_state: EraState,
    validator_set: Optional[ValidatorSet] = None,
    sequence: int = 0,
    hydrated_at: Optional[float] = None,
) -> PoolSnapshot:
    """
    Build a snapshot from raw chain data.

    Args:
        member_pairs: (identity, category) pairs in chain enumeration order.
            Categories may be raw chain strings; unknown ones raise ValueError.
        performance_lookup: Mapping or callable from identity to a raw
            performance value. Missing data becomes an all-zero record.
        era_state: Era timing for the snapshot.
        validator_set: Current validator set, empty when None.
        sequence: Monotonic hydration counter.
        hydrated_at: Wall-clock timestamp, defaults to now.

    Returns:
        PoolSnapshot: Fully built snapshot. Nothing is published here.
    """
    if callable(performance_lookup):
        lookup = performance_lookup
    else:
        lookup = performance_lookup.get

    members = []
    for identity, raw_category in member_pairs:
        performance = decode_performance(lookup(identity)) or PerformanceRecord.empty()
        members.append(PoolMember(identity=identity, category=decode_category(raw_category), performance=performance))

    return PoolSnapshot(
        members=tuple(members),
        era_state=era_state,
        validator_set=validator_set if validator_set is not None else ValidatorSet.empty(),
        sequence=sequence,
        hydrated_at=hydrated_at if hydrated_at is not None else time.time(),
    )


@dataclass(frozen=True)
class PoolQueryResult:
    """Members returned by a listing query, with the freshness of their snapshot."""

    members: Tuple[PoolMember, ...]
    freshness: SnapshotFreshness
    error: Optional[PoolError] = None

    @property
    def is_ready(self) -> bool:
        return self.freshness is not SnapshotFreshness.NOT_READY

    @property
    def is_stale(self) -> bool:
        return self.freshness is SnapshotFreshness.STALE

    def identities(self) -> List[str]:
        return [m.identity for m in self.members]

    def __iter__(self) -> Iterator[PoolMember]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class RegistryHealth:
    freshness: SnapshotFreshness
    sequence: Optional[int]
    hydrated_at: Optional[float]
    consecutive_failures: int
    error: Optional[PoolError] = None
    age_seconds: Optional[float] = None


class PoolRegistry:
    """
    Holds the latest published PoolSnapshot and answers queries against it.

    Only `hydrate` writes, and hydrations are serialized. Every query reads
    the current snapshot reference once and answers from that object.
    """

    def __init__(
        self,
        provider: ChainStateProvider,
        timeout_seconds: Optional[float] = None,
        max_snapshot_age_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsManager] = None,
    ):
        self.provider = provider
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.POOL_COLLABORATOR_TIMEOUT_SECONDS
        )
        self.max_snapshot_age_seconds = (
            max_snapshot_age_seconds
            if max_snapshot_age_seconds is not None
            else settings.POOL_MAX_SNAPSHOT_AGE_SECONDS
        )
        self._clock = clock
        self._metrics = metrics or get_metrics_manager()

        self._snapshot: Optional[PoolSnapshot] = None
        self._sequence = 0
        self._hydrate_lock = asyncio.Lock()
        self._last_error: Optional[PoolError] = None
        self._consecutive_failures = 0

    # --- Hydration ---

    async def _read(self, operation: str, call: Awaitable[T]) -> T:
        with CollaboratorErrorHandler(operation):
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)

    @staticmethod
    async def _gather(*calls: Awaitable[T]) -> List[T]:
        # Let every call settle before raising so no task is left unretrieved.
        results = await asyncio.gather(*calls, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _fetch_snapshot(self, sequence: int) -> PoolSnapshot:
        era_index, era_length, era_start, height = await self._gather(
            self._read("current_era", self.provider.current_era()),
            self._read("era_length", self.provider.era_length()),
            self._read("era_start_block", self.provider.era_start_block()),
            self._read("current_height", self.provider.current_height()),
        )
        era_state = compute_era_state(era_index, era_length, era_start, height)

        pairs = list(await self._read("pool_members", self.provider.pool_members()))
        identities = [identity for identity, _ in pairs]
        performances = await self._gather(
            *(self._read(f"performance_of({identity})", self.provider.performance_of(identity)) for identity in identities)
        )
        validator_set = decode_validator_set(
            await self._read("current_validator_set", self.provider.current_validator_set())
        )

        return build_snapshot(
            pairs,
            dict(zip(identities, performances)),
            era_state,
            validator_set=validator_set,
            sequence=sequence,
            hydrated_at=self._clock(),
        )

    async def hydrate(self) -> PoolSnapshot:
        """
        Fetch a full snapshot from the provider and publish it.

        Returns:
            PoolSnapshot: The newly published snapshot.

        Raises:
            StaleSnapshotError: Hydration failed; the previous snapshot is still served.
            CollaboratorUnavailableError: Hydration failed and nothing was ever published.
        """
        async with self._hydrate_lock:
            sequence = self._sequence + 1
            started = time.perf_counter()
            try:
                snapshot = await self._fetch_snapshot(sequence)
            except (PoolError, ValueError, TypeError) as e:
                self._record_failure(e, time.perf_counter() - started)
                raise self._last_error from e

            # Single reference swap; readers see either the old or the new snapshot.
            self._snapshot = snapshot
            self._sequence = sequence
            self._last_error = None
            self._consecutive_failures = 0
            self._record_success(snapshot, time.perf_counter() - started)
            return snapshot

    def _record_failure(self, cause: Exception, duration: float):
        self._consecutive_failures += 1
        previous = self._snapshot
        if previous is not None:
            self._last_error = StaleSnapshotError(
                f"Hydration failed, serving snapshot {previous.sequence}: {cause}", previous.sequence
            )
            logger.warning(
                f"⚠️ Pool hydration failed ({self._consecutive_failures} in a row), "
                f"keeping snapshot {previous.sequence} from era {previous.era_state.era_index}: {cause}"
            )
        else:
            self._last_error = CollaboratorUnavailableError(f"Pool registry not hydrated yet: {cause}")
            logger.warning(f"⚠️ Pool hydration failed before any snapshot was published: {cause}")
        self._metrics.record_hydration(False, duration)

    def _record_success(self, snapshot: PoolSnapshot, duration: float):
        counts = snapshot.category_counts()
        active = len(snapshot.active_members())
        logger.info(
            f"🔧 Pool snapshot {snapshot.sequence} published: {len(snapshot)} members "
            f"({active} active) in era {snapshot.era_state.era_index}"
        )
        self._metrics.record_hydration(True, duration)
        self._metrics.update_pool_composition({c.value: n for c, n in counts.items()}, active)
        self._metrics.update_era(snapshot.era_state.era_index, snapshot.era_state.blocks_until_new_era)

    # --- Health ---

    def _freshness(self, snapshot: Optional[PoolSnapshot]) -> Tuple[SnapshotFreshness, Optional[PoolError]]:
        if snapshot is None:
            return SnapshotFreshness.NOT_READY, self._last_error
        if self._last_error is not None:
            return SnapshotFreshness.STALE, self._last_error
        if self.max_snapshot_age_seconds is not None:
            age = self._clock() - snapshot.hydrated_at
            if age > self.max_snapshot_age_seconds:
                return SnapshotFreshness.STALE, StaleSnapshotError(
                    f"Snapshot {snapshot.sequence} is {age:.1f}s old "
                    f"(max {self.max_snapshot_age_seconds}s)",
                    snapshot.sequence,
                )
        return SnapshotFreshness.FRESH, None

    def health(self) -> RegistryHealth:
        snapshot = self._snapshot
        freshness, error = self._freshness(snapshot)
        if snapshot is None:
            return RegistryHealth(freshness, None, None, self._consecutive_failures, error)
        return RegistryHealth(
            freshness=freshness,
            sequence=snapshot.sequence,
            hydrated_at=snapshot.hydrated_at,
            consecutive_failures=self._consecutive_failures,
            error=error,
            age_seconds=self._clock() - snapshot.hydrated_at,
        )

    @property
    def freshness(self) -> SnapshotFreshness:
        return self._freshness(self._snapshot)[0]

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    # --- Queries ---

    @property
    def snapshot(self) -> Optional[PoolSnapshot]:
        return self._snapshot

    def require_snapshot(self) -> PoolSnapshot:
        """Latest snapshot, or CollaboratorUnavailableError if none was ever published."""
        snapshot = self._snapshot
        if snapshot is None:
            raise self._last_error or CollaboratorUnavailableError("Pool registry not hydrated yet")
        return snapshot

    def _result(self, snapshot: Optional[PoolSnapshot], members: Iterable[PoolMember]) -> PoolQueryResult:
        freshness, error = self._freshness(snapshot)
        return PoolQueryResult(members=tuple(members), freshness=freshness, error=error)

    def all_members(self) -> PoolQueryResult:
        snapshot = self._snapshot
        return self._result(snapshot, snapshot.members if snapshot else ())

    def members_by_category(self, category: Union[PoolCategory, str]) -> PoolQueryResult:
        category = PoolCategory.from_chain(category)
        snapshot = self._snapshot
        return self._result(snapshot, snapshot.by_category(category) if snapshot else ())

    def active_members(self) -> PoolQueryResult:
        snapshot = self._snapshot
        return self._result(snapshot, snapshot.active_members() if snapshot else ())

    def get_member(self, identity: str) -> Optional[PoolMember]:
        snapshot = self._snapshot
        return snapshot.get(identity) if snapshot else None

    def category_of(self, identity: str) -> Optional[PoolCategory]:
        member = self.get_member(identity)
        return member.category if member else None

    def is_member(self, identity: str) -> bool:
        snapshot = self._snapshot
        return snapshot is not None and identity in snapshot

    def category_counts(self) -> Dict[PoolCategory, int]:
        snapshot = self._snapshot
        if snapshot is None:
            return {category: 0 for category in PoolCategory}
        return snapshot.category_counts()

    def pool_stats(self) -> Optional[PoolStats]:
        snapshot = self._snapshot
        return snapshot.stats if snapshot else None

    @property
    def era_state(self) -> Optional[EraState]:
        snapshot = self._snapshot
        return snapshot.era_state if snapshot else None

    @property
    def validator_set(self) -> Optional[ValidatorSet]:
        snapshot = self._snapshot
        return snapshot.validator_set if snapshot else None

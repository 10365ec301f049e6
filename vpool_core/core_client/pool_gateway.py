"""
Pool Command Gateway

Validates join / leave / recategorize requests against the latest published
registry snapshot and hands them to the chain state provider.

The gateway never waits for inclusion and never touches the registry: a
submitted change only becomes visible through the next hydration.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from vpool_core.config.settings import settings
from vpool_core.core.datatypes import PoolCategory
from vpool_core.core.exceptions import (
    AlreadyMemberError,
    CollaboratorError,
    CollaboratorErrorHandler,
    NoOpCategoryChangeError,
    NotMemberError,
    PoolError,
    PreconditionError,
)
from vpool_core.core_client.chain_provider import ChainStateProvider
from vpool_core.metagraph.pool_registry import PoolRegistry, PoolSnapshot
from vpool_core.monitoring.metrics import MetricsManager, get_metrics_manager

logger = logging.getLogger(__name__)


class IntentKind(str, Enum):
    JOIN = "join"
    LEAVE = "leave"
    RECATEGORIZE = "recategorize"


@dataclass(frozen=True)
class PoolIntent:
    """A write intent handed to the chain. Not a confirmation."""

    kind: IntentKind
    identity: str
    category: Optional[PoolCategory]
    snapshot_sequence: int  # snapshot the preconditions were checked against
    submitted_at: float
    receipt: Optional[str] = None


class PoolCommandGateway:
    """
    Emits pool membership intents after checking local preconditions.

    Preconditions are evaluated synchronously against the snapshot that is
    current at submission time; a failed precondition raises before any
    call reaches the provider.
    """

    def __init__(
        self,
        registry: PoolRegistry,
        provider: Optional[ChainStateProvider] = None,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsManager] = None,
    ):
        self.registry = registry
        self.provider = provider if provider is not None else registry.provider
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.POOL_COLLABORATOR_TIMEOUT_SECONDS
        )
        self._clock = clock
        self._metrics = metrics or get_metrics_manager()

    def _snapshot_for(self, kind: IntentKind) -> PoolSnapshot:
        try:
            return self.registry.require_snapshot()
        except PoolError:
            self._metrics.record_intent(kind.value, "rejected")
            raise

    def _reject(self, kind: IntentKind, error: PreconditionError):
        self._metrics.record_intent(kind.value, "rejected")
        logger.info(f"Rejected {kind.value} intent: {error}")
        raise error

    async def _emit(
        self,
        kind: IntentKind,
        identity: str,
        category: Optional[PoolCategory],
        snapshot: PoolSnapshot,
        call: Awaitable[Optional[str]],
    ) -> PoolIntent:
        try:
            with CollaboratorErrorHandler(f"submit_{kind.value}"):
                receipt = await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except CollaboratorError:
            self._metrics.record_intent(kind.value, "failed")
            raise

        intent = PoolIntent(
            kind=kind,
            identity=identity,
            category=category,
            snapshot_sequence=snapshot.sequence,
            submitted_at=self._clock(),
            receipt=receipt,
        )
        self._metrics.record_intent(kind.value, "submitted")
        target = f" as {category.value}" if category is not None else ""
        logger.info(f"🔧 Submitted {kind.value} intent for {identity}{target} (receipt: {receipt})")
        return intent

    async def join(self, identity: str, category: Union[PoolCategory, str]) -> PoolIntent:
        """
        Request to join the pool in `category`.

        Raises:
            AlreadyMemberError: `identity` is already a member.
            CollaboratorUnavailableError: No snapshot to check against yet.
            CollaboratorError: The provider failed to accept the intent.
        """
        category = PoolCategory.from_chain(category)
        snapshot = self._snapshot_for(IntentKind.JOIN)
        member = snapshot.get(identity)
        if member is not None:
            self._reject(IntentKind.JOIN, AlreadyMemberError(identity, member.category.value))
        return await self._emit(
            IntentKind.JOIN, identity, category, snapshot, self.provider.submit_join(identity, category)
        )

    async def leave(self, identity: str) -> PoolIntent:
        """
        Request to leave the pool.

        Raises:
            NotMemberError: `identity` is not a member.
        """
        snapshot = self._snapshot_for(IntentKind.LEAVE)
        if identity not in snapshot:
            self._reject(IntentKind.LEAVE, NotMemberError(identity))
        return await self._emit(IntentKind.LEAVE, identity, None, snapshot, self.provider.submit_leave(identity))

    async def recategorize(self, identity: str, new_category: Union[PoolCategory, str]) -> PoolIntent:
        """
        Request a category change.

        Raises:
            NotMemberError: `identity` is not a member.
            NoOpCategoryChangeError: `new_category` is the current category.
        """
        new_category = PoolCategory.from_chain(new_category)
        snapshot = self._snapshot_for(IntentKind.RECATEGORIZE)
        member = snapshot.get(identity)
        if member is None:
            self._reject(IntentKind.RECATEGORIZE, NotMemberError(identity))
        elif member.category is new_category:
            self._reject(IntentKind.RECATEGORIZE, NoOpCategoryChangeError(identity, new_category.value))
        return await self._emit(
            IntentKind.RECATEGORIZE,
            identity,
            new_category,
            snapshot,
            self.provider.submit_recategorize(identity, new_category),
        )

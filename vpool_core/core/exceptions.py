"""
Validator Pool Error Handling
Error taxonomy and handlers for pool queries, hydration and write intents
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

logger = logging.getLogger(__name__)


class PoolError(Exception):
    """Base exception for validator pool errors"""

    pass


class PreconditionError(PoolError):
    """A local precondition failed; raised before any call to the chain"""

    pass


class NotMemberError(PreconditionError):
    """The identity is not a member of the validator pool"""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"{identity} is not a member of the validator pool")


class AlreadyMemberError(PreconditionError):
    """The identity already belongs to the validator pool"""

    def __init__(self, identity: str, category: Optional[str] = None):
        self.identity = identity
        self.category = category
        where = f" as {category}" if category else ""
        super().__init__(f"{identity} is already a pool member{where}")


class NoOpCategoryChangeError(PreconditionError):
    """Recategorize was requested with the member's current category"""

    def __init__(self, identity: str, category: str):
        self.identity = identity
        self.category = category
        super().__init__(f"{identity} is already in category {category}")


class OutOfOrderEraError(PreconditionError):
    """A selection was recorded for an era older than the last recorded one"""

    def __init__(self, identity: str, era_index: int, last_era: int):
        self.identity = identity
        self.era_index = era_index
        self.last_era = last_era
        super().__init__(
            f"Out-of-order era for {identity}: {era_index} <= last recorded {last_era}"
        )


class CollaboratorError(PoolError):
    """The chain state provider failed or timed out"""

    pass


class StaleSnapshotError(PoolError):
    """Hydration failed; the registry keeps serving its previous snapshot"""

    def __init__(self, message: str, snapshot_sequence: int):
        self.snapshot_sequence = snapshot_sequence
        super().__init__(message)


class CollaboratorUnavailableError(PoolError):
    """No snapshot has ever been hydrated, so nothing can be served"""

    pass


@contextmanager
def CollaboratorErrorHandler(operation: str) -> Generator[None, None, None]:
    """
    Context manager for calls made to the chain state provider.

    Pool errors pass through untouched; anything else is logged and
    re-raised as CollaboratorError.

    Args:
        operation: Name of the operation being performed
    """
    try:
        yield
    except PoolError:
        raise
    except Exception as e:
        logger.error(f"Error in chain operation '{operation}': {e!r}")
        raise CollaboratorError(f"Failed {operation}: {e!r}") from e

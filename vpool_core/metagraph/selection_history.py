# vpool_core/metagraph/selection_history.py
"""
Per-validator record of the eras in which it was selected into the active set.

Histories are append-only and strictly ascending. Each history is stored as
a tuple and replaced on append, so a history handed to a reader never
changes underneath it.
"""
import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from vpool_core.core.datatypes import ValidatorSet
from vpool_core.core.exceptions import OutOfOrderEraError
from vpool_core.monitoring.metrics import MetricsManager, get_metrics_manager

logger = logging.getLogger(__name__)


class SelectionHistoryTracker:
    def __init__(self, metrics: Optional[MetricsManager] = None):
        self._histories: Dict[str, Tuple[int, ...]] = {}
        self._lock = threading.Lock()
        self._metrics = metrics or get_metrics_manager()

    def record_selection(self, identity: str, era_index: int) -> bool:
        """
        Append an era to a validator's history.

        Args:
            identity: Validator account.
            era_index: Era in which the validator was selected.

        Returns:
            bool: True if appended, False if `era_index` is already the last
            entry (recording the same era twice is a no-op).

        Raises:
            OutOfOrderEraError: `era_index` is older than the last entry.
                The history is left unchanged.
        """
        if era_index < 0:
            raise ValueError(f"era_index must be non-negative, got {era_index}")

        with self._lock:
            history = self._histories.get(identity, ())
            if history:
                last = history[-1]
                if era_index == last:
                    return False
                if era_index < last:
                    raise OutOfOrderEraError(identity, era_index, last)
            self._histories[identity] = history + (era_index,)

        self._metrics.record_selections(1)
        logger.debug(f"Recorded selection of {identity} in era {era_index}")
        return True

    def record_validator_set(self, validator_set: ValidatorSet) -> int:
        """
        Record every validator of an era's set.

        Validators whose history is already ahead of the set's era are
        skipped with a warning instead of failing the whole set.

        Returns:
            int: Number of histories that were appended to.
        """
        appended = 0
        for identity in validator_set:
            try:
                if self.record_selection(identity, validator_set.era_index):
                    appended += 1
            except OutOfOrderEraError as e:
                logger.warning(f"Skipping selection record: {e}")
        return appended

    def load_history(self, identity: str, eras: Iterable[int]) -> int:
        """
        Merge a chain-reported history into the local one.

        `eras` must be strictly ascending. Entries already in the local
        history are skipped. An entry not newer than the local last entry that
        the local history lacks is rejected and nothing is merged.

        Returns:
            int: Number of eras appended.

        Raises:
            OutOfOrderEraError: The input is not ascending or backdates the local history.
        """
        eras = [int(era) for era in eras]
        for previous, current in zip(eras, eras[1:]):
            if current <= previous:
                raise OutOfOrderEraError(identity, current, previous)
        if eras and eras[0] < 0:
            raise ValueError(f"era_index must be non-negative, got {eras[0]}")

        with self._lock:
            history = self._histories.get(identity, ())
            last = history[-1] if history else -1
            known = set(history)
            for era in eras:
                if era <= last and era not in known:
                    raise OutOfOrderEraError(identity, era, last)
            newer = tuple(era for era in eras if era > last)
            if newer:
                self._histories[identity] = history + newer

        self._metrics.record_selections(len(newer))
        return len(newer)

    def history_of(self, identity: str) -> Tuple[int, ...]:
        """Eras in which `identity` was selected, ascending. Empty if never selected."""
        return self._histories.get(identity, ())

    def last_selected_era(self, identity: str) -> Optional[int]:
        history = self.history_of(identity)
        return history[-1] if history else None

    def selection_count(self, identity: str) -> int:
        return len(self.history_of(identity))

    def selection_streak(self, identity: str) -> int:
        """Number of consecutive eras ending at the last recorded one."""
        history = self.history_of(identity)
        if not history:
            return 0
        streak = 1
        for index in range(len(history) - 1, 0, -1):
            if history[index] - history[index - 1] != 1:
                break
            streak += 1
        return streak

    def participation_rate(self, identity: str, first_era: int, last_era: int) -> float:
        """Share of eras in [first_era, last_era] in which `identity` was selected."""
        if last_era < first_era:
            raise ValueError(f"Empty era range {first_era}..{last_era}")
        selected = sum(1 for era in self.history_of(identity) if first_era <= era <= last_era)
        return selected / (last_era - first_era + 1)

    def identities(self) -> List[str]:
        return sorted(self._histories)

    def __len__(self) -> int:
        return len(self._histories)

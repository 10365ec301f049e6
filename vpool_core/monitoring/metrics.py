"""
Metrics module for the validator pool with its own Prometheus registry.
"""
import threading
from typing import Dict, Mapping, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

from vpool_core.config.settings import settings


class MetricsManager:
    """Singleton metrics manager that handles the Prometheus registry."""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if hasattr(self, "_initialized") and self._initialized:
            return

        self._initialized = True
        self.enabled = settings.METRICS_ENABLED
        self._registry = None
        self._metrics = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Create a fresh registry and the pool metrics on it."""
        self._registry = CollectorRegistry()

        self._metrics = {
            "pool_hydrations_total": Counter(
                "pool_hydrations_total",
                "Total number of pool registry hydrations",
                ["status"],
                registry=self._registry,
            ),
            "pool_hydration_duration_seconds": Histogram(
                "pool_hydration_duration_seconds",
                "Duration of pool registry hydrations in seconds",
                registry=self._registry,
            ),
            "pool_members": Gauge(
                "pool_members",
                "Number of pool members per category",
                ["category"],
                registry=self._registry,
            ),
            "pool_active_members": Gauge(
                "pool_active_members",
                "Number of pool members with an active reputation score",
                registry=self._registry,
            ),
            "pool_snapshot_stale": Gauge(
                "pool_snapshot_stale",
                "1 while the registry serves a stale snapshot",
                registry=self._registry,
            ),
            "pool_current_era": Gauge(
                "pool_current_era",
                "Era index of the published snapshot",
                registry=self._registry,
            ),
            "pool_blocks_until_new_era": Gauge(
                "pool_blocks_until_new_era",
                "Blocks remaining until the next era boundary",
                registry=self._registry,
            ),
            "pool_intents_total": Counter(
                "pool_intents_total",
                "Total number of pool write intents",
                ["kind", "status"],
                registry=self._registry,
            ),
            "pool_selection_records_total": Counter(
                "pool_selection_records_total",
                "Total number of era selections appended to histories",
                registry=self._registry,
            ),
        }

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def get_registry(self) -> CollectorRegistry:
        """Get the metrics registry."""
        return self._registry

    def get_sample(self, name: str, labels: Optional[Mapping[str, str]] = None) -> Optional[float]:
        """Current value of a sample, None if it was never recorded."""
        return self._registry.get_sample_value(name, dict(labels or {}))

    def reset_metrics(self):
        """Reset all metrics - useful for testing."""
        with self._lock:
            self._setup_metrics()

    def record_hydration(self, success: bool, duration: float):
        """Record a hydration attempt."""
        if not self.enabled:
            return
        status = "success" if success else "failure"
        self._metrics["pool_hydrations_total"].labels(status=status).inc()
        self._metrics["pool_hydration_duration_seconds"].observe(duration)
        self._metrics["pool_snapshot_stale"].set(0 if success else 1)

    def update_pool_composition(self, category_counts: Mapping[str, int], active_count: int):
        """Update per-category and active member gauges."""
        if not self.enabled:
            return
        for category, count in category_counts.items():
            self._metrics["pool_members"].labels(category=category).set(count)
        self._metrics["pool_active_members"].set(active_count)

    def update_era(self, era_index: int, blocks_until_new_era: int):
        """Update era gauges."""
        if not self.enabled:
            return
        self._metrics["pool_current_era"].set(era_index)
        self._metrics["pool_blocks_until_new_era"].set(blocks_until_new_era)

    def record_intent(self, kind: str, status: str):
        """Record a write intent outcome (submitted, rejected or failed)."""
        if not self.enabled:
            return
        self._metrics["pool_intents_total"].labels(kind=kind, status=status).inc()

    def record_selections(self, count: int = 1):
        """Record era selections appended to histories."""
        if not self.enabled or count <= 0:
            return
        self._metrics["pool_selection_records_total"].inc(count)

    def increment_counter(self, name: str, labels: Optional[Dict] = None):
        """Increment a counter metric."""
        if self.enabled and name in self._metrics:
            metric = self._metrics[name]
            if labels:
                metric.labels(**labels).inc()
            else:
                metric.inc()

    def set_gauge(self, name: str, value: float, labels: Optional[Dict] = None):
        """Set a gauge metric value."""
        if self.enabled and name in self._metrics:
            metric = self._metrics[name]
            if labels:
                metric.labels(**labels).set(value)
            else:
                metric.set(value)


# Global instance
metrics_manager = MetricsManager()


# Convenience functions
def get_metrics_manager() -> MetricsManager:
    """Get the global metrics manager instance."""
    return metrics_manager


def reset_metrics():
    """Reset all metrics - useful for testing."""
    metrics_manager.reset_metrics()


def record_hydration(success: bool, duration: float):
    metrics_manager.record_hydration(success, duration)


def update_pool_composition(category_counts: Mapping[str, int], active_count: int):
    metrics_manager.update_pool_composition(category_counts, active_count)


def update_era(era_index: int, blocks_until_new_era: int):
    metrics_manager.update_era(era_index, blocks_until_new_era)


def record_intent(kind: str, status: str):
    metrics_manager.record_intent(kind, status)


def record_selections(count: int = 1):
    metrics_manager.record_selections(count)

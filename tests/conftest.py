"""
Test configuration and fixtures for the validator pool tests
"""

import os
from types import SimpleNamespace

import pytest
import pytest_asyncio

# Settings are read at import time; keep the suite independent of the shell.
os.environ.setdefault("VPOOL_LOG_LEVEL", "DEBUG")
os.environ.setdefault("VPOOL_METRICS_ENABLED", "true")

from vpool_core.core.datatypes import PerformanceRecord  # noqa: E402
from vpool_core.core_client.memory_provider import InMemoryChainStateProvider  # noqa: E402
from vpool_core.metagraph.pool_registry import PoolRegistry  # noqa: E402
from vpool_core.monitoring.metrics import get_metrics_manager, reset_metrics  # noqa: E402

ALICE = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
BOB = "5FHneW46xGXgs5mUiveU4sbTyGBzmstUspZC92UhjJM694ty"
CHARLIE = "5FLSigC9HGRKVhB9FiEo4Y3koPsNmBmLJbpXg2mp1hXcS59Y"
DAVE = "5DAAnrj7VHTznn2AWBemMuyBwZWs6FNFjdyVXUeYum3PTXFy"
EVE = "5HGjWAeFDfFCWPsjFQdVV2Msvz2XtMktvgocEZcCj68kUMaw"


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_metrics():
    """Fresh Prometheus registry for every test"""
    manager = get_metrics_manager()
    manager.enabled = True
    reset_metrics()
    yield manager


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def accounts():
    """Named test accounts used by the `provider` fixture"""
    return SimpleNamespace(alice=ALICE, bob=BOB, charlie=CHARLIE, dave=DAVE, eve=EVE)


@pytest.fixture
def provider():
    """In-memory chain with one member per category plus an inactive stake validator"""
    return InMemoryChainStateProvider(
        members=[
            (ALICE, "StakeValidator"),
            (BOB, "ParliamentaryValidator"),
            (CHARLIE, "MeritValidator"),
            (DAVE, "StakeValidator"),
        ],
        performance={
            ALICE: {
                "blocksProduced": 100,
                "blocksMissed": 5,
                "eraPoints": 950,
                "lastActiveEra": 3,
                "reputationScore": 92,
            },
            BOB: PerformanceRecord(blocks_produced=40, blocks_missed=10, era_points=300, reputation_score=70),
            DAVE: {"blocksProduced": 3, "blocksMissed": 20, "reputationScore": 45},
        },
        era_index=3,
        era_length=100,
        era_start_block=1000,
        current_height=1050,
        validator_set={
            "eraIndex": 3,
            "stakeValidators": [ALICE],
            "parliamentaryValidators": [BOB],
            "meritValidators": [],
        },
    )


@pytest.fixture
def registry(provider, clock):
    return PoolRegistry(provider, timeout_seconds=1.0, max_snapshot_age_seconds=None, clock=clock)


@pytest_asyncio.fixture
async def hydrated_registry(registry):
    await registry.hydrate()
    return registry


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")

"""Pytest configuration and shared fixtures."""

import pytest  # type: ignore[import-not-found]

from fakes import FakeClock, FakeWallClock, ManualTickScheduler, sequential_ids
from timeflow.core.storage import MemoryAdapter
from timeflow.core.store import DocumentStore
from timeflow.core.timer import TimerEngine


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualTickScheduler:
    return ManualTickScheduler()


@pytest.fixture
def engine(clock: FakeClock, scheduler: ManualTickScheduler) -> TimerEngine:
    return TimerEngine(clock=clock, scheduler=scheduler, id_factory=sequential_ids("lap"))


@pytest.fixture
def adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture
def store(adapter: MemoryAdapter) -> DocumentStore:
    """Empty, opened store with deterministic ids and timestamps."""
    return DocumentStore(
        adapter, id_factory=sequential_ids(), now=FakeWallClock(), seed=False
    ).open()

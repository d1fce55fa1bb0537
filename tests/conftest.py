import pytest

from shm_metrics.services import MemoryBackend, SharedMetrics


class FakeClock:
    """Manually advanced wall clock for TTL tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_backend(clock):
    return MemoryBackend(clock=clock)


@pytest.fixture
def shm(memory_backend):
    """SharedMetrics over the in-memory backend"""
    return SharedMetrics(memory_backend)


@pytest.fixture
def fs_shm(tmp_path):
    """SharedMetrics over a real temporary directory"""
    return SharedMetrics.from_directory(tmp_path)

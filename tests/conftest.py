"""
Shared pytest fixtures for the benchmark tests.
"""

import io

import pytest

import backends  # noqa: F401  (registers stores with StoreFactory)
from backends.memory import InMemoryStore
from utils.random_strings import RandomStringGenerator


class FakeClock:
    """
    Clock that makes consecutive timed calls last the given milliseconds.

    Each timed call reads the clock twice (start, end), so every latency
    consumes two ticks. Every call starts at t=0.
    """

    def __init__(self, latencies_ms):
        self.ticks = []
        for ms in latencies_ms:
            self.ticks.extend([0.0, ms / 1000])
        self.reads = 0

    def __call__(self):
        value = self.ticks[self.reads]
        self.reads += 1
        return value


@pytest.fixture
def generator():
    """Provide a seeded random string generator."""
    return RandomStringGenerator(seed=1234)


@pytest.fixture
def memory_store():
    """Provide a connected in-memory store."""
    store = InMemoryStore({})
    store.connect()
    yield store
    store.disconnect()


@pytest.fixture
def stream():
    """Capture benchmark progress output."""
    return io.StringIO()


@pytest.fixture
def fake_clock():
    return FakeClock

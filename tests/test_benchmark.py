"""
Tests for the five-phase table benchmark.
"""

import threading
import time

import pytest

from backends.memory import InMemoryStore
from core.benchmark import PHASES, REPLACEMENT_PHONE_NUMBER, TableBenchmark


@pytest.fixture
def make_benchmark(memory_store, generator, stream):
    def make(n, **kwargs):
        return TableBenchmark(memory_store, n, generator=generator, stream=stream, **kwargs)
    return make


class RecordingStore(InMemoryStore):
    """In-memory store that remembers the arguments of every call."""

    def __init__(self, config=None):
        super().__init__(config or {})
        self.queried_emails = []
        self.replaced = []

    def query_by_email(self, email):
        self.queried_emails.append(email)
        return super().query_by_email(email)

    def replace(self, entity):
        self.replaced.append((entity.key, entity.phone_number))
        super().replace(entity)


class FailingStore(InMemoryStore):
    def __init__(self, delay=0.0):
        super().__init__({})
        self.delay = delay
        self.attempts = 0
        self._lock = threading.Lock()

    def insert(self, entity):
        with self._lock:
            self.attempts += 1
        time.sleep(self.delay)
        raise ConnectionError("service unavailable")


class ThreadClock:
    """Per-thread virtual clock; a call advances only its own thread's time."""

    def __init__(self):
        self._local = threading.local()
        self.reader_threads = set()

    def __call__(self):
        self.reader_threads.add(threading.get_ident())
        return getattr(self._local, "now", 0.0)

    def advance(self, seconds):
        self._local.now = getattr(self._local, "now", 0.0) + seconds


class SlowStore(InMemoryStore):
    """Each insert takes 5 ms of virtual time and holds its worker for a while."""

    def __init__(self, clock):
        super().__init__({})
        self.clock = clock

    def insert(self, entity):
        self.clock.advance(0.005)
        time.sleep(0.01)
        super().insert(entity)


def test_insert_phase_creates_n_unique_entities(make_benchmark, memory_store):
    bench = make_benchmark(25)
    bench.ensure_table()
    metrics = bench.run_inserts()

    assert len(bench.entities) == 25
    assert len({e.key for e in bench.entities}) == 25
    assert len(metrics.latencies) == 25
    assert len(memory_store.tables['people']) == 25


def test_fake_clock_insert_percentiles(make_benchmark, fake_clock):
    bench = make_benchmark(3, clock=fake_clock([5, 2, 8]))
    bench.ensure_table()
    summary = bench.run_inserts().summarize()

    assert summary.p0 == pytest.approx(2.0)
    assert summary.p50 == pytest.approx(5.0)
    assert summary.p90 == pytest.approx(8.0)
    assert summary.p99 == pytest.approx(8.0)


def test_clock_read_only_around_each_call(memory_store, generator, stream):
    reads = []

    def clock():
        reads.append(len(memory_store.tables.get('people', {})))
        return 0.0

    bench = TableBenchmark(memory_store, 4, generator=generator, clock=clock, stream=stream)
    bench.ensure_table()
    bench.run_inserts()

    # start before the insert lands, end after it
    assert reads == [0, 1, 1, 2, 2, 3, 3, 4]


def test_full_run_phases_in_order(make_benchmark, memory_store, stream):
    bench = make_benchmark(10)
    results = bench.run()

    assert list(results) == [name for name, _, _ in PHASES]
    for metrics in results.values():
        assert len(metrics.latencies) == 10

    assert memory_store.calls == {
        'insert': 10, 'retrieve': 10, 'query': 10, 'replace': 10, 'delete': 10,
    }
    # Remote table is empty, the local list keeps every entity
    assert memory_store.tables['people'] == {}
    assert len(bench.entities) == 10


def test_replace_always_writes_fixed_phone(generator, stream):
    store = RecordingStore()
    store.connect()
    bench = TableBenchmark(store, 5, generator=generator, stream=stream)
    bench.ensure_table()
    bench.run_inserts()

    bench.entities[2].phone_number = "206-555-0000"
    bench.run_replaces()

    assert [phone for _, phone in store.replaced] == [REPLACEMENT_PHONE_NUMBER] * 5
    for entity in bench.entities:
        assert entity.phone_number == "425-555-5555"
        assert store.retrieve(*entity.key).phone_number == "425-555-5555"


def test_query_matches_only_the_iterations_entity(generator, stream):
    store = RecordingStore()
    store.connect()
    bench = TableBenchmark(store, 8, generator=generator, stream=stream)
    bench.ensure_table()
    bench.run_inserts()
    bench.run_queries()

    assert store.queried_emails == [e.email for e in bench.entities]
    assert bench.query_matches == [1] * 8


def test_retrieve_requires_inserts(make_benchmark):
    bench = make_benchmark(3)
    bench.ensure_table()
    with pytest.raises(RuntimeError, match="insert phase"):
        bench.run_retrieves()


def test_remote_failure_propagates_without_retry(generator, stream):
    store = FailingStore()
    store.connect()
    bench = TableBenchmark(store, 5, generator=generator, stream=stream)

    with pytest.raises(ConnectionError):
        bench.run()
    assert store.attempts == 1


def test_ensure_table_twice(make_benchmark, memory_store):
    bench = make_benchmark(2)
    bench.ensure_table()
    bench.run_inserts()
    bench.ensure_table()
    assert len(memory_store.tables['people']) == 2


def test_progress_and_summary_output(make_benchmark, stream, fake_clock):
    bench = make_benchmark(3, clock=fake_clock([5, 2, 8]))
    bench.ensure_table()
    bench.run_inserts()
    output = stream.getvalue()

    assert output.startswith("Creating Table if it doesn't exist...\nRunning inserts: \n")
    assert "\r\tInsert #1 completed in" in output
    assert "\r\tInsert #3 completed in" in output
    assert " ms." in output
    assert "\n\tp0:" in output
    assert "p50: " in output and "p90: " in output and ". p99: " in output


def test_custom_table_name(memory_store, generator, stream):
    bench = TableBenchmark(memory_store, 1, generator=generator, stream=stream, table_name="customers")
    bench.run()
    assert 'customers' in memory_store.tables


def test_parallel_workers_complete_every_phase(make_benchmark, memory_store):
    bench = make_benchmark(20, workers=4)
    results = bench.run()

    for metrics in results.values():
        assert len(metrics.latencies) == 20
    assert bench.query_matches == [1] * 20
    assert memory_store.tables['people'] == {}
    assert all(e.phone_number == REPLACEMENT_PHONE_NUMBER for e in bench.entities)


@pytest.mark.parametrize("kwargs", [{'num_iterations': 0}, {'num_iterations': 1, 'workers': 0}])
def test_invalid_arguments(memory_store, kwargs):
    with pytest.raises(ValueError):
        TableBenchmark(memory_store, **kwargs)


def test_parallel_failure_stops_queued_calls(generator, stream):
    store = FailingStore(delay=0.05)
    store.connect()
    bench = TableBenchmark(store, 50, generator=generator, stream=stream, workers=2)
    bench.ensure_table()

    with pytest.raises(ConnectionError):
        bench.run_inserts()
    # Only calls already picked up by a worker may run after the first failure
    assert store.attempts <= 4


def test_parallel_latency_excludes_queue_wait(generator, stream):
    clock = ThreadClock()
    store = SlowStore(clock)
    store.connect()
    bench = TableBenchmark(store, 6, generator=generator, clock=clock, stream=stream, workers=2)
    bench.ensure_table()
    metrics = bench.run_inserts()

    # Six calls on two workers queue up; each sample is still one call long
    assert metrics.latencies == [pytest.approx(5.0)] * 6
    assert threading.get_ident() not in clock.reader_threads
    assert len(store.tables['people']) == 6

"""
Latency benchmark over an entity store.

Runs the five phases in order - insert, retrieve, query, replace, delete -
each `num_iterations` times, timing every remote call on its own and
printing p0/p50/p90/p99 after each phase. The i-th iteration of every phase
after insert operates on the i-th inserted entity.
"""

import sys
import time
import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional

from core.entity import CustomerEntity, EMAIL_DOMAIN, new_customer
from core.store import EntityStore
from utils.metrics import PerformanceMetrics, Timer
from utils.random_strings import RandomStringGenerator

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "people"
REPLACEMENT_PHONE_NUMBER = "425-555-5555"

# (phase name, console header, progress verb)
PHASES = (
    ('insert', "Running inserts: ", "Insert"),
    ('retrieve', "Running retrieves: ", "Retrieve"),
    ('query', "Running query against secondary index: ", "Query"),
    ('replace', "Running replace: ", "Replace"),
    ('delete', "Running deletes: ", "Delete"),
)


class TableBenchmark:
    """Five-phase CRUD latency benchmark against one table."""

    def __init__(
        self,
        store: EntityStore,
        num_iterations: int,
        generator: Optional[RandomStringGenerator] = None,
        clock: Callable[[], float] = time.perf_counter,
        stream=None,
        table_name: str = DEFAULT_TABLE_NAME,
        workers: int = 1,
        email_domain: str = EMAIL_DOMAIN,
    ):
        """
        Args:
            store: Connected entity store
            num_iterations: Calls per phase (>= 1)
            generator: Random string source; one is created if omitted
            clock: Monotonic clock in seconds used to time each call
            stream: Where progress goes (default: sys.stdout)
            table_name: Table to ensure and operate on
            workers: Parallel calls within a phase (1 = strictly sequential)
            email_domain: Domain of generated Email values
        """
        if num_iterations < 1:
            raise ValueError(f"num_iterations must be >= 1, got {num_iterations}")
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        self.store = store
        self.num_iterations = num_iterations
        self.generator = generator or RandomStringGenerator()
        self.clock = clock
        self.stream = stream
        self.table_name = table_name
        self.workers = workers
        self.email_domain = email_domain

        self.entities: List[CustomerEntity] = []
        self.query_matches: List[int] = [0] * num_iterations
        self.results: Dict[str, PerformanceMetrics] = OrderedDict()

    def _out(self):
        return self.stream if self.stream is not None else sys.stdout

    def _print(self, text: str = "", end: str = "\n"):
        out = self._out()
        out.write(text + end)
        out.flush()

    def run(self) -> Dict[str, PerformanceMetrics]:
        """Ensure the table, then run every phase in order."""
        self.ensure_table()
        self.run_inserts()
        self.run_retrieves()
        self.run_queries()
        self.run_replaces()
        self.run_deletes()
        return self.results

    def ensure_table(self):
        self._print("Creating Table if it doesn't exist...")
        self.store.ensure_table(self.table_name)

    def run_inserts(self) -> PerformanceMetrics:
        def prepare(i):
            entity = new_customer(self.generator, self.email_domain)
            self.entities.append(entity)
            return lambda: self.store.insert(entity)

        return self._run_phase(0, prepare)

    def run_retrieves(self) -> PerformanceMetrics:
        self._require_entities('retrieve')

        def prepare(i):
            pk, rk = self.entities[i].key
            return lambda: self.store.retrieve(pk, rk)

        return self._run_phase(1, prepare)

    def run_queries(self) -> PerformanceMetrics:
        """Consuming every match is part of the timed call."""
        self._require_entities('query')

        def prepare(i):
            email = self.entities[i].email

            def call():
                self.query_matches[i] = sum(1 for _ in self.store.query_by_email(email))

            return call

        return self._run_phase(2, prepare)

    def run_replaces(self) -> PerformanceMetrics:
        self._require_entities('replace')

        def prepare(i):
            entity = self.entities[i]
            entity.phone_number = REPLACEMENT_PHONE_NUMBER
            return lambda: self.store.replace(entity)

        return self._run_phase(3, prepare)

    def run_deletes(self) -> PerformanceMetrics:
        # Entities stay in self.entities after the remote delete
        self._require_entities('delete')

        def prepare(i):
            pk, rk = self.entities[i].key
            return lambda: self.store.delete(pk, rk)

        return self._run_phase(4, prepare)

    def _require_entities(self, phase: str):
        if len(self.entities) < self.num_iterations:
            raise RuntimeError(
                f"{phase} phase needs {self.num_iterations} inserted entities, "
                f"have {len(self.entities)}; run the insert phase first"
            )

    def _time_call(self, call: Callable[[], None]) -> float:
        with Timer(self.clock) as timer:
            call()
        return timer.elapsed_ms

    def _run_phase(self, index: int, prepare: Callable[[int], Callable[[], None]]) -> PerformanceMetrics:
        """
        Run one phase.

        `prepare(i)` does any untimed setup for iteration i on the calling
        thread and returns the zero-argument remote call to be timed.
        """
        name, header, verb = PHASES[index]
        suffix = "." if name == 'insert' else ""
        metrics = PerformanceMetrics(name)

        self._print(header)
        logger.debug("Starting %s phase (%d iterations, %d workers)", name, self.num_iterations, self.workers)

        def record(done: int, latency_ms: float):
            self._print(f"\r\t{verb} #{done} completed in {latency_ms} ms{suffix}", end="")
            metrics.record_latency(latency_ms)

        metrics.start()
        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                futures = [pool.submit(self._time_call, prepare(i)) for i in range(self.num_iterations)]
                try:
                    for done, future in enumerate(as_completed(futures), start=1):
                        record(done, future.result())
                except BaseException:
                    # Queued calls must not reach the store once one has failed
                    pool.shutdown(wait=True, cancel_futures=True)
                    raise
        else:
            for i in range(self.num_iterations):
                record(i + 1, self._time_call(prepare(i)))
        metrics.end()

        self._print("\n" + metrics.format_percentiles())
        self._print("\n")
        logger.debug("Finished %s phase: %s", name, metrics.get_summary())

        self.results[name] = metrics
        return metrics

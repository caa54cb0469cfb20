"""
In-process entity store.

Holds entities in a dict keyed by table name and (PartitionKey, RowKey).
Useful for dry runs of the benchmark without any cloud credentials; the
latencies it reports only measure Python overhead.
"""

import copy
import logging
from typing import Dict, Any, Iterator, Tuple

from core.entity import CustomerEntity
from core.store import EntityStore, StoreType

logger = logging.getLogger(__name__)


class EntityNotFoundError(KeyError):
    """Raised when an entity key is not present in the table."""


class EntityExistsError(KeyError):
    """Raised when inserting a key that is already present."""


class InMemoryStore(EntityStore):
    """
    Entity store backed by a plain dict.

    Semantics follow the table services: insert fails on an existing key,
    retrieve/replace/delete fail on a missing one.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.store_type = StoreType.MEMORY
        self.tables: Dict[str, Dict[Tuple[str, str], CustomerEntity]] = {}
        self.calls: Dict[str, int] = {}

    def connect(self):
        """Nothing to connect to; the tables dict is the connection."""
        self.connection = self.tables

    def disconnect(self):
        self.connection = None

    def ensure_table(self, table_name: str):
        if table_name in self.tables:
            logger.info("Table %s already exists", table_name)
        else:
            self.tables[table_name] = {}
            logger.info("Created table %s", table_name)
        self.table_name = table_name

    def _table(self) -> Dict[Tuple[str, str], CustomerEntity]:
        if self.connection is None:
            raise RuntimeError("InMemoryStore is not connected")
        if self.table_name is None:
            raise RuntimeError("ensure_table() must be called before any entity operation")
        return self.tables[self.table_name]

    def _count(self, op: str):
        self.calls[op] = self.calls.get(op, 0) + 1

    def insert(self, entity: CustomerEntity):
        self._count('insert')
        table = self._table()
        if entity.key in table:
            raise EntityExistsError(f"Entity {entity.key} already exists")
        # Store a copy so later local mutations don't leak into the "remote" side
        table[entity.key] = copy.copy(entity)

    def retrieve(self, partition_key: str, row_key: str) -> CustomerEntity:
        self._count('retrieve')
        table = self._table()
        try:
            return copy.copy(table[(partition_key, row_key)])
        except KeyError:
            raise EntityNotFoundError(f"Entity {(partition_key, row_key)} not found") from None

    def query_by_email(self, email: str) -> Iterator[CustomerEntity]:
        self._count('query')
        table = self._table()
        matches = [copy.copy(e) for e in table.values() if e.email == email]
        return iter(matches)

    def replace(self, entity: CustomerEntity):
        self._count('replace')
        table = self._table()
        if entity.key not in table:
            raise EntityNotFoundError(f"Entity {entity.key} not found")
        table[entity.key] = copy.copy(entity)

    def delete(self, partition_key: str, row_key: str):
        self._count('delete')
        table = self._table()
        try:
            del table[(partition_key, row_key)]
        except KeyError:
            raise EntityNotFoundError(f"Entity {(partition_key, row_key)} not found") from None

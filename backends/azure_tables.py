"""
Azure Tables entity store.

One implementation serves both connection targets: the same connection
string format points either at a Cosmos DB account's Table API endpoint
("premium tables") or at a classic Azure Storage account's Table service.
"""

import logging
from typing import Dict, Any, Iterator

from azure.data.tables import TableServiceClient, UpdateMode

from core.entity import CustomerEntity
from core.store import EntityStore, StoreType

logger = logging.getLogger(__name__)

EMAIL_FILTER = "Email eq @email"


def silence_azure_logging(level=logging.WARNING):
    """
    Silence the Azure SDK's per-request HTTP logging.

    The HTTP logging policy logs every request and response header block at
    INFO, which would interleave with the benchmark's progress lines.
    """
    for name in (
        "azure",
        "azure.core.pipeline.policies.http_logging_policy",
        "azure.data.tables",
    ):
        logging.getLogger(name).setLevel(level)


class AzureTableStore(EntityStore):
    """
    Azure Tables store for benchmarking.

    Cosmos DB indexes every property automatically, so the Email filter is
    served by a secondary index there; on Azure Storage it is a table scan.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.store_type = StoreType.AZURE_TABLES
        self.connection_string = config.get('connection_string')
        self.target = config.get('target', 'Premium')
        self.table_client = None

    def connect(self):
        """Create the service client from the connection string."""
        if not self.connection_string:
            raise ValueError(f"No connection string configured for target '{self.target}'")

        silence_azure_logging()
        self.connection = TableServiceClient.from_connection_string(self.connection_string)
        logger.info("Connected to %s (%s target)", self.connection.account_name, self.target)

    def disconnect(self):
        if self.table_client is not None:
            self.table_client.close()
            self.table_client = None
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def ensure_table(self, table_name: str):
        """Create the table if it doesn't exist (idempotent on the service side)."""
        if self.connection is None:
            raise RuntimeError("AzureTableStore is not connected")

        self.table_client = self.connection.create_table_if_not_exists(table_name=table_name)
        self.table_name = table_name
        logger.info("Table %s ready", table_name)

    def _client(self):
        if self.table_client is None:
            raise RuntimeError("ensure_table() must be called before any entity operation")
        return self.table_client

    def insert(self, entity: CustomerEntity):
        self._client().create_entity(entity=entity.to_table_entity())

    def retrieve(self, partition_key: str, row_key: str) -> CustomerEntity:
        result = self._client().get_entity(partition_key=partition_key, row_key=row_key)
        return CustomerEntity.from_table_entity(result)

    def query_by_email(self, email: str) -> Iterator[CustomerEntity]:
        pages = self._client().query_entities(
            query_filter=EMAIL_FILTER,
            parameters={'email': email},
        )
        for item in pages:
            yield CustomerEntity.from_table_entity(item)

    def replace(self, entity: CustomerEntity):
        self._client().update_entity(entity=entity.to_table_entity(), mode=UpdateMode.REPLACE)

    def delete(self, partition_key: str, row_key: str):
        self._client().delete_entity(partition_key=partition_key, row_key=row_key)

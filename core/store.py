"""
Abstract entity-store interface for table latency benchmarking.

Supports: Azure Tables (Cosmos DB Table API and Azure Storage), DynamoDB,
and an in-process store for dry runs.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Iterator, Optional
from enum import Enum

from core.entity import CustomerEntity


class StoreType(Enum):
    """Supported entity stores"""
    AZURE_TABLES = "azure_tables"
    DYNAMODB = "dynamodb"
    MEMORY = "memory"


class EntityStore(ABC):
    """
    Abstract base class for entity stores.

    Every remote call is expected to raise on failure. Nothing here retries:
    a failed call aborts the benchmark run.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.store_type = None  # Set by subclass
        self.connection = None
        self.table_name: Optional[str] = None

    @abstractmethod
    def connect(self):
        """Open the client handle used for the rest of the run."""
        pass

    @abstractmethod
    def disconnect(self):
        """Release the client handle."""
        pass

    @abstractmethod
    def ensure_table(self, table_name: str):
        """
        Create the table if it doesn't exist.

        Must be idempotent: calling it twice with the same name leaves the
        table reachable and does not fail.

        Args:
            table_name: Name of the table to use for all later operations
        """
        pass

    @abstractmethod
    def insert(self, entity: CustomerEntity):
        """Create a new entity. Fails if the key already exists."""
        pass

    @abstractmethod
    def retrieve(self, partition_key: str, row_key: str) -> CustomerEntity:
        """Point read by (PartitionKey, RowKey)."""
        pass

    @abstractmethod
    def query_by_email(self, email: str) -> Iterator[CustomerEntity]:
        """
        Filtered scan on the Email property.

        Returns a lazy iterator; pages are fetched while it is consumed.
        """
        pass

    @abstractmethod
    def replace(self, entity: CustomerEntity):
        """Overwrite an existing entity with all of its current fields."""
        pass

    @abstractmethod
    def delete(self, partition_key: str, row_key: str):
        """Delete an existing entity by key."""
        pass

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *args):
        self.disconnect()

    def get_store_info(self) -> Dict[str, Any]:
        """
        Get information about the store.

        Returns:
            Dict with store metadata
        """
        return {
            'type': self.store_type.value if self.store_type else 'unknown',
            'name': self.__class__.__name__,
            'table': self.table_name,
            'config': self._get_safe_config(),
            'connected': self.connection is not None,
        }

    def _get_safe_config(self) -> Dict[str, Any]:
        """
        Get config with sensitive values masked.

        Returns:
            Config dict with keys/secrets/connection strings masked
        """
        safe_config = self.config.copy()
        sensitive_keys = ['password', 'token', 'secret', 'key', 'connection_string']

        for key in safe_config:
            if any(sensitive in key.lower() for sensitive in sensitive_keys):
                if isinstance(safe_config[key], str) and len(safe_config[key]) > 0:
                    safe_config[key] = '***' + safe_config[key][-4:]

        return safe_config


class StoreFactory:
    """
    Factory for creating entity store instances.
    """

    _stores = {}

    @classmethod
    def register(cls, store_type: StoreType, store_class):
        """Register a store implementation"""
        cls._stores[store_type] = store_class

    @classmethod
    def create(cls, store_type: StoreType, config: Dict[str, Any]) -> EntityStore:
        """
        Create a store instance.

        Args:
            store_type: Type of store to create
            config: Configuration dict for the store

        Returns:
            EntityStore instance

        Raises:
            ValueError: If store type is not registered
        """
        if store_type not in cls._stores:
            available = ', '.join([st.value for st in cls._stores.keys()])
            raise ValueError(
                f"Store '{store_type.value}' not registered. "
                f"Available stores: {available}"
            )

        return cls._stores[store_type](config)

    @classmethod
    def list_stores(cls) -> List[StoreType]:
        """List all registered stores"""
        return list(cls._stores.keys())

    @classmethod
    def is_registered(cls, store_type: StoreType) -> bool:
        """Check if a store is registered"""
        return store_type in cls._stores

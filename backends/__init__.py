"""
Entity store implementations for benchmarking.

Available stores:
- Azure Tables (Cosmos DB Table API or Azure Storage)
- DynamoDB (AWS)
- In-memory (dry runs)
"""

from core.store import StoreType, EntityStore, StoreFactory

# Import store implementations
from .azure_tables import AzureTableStore
from .dynamodb import DynamoDBStore
from .memory import InMemoryStore

# Register stores with factory
StoreFactory.register(StoreType.AZURE_TABLES, AzureTableStore)
StoreFactory.register(StoreType.DYNAMODB, DynamoDBStore)
StoreFactory.register(StoreType.MEMORY, InMemoryStore)

__all__ = [
    'EntityStore',
    'StoreType',
    'StoreFactory',
    'AzureTableStore',
    'DynamoDBStore',
    'InMemoryStore',
]

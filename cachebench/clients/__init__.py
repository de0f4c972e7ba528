# Document Store Clients Package
from .base import BaseDataStoreClient, ItemResponse, QueryPage
from .memory_client import InMemoryDataStoreClient

__all__ = [
    'BaseDataStoreClient',
    'InMemoryDataStoreClient',
    'ItemResponse',
    'QueryPage',
]

"""Azure Cosmos DB client implementation."""

import logging
from typing import Any, Dict, Iterator, Optional

import azure.cosmos
from azure.core.exceptions import AzureError
from azure.cosmos import CosmosClient as CosmosSDK
from azure.cosmos import PartitionKey
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from ..errors import DataStoreError, NotFoundError
from .base import BaseDataStoreClient, ItemResponse, QueryPage

logger = logging.getLogger(__name__)

REQUEST_CHARGE_HEADER = "x-ms-request-charge"
CONSISTENCY_HEADER = "x-ms-consistency-level"


class CosmosDataStoreClient(BaseDataStoreClient):
    """Azure Cosmos DB (NoSQL API) client."""

    def __init__(self):
        """Initialize the Cosmos DB client."""
        self._client: Optional[CosmosSDK] = None
        self._endpoint: Optional[str] = None

    @property
    def name(self) -> str:
        """Return the store name."""
        return "Azure Cosmos DB"

    def connect(
        self,
        endpoint: str = "",
        key: str = "",
        consistency_level: Optional[str] = None,
        **kwargs,
    ) -> None:
        """
        Connect to a Cosmos DB account.

        Args:
            endpoint: Account endpoint, either the regular gateway or the
                      dedicated gateway (*.sqlx.cosmos.azure.com)
            key: Account key
            consistency_level: Default consistency for this client
            **kwargs: Ignored
        """
        if not endpoint or not key:
            raise ValueError("Cosmos DB connection requires both endpoint and key")

        try:
            self._client = CosmosSDK(
                endpoint,
                credential=key,
                consistency_level=consistency_level,
            )
            self._endpoint = endpoint
            print(f"Connected to Cosmos DB at {endpoint}")
        except Exception as e:
            raise ConnectionError(f"Failed to connect to Cosmos DB: {e}")

    def get_version(self) -> str:
        """Return the azure-cosmos SDK version."""
        return getattr(azure.cosmos, "__version__", "unknown")

    def disconnect(self) -> None:
        """Disconnect from Cosmos DB."""
        if self._client is not None:
            try:
                # Close the client to avoid socket leaks
                if hasattr(self._client, "close"):
                    self._client.close()
            except Exception as e:
                logger.debug("Error closing Cosmos client for %s: %s", self._endpoint, e)
        self._client = None
        print("Disconnected from Cosmos DB")

    def _require_client(self) -> CosmosSDK:
        if self._client is None:
            raise RuntimeError("Not connected to database")
        return self._client

    @staticmethod
    def _request_charge(container: Any) -> float:
        headers = container.client_connection.last_response_headers or {}
        return float(headers.get(REQUEST_CHARGE_HEADER, 0.0))

    @staticmethod
    def _headers(consistency: Optional[str]) -> Dict[str, str]:
        return {CONSISTENCY_HEADER: consistency} if consistency else {}

    def resolve_container(self, database_id: str, container_id: str) -> Any:
        """Read the container metadata to verify it exists."""
        client = self._require_client()
        container = client.get_database_client(database_id).get_container_client(container_id)
        try:
            container.read()
        except CosmosResourceNotFoundError as e:
            raise NotFoundError(f"Container '{database_id}/{container_id}' not found") from e
        except AzureError as e:
            raise DataStoreError(
                f"Failed to read container '{database_id}/{container_id}': {e.message}"
            ) from e
        return container

    def create_database_if_missing(self, database_id: str) -> None:
        """Create the database unless it exists."""
        client = self._require_client()
        try:
            client.create_database_if_not_exists(id=database_id)
        except AzureError as e:
            raise DataStoreError(f"Failed to create database '{database_id}': {e.message}") from e

    def create_container_if_missing(
        self,
        database_id: str,
        container_id: str,
        partition_key_path: str,
        throughput: int,
    ) -> Any:
        """Create the container with the given partition key and throughput."""
        client = self._require_client()
        try:
            database = client.get_database_client(database_id)
            container = database.create_container_if_not_exists(
                id=container_id,
                partition_key=PartitionKey(path=partition_key_path),
                offer_throughput=throughput,
            )
            print(f"Created container '{database_id}/{container_id}' ({throughput} RU/s)")
            return container
        except AzureError as e:
            raise DataStoreError(
                f"Failed to create container '{database_id}/{container_id}': {e.message}"
            ) from e

    def create_item(self, container: Any, record: Dict[str, Any], partition_key: str) -> float:
        """Create an item; the SDK derives the partition key from the document."""
        try:
            container.create_item(body=record)
        except AzureError as e:
            raise DataStoreError(f"Failed to create item '{record.get('id')}': {e.message}") from e
        return self._request_charge(container)

    def upsert_item(self, container: Any, record: Dict[str, Any], partition_key: str) -> float:
        """Upsert an item."""
        try:
            container.upsert_item(body=record)
        except AzureError as e:
            raise DataStoreError(f"Failed to upsert item '{record.get('id')}': {e.message}") from e
        return self._request_charge(container)

    def read_item(
        self,
        container: Any,
        item_id: str,
        partition_key: str,
        consistency: Optional[str] = None,
    ) -> ItemResponse:
        """Point read with an optional per-request consistency level."""
        try:
            record = container.read_item(
                item=item_id,
                partition_key=partition_key,
                initial_headers=self._headers(consistency),
            )
        except CosmosResourceNotFoundError as e:
            raise NotFoundError(f"Item with id '{item_id}' does not exist") from e
        except AzureError as e:
            raise DataStoreError(f"Failed to read item '{item_id}': {e.message}") from e
        return ItemResponse(record=record, cost=self._request_charge(container))

    def query(
        self,
        container: Any,
        query_text: str,
        consistency: Optional[str] = None,
        partition_key: Optional[str] = None,
    ) -> Iterator[QueryPage]:
        """Yield one QueryPage per feed response."""
        try:
            pager = container.query_items(
                query=query_text,
                partition_key=partition_key,
                enable_cross_partition_query=partition_key is None,
                initial_headers=self._headers(consistency),
            )
            for page in pager.by_page():
                # Materialize the page so the charge header belongs to it
                items = list(page)
                yield QueryPage(items=items, cost=self._request_charge(container))
        except AzureError as e:
            raise DataStoreError(f"Query failed: {e.message}") from e

    def delete_database(self, database_id: str) -> None:
        """Delete a database."""
        client = self._require_client()
        try:
            client.delete_database(database_id)
            print(f"Deleted database '{database_id}'")
        except CosmosResourceNotFoundError as e:
            raise NotFoundError(f"Database '{database_id}' not found") from e
        except AzureError as e:
            raise DataStoreError(f"Failed to delete database '{database_id}': {e.message}") from e

"""Abstract base class for document store clients."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class ItemResponse:
    """Result of a point read."""

    record: Dict[str, Any]
    cost: float


@dataclass
class QueryPage:
    """One page of query results and its request charge."""

    items: List[Any] = field(default_factory=list)
    cost: float = 0.0


class BaseDataStoreClient(ABC):
    """
    Abstract base class for document store clients.

    Container handles returned by this interface are opaque to callers and
    must only be passed back to the client that produced them. Failures are
    raised as ``DataStoreError``; missing resources as ``NotFoundError``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the store (e.g., 'Azure Cosmos DB')."""
        pass

    @abstractmethod
    def connect(self, **kwargs) -> None:
        """
        Connect to the store.

        Args:
            **kwargs: Store-specific connection parameters
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def resolve_container(self, database_id: str, container_id: str) -> Any:
        """
        Look up an existing container by reading its metadata.

        Raises:
            NotFoundError: If the database or container does not exist
        """
        pass

    @abstractmethod
    def create_database_if_missing(self, database_id: str) -> None:
        """Create a database unless it already exists."""
        pass

    @abstractmethod
    def create_container_if_missing(
        self,
        database_id: str,
        container_id: str,
        partition_key_path: str,
        throughput: int,
    ) -> Any:
        """
        Create a container unless it already exists.

        Args:
            database_id: Database holding the container
            container_id: Container name
            partition_key_path: Partition key path, e.g. "/myPartitionKey"
            throughput: Provisioned throughput in RU/s

        Returns:
            Container handle
        """
        pass

    @abstractmethod
    def create_item(self, container: Any, record: Dict[str, Any], partition_key: str) -> float:
        """Insert a new item and return its request charge."""
        pass

    @abstractmethod
    def upsert_item(self, container: Any, record: Dict[str, Any], partition_key: str) -> float:
        """Insert or replace an item and return its request charge."""
        pass

    @abstractmethod
    def read_item(
        self,
        container: Any,
        item_id: str,
        partition_key: str,
        consistency: Optional[str] = None,
    ) -> ItemResponse:
        """
        Read one item by id.

        Args:
            container: Container handle
            item_id: Item id
            partition_key: Partition key value of the item
            consistency: Per-request consistency override

        Raises:
            NotFoundError: If the item does not exist
        """
        pass

    @abstractmethod
    def query(
        self,
        container: Any,
        query_text: str,
        consistency: Optional[str] = None,
        partition_key: Optional[str] = None,
    ) -> Iterator[QueryPage]:
        """
        Run a query and yield its result pages.

        Each call starts a fresh execution. Pages are fetched lazily, so
        errors may surface while iterating.

        Args:
            container: Container handle
            query_text: Query text
            consistency: Per-request consistency override
            partition_key: Restrict the query to one partition
        """
        pass

    @abstractmethod
    def delete_database(self, database_id: str) -> None:
        """
        Delete a database and everything in it.

        Raises:
            NotFoundError: If the database does not exist
        """
        pass

    def get_version(self) -> str:
        """Return the version of the client library used to connect."""
        return "unknown"

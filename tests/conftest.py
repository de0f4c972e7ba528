"""Shared fixtures: scripted fake client, scripted clock and descriptors."""

from typing import Any, Dict, Iterator, List, Optional

import pytest

from cachebench.clients.base import BaseDataStoreClient, ItemResponse, QueryPage
from cachebench.clients.memory_client import InMemoryDataStoreClient, reset_stores
from cachebench.data_generator import CustomerGenerator
from cachebench.descriptor import BenchmarkDescriptor, BenchmarkKind, ConnectionSettings
from cachebench.errors import DataStoreError, NotFoundError


class ScriptedClock:
    """Millisecond clock that makes each timed call last the next scripted latency."""

    def __init__(self, latencies: List[float]):
        self.ticks: List[float] = []
        start = 0.0
        for latency in latencies:
            self.ticks.extend([start, start + latency])
            start += 1000.0

    def __call__(self) -> float:
        return self.ticks.pop(0)


class FakeClient(BaseDataStoreClient):
    """Records every call and returns scripted charges."""

    def __init__(self):
        self.existing = set()
        self.calls: List[str] = []
        self.write_costs: List[float] = []
        self.read_costs: List[float] = []
        self.query_executions: List[List[float]] = []  # page costs per execution
        self.ids: List[str] = []
        self.fail_on: Dict[str, int] = {}  # method -> 1-based call number that fails
        self.resolve_error: Optional[Exception] = None
        self.delete_failures = set()
        self.created_items: List[Dict[str, Any]] = []
        self.deleted: List[str] = []
        self._counts: Dict[str, int] = {}
        self.disconnected = False

    @property
    def name(self) -> str:
        return "Fake"

    def connect(self, **kwargs) -> None:
        pass

    def disconnect(self) -> None:
        self.disconnected = True

    def _call(self, method: str) -> None:
        self.calls.append(method)
        self._counts[method] = self._counts.get(method, 0) + 1
        if self.fail_on.get(method) == self._counts[method]:
            raise DataStoreError(f"{method} failed")

    def count(self, method: str) -> int:
        return self.calls.count(method)

    def resolve_container(self, database_id, container_id):
        self._call("resolve_container")
        if self.resolve_error is not None:
            raise self.resolve_error
        if (database_id, container_id) not in self.existing:
            raise NotFoundError(f"{database_id}/{container_id} not found")
        return ("container", database_id, container_id)

    def create_database_if_missing(self, database_id):
        self._call("create_database_if_missing")

    def create_container_if_missing(self, database_id, container_id, partition_key_path, throughput):
        self._call("create_container_if_missing")
        self.existing.add((database_id, container_id))
        return ("container", database_id, container_id)

    def create_item(self, container, record, partition_key):
        self._call("create_item")
        self.created_items.append(record)
        return self.write_costs.pop(0) if self.write_costs else 5.0

    def upsert_item(self, container, record, partition_key):
        self._call("upsert_item")
        self.created_items.append(record)
        return 6.0

    def read_item(self, container, item_id, partition_key, consistency=None):
        self._call("read_item")
        if item_id not in self.ids:
            raise NotFoundError(f"Item with id '{item_id}' does not exist")
        cost = self.read_costs.pop(0) if self.read_costs else 1.0
        return ItemResponse(record={"id": item_id, "name": f"name-{item_id}"}, cost=cost)

    def query(self, container, query_text, consistency=None, partition_key=None) -> Iterator[QueryPage]:
        self._call("query")
        if "VALUE c.id" in query_text:
            yield QueryPage(items=list(self.ids), cost=1.0)
            return
        page_costs = self.query_executions.pop(0) if self.query_executions else [1.0]
        for cost in page_costs:
            yield QueryPage(items=[{"id": "x"}], cost=cost)

    def delete_database(self, database_id):
        self._call("delete_database")
        self.deleted.append(database_id)
        if database_id in self.delete_failures:
            raise DataStoreError(f"cannot delete {database_id}")


@pytest.fixture(autouse=True)
def _reset_memory_stores():
    reset_stores()
    yield
    reset_stores()


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def scripted_clock():
    return ScriptedClock


@pytest.fixture
def generator() -> CustomerGenerator:
    return CustomerGenerator(seed=1234)


@pytest.fixture
def regular_connection() -> ConnectionSettings:
    return ConnectionSettings(database="memory", endpoint="memory://test")


@pytest.fixture
def dedicated_connection() -> ConnectionSettings:
    return ConnectionSettings(database="memory", endpoint="memory://test", integrated_cache=True)


@pytest.fixture
def make_descriptor(regular_connection):
    """Factory for descriptors targeting the test container."""

    def _make(kind: BenchmarkKind, name: Optional[str] = None, **overrides) -> BenchmarkDescriptor:
        values = dict(
            kind=kind,
            name=name or f"{kind.value} test",
            description=f"{kind.label} test run",
            connection=regular_connection,
            database_id="CacheTestDb",
            container_id="Customers",
            partition_key_path="/myPartitionKey",
            partition_key_value="demo",
        )
        values.update(overrides)
        return BenchmarkDescriptor(**values)

    return _make


@pytest.fixture
def memory_client_factory():
    """Client factory that connects in-memory clients, as the CLI does."""

    def _factory(connection: ConnectionSettings) -> InMemoryDataStoreClient:
        client = InMemoryDataStoreClient(integrated_cache=connection.integrated_cache)
        client.connect(endpoint=connection.endpoint, consistency_level=connection.consistency_level)
        return client

    return _factory

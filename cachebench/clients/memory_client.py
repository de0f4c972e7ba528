"""In-process document store with simulated request charges and cache."""

import copy
import itertools
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..descriptor import EVENTUAL
from ..errors import DataStoreError, NotFoundError
from .base import BaseDataStoreClient, ItemResponse, QueryPage

# Simulated request charges (RU), roughly what Cosmos DB bills for ~1 KB items
WRITE_CHARGE = 5.71
READ_CHARGE = 1.0
QUERY_PAGE_CHARGE = 2.83

DEFAULT_PAGE_SIZE = 100

_QUERY_RE = re.compile(
    r"^\s*SELECT\s+(?:TOP\s+(?P<top>\d+)\s+)?(?P<projection>.+?)\s+FROM\s+c"
    r"(?:\s+WHERE\s+(?P<where>.+?))?"
    r"(?:\s+ORDER\s+BY\s+c\.(?P<order>\w+)(?:\s+(?P<direction>ASC|DESC))?)?\s*$",
    re.IGNORECASE | re.DOTALL,
)
_CONTAINS_UPPER_RE = re.compile(
    r"^CONTAINS\(\s*UPPER\(\s*c\.(\w+)\s*\)\s*,\s*([\"'])(.*?)\2\s*\)$", re.IGNORECASE
)
_CONTAINS_RE = re.compile(r"^CONTAINS\(\s*c\.(\w+)\s*,\s*([\"'])(.*?)\2\s*\)$", re.IGNORECASE)
_EQUALS_RE = re.compile(r"^c\.(\w+)\s*=\s*([\"'])(.*?)\2$")
_FIELD_RE = re.compile(r"^c\.(\w+)$")


@dataclass
class MemoryContainer:
    """A container held by an InMemoryStore."""

    database_id: str
    container_id: str
    partition_key_path: str
    throughput: int
    items: Dict[Tuple[str, str], Dict[str, Any]] = field(default_factory=dict)
    deleted: bool = False
    _timestamps: Iterator[int] = field(default_factory=lambda: itertools.count(1), repr=False)

    def next_timestamp(self) -> int:
        return next(self._timestamps)


class InMemoryStore:
    """Databases and containers shared by every client on one endpoint."""

    def __init__(self):
        self.databases: Dict[str, Dict[str, MemoryContainer]] = {}


_STORES: Dict[str, InMemoryStore] = {}


def get_store(endpoint: str) -> InMemoryStore:
    """Return the store for an endpoint, creating it on first use."""
    if endpoint not in _STORES:
        _STORES[endpoint] = InMemoryStore()
    return _STORES[endpoint]


def reset_stores() -> None:
    """Forget every in-memory store."""
    _STORES.clear()


def _parse_filter(where: Optional[str]) -> Callable[[Dict[str, Any]], bool]:
    if where is None:
        return lambda doc: True
    where = where.strip()

    match = _CONTAINS_UPPER_RE.match(where)
    if match:
        name, _, value = match.groups()
        return lambda doc: value in str(doc.get(name, "")).upper()

    match = _CONTAINS_RE.match(where)
    if match:
        name, _, value = match.groups()
        return lambda doc: value in str(doc.get(name, ""))

    match = _EQUALS_RE.match(where)
    if match:
        name, _, value = match.groups()
        return lambda doc: str(doc.get(name)) == value

    raise DataStoreError(f"Syntax error, unsupported WHERE clause: {where}")


def _parse_projection(projection: str) -> Callable[[Dict[str, Any]], Any]:
    projection = projection.strip()
    if projection == "*":
        return lambda doc: doc

    if projection.upper().startswith("VALUE "):
        match = _FIELD_RE.match(projection[6:].strip())
        if not match:
            raise DataStoreError(f"Syntax error, unsupported projection: {projection}")
        name = match.group(1)
        return lambda doc: doc.get(name)

    names = []
    for part in projection.split(","):
        match = _FIELD_RE.match(part.strip())
        if not match:
            raise DataStoreError(f"Syntax error, unsupported projection: {projection}")
        names.append(match.group(1))
    return lambda doc: {name: doc[name] for name in names if name in doc}


def evaluate_query(query_text: str, documents: List[Dict[str, Any]]) -> List[Any]:
    """
    Evaluate a small subset of the Cosmos DB SQL grammar.

    Supported: ``SELECT [TOP n] <projection> FROM c [WHERE <filter>]
    [ORDER BY c.<field> [ASC|DESC]]`` where the projection is ``*``,
    ``VALUE c.<field>`` or a list of ``c.<field>``, and the filter is
    ``CONTAINS(UPPER(c.<field>), "X")``, ``CONTAINS(c.<field>, "X")`` or
    ``c.<field> = "X"``.

    Raises:
        DataStoreError: For anything outside the supported subset
    """
    match = _QUERY_RE.match(query_text or "")
    if not match:
        raise DataStoreError(f"Syntax error in query: {query_text!r}")

    predicate = _parse_filter(match.group("where"))
    project = _parse_projection(match.group("projection"))

    selected = [doc for doc in documents if predicate(doc)]

    order = match.group("order")
    if order:
        descending = (match.group("direction") or "").upper() == "DESC"
        # Documents without the field sort first, as in Cosmos DB
        selected.sort(
            key=lambda doc: (order in doc, doc.get(order, 0)),
            reverse=descending,
        )

    if match.group("top") is not None:
        selected = selected[: int(match.group("top"))]

    return [project(doc) for doc in selected]


class InMemoryDataStoreClient(BaseDataStoreClient):
    """
    In-process document store (no network overhead).

    Clients connected to the same endpoint share data. With
    ``integrated_cache`` enabled the client behaves like a dedicated gateway:
    Eventual-consistency reads and queries are served from a per-client cache
    and charged 0 RU after the first miss.
    """

    def __init__(self, integrated_cache: bool = False, page_size: int = DEFAULT_PAGE_SIZE):
        """
        Initialize the in-memory client.

        Args:
            integrated_cache: Simulate a dedicated gateway with integrated cache
            page_size: Maximum items per query page
        """
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.integrated_cache = integrated_cache
        self.page_size = page_size
        self._store: Optional[InMemoryStore] = None
        self._default_consistency: Optional[str] = None
        self._item_cache: Dict[Tuple[str, str, str, str], Dict[str, Any]] = {}
        self._query_cache: Dict[Tuple[str, str, Optional[str], str], List[List[Any]]] = {}

    @property
    def name(self) -> str:
        """Return the store name."""
        return "In-memory store"

    def connect(
        self,
        endpoint: str = "memory://default",
        consistency_level: Optional[str] = None,
        integrated_cache: Optional[bool] = None,
        **kwargs,
    ) -> None:
        """
        Attach to the in-memory store for ``endpoint``.

        Args:
            endpoint: Store name; clients on the same endpoint share data
            consistency_level: Default consistency when a request has none
            integrated_cache: Overrides the constructor setting when given
            **kwargs: Ignored
        """
        self._store = get_store(endpoint)
        self._default_consistency = consistency_level
        if integrated_cache is not None:
            self.integrated_cache = integrated_cache
        cache_note = " with integrated cache" if self.integrated_cache else ""
        print(f"In-memory store '{endpoint}' attached{cache_note}")

    def disconnect(self) -> None:
        """Detach from the store and drop cached entries."""
        self._item_cache.clear()
        self._query_cache.clear()
        self._store = None

    def _require_store(self) -> InMemoryStore:
        if self._store is None:
            raise RuntimeError("Not connected to database")
        return self._store

    @staticmethod
    def _require_live(container: MemoryContainer) -> MemoryContainer:
        if container.deleted:
            raise NotFoundError(
                f"Container '{container.database_id}/{container.container_id}' not found"
            )
        return container

    def _serves_from_cache(self, consistency: Optional[str]) -> bool:
        return self.integrated_cache and (consistency or self._default_consistency) == EVENTUAL

    def _partition_key_of(self, container: MemoryContainer, record: Dict[str, Any]) -> str:
        key_field = container.partition_key_path.lstrip("/")
        if key_field not in record:
            raise DataStoreError(f"Document is missing partition key field '{key_field}'")
        return str(record[key_field])

    def resolve_container(self, database_id: str, container_id: str) -> MemoryContainer:
        """Look up an existing container."""
        store = self._require_store()
        containers = store.databases.get(database_id)
        if containers is None or container_id not in containers:
            raise NotFoundError(f"Container '{database_id}/{container_id}' not found")
        return containers[container_id]

    def create_database_if_missing(self, database_id: str) -> None:
        """Create the database unless it exists."""
        self._require_store().databases.setdefault(database_id, {})

    def create_container_if_missing(
        self,
        database_id: str,
        container_id: str,
        partition_key_path: str,
        throughput: int,
    ) -> MemoryContainer:
        """Create the container unless it exists."""
        store = self._require_store()
        if database_id not in store.databases:
            raise NotFoundError(f"Database '{database_id}' not found")
        containers = store.databases[database_id]
        if container_id not in containers:
            containers[container_id] = MemoryContainer(
                database_id=database_id,
                container_id=container_id,
                partition_key_path=partition_key_path,
                throughput=throughput,
            )
            print(f"Created container '{database_id}/{container_id}' ({throughput} RU/s)")
        return containers[container_id]

    def _write(self, container: MemoryContainer, record: Dict[str, Any], partition_key: str,
               overwrite: bool) -> float:
        self._require_live(container)
        if "id" not in record:
            raise DataStoreError("Document is missing 'id'")
        if self._partition_key_of(container, record) != str(partition_key):
            raise DataStoreError("Partition key in document does not match the request")

        key = (str(partition_key), str(record["id"]))
        if not overwrite and key in container.items:
            raise DataStoreError(f"Conflict: item with id '{record['id']}' already exists")

        document = copy.deepcopy(record)
        document["_ts"] = container.next_timestamp()
        container.items[key] = document

        if self.integrated_cache:
            # Writes through the dedicated gateway populate the item cache
            self._item_cache[(container.database_id, container.container_id) + key] = document
        return WRITE_CHARGE

    def create_item(self, container: MemoryContainer, record: Dict[str, Any],
                    partition_key: str) -> float:
        """Insert a new item."""
        return self._write(container, record, partition_key, overwrite=False)

    def upsert_item(self, container: MemoryContainer, record: Dict[str, Any],
                    partition_key: str) -> float:
        """Insert or replace an item."""
        return self._write(container, record, partition_key, overwrite=True)

    def read_item(
        self,
        container: MemoryContainer,
        item_id: str,
        partition_key: str,
        consistency: Optional[str] = None,
    ) -> ItemResponse:
        """Point read; Eventual reads are cache hits after the first read."""
        self._require_live(container)
        key = (str(partition_key), str(item_id))
        cache_key = (container.database_id, container.container_id) + key

        if self._serves_from_cache(consistency) and cache_key in self._item_cache:
            return ItemResponse(record=copy.deepcopy(self._item_cache[cache_key]), cost=0.0)

        if key not in container.items:
            raise NotFoundError(f"Item with id '{item_id}' does not exist")

        document = container.items[key]
        if self.integrated_cache:
            self._item_cache[cache_key] = document
        return ItemResponse(record=copy.deepcopy(document), cost=READ_CHARGE)

    def query(
        self,
        container: MemoryContainer,
        query_text: str,
        consistency: Optional[str] = None,
        partition_key: Optional[str] = None,
    ) -> Iterator[QueryPage]:
        """Evaluate the query and yield pages of at most ``page_size`` items."""
        self._require_live(container)
        cache_key = (container.database_id, container.container_id, partition_key, query_text)

        if self._serves_from_cache(consistency) and cache_key in self._query_cache:
            for items in self._query_cache[cache_key]:
                yield QueryPage(items=copy.deepcopy(items), cost=0.0)
            return

        documents = [
            doc for (pk, _), doc in sorted(container.items.items(), key=lambda kv: kv[1]["_ts"])
            if partition_key is None or pk == str(partition_key)
        ]
        results = evaluate_query(query_text, documents)

        pages = [
            results[start:start + self.page_size]
            for start in range(0, len(results), self.page_size)
        ] or [[]]

        if self.integrated_cache:
            self._query_cache[cache_key] = pages
        for items in pages:
            yield QueryPage(items=copy.deepcopy(items), cost=QUERY_PAGE_CHARGE)

    def delete_database(self, database_id: str) -> None:
        """Delete a database and mark its containers as gone."""
        store = self._require_store()
        if database_id not in store.databases:
            raise NotFoundError(f"Database '{database_id}' not found")
        for container in store.databases.pop(database_id).values():
            container.deleted = True
        self._item_cache = {k: v for k, v in self._item_cache.items() if k[0] != database_id}
        self._query_cache = {k: v for k, v in self._query_cache.items() if k[0] != database_id}
        print(f"Deleted database '{database_id}'")

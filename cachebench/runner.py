"""Benchmark runner for integrated cache performance testing."""

import time
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from .clients.base import BaseDataStoreClient, ItemResponse, QueryPage
from .data_generator import CustomerGenerator
from .descriptor import BenchmarkDescriptor, BenchmarkKind
from .errors import DataStoreError, OperationError, RecoverableOperationError
from .metrics import summarize
from .results import OperationResult, RunSummary

DEFAULT_WRITE_BATCH_SIZE = 100
DEFAULT_POINT_READ_COUNT = 100
DEFAULT_QUERY_ITERATIONS = 100
DEFAULT_QUERY_TEXT = 'SELECT TOP 10 c.id FROM c WHERE CONTAINS(UPPER(c.name), "TIM")'

# Oldest items first, so repeated runs read the same ids
ID_QUERY_TEMPLATE = "SELECT TOP {count} VALUE c.id FROM c ORDER BY c._ts"

T = TypeVar("T")


def perf_counter_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.perf_counter() * 1000.0


class BenchmarkRunner:
    """Runs timed write, point-read and query workloads against one client."""

    def __init__(
        self,
        client: BaseDataStoreClient,
        generator: Optional[CustomerGenerator] = None,
        write_batch_size: int = DEFAULT_WRITE_BATCH_SIZE,
        point_read_count: int = DEFAULT_POINT_READ_COUNT,
        query_iterations: int = DEFAULT_QUERY_ITERATIONS,
        query_text: str = DEFAULT_QUERY_TEXT,
        warmup_reads: bool = True,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the benchmark runner.

        Args:
            client: Connected data store client
            generator: Source of synthetic records for writes
            write_batch_size: Number of items written by a Write run
            point_read_count: Maximum number of ids read by a PointRead run
            query_iterations: Number of query executions in a Query run
            query_text: Query executed by a Query run
            warmup_reads: Read every id once, untimed, before timed point reads
            clock: Millisecond clock used for latency measurement
        """
        for label, value in (
            ("write_batch_size", write_batch_size),
            ("point_read_count", point_read_count),
            ("query_iterations", query_iterations),
        ):
            if value < 0:
                raise ValueError(f"{label} must be non-negative, got {value}")

        self.client = client
        self.generator = generator or CustomerGenerator()
        self.write_batch_size = write_batch_size
        self.point_read_count = point_read_count
        self.query_iterations = query_iterations
        self.query_text = query_text
        self.warmup_reads = warmup_reads
        self.clock = clock or perf_counter_ms

    def _timed(self, call: Callable[[], T]) -> Tuple[T, float]:
        start = self.clock()
        value = call()
        return value, max(self.clock() - start, 0.0)

    def run(
        self,
        descriptor: BenchmarkDescriptor,
        container: Optional[Any] = None,
    ) -> Optional[RunSummary]:
        """
        Run the sequential benchmark matching the descriptor's kind.

        Args:
            descriptor: Benchmark to run; its summary is replaced
            container: Container handle (defaults to descriptor.container)

        Returns:
            RunSummary, or None if the run had nothing to measure

        Raises:
            OperationError: If any operation fails; no summary is produced
        """
        if descriptor.kind.is_custom:
            raise ValueError(
                f"{descriptor.kind.label} is interactive; use the custom_* operations"
            )
        container = container if container is not None else descriptor.container
        if container is None:
            raise RuntimeError(f"Benchmark '{descriptor.name}' has not been provisioned")

        descriptor.summary = None
        print(f"\n{'='*60}")
        print(f"{descriptor.kind.label}: {descriptor.name}")
        print(descriptor.description)
        print(f"{'='*60}")

        if descriptor.kind is BenchmarkKind.WRITE:
            results = self.run_write_benchmark(descriptor, container)
        elif descriptor.kind is BenchmarkKind.POINT_READ:
            results = self.run_point_read_benchmark(descriptor, container)
        else:
            results = self.run_query_benchmark(descriptor, container)

        return self._finish(descriptor, results)

    def run_write_benchmark(
        self,
        descriptor: BenchmarkDescriptor,
        container: Any,
    ) -> List[OperationResult]:
        """
        Write a batch of synthetic customers, one timed create per item.

        Returns:
            One OperationResult per write, in issuing order
        """
        label = descriptor.kind.label
        customers = self.generator.generate_many(
            descriptor.partition_key_value, self.write_batch_size
        )
        total = len(customers)
        results = []

        for index, customer in enumerate(customers, start=1):
            document = customer.to_document(descriptor.partition_key_field)
            try:
                cost, latency_ms = self._timed(
                    lambda: self.client.create_item(
                        container, document, descriptor.partition_key_value
                    )
                )
            except DataStoreError as e:
                raise OperationError(descriptor.name, label, str(e), index=index) from e

            print(
                f"Write {index} of {total}, Latency: {latency_ms:.1f} ms, "
                f"Request Charge: {cost} RUs"
            )
            results.append(OperationResult(latency_ms=latency_ms, cost=cost))

        return results

    def fetch_ids(self, descriptor: BenchmarkDescriptor, container: Any) -> List[str]:
        """
        Fetch up to ``point_read_count`` item ids, oldest first (untimed).

        Raises:
            OperationError: If the id query fails
        """
        query_text = ID_QUERY_TEMPLATE.format(count=self.point_read_count)
        ids: List[str] = []
        try:
            for page in self.client.query(
                container, query_text, partition_key=descriptor.partition_key_value
            ):
                ids.extend(str(item_id) for item_id in page.items)
        except DataStoreError as e:
            raise OperationError(
                descriptor.name, descriptor.kind.label, f"fetching ids failed: {e}"
            ) from e
        return ids

    def run_point_read_benchmark(
        self,
        descriptor: BenchmarkDescriptor,
        container: Any,
    ) -> List[OperationResult]:
        """
        Read existing items by id, one timed read per id.

        Ids are fetched first, then (if enabled) read once untimed so a
        cache in front of the store is warm before measurement starts.

        Returns:
            One OperationResult per read, in id order
        """
        if self.point_read_count == 0:
            return []

        label = descriptor.kind.label
        ids = self.fetch_ids(descriptor, container)
        total = len(ids)
        if total == 0:
            return []

        if self.warmup_reads:
            print(f"Running {total} warmup reads...")
            for item_id in ids:
                try:
                    self.client.read_item(
                        container, item_id, descriptor.partition_key_value,
                        descriptor.request_consistency,
                    )
                except DataStoreError as e:
                    raise OperationError(
                        descriptor.name, label, f"warmup read of '{item_id}' failed: {e}"
                    ) from e

        results = []
        for index, item_id in enumerate(ids, start=1):
            try:
                response, latency_ms = self._timed(
                    lambda: self.client.read_item(
                        container, item_id, descriptor.partition_key_value,
                        descriptor.request_consistency,
                    )
                )
            except DataStoreError as e:
                raise OperationError(descriptor.name, label, str(e), index=index) from e

            print(
                f"Read {index} of {total}, Latency: {latency_ms:.1f} ms, "
                f"Request Charge: {response.cost} RUs"
            )
            results.append(OperationResult(latency_ms=latency_ms, cost=response.cost))

        return results

    def _drain_query(self, container: Any, query_text: str, consistency: str) -> QueryPage:
        """Fetch every page of one query execution; return all items and the summed cost."""
        items: List[Any] = []
        cost = 0.0
        for page in self.client.query(container, query_text, consistency=consistency):
            items.extend(page.items)
            cost += page.cost
        return QueryPage(items=items, cost=cost)

    def run_query_benchmark(
        self,
        descriptor: BenchmarkDescriptor,
        container: Any,
    ) -> List[OperationResult]:
        """
        Execute the benchmark query repeatedly.

        Each execution is timed across all of its pages and recorded as one
        OperationResult carrying the summed page charges.

        Returns:
            One OperationResult per query execution
        """
        label = descriptor.kind.label
        total = self.query_iterations
        results = []

        for index in range(1, total + 1):
            try:
                drained, latency_ms = self._timed(
                    lambda: self._drain_query(
                        container, self.query_text, descriptor.request_consistency
                    )
                )
            except DataStoreError as e:
                raise OperationError(descriptor.name, label, str(e), index=index) from e

            print(
                f"Query {index} of {total}, Latency: {latency_ms:.1f} ms, "
                f"Request Charge: {drained.cost} RUs"
            )
            results.append(OperationResult(latency_ms=latency_ms, cost=drained.cost))

        return results

    def _finish(
        self,
        descriptor: BenchmarkDescriptor,
        results: List[OperationResult],
    ) -> Optional[RunSummary]:
        if not results:
            print(f"\nNo data: {descriptor.kind.label} with {descriptor.name} performed no operations")
            return None

        summary = summarize(descriptor.name, descriptor.kind.label, results)
        descriptor.summary = summary

        print("\nSummary\n")
        print(f"Test {summary.operation_count} {summary.kind} with {summary.name}\n")
        print(f"Average Latency:\t{summary.latency_display} ms")
        print(f"Average Request Units:\t{summary.cost_display} RUs")
        return summary

    # Interactive operations: one call each, never aggregated.

    def custom_write(
        self,
        descriptor: BenchmarkDescriptor,
        container: Any,
        item_id: str,
        name: str,
    ) -> float:
        """
        Upsert one customer with a chosen id and name.

        Returns:
            Request charge

        Raises:
            RecoverableOperationError: If the id is empty or the upsert fails
        """
        if not item_id:
            raise RecoverableOperationError(descriptor.name, descriptor.kind.label, "item id is empty")
        customer = self.generator.generate_single(descriptor.partition_key_value, item_id, name)
        try:
            return self.client.upsert_item(
                container,
                customer.to_document(descriptor.partition_key_field),
                descriptor.partition_key_value,
            )
        except DataStoreError as e:
            raise RecoverableOperationError(descriptor.name, descriptor.kind.label, str(e)) from e

    def custom_point_read(
        self,
        descriptor: BenchmarkDescriptor,
        container: Any,
        item_id: str,
    ) -> ItemResponse:
        """
        Read one item with the descriptor's current consistency.

        Raises:
            RecoverableOperationError: If the item does not exist or the read fails
        """
        try:
            return self.client.read_item(
                container, item_id, descriptor.partition_key_value,
                descriptor.request_consistency,
            )
        except DataStoreError as e:
            raise RecoverableOperationError(descriptor.name, descriptor.kind.label, str(e)) from e

    def custom_query(
        self,
        descriptor: BenchmarkDescriptor,
        container: Any,
        query_text: str,
    ) -> QueryPage:
        """
        Run one query to completion with the descriptor's current consistency.

        Returns:
            QueryPage holding every result item and the summed request charge

        Raises:
            RecoverableOperationError: If the query is malformed or fails
        """
        if not query_text or not query_text.strip():
            raise RecoverableOperationError(descriptor.name, descriptor.kind.label, "query is empty")
        try:
            return self._drain_query(container, query_text, descriptor.request_consistency)
        except DataStoreError as e:
            raise RecoverableOperationError(descriptor.name, descriptor.kind.label, str(e)) from e

"""Ensure benchmark containers exist and hold data before runs."""

import logging
from typing import Any, Optional

from .clients.base import BaseDataStoreClient
from .data_generator import CustomerGenerator
from .descriptor import BenchmarkDescriptor
from .errors import DataStoreError, NotFoundError, ProvisionError

logger = logging.getLogger(__name__)

DEFAULT_THROUGHPUT = 6000
DEFAULT_INGEST_COUNT = 1000

# Print ingest progress every N items
INGEST_PROGRESS_INTERVAL = 100


class ProvisioningCoordinator:
    """Creates missing databases/containers and loads the initial data set."""

    def __init__(
        self,
        generator: Optional[CustomerGenerator] = None,
        ingest_count: int = DEFAULT_INGEST_COUNT,
        throughput: int = DEFAULT_THROUGHPUT,
    ):
        """
        Initialize the coordinator.

        Args:
            generator: Source of synthetic records for the initial ingest
            ingest_count: Number of records loaded into a new container
            throughput: Provisioned RU/s for new containers
        """
        if ingest_count < 0:
            raise ValueError(f"ingest_count must be non-negative, got {ingest_count}")
        self.generator = generator or CustomerGenerator()
        self.ingest_count = ingest_count
        self.throughput = throughput

    def ensure_ready(self, client: BaseDataStoreClient, descriptor: BenchmarkDescriptor) -> Any:
        """
        Resolve the descriptor's container, provisioning it if absent.

        The resolved handle is cached on ``descriptor.container`` and
        returned. An existing container costs one metadata read and is never
        re-ingested, even if an earlier ingest stopped partway.

        Args:
            client: Connected client for the descriptor's connection
            descriptor: Benchmark descriptor to prepare

        Returns:
            Container handle

        Raises:
            ProvisionError: If the container cannot be resolved or created,
                            or the initial ingest fails
        """
        try:
            container = client.resolve_container(descriptor.database_id, descriptor.container_id)
            logger.debug(
                "Container %s/%s ready for '%s'",
                descriptor.database_id, descriptor.container_id, descriptor.name,
            )
        except NotFoundError:
            container = self._provision(client, descriptor)
        except DataStoreError as e:
            descriptor.container = None
            raise ProvisionError(descriptor.name, descriptor.kind.label, str(e)) from e

        descriptor.container = container
        return container

    def _provision(self, client: BaseDataStoreClient, descriptor: BenchmarkDescriptor) -> Any:
        print(
            f"\nContainer '{descriptor.database_id}/{descriptor.container_id}' "
            f"not found, provisioning for '{descriptor.name}'..."
        )
        try:
            client.create_database_if_missing(descriptor.database_id)
            container = client.create_container_if_missing(
                descriptor.database_id,
                descriptor.container_id,
                descriptor.partition_key_path,
                self.throughput,
            )
        except DataStoreError as e:
            descriptor.container = None
            raise ProvisionError(
                descriptor.name, descriptor.kind.label, f"container creation failed: {e}"
            ) from e

        self.initial_ingest(client, descriptor, container)
        return container

    def initial_ingest(
        self,
        client: BaseDataStoreClient,
        descriptor: BenchmarkDescriptor,
        container: Any,
    ) -> int:
        """
        Load ``ingest_count`` synthetic customers into a new container.

        Returns:
            Number of items written
        """
        print(f"\nInitial data ingest: {self.ingest_count:,} items")
        customers = self.generator.generate_many(descriptor.partition_key_value, self.ingest_count)

        inserted = 0
        for customer in customers:
            try:
                client.create_item(
                    container,
                    customer.to_document(descriptor.partition_key_field),
                    descriptor.partition_key_value,
                )
            except DataStoreError as e:
                raise ProvisionError(
                    descriptor.name,
                    descriptor.kind.label,
                    f"initial ingest failed after {inserted} items: {e}",
                ) from e
            inserted += 1
            if inserted % INGEST_PROGRESS_INTERVAL == 0:
                print(f"  Inserted {inserted:,} items into '{descriptor.container_id}'")

        return inserted

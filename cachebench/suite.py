"""Sequences benchmark descriptors: provisioning, runs, reports and cleanup."""

import logging
from typing import Any, Callable, Dict, List, Optional

from .clients.base import BaseDataStoreClient
from .descriptor import BenchmarkDescriptor, ConnectionSettings
from .errors import BenchmarkError, DeleteError, NotFoundError, ProvisionError
from .interactive import InputSource, run_custom_session
from .provisioning import ProvisioningCoordinator
from .report import print_console_report
from .results import CleanupOutcome, RunSummary
from .runner import BenchmarkRunner

logger = logging.getLogger(__name__)

# Returns a connected client for a connection
ClientFactory = Callable[[ConnectionSettings], BaseDataStoreClient]
RunnerFactory = Callable[[BaseDataStoreClient], BenchmarkRunner]


class BenchmarkSuite:
    """
    Owns a list of benchmark descriptors and runs them one at a time.

    One client (and runner) is created per distinct connection, lazily, so
    descriptors that share an endpoint share a client.
    """

    def __init__(
        self,
        name: str,
        descriptors: List[BenchmarkDescriptor],
        client_factory: ClientFactory,
        coordinator: Optional[ProvisioningCoordinator] = None,
        runner_factory: Optional[RunnerFactory] = None,
        input_source: Optional[InputSource] = None,
    ):
        """
        Initialize the suite.

        Args:
            name: Suite name used in reports
            descriptors: Benchmarks in execution order
            client_factory: Builds a connected client for a connection
            coordinator: Provisioning coordinator (default settings if None)
            runner_factory: Builds a runner for a client (default settings if None)
            input_source: Drives custom-kind descriptors; they are skipped without one
        """
        self.name = name
        self.descriptors = list(descriptors)
        self.client_factory = client_factory
        self.coordinator = coordinator or ProvisioningCoordinator()
        self.runner_factory = runner_factory or BenchmarkRunner
        self.input_source = input_source
        self.failures: List[BenchmarkError] = []
        self._clients: Dict[ConnectionSettings, BaseDataStoreClient] = {}
        self._runners: Dict[ConnectionSettings, BenchmarkRunner] = {}

    def client_for(self, descriptor: BenchmarkDescriptor) -> BaseDataStoreClient:
        """Return the client for the descriptor's connection, creating it on first use."""
        connection = descriptor.connection
        if connection not in self._clients:
            self._clients[connection] = self.client_factory(connection)
        return self._clients[connection]

    def runner_for(self, descriptor: BenchmarkDescriptor) -> BenchmarkRunner:
        """Return the runner bound to the descriptor's client."""
        connection = descriptor.connection
        if connection not in self._runners:
            self._runners[connection] = self.runner_factory(self.client_for(descriptor))
        return self._runners[connection]

    def prepare(self, descriptor: BenchmarkDescriptor) -> Any:
        """
        Connect and provision one descriptor.

        Returns:
            Container handle

        Raises:
            ProvisionError: If the store cannot be reached or provisioned
        """
        try:
            client = self.client_for(descriptor)
        except Exception as e:
            raise ProvisionError(
                descriptor.name, descriptor.kind.label, f"could not connect: {e}"
            ) from e
        return self.coordinator.ensure_ready(client, descriptor)

    def _record_failure(self, error: BenchmarkError) -> None:
        self.failures.append(error)
        logger.error("%s", error)
        print(f"\nError: {error}")

    def initialize_all(self) -> List[ProvisionError]:
        """
        Provision every descriptor in order.

        A failure is reported and the next descriptor is still attempted.

        Returns:
            Provisioning failures, in descriptor order
        """
        errors = []
        for descriptor in self.descriptors:
            try:
                self.prepare(descriptor)
            except ProvisionError as e:
                self._record_failure(e)
                errors.append(e)
        return errors

    def run_descriptor(self, descriptor: BenchmarkDescriptor) -> Optional[RunSummary]:
        """
        Provision and run one descriptor.

        Custom kinds run an interactive session and return None.

        Raises:
            BenchmarkError: If provisioning or the run fails
        """
        container = self.prepare(descriptor)
        runner = self.runner_for(descriptor)

        if descriptor.kind.is_custom:
            if self.input_source is None:
                print(f"\nSkipping interactive benchmark '{descriptor.name}' (no input source)")
                return None
            print(f"\n{descriptor.description}")
            run_custom_session(runner, descriptor, container, self.input_source)
            return None

        return runner.run(descriptor, container)

    def run_all(self) -> List[Optional[RunSummary]]:
        """
        Run every descriptor in order and print the comparison report.

        Returns:
            One entry per descriptor: its RunSummary, or None for custom kinds,
            failed runs and runs without data
        """
        summaries: List[Optional[RunSummary]] = []
        for descriptor in self.descriptors:
            try:
                summaries.append(self.run_descriptor(descriptor))
            except BenchmarkError as e:
                self._record_failure(e)
                summaries.append(None)

        if any(not d.kind.is_custom for d in self.descriptors):
            print_console_report(self.name, self.descriptors, summaries)

        return summaries

    def clean_up_all(self) -> List[CleanupOutcome]:
        """
        Delete every descriptor's database (best effort).

        A database that is already gone counts as cleaned up. Any other
        failure is logged and returned as an unsuccessful outcome; it never
        stops the remaining deletions. Cached handles and summaries are
        cleared.

        Returns:
            One CleanupOutcome per descriptor
        """
        outcomes = []
        for descriptor in self.descriptors:
            descriptor.container = None
            descriptor.summary = None
            try:
                self.client_for(descriptor).delete_database(descriptor.database_id)
            except NotFoundError:
                logger.info("Database '%s' already deleted", descriptor.database_id)
            except Exception as e:
                error = DeleteError(descriptor.name, "Clean up", str(e))
                logger.warning("%s", error)
                outcomes.append(CleanupOutcome(
                    name=descriptor.name,
                    database_id=descriptor.database_id,
                    success=False,
                    error=str(e),
                ))
                continue
            outcomes.append(CleanupOutcome(
                name=descriptor.name,
                database_id=descriptor.database_id,
                success=True,
            ))
        return outcomes

    def close(self) -> None:
        """Disconnect every client created by this suite."""
        for client in self._clients.values():
            try:
                client.disconnect()
            except Exception as e:
                logger.debug("Error disconnecting %s: %s", client.name, e)
        self._clients.clear()
        self._runners.clear()

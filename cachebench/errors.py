"""Exception types for data store clients and benchmark runs."""

from typing import Optional


class DataStoreError(Exception):
    """A data store client call failed."""


class NotFoundError(DataStoreError):
    """The requested database, container or item does not exist."""


class BenchmarkError(Exception):
    """
    Base class for failures attributed to a benchmark descriptor.

    Args:
        descriptor_name: Name of the descriptor that failed
        operation: Human-readable operation kind (e.g., "Point Reads")
        reason: What went wrong
    """

    def __init__(self, descriptor_name: str, operation: str, reason: str):
        self.descriptor_name = descriptor_name
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} with '{descriptor_name}' failed: {reason}")


class ProvisionError(BenchmarkError):
    """Database/container creation or the initial ingest failed."""


class OperationError(BenchmarkError):
    """A sequential benchmark operation failed; the run is aborted."""

    def __init__(
        self,
        descriptor_name: str,
        operation: str,
        reason: str,
        index: Optional[int] = None,
    ):
        self.index = index
        if index is not None:
            reason = f"operation {index}: {reason}"
        super().__init__(descriptor_name, operation, reason)


class RecoverableOperationError(BenchmarkError):
    """A single interactive operation failed; the session continues."""


class DeleteError(BenchmarkError):
    """Deleting a benchmark database failed."""

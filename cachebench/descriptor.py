"""Benchmark descriptors: what to run and where."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .results import RunSummary

# Consistency levels used per request. Eventual reads may be served by the
# integrated cache; Session reads always go to the backend.
EVENTUAL = "Eventual"
SESSION = "Session"
CONSISTENCY_LEVELS = (EVENTUAL, SESSION)


class BenchmarkKind(Enum):
    """Kind of workload a descriptor runs."""

    WRITE = "write"
    POINT_READ = "point_read"
    QUERY = "query"
    CUSTOM_WRITE = "custom_write"
    CUSTOM_POINT_READ = "custom_point_read"
    CUSTOM_QUERY = "custom_query"

    @property
    def label(self) -> str:
        """Display label used in progress output and summaries."""
        return _KIND_LABELS[self]

    @property
    def is_custom(self) -> bool:
        """Whether this kind is an interactive, non-aggregated mode."""
        return self in (
            BenchmarkKind.CUSTOM_WRITE,
            BenchmarkKind.CUSTOM_POINT_READ,
            BenchmarkKind.CUSTOM_QUERY,
        )


_KIND_LABELS = {
    BenchmarkKind.WRITE: "Writes",
    BenchmarkKind.POINT_READ: "Point Reads",
    BenchmarkKind.QUERY: "Queries",
    BenchmarkKind.CUSTOM_WRITE: "CustomWrite",
    BenchmarkKind.CUSTOM_POINT_READ: "CustomPointRead",
    BenchmarkKind.CUSTOM_QUERY: "CustomQuery",
}


@dataclass(frozen=True)
class ConnectionSettings:
    """Parameters needed to reach one store endpoint."""

    database: str  # Client type: "cosmos" or "memory"
    endpoint: str
    key: str = field(default="", repr=False)
    consistency_level: Optional[str] = None  # Client default; None = account default
    integrated_cache: bool = False  # Only honoured by the in-memory client


@dataclass
class BenchmarkDescriptor:
    """
    A named benchmark run against one container.

    ``container`` and ``summary`` start empty: the container handle is cached
    by provisioning and the summary by the runner.
    """

    kind: BenchmarkKind
    name: str
    description: str
    connection: ConnectionSettings
    database_id: str
    container_id: str
    partition_key_path: str
    partition_key_value: str
    request_consistency: str = EVENTUAL
    container: Optional[Any] = field(default=None, repr=False)
    summary: Optional[RunSummary] = None

    def __post_init__(self):
        if not isinstance(self.kind, BenchmarkKind):
            raise TypeError(f"kind must be a BenchmarkKind, got {self.kind!r}")
        if not self.partition_key_path.startswith("/"):
            raise ValueError(
                f"partition_key_path must start with '/', got {self.partition_key_path!r}"
            )
        if self.request_consistency not in CONSISTENCY_LEVELS:
            raise ValueError(
                f"Unsupported consistency: {self.request_consistency}. "
                f"Supported: {', '.join(CONSISTENCY_LEVELS)}"
            )

    def __setattr__(self, name, value):
        if name == "kind" and "kind" in self.__dict__:
            raise AttributeError("kind cannot be changed after creation")
        super().__setattr__(name, value)

    @property
    def partition_key_field(self) -> str:
        """Document field holding the partition key (path without the '/')."""
        return self.partition_key_path.lstrip("/")

    def use_cache(self, enabled: bool) -> None:
        """Route later reads/queries through the cache (Eventual) or the backend (Session)."""
        self.request_consistency = EVENTUAL if enabled else SESSION

"""Data classes for benchmark results."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OperationResult:
    """Latency and request charge of one timed operation."""

    latency_ms: float
    cost: float

    def __post_init__(self):
        if self.latency_ms < 0:
            raise ValueError(f"latency_ms must be non-negative, got {self.latency_ms}")
        if self.cost < 0:
            raise ValueError(f"cost must be non-negative, got {self.cost}")


@dataclass(frozen=True)
class RunSummary:
    """Trimmed-mean summary of one benchmark run."""

    name: str
    kind: str  # Display label of the benchmark kind, e.g. "Point Reads"
    operation_count: int
    average_latency_ms: float
    average_cost: float

    @property
    def latency_display(self) -> str:
        """Average latency to one decimal place."""
        return f"{self.average_latency_ms:.1f}"

    @property
    def cost_display(self) -> str:
        """Average request charge to one decimal place."""
        return f"{self.average_cost:.1f}"


@dataclass(frozen=True)
class CleanupOutcome:
    """Result of deleting one descriptor's database."""

    name: str
    database_id: str
    success: bool
    error: Optional[str] = None

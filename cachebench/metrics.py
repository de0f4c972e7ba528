"""Metrics calculation for cache benchmarks."""

from typing import Sequence, Tuple

import numpy as np

from .results import OperationResult, RunSummary

# Number of lowest-latency results averaged into a summary. This is a fixed
# rank, not a percentile of the sample size: runs with fewer results are
# averaged in full. Kept literal so summaries stay comparable across runs.
TRIM_RANK = 99

SUMMARY_DECIMALS = 1


def trimmed_mean_by_latency(
    results: Sequence[OperationResult],
    cutoff: int = TRIM_RANK,
) -> Tuple[float, float]:
    """
    Average latency and cost over the ``cutoff`` fastest results.

    Results are ranked by latency, ties broken by cost, so the outcome does
    not depend on the order of ``results``.

    Args:
        results: Operation results of one run
        cutoff: Number of lowest-latency results to keep

    Returns:
        Tuple of (mean latency in ms, mean cost), unrounded
    """
    if not results:
        raise ValueError("Cannot summarize an empty result set")
    if cutoff <= 0:
        raise ValueError(f"cutoff must be positive, got {cutoff}")

    latencies = np.array([r.latency_ms for r in results], dtype=np.float64)
    costs = np.array([r.cost for r in results], dtype=np.float64)

    # lexsort sorts by the last key first
    order = np.lexsort((costs, latencies))[:cutoff]

    return float(np.mean(latencies[order])), float(np.mean(costs[order]))


def summarize(name: str, kind: str, results: Sequence[OperationResult]) -> RunSummary:
    """
    Build the run summary for a list of operation results.

    Args:
        name: Descriptor name
        kind: Display label of the benchmark kind
        results: Operation results in issuing order

    Returns:
        RunSummary with means rounded to one decimal place
    """
    mean_latency, mean_cost = trimmed_mean_by_latency(results)
    return RunSummary(
        name=name,
        kind=kind,
        operation_count=len(results),
        average_latency_ms=round(mean_latency, SUMMARY_DECIMALS),
        average_cost=round(mean_cost, SUMMARY_DECIMALS),
    )

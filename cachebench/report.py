"""Report generation for benchmark summaries."""

import csv
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from .descriptor import BenchmarkDescriptor
from .results import RunSummary

NO_DATA = "no data"

ReportRow = Tuple[BenchmarkDescriptor, Optional[RunSummary]]


def report_rows(
    descriptors: Sequence[BenchmarkDescriptor],
    summaries: Sequence[Optional[RunSummary]],
) -> List[ReportRow]:
    """
    Pair descriptors with their summaries, dropping interactive kinds.

    Args:
        descriptors: Descriptors in run order
        summaries: One entry per descriptor (None when there is no summary)
    """
    if len(descriptors) != len(summaries):
        raise ValueError(
            f"Descriptor count ({len(descriptors)}) does not match "
            f"summary count ({len(summaries)})"
        )
    return [
        (descriptor, summary)
        for descriptor, summary in zip(descriptors, summaries)
        if not descriptor.kind.is_custom
    ]


def print_console_report(
    suite_name: str,
    descriptors: Sequence[BenchmarkDescriptor],
    summaries: Sequence[Optional[RunSummary]],
) -> None:
    """
    Print the side-by-side comparison of every non-interactive run.

    Args:
        suite_name: Title of the report
        descriptors: Descriptors in run order
        summaries: One entry per descriptor
    """
    rows = report_rows(descriptors, summaries)

    print("\n" + "=" * 80)
    print(f"INTEGRATED CACHE BENCHMARK RESULTS: {suite_name}")
    print("-" * 80)
    print(f"{'Kind':<12} {'Test':<34} {'Avg Latency(ms)':>16} {'Avg RU':>10}")
    print("-" * 80)

    for descriptor, summary in rows:
        if summary is None:
            latency, cost = NO_DATA, NO_DATA
        else:
            latency, cost = summary.latency_display, summary.cost_display
        print(f"{descriptor.kind.label:<12} {descriptor.name:<34} {latency:>16} {cost:>10}")

    print("=" * 80)


def save_summary_csv(rows: Sequence[ReportRow], output_path: str) -> None:
    """
    Save run summaries to CSV.

    Rows without a summary are written with empty metric columns.

    Args:
        rows: (descriptor, summary) pairs
        output_path: Path to output CSV file
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="") as f:
        writer = csv.writer(f)

        writer.writerow([
            "kind",
            "name",
            "endpoint",
            "consistency",
            "operations",
            "average_latency_ms",
            "average_cost",
        ])

        for descriptor, summary in rows:
            writer.writerow([
                descriptor.kind.label,
                descriptor.name,
                descriptor.connection.endpoint,
                descriptor.request_consistency,
                summary.operation_count if summary else 0,
                summary.latency_display if summary else "",
                summary.cost_display if summary else "",
            ])

    print(f"Saved summaries to {path}")


def plot_summary(
    rows: Sequence[ReportRow],
    output_path: str,
    title: str = "Average latency and request charge",
) -> bool:
    """
    Bar chart of average latency and average RU per run.

    Args:
        rows: (descriptor, summary) pairs; rows without a summary are skipped
        output_path: Path to save the plot
        title: Plot title

    Returns:
        True if a plot was written
    """
    plotted = [(d, s) for d, s in rows if s is not None]
    if not plotted:
        print("No summaries to plot")
        return False

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    labels = [f"{s.kind}\n{d.name}" for d, s in plotted]
    latencies = [s.average_latency_ms for _, s in plotted]
    costs = [s.average_cost for _, s in plotted]
    positions = np.arange(len(plotted))

    fig, (ax_latency, ax_cost) = plt.subplots(1, 2, figsize=(14, 6))

    ax_latency.bar(positions, latencies, color="steelblue")
    ax_latency.set_ylabel("Average latency (ms)", fontsize=12)
    ax_latency.set_title("Latency", fontsize=12)

    ax_cost.bar(positions, costs, color="darkorange")
    ax_cost.set_ylabel("Average request units (RU)", fontsize=12)
    ax_cost.set_title("Request charge", fontsize=12)

    for ax in (ax_latency, ax_cost):
        ax.set_xticks(positions)
        ax.set_xticklabels(labels, rotation=30, ha="right", fontsize=8)
        ax.grid(True, axis="y", alpha=0.3)

    fig.suptitle(title, fontsize=14)
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)

    print(f"Saved plot to {path}")
    return True


def generate_full_report(
    suite_name: str,
    descriptors: Sequence[BenchmarkDescriptor],
    summaries: Sequence[Optional[RunSummary]],
    output_dir: str = "results",
) -> None:
    """
    Write the CSV and the plot for a suite run.

    Args:
        suite_name: Suite name, used in file names and the plot title
        descriptors: Descriptors in run order
        summaries: One entry per descriptor
        output_dir: Directory to save output files
    """
    rows = report_rows(descriptors, summaries)
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    save_summary_csv(rows, str(output_path / f"{suite_name}_summary.csv"))
    plot_summary(
        rows,
        str(output_path / f"{suite_name}_summary.png"),
        title=f"{suite_name} - average latency and request charge",
    )

"""Tests for console, CSV and chart reports."""

import csv

import pytest

from cachebench.descriptor import BenchmarkKind
from cachebench.report import (
    NO_DATA,
    generate_full_report,
    plot_summary,
    print_console_report,
    report_rows,
    save_summary_csv,
)
from cachebench.results import RunSummary


@pytest.fixture
def rows(make_descriptor, dedicated_connection):
    descriptors = [
        make_descriptor(BenchmarkKind.POINT_READ, name="account without integrated cache"),
        make_descriptor(BenchmarkKind.POINT_READ, name="account with integrated cache",
                        connection=dedicated_connection),
        make_descriptor(BenchmarkKind.QUERY, name="empty"),
        make_descriptor(BenchmarkKind.CUSTOM_QUERY, name="interactive"),
    ]
    summaries = [
        RunSummary("account without integrated cache", "Point Reads", 100, 4.2, 1.0),
        RunSummary("account with integrated cache", "Point Reads", 100, 1.3, 0.0),
        None,
        None,
    ]
    return descriptors, summaries


def test_report_rows_drop_interactive_kinds(rows):
    descriptors, summaries = rows
    paired = report_rows(descriptors, summaries)
    assert [d.name for d, _ in paired] == [
        "account without integrated cache", "account with integrated cache", "empty",
    ]


def test_report_rows_require_matching_lengths(rows):
    descriptors, summaries = rows
    with pytest.raises(ValueError):
        report_rows(descriptors, summaries[:-1])


def test_console_report(rows, capsys):
    print_console_report("performance", *rows)
    out = capsys.readouterr().out

    assert "INTEGRATED CACHE BENCHMARK RESULTS: performance" in out
    assert "interactive" not in out
    lines = out.splitlines()
    cached = next(line for line in lines if "account with integrated cache" in line)
    assert cached.split()[-2:] == ["1.3", "0.0"]
    empty = next(line for line in lines if line.startswith("Queries"))
    assert empty.count(NO_DATA) == 2


def test_summary_csv(rows, tmp_path):
    path = tmp_path / "nested" / "summary.csv"
    save_summary_csv(report_rows(*rows), str(path))

    with open(path, newline="") as f:
        records = list(csv.DictReader(f))

    assert len(records) == 3
    assert records[1]["average_latency_ms"] == "1.3"
    assert records[1]["average_cost"] == "0.0"
    assert records[1]["consistency"] == "Eventual"
    assert records[2]["operations"] == "0"
    assert records[2]["average_cost"] == ""


def test_plot_skips_when_nothing_to_plot(make_descriptor, tmp_path):
    path = tmp_path / "plot.png"
    assert not plot_summary([(make_descriptor(BenchmarkKind.QUERY), None)], str(path))
    assert not path.exists()


def test_full_report_writes_csv_and_chart(rows, tmp_path):
    generate_full_report("performance", *rows, output_dir=str(tmp_path))

    assert (tmp_path / "performance_summary.csv").exists()
    assert (tmp_path / "performance_summary.png").stat().st_size > 0

#!/usr/bin/env python3
"""
Integrated Cache Benchmark Tool

Compares latency and request charge (RU) of writes, point reads and queries
against a Cosmos DB account with and without the integrated cache.

Usage:
    # Interactive menu
    python run_benchmark.py --config configs/cosmos.yaml --benchmark benchmark.yaml

    # One-shot actions
    python run_benchmark.py --config configs/cosmos.yaml --action initialize
    python run_benchmark.py --config configs/cosmos.yaml --action performance --output results
    python run_benchmark.py --config configs/cosmos.yaml --action cleanup

    # Offline, against the in-process store
    python run_benchmark.py --config configs/memory.yaml --action performance
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from cachebench.clients.base import BaseDataStoreClient
from cachebench.config import (
    BenchmarkSettings,
    build_suite_descriptors,
    load_settings,
    load_yaml_config,
)
from cachebench.data_generator import CustomerGenerator
from cachebench.descriptor import ConnectionSettings
from cachebench.interactive import ConsoleInputSource
from cachebench.provisioning import ProvisioningCoordinator
from cachebench.report import generate_full_report
from cachebench.runner import BenchmarkRunner
from cachebench.suite import BenchmarkSuite

PERFORMANCE_SUITE = "performance"
ACTIONS = ["menu", "performance", "item-cache", "query-cache", "initialize", "cleanup"]

MENU = """
Azure Cosmos DB Integrated Cache Demo
-----------------------------------------------------------
[1]   Measure cache performance
[2]   Understanding the Item cache
[3]   Understanding the Query cache
[4]   Initialize
[5]   Clean up
[6]   Exit
"""

MENU_ACTIONS = {
    "1": "performance",
    "2": "item-cache",
    "3": "query-cache",
    "4": "initialize",
    "5": "cleanup",
}


def get_client(connection: ConnectionSettings, max_retries: int = 3) -> BaseDataStoreClient:
    """
    Create and connect the client for a connection.

    Args:
        connection: Connection settings of one account
        max_retries: Connection attempts before giving up

    Returns:
        Connected data store client
    """
    if connection.database == "cosmos":
        from cachebench.clients.cosmos_client import CosmosDataStoreClient
        client = CosmosDataStoreClient()
    elif connection.database == "memory":
        from cachebench.clients.memory_client import InMemoryDataStoreClient
        client = InMemoryDataStoreClient(integrated_cache=connection.integrated_cache)
    else:
        raise ValueError(
            f"Unsupported database: {connection.database}. Supported: cosmos, memory"
        )

    for attempt in range(max_retries):
        try:
            client.connect(
                endpoint=connection.endpoint,
                key=connection.key,
                consistency_level=connection.consistency_level,
            )
            return client
        except ConnectionError as e:
            if attempt < max_retries - 1:
                wait = min(2 ** attempt, 10)
                print(f"  Connection attempt {attempt + 1} failed: {e}")
                print(f"  Retrying in {wait}s...")
                time.sleep(wait)
            else:
                raise
    return client


def build_suites(
    config: Dict[str, Any],
    benchmark_config: Dict[str, Any],
) -> Dict[str, BenchmarkSuite]:
    """
    Build every configured suite with shared settings.

    Args:
        config: Connection config
        benchmark_config: Shared benchmark config

    Returns:
        Mapping of suite name to BenchmarkSuite
    """
    settings = load_settings(benchmark_config)
    generator = CustomerGenerator(seed=settings.seed, locale=settings.locale)
    coordinator = ProvisioningCoordinator(
        generator=generator,
        ingest_count=settings.initial_ingest_count,
        throughput=settings.container_throughput,
    )

    clients: Dict[ConnectionSettings, BaseDataStoreClient] = {}

    def shared_client(connection: ConnectionSettings) -> BaseDataStoreClient:
        # Suites share clients so one session opens each account once
        if connection not in clients:
            clients[connection] = get_client(connection)
        return clients[connection]

    def make_runner(client: BaseDataStoreClient) -> BenchmarkRunner:
        return _build_runner(client, generator, settings)

    input_source = ConsoleInputSource()
    return {
        name: BenchmarkSuite(
            name=name,
            descriptors=descriptors,
            client_factory=shared_client,
            coordinator=coordinator,
            runner_factory=make_runner,
            input_source=input_source,
        )
        for name, descriptors in build_suite_descriptors(config, benchmark_config).items()
    }


def _build_runner(
    client: BaseDataStoreClient,
    generator: CustomerGenerator,
    settings: BenchmarkSettings,
) -> BenchmarkRunner:
    return BenchmarkRunner(
        client,
        generator=generator,
        write_batch_size=settings.write_batch_size,
        point_read_count=settings.point_read_count,
        query_iterations=settings.query_iterations,
        query_text=settings.query_text,
        warmup_reads=settings.warmup_reads,
    )


def run_action(action: str, suites: Dict[str, BenchmarkSuite], output_dir: str) -> bool:
    """
    Run one menu action.

    Initialize and clean up act on the performance suite, whose descriptors
    cover both accounts.

    Returns:
        True if the action completed without failures
    """
    if action in ("initialize", "cleanup"):
        suite_name = PERFORMANCE_SUITE
    else:
        suite_name = action

    suite = suites.get(suite_name)
    if suite is None:
        print(f"Error: Suite '{suite_name}' not found in benchmark config")
        print(f"Available suites: {list(suites.keys())}")
        return False

    if action == "initialize":
        print("\nInitializing benchmark containers...")
        errors = suite.initialize_all()
        return not errors

    if action == "cleanup":
        print("\nRunning clean up routines...")
        outcomes = suite.clean_up_all()
        for outcome in outcomes:
            status = "ok" if outcome.success else f"failed ({outcome.error})"
            print(f"  {outcome.name:<34} {outcome.database_id:<24} {status}")
        return all(outcome.success for outcome in outcomes)

    failures_before = len(suite.failures)
    summaries = suite.run_all()
    if any(not d.kind.is_custom for d in suite.descriptors):
        generate_full_report(suite.name, suite.descriptors, summaries, output_dir)
    print("\nTest concluded.")
    return len(suite.failures) == failures_before


def interactive_menu(suites: Dict[str, BenchmarkSuite], output_dir: str) -> None:
    """Show the menu until the user exits."""
    while True:
        print(MENU)
        try:
            choice = input("Select an option: ").strip()
        except EOFError:
            return
        if choice == "6":
            return
        action = MENU_ACTIONS.get(choice)
        if action is None:
            print(f"Unknown option: {choice}")
            continue
        try:
            run_action(action, suites, output_dir)
        except KeyboardInterrupt:
            print("\nInterrupted, back to menu.")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Integrated Cache Benchmark Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_benchmark.py --config configs/cosmos.yaml
    python run_benchmark.py --config configs/cosmos.yaml --action performance
    python run_benchmark.py --config configs/memory.yaml --action performance -o results
        """,
    )
    parser.add_argument(
        "--config", "-c",
        required=True,
        help="Path to the connection YAML config (e.g., configs/cosmos.yaml)",
    )
    parser.add_argument(
        "--benchmark", "-b",
        default="benchmark.yaml",
        help="Path to shared benchmark YAML config (default: benchmark.yaml)",
    )
    parser.add_argument(
        "--action", "-a",
        choices=ACTIONS,
        default="menu",
        help="Action to run (default: interactive menu)",
    )
    parser.add_argument(
        "--output", "-o",
        default="results",
        help="Output directory for reports (default: results)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    for path in (args.config, args.benchmark):
        if not Path(path).exists():
            print(f"Error: Config file not found: {path}")
            return 1

    try:
        config = load_yaml_config(args.config)
        benchmark_config = load_yaml_config(args.benchmark)
        suites = build_suites(config, benchmark_config)
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}")
        return 1

    print("=" * 80)
    print("INTEGRATED CACHE BENCHMARK")
    print("=" * 80)
    print(f"Config:     {args.config}")
    print(f"Benchmark:  {args.benchmark}")
    print(f"Suites:     {', '.join(suites)}")
    print(f"Output:     {args.output}")
    print("=" * 80)

    try:
        if args.action == "menu":
            interactive_menu(suites, args.output)
            return 0
        return 0 if run_action(args.action, suites, args.output) else 1
    except KeyboardInterrupt:
        print("\nBenchmark interrupted by user.")
        return 1
    finally:
        print("\nCleaning up connections...")
        for suite in suites.values():
            suite.close()


if __name__ == "__main__":
    sys.exit(main())

"""Configuration loading utilities for cache benchmarks."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

from .descriptor import (
    CONSISTENCY_LEVELS,
    EVENTUAL,
    BenchmarkDescriptor,
    BenchmarkKind,
    ConnectionSettings,
)
from .provisioning import DEFAULT_INGEST_COUNT, DEFAULT_THROUGHPUT
from .runner import (
    DEFAULT_POINT_READ_COUNT,
    DEFAULT_QUERY_ITERATIONS,
    DEFAULT_QUERY_TEXT,
    DEFAULT_WRITE_BATCH_SIZE,
)

SUPPORTED_DATABASES = ("cosmos", "memory")


def load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Dictionary containing the parsed YAML configuration

    Raises:
        FileNotFoundError: If the config file does not exist
        yaml.YAMLError: If the YAML is malformed
    """
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


@dataclass
class BenchmarkSettings:
    """Workload sizes and provisioning parameters shared by all suites."""

    write_batch_size: int = DEFAULT_WRITE_BATCH_SIZE
    point_read_count: int = DEFAULT_POINT_READ_COUNT
    query_iterations: int = DEFAULT_QUERY_ITERATIONS
    query_text: str = DEFAULT_QUERY_TEXT
    warmup_reads: bool = True
    initial_ingest_count: int = DEFAULT_INGEST_COUNT
    container_throughput: int = DEFAULT_THROUGHPUT
    seed: Optional[int] = None
    locale: str = "en_US"

    def __post_init__(self):
        for name in (
            "write_batch_size",
            "point_read_count",
            "query_iterations",
            "initial_ingest_count",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.container_throughput <= 0:
            raise ValueError(
                f"container_throughput must be positive, got {self.container_throughput}"
            )


def load_settings(benchmark_config: Dict[str, Any]) -> BenchmarkSettings:
    """
    Build BenchmarkSettings from the shared benchmark config.

    Missing sections and keys fall back to the defaults.
    """
    workload = benchmark_config.get("workload", {}) or {}
    provisioning = benchmark_config.get("provisioning", {}) or {}
    data = benchmark_config.get("data", {}) or {}

    return BenchmarkSettings(
        write_batch_size=int(workload.get("write_batch_size", DEFAULT_WRITE_BATCH_SIZE)),
        point_read_count=int(workload.get("point_read_count", DEFAULT_POINT_READ_COUNT)),
        query_iterations=int(workload.get("query_iterations", DEFAULT_QUERY_ITERATIONS)),
        query_text=workload.get("query_text", DEFAULT_QUERY_TEXT),
        warmup_reads=bool(workload.get("warmup_reads", True)),
        initial_ingest_count=int(provisioning.get("initial_ingest_count", DEFAULT_INGEST_COUNT)),
        container_throughput=int(provisioning.get("container_throughput", DEFAULT_THROUGHPUT)),
        seed=data.get("seed"),
        locale=data.get("locale", "en_US"),
    )


def build_connections(config: Dict[str, Any]) -> Dict[str, ConnectionSettings]:
    """
    Build one ConnectionSettings per configured account.

    Args:
        config: Connection config (``database`` and ``accounts`` sections)

    Returns:
        Mapping of account name (e.g. "regular", "dedicated_gateway") to settings
    """
    db_config = config.get("database", {}) or {}
    database = str(db_config.get("name", "")).lower()
    if database not in SUPPORTED_DATABASES:
        raise ValueError(
            f"Unsupported database: {database or '<missing>'}. "
            f"Supported: {', '.join(SUPPORTED_DATABASES)}"
        )

    accounts = config.get("accounts", {}) or {}
    if not accounts:
        raise ValueError("Config has no 'accounts' section")

    connections = {}
    for account_name, account in accounts.items():
        endpoint = account.get("endpoint")
        if not endpoint:
            raise ValueError(f"Account '{account_name}' has no endpoint")
        if database == "cosmos" and not account.get("key"):
            raise ValueError(f"Account '{account_name}' has no key")

        consistency = account.get("consistency_level")
        if consistency is not None and consistency not in CONSISTENCY_LEVELS:
            raise ValueError(
                f"Account '{account_name}': unsupported consistency_level {consistency}"
            )

        connections[account_name] = ConnectionSettings(
            database=database,
            endpoint=endpoint,
            key=account.get("key", ""),
            consistency_level=consistency,
            integrated_cache=bool(account.get("integrated_cache", False)),
        )
    return connections


def build_suite_descriptors(
    config: Dict[str, Any],
    benchmark_config: Dict[str, Any],
) -> Dict[str, List[BenchmarkDescriptor]]:
    """
    Build the descriptor list of every suite in the benchmark config.

    Args:
        config: Connection config (target container and accounts)
        benchmark_config: Shared benchmark config (``suites`` section)

    Returns:
        Mapping of suite name to descriptors in run order
    """
    db_config = config.get("database", {}) or {}
    for key in ("database_id", "container_id", "partition_key_path", "partition_key_value"):
        if not db_config.get(key):
            raise ValueError(f"Config 'database' section is missing '{key}'")

    connections = build_connections(config)
    suites_config = benchmark_config.get("suites", {}) or {}
    if not suites_config:
        raise ValueError("Benchmark config has no 'suites' section")

    suites = {}
    for suite_name, entries in suites_config.items():
        descriptors = []
        for entry in entries or []:
            kind_name = str(entry.get("kind", "")).lower()
            try:
                kind = BenchmarkKind(kind_name)
            except ValueError:
                raise ValueError(
                    f"Suite '{suite_name}': unknown kind '{kind_name}'. "
                    f"Supported: {', '.join(k.value for k in BenchmarkKind)}"
                )

            account = entry.get("account")
            if account not in connections:
                raise ValueError(
                    f"Suite '{suite_name}': unknown account '{account}'. "
                    f"Configured: {', '.join(connections)}"
                )

            descriptors.append(BenchmarkDescriptor(
                kind=kind,
                name=entry.get("name", kind.label),
                description=entry.get("description", ""),
                connection=connections[account],
                database_id=db_config["database_id"],
                container_id=db_config["container_id"],
                partition_key_path=db_config["partition_key_path"],
                partition_key_value=str(db_config["partition_key_value"]),
                request_consistency=entry.get("consistency", EVENTUAL),
            ))
        suites[suite_name] = descriptors

    return suites

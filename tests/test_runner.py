"""Tests for the sequential and interactive benchmark operations."""

import pytest

from cachebench import runner as runner_module
from cachebench.descriptor import SESSION, BenchmarkKind
from cachebench.errors import OperationError, RecoverableOperationError
from cachebench.provisioning import ProvisioningCoordinator
from cachebench.runner import ID_QUERY_TEMPLATE, BenchmarkRunner

CONTAINER = ("container", "CacheTestDb", "Customers")


def test_write_scenario(fake_client, scripted_clock, generator, make_descriptor):
    """Three writes with scripted charges and latencies summarize to 11.0 ms / 5.0 RU."""
    fake_client.write_costs = [5.1, 4.9, 5.0]
    runner = BenchmarkRunner(
        fake_client, generator=generator, write_batch_size=3,
        clock=scripted_clock([10, 12, 11]),
    )
    descriptor = make_descriptor(BenchmarkKind.WRITE, name="dedicated gateway")

    summary = runner.run(descriptor, CONTAINER)

    assert summary.average_latency_ms == 11.0
    assert summary.average_cost == 5.0
    assert summary.operation_count == 3
    assert descriptor.summary == summary
    assert fake_client.count("create_item") == 3
    assert all(item["myPartitionKey"] == "demo" for item in fake_client.created_items)


def test_write_results_are_in_issuing_order(fake_client, scripted_clock, generator, make_descriptor):
    fake_client.write_costs = [1.0, 2.0, 3.0]
    runner = BenchmarkRunner(
        fake_client, generator=generator, write_batch_size=3,
        clock=scripted_clock([30, 20, 10]),
    )

    results = runner.run_write_benchmark(make_descriptor(BenchmarkKind.WRITE), CONTAINER)

    assert [(r.latency_ms, r.cost) for r in results] == [(30, 1.0), (20, 2.0), (10, 3.0)]


def test_write_failure_aborts_without_summary(
    fake_client, scripted_clock, generator, make_descriptor, monkeypatch
):
    """A failing operation aborts the run before anything is summarized."""
    fake_client.fail_on["create_item"] = 2

    def fail_summarize(*args, **kwargs):
        raise AssertionError("summarize must not be called for an aborted run")

    monkeypatch.setattr(runner_module, "summarize", fail_summarize)
    runner = BenchmarkRunner(
        fake_client, generator=generator, write_batch_size=5,
        clock=scripted_clock([10] * 5),
    )
    descriptor = make_descriptor(BenchmarkKind.WRITE, name="dedicated gateway")

    with pytest.raises(OperationError) as excinfo:
        runner.run(descriptor, CONTAINER)

    assert excinfo.value.index == 2
    assert "dedicated gateway" in str(excinfo.value)
    assert "Writes" in str(excinfo.value)
    assert descriptor.summary is None
    assert fake_client.count("create_item") == 2


def test_failed_run_clears_previous_summary(fake_client, scripted_clock, generator, make_descriptor):
    descriptor = make_descriptor(BenchmarkKind.WRITE)
    runner = BenchmarkRunner(
        fake_client, generator=generator, write_batch_size=1, clock=scripted_clock([5, 5]),
    )
    runner.run(descriptor, CONTAINER)
    assert descriptor.summary is not None

    fake_client.fail_on["create_item"] = 2
    with pytest.raises(OperationError):
        runner.run(descriptor, CONTAINER)
    assert descriptor.summary is None


def test_point_reads_warm_up_then_time_each_id(fake_client, scripted_clock, make_descriptor):
    fake_client.ids = ["a", "b", "c"]
    # Three warm-up reads (charged 1.0 by default) then three timed reads
    fake_client.read_costs = [1.0, 1.0, 1.0, 0.0, 0.0, 0.0]
    runner = BenchmarkRunner(fake_client, clock=scripted_clock([2, 3, 4]))
    descriptor = make_descriptor(BenchmarkKind.POINT_READ)

    results = runner.run_point_read_benchmark(descriptor, CONTAINER)

    assert [(r.latency_ms, r.cost) for r in results] == [(2, 0.0), (3, 0.0), (4, 0.0)]
    assert fake_client.calls == ["query"] + ["read_item"] * 6


def test_point_reads_without_warmup(fake_client, scripted_clock, make_descriptor):
    fake_client.ids = ["a", "b"]
    runner = BenchmarkRunner(fake_client, warmup_reads=False, clock=scripted_clock([2, 3]))

    summary = runner.run(make_descriptor(BenchmarkKind.POINT_READ), CONTAINER)

    assert fake_client.count("read_item") == 2
    assert summary.average_latency_ms == 2.5
    assert summary.average_cost == 1.0


def test_point_reads_with_no_ids_skip_summary(fake_client, make_descriptor, capsys):
    """An empty id list means zero operations and no summary."""
    runner = BenchmarkRunner(fake_client, clock=lambda: pytest.fail("clock must not be read"))
    descriptor = make_descriptor(BenchmarkKind.POINT_READ)

    assert runner.run(descriptor, CONTAINER) is None
    assert descriptor.summary is None
    assert fake_client.count("read_item") == 0
    assert "No data" in capsys.readouterr().out


def test_point_read_failure_aborts(fake_client, scripted_clock, make_descriptor):
    fake_client.ids = ["a", "b", "c"]
    fake_client.fail_on["read_item"] = 5  # Second timed read
    runner = BenchmarkRunner(fake_client, clock=scripted_clock([1, 1, 1]))

    with pytest.raises(OperationError) as excinfo:
        runner.run(make_descriptor(BenchmarkKind.POINT_READ), CONTAINER)
    assert excinfo.value.index == 2
    assert "Point Reads" in str(excinfo.value)


def test_id_fetch_failure_aborts(fake_client, make_descriptor):
    fake_client.fail_on["query"] = 1
    runner = BenchmarkRunner(fake_client)

    with pytest.raises(OperationError, match="fetching ids failed"):
        runner.run(make_descriptor(BenchmarkKind.POINT_READ), CONTAINER)


def test_id_query_reads_oldest_items_first():
    assert ID_QUERY_TEMPLATE.format(count=100) == (
        "SELECT TOP 100 VALUE c.id FROM c ORDER BY c._ts"
    )


def test_query_scenario(fake_client, scripted_clock, make_descriptor):
    """Each execution is one result: total time over all pages, summed page charges."""
    fake_client.query_executions = [[1.2, 1.1], [2.1]]
    runner = BenchmarkRunner(fake_client, query_iterations=2, clock=scripted_clock([40, 35]))
    descriptor = make_descriptor(BenchmarkKind.QUERY)

    results = runner.run_query_benchmark(descriptor, CONTAINER)
    assert [r.latency_ms for r in results] == [40, 35]
    assert [r.cost for r in results] == pytest.approx([2.3, 2.1])

    fake_client.query_executions = [[1.2, 1.1], [2.1]]
    runner.clock = scripted_clock([40, 35])
    summary = runner.run(descriptor, CONTAINER)
    assert summary.average_latency_ms == 37.5
    assert summary.average_cost == 2.2


def test_query_failure_mid_pages_aborts(fake_client, scripted_clock, make_descriptor):
    fake_client.fail_on["query"] = 2
    runner = BenchmarkRunner(fake_client, query_iterations=3, clock=scripted_clock([1, 1, 1]))

    with pytest.raises(OperationError) as excinfo:
        runner.run(make_descriptor(BenchmarkKind.QUERY), CONTAINER)
    assert excinfo.value.index == 2


def test_zero_iterations_produce_no_summary(fake_client, make_descriptor):
    runner = BenchmarkRunner(fake_client, query_iterations=0)
    assert runner.run(make_descriptor(BenchmarkKind.QUERY), CONTAINER) is None


def test_run_rejects_custom_kinds(fake_client, make_descriptor):
    runner = BenchmarkRunner(fake_client)
    with pytest.raises(ValueError):
        runner.run(make_descriptor(BenchmarkKind.CUSTOM_QUERY), CONTAINER)


def test_run_requires_a_container(fake_client, make_descriptor):
    runner = BenchmarkRunner(fake_client)
    with pytest.raises(RuntimeError):
        runner.run(make_descriptor(BenchmarkKind.WRITE))


def test_run_uses_cached_container(fake_client, scripted_clock, make_descriptor):
    descriptor = make_descriptor(BenchmarkKind.WRITE, container=CONTAINER)
    runner = BenchmarkRunner(fake_client, write_batch_size=1, clock=scripted_clock([3]))
    assert runner.run(descriptor).operation_count == 1


def test_negative_sizes_are_rejected(fake_client):
    with pytest.raises(ValueError):
        BenchmarkRunner(fake_client, write_batch_size=-1)


@pytest.fixture
def provisioned(memory_client_factory, dedicated_connection, make_descriptor, generator):
    """In-memory client with a provisioned container of five items."""
    client = memory_client_factory(dedicated_connection)
    coordinator = ProvisioningCoordinator(generator=generator, ingest_count=5)
    seed = make_descriptor(BenchmarkKind.WRITE, connection=dedicated_connection)
    container = coordinator.ensure_ready(client, seed)
    return client, container


def test_custom_write_then_read(provisioned, make_descriptor, dedicated_connection):
    client, container = provisioned
    runner = BenchmarkRunner(client)
    writer = make_descriptor(BenchmarkKind.CUSTOM_WRITE, connection=dedicated_connection)
    reader = make_descriptor(BenchmarkKind.CUSTOM_POINT_READ, connection=dedicated_connection)

    cost = runner.custom_write(writer, container, "customer-1", "Tim Smith")
    response = runner.custom_point_read(reader, container, "customer-1")

    assert cost > 0
    assert response.record["name"] == "Tim Smith"
    assert response.record["myPartitionKey"] == "demo"


def test_custom_point_read_of_missing_item_is_recoverable(provisioned, make_descriptor):
    client, container = provisioned
    runner = BenchmarkRunner(client)
    reader = make_descriptor(BenchmarkKind.CUSTOM_POINT_READ)

    with pytest.raises(RecoverableOperationError, match="does not exist"):
        runner.custom_point_read(reader, container, "missing")


def test_custom_query_sums_pages(provisioned, make_descriptor):
    client, container = provisioned
    client.page_size = 2
    runner = BenchmarkRunner(client)
    descriptor = make_descriptor(BenchmarkKind.CUSTOM_QUERY, request_consistency=SESSION)

    drained = runner.custom_query(descriptor, container, "SELECT * FROM c")

    assert len(drained.items) == 5
    assert drained.cost == pytest.approx(3 * 2.83)


def test_custom_query_with_bad_syntax_is_recoverable(provisioned, make_descriptor):
    client, container = provisioned
    runner = BenchmarkRunner(client)
    descriptor = make_descriptor(BenchmarkKind.CUSTOM_QUERY)

    with pytest.raises(RecoverableOperationError, match="Syntax error"):
        runner.custom_query(descriptor, container, "SELEC nothing")
    with pytest.raises(RecoverableOperationError):
        runner.custom_query(descriptor, container, "   ")


def test_custom_write_requires_an_id(provisioned, make_descriptor):
    client, container = provisioned
    runner = BenchmarkRunner(client)
    with pytest.raises(RecoverableOperationError):
        runner.custom_write(make_descriptor(BenchmarkKind.CUSTOM_WRITE), container, "", "name")

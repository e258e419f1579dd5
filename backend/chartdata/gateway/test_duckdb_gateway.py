"""End-to-end tests against the sample DuckDB warehouse."""

import asyncio
import threading
import time

import duckdb
import pytest

from backend.chartdata.analytics.build_warehouse import (
    TOTAL_SPEND_CENTS,
    allocate_transactions,
    split_cents,
)
from backend.chartdata.core.schema import BuiltQuery
from backend.chartdata.errors import ParameterValidationError, QueryCancelledError, QueryExecutionError
from backend.chartdata.gateway.duckdb_gateway import DuckDBGateway, _QueryRun

# A trillion-row cross join; only ends early when interrupted.
SLOW_QUERY = BuiltQuery(
    chart_id="slow",
    sql="SELECT 'all' AS label, SUM(a.range * b.range) AS value FROM range(1000000) a, range(1000000) b",
)


def test_split_cents_sums_exactly() -> None:
    parts = split_cents(1001, 3)
    assert parts == [334, 334, 333]
    assert sum(parts) == 1001


def test_allocation_matches_both_marginals() -> None:
    commodities = [70, 20, 10]
    vendors = [50, 30, 20]
    cells = allocate_transactions(commodities, vendors)
    for index, total in enumerate(commodities):
        assert sum(cents for c, _, cents in cells if c == index) == total
    for index, total in enumerate(vendors):
        assert sum(cents for _, v, cents in cells if v == index) == total


def test_allocation_rejects_mismatched_totals() -> None:
    with pytest.raises(ValueError):
        allocate_transactions([10], [20])


def test_warehouse_total_spend(warehouse_path) -> None:
    con = duckdb.connect(str(warehouse_path), read_only=True)
    try:
        total = con.execute("SELECT SUM(total_amount) FROM spend_transactions").fetchone()[0]
    finally:
        con.close()
    assert total == pytest.approx(TOTAL_SPEND_CENTS / 100)


def test_top_commodities_end_to_end(warehouse_service) -> None:
    rows = asyncio.run(warehouse_service.get_data("top_commodities_bar"))
    assert len(rows) == 10
    assert rows[0].label == "Transformers"
    assert rows[0].value == pytest.approx(37877482)
    assert rows[0].percentage == 7.3
    assert [r.label for r in rows[:5]] == [
        "Transformers",
        "Watt-Hour Meters",
        "Asphaltic Concrete",
        "Switchgears",
        "Air Tools",
    ]
    assert [r.percentage for r in rows] == [7.3, 3.1, 2.7, 2.6, 2.6, 1.6, 1.0, 0.9, 0.8, 0.4]


def test_vendor_spend_end_to_end(warehouse_service) -> None:
    rows = asyncio.run(warehouse_service.get_data("vendor_spend_analysis"))
    assert [(r.label, r.percentage) for r in rows] == [
        ("Techline", 5.9),
        ("Sun Coast", 5.8),
        ("TX Electric", 4.7),
        ("Oldcastle", 2.5),
        ("Priester-Mell", 2.4),
    ]


def test_geographic_distribution_end_to_end(warehouse_service) -> None:
    rows = asyncio.run(warehouse_service.get_data("geographic_distribution"))
    assert [(r.label, r.percentage) for r in rows] == [
        ("Texas", 81.9),
        ("Florida", 1.9),
        ("Ohio", 1.4),
        ("New Jersey", 1.3),
        ("Georgia", 1.2),
    ]


def test_excluded_state_never_appears(warehouse_service) -> None:
    rows = asyncio.run(warehouse_service.get_data("geographic_distribution", {"exclude_states": ["Texas"]}))
    labels = [r.label for r in rows]
    assert "Texas" not in labels
    assert labels[0] == "Florida"
    assert all(a.value >= b.value for a, b in zip(rows, rows[1:]))


def test_percentages_are_shares_of_pre_limit_total(warehouse_service) -> None:
    limited = asyncio.run(warehouse_service.get_data("geographic_distribution", {"limit": 2}))
    unlimited = asyncio.run(warehouse_service.get_data("geographic_distribution", {"limit": 0}))
    assert len(limited) == 2
    assert len(unlimited) == 16
    assert [r.percentage for r in limited] == [r.percentage for r in unlimited[:2]]
    assert sum(r.percentage for r in unlimited) <= 100.05


def test_state_filter_end_to_end(warehouse_service) -> None:
    rows = asyncio.run(warehouse_service.get_data("vendor_spend_analysis", {"state_filter": "Florida"}))
    assert [(r.label, r.percentage) for r in rows] == [("Sunshine Grid Services", 100.0)]


def test_injection_payload_is_treated_as_a_value(warehouse_service) -> None:
    rows = asyncio.run(
        warehouse_service.get_data("vendor_spend_analysis", {"state_filter": "Texas' OR '1'='1"})
    )
    assert rows == []


def test_min_amount_excludes_smaller_transactions(warehouse_service) -> None:
    rows = asyncio.run(warehouse_service.get_data("top_commodities_bar", {"min_amount": 1_000_000_000}))
    assert rows == []


def test_date_range_outside_data_is_empty(warehouse_service) -> None:
    rows = asyncio.run(
        warehouse_service.get_data("top_commodities_bar", {"date_range": {"start": "2030-01-01"}})
    )
    assert rows == []


def test_date_range_inside_data_returns_rows(warehouse_service) -> None:
    rows = asyncio.run(
        warehouse_service.get_data(
            "top_commodities_bar",
            {"date_range": {"start": "2024-01-01", "end": "2024-12-31"}},
        )
    )
    assert rows[0].label == "Transformers"


def test_out_of_range_limit_never_reaches_duckdb(warehouse_service) -> None:
    with pytest.raises(ParameterValidationError):
        asyncio.run(warehouse_service.get_data("vendor_spend_analysis", {"limit": 10**20}))


def test_bad_sql_raises_execution_error(duckdb_gateway) -> None:
    query = BuiltQuery(chart_id="broken", sql="SELECT missing_column FROM spend_transactions")
    with pytest.raises(QueryExecutionError) as excinfo:
        asyncio.run(duckdb_gateway.execute(query))
    assert isinstance(excinfo.value.__cause__, duckdb.Error)


def test_missing_database_raises_execution_error(tmp_path) -> None:
    gateway = DuckDBGateway(tmp_path / "absent.duckdb")
    query = BuiltQuery(chart_id="any", sql="SELECT 1 AS label, 1 AS value")
    with pytest.raises(QueryExecutionError):
        gateway.execute_sync(query)


def test_bound_parameters_reach_duckdb(duckdb_gateway) -> None:
    query = BuiltQuery(
        chart_id="probe",
        sql="SELECT vendor_name AS label, vendor_id AS value FROM vendors WHERE state = ? ORDER BY value",
        params=("Ohio",),
    )
    rows = duckdb_gateway.execute_sync(query)
    assert [row["label"] for row in rows] == ["Buckeye Industrial"]


def test_interrupt_before_connect_skips_the_query(duckdb_gateway) -> None:
    run = _QueryRun(duckdb_gateway, SLOW_QUERY)
    run.interrupt()
    with pytest.raises(QueryCancelledError):
        run()


def test_interrupt_stops_a_running_query(duckdb_gateway) -> None:
    run = _QueryRun(duckdb_gateway, SLOW_QUERY)
    errors = []

    def target():
        try:
            run()
        except QueryExecutionError as e:
            errors.append(e)

    worker = threading.Thread(target=target, daemon=True)
    worker.start()
    time.sleep(0.3)
    run.interrupt()
    worker.join(timeout=10)

    assert not worker.is_alive()
    assert len(errors) == 1
    assert isinstance(errors[0].__cause__, duckdb.InterruptException)


def test_cancelled_execute_interrupts_duckdb(duckdb_gateway) -> None:
    """Cancelling the awaiting task ends the worker thread too."""

    async def scenario():
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(duckdb_gateway.execute(SLOW_QUERY), timeout=0.3)

    started = time.monotonic()
    # asyncio.run waits for the executor thread before returning
    asyncio.run(scenario())
    assert time.monotonic() - started < 10

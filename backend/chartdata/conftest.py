"""Shared fixtures for chart data tests."""

import pytest

from backend.chartdata.analytics.build_warehouse import build_warehouse
from backend.chartdata.core.registry import ChartRegistry, init_registry
from backend.chartdata.core.service import ChartDataService
from backend.chartdata.gateway.duckdb_gateway import DuckDBGateway
from backend.chartdata.gateway.memory import InMemoryGateway


@pytest.fixture
def top_commodity_rows() -> list[dict]:
    """Rows the original dashboard showed for top_commodities_bar."""
    return [
        {"label": "Transformers", "value": 37877482, "percentage": 7.3},
        {"label": "Watt-Hour Meters", "value": 16008219, "percentage": 3.1},
        {"label": "Asphaltic Concrete", "value": 13807827, "percentage": 2.7},
        {"label": "Switchgears", "value": 13538858, "percentage": 2.6},
        {"label": "Air Tools", "value": 13431282, "percentage": 2.6},
        {"label": "Construction Materials", "value": 8500000, "percentage": 1.6},
        {"label": "Office Supplies", "value": 5200000, "percentage": 1.0},
        {"label": "Vehicles", "value": 4800000, "percentage": 0.9},
        {"label": "IT Equipment", "value": 3900000, "percentage": 0.8},
        {"label": "Safety Equipment", "value": 2100000, "percentage": 0.4},
    ]


@pytest.fixture
def registry() -> ChartRegistry:
    return init_registry()


@pytest.fixture
def memory_gateway(top_commodity_rows) -> InMemoryGateway:
    return InMemoryGateway({"top_commodities_bar": top_commodity_rows})


@pytest.fixture
def service(registry: ChartRegistry, memory_gateway: InMemoryGateway) -> ChartDataService:
    return ChartDataService(registry=registry, gateway=memory_gateway)


@pytest.fixture(scope="session")
def warehouse_path(tmp_path_factory):
    """Sample procurement warehouse, built once per test session."""
    return build_warehouse(tmp_path_factory.mktemp("warehouse") / "procurement.duckdb")


@pytest.fixture
def duckdb_gateway(warehouse_path) -> DuckDBGateway:
    return DuckDBGateway(warehouse_path)


@pytest.fixture
def warehouse_service(registry: ChartRegistry, duckdb_gateway: DuckDBGateway) -> ChartDataService:
    return ChartDataService(registry=registry, gateway=duckdb_gateway, default_timeout=30)

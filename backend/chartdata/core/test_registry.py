"""Tests for the chart registry and configuration validation."""

import dataclasses

import pytest

from backend.chartdata.core.configs import DEFAULT_CHART_CONFIGS
from backend.chartdata.core.registry import ChartRegistry, init_registry, validate_chart_config
from backend.chartdata.core.schema import (
    ChartConfiguration,
    ChartType,
    ParameterFilter,
    ParameterSpec,
    ParameterType,
)
from backend.chartdata.errors import ChartNotFoundError, ConfigurationError


def _config(**overrides) -> ChartConfiguration:
    fields = dict(
        chart_id="spend_by_vendor",
        chart_name="Spend by Vendor",
        chart_type=ChartType.bar,
        base_table="spend_transactions",
        group_by_expression="vendor_id",
        value_expression="SUM(total_amount)",
    )
    fields.update(overrides)
    return ChartConfiguration(**fields)


def test_get_returns_configuration_for_every_registered_id(registry) -> None:
    """get() returns the configuration whose chart_id is the requested id."""
    for summary in registry.list():
        assert registry.get(summary.id).chart_id == summary.id


def test_get_unknown_id_raises_not_found(registry) -> None:
    with pytest.raises(ChartNotFoundError) as excinfo:
        registry.get("nonexistent_chart")
    assert excinfo.value.chart_id == "nonexistent_chart"
    assert excinfo.value.kind == "not_found"


def test_list_preserves_registration_order(registry) -> None:
    summaries = registry.list()
    assert [s.id for s in summaries] == [
        "top_commodities_bar",
        "vendor_spend_analysis",
        "geographic_distribution",
    ]
    assert summaries[0].name == "Top Commodities"
    assert summaries[0].type == ChartType.horizontal_bar
    assert summaries[2].type == ChartType.donut


def test_registry_has_no_mutators(registry) -> None:
    """The registry handle and its configurations are read-only."""
    assert not hasattr(registry, "register")
    config = registry.get("top_commodities_bar")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.chart_name = "Renamed"
    with pytest.raises(TypeError):
        config.parameter_schema["limit"] = ParameterSpec(type=ParameterType.number)


def test_container_protocol(registry) -> None:
    assert len(registry) == len(DEFAULT_CHART_CONFIGS)
    assert "vendor_spend_analysis" in registry
    assert "nonexistent_chart" not in registry
    assert [c.chart_id for c in registry] == [s.id for s in registry.list()]


def test_label_expression_defaults_to_group_by() -> None:
    config = _config()
    assert config.label_expression == "vendor_id"


def test_duplicate_chart_ids_are_rejected() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        ChartRegistry([_config(), _config()])
    assert any("Duplicate chart_id" in error for error in excinfo.value.errors)


def test_non_aggregate_value_expression_is_rejected() -> None:
    errors = validate_chart_config(_config(value_expression="total_amount"))
    assert any("must be an aggregate" in error for error in errors)


@pytest.mark.parametrize("expression", ["SUM(total_amount)", "count(*)", "AVG(t.total_amount)", " max(x) "])
def test_aggregate_value_expressions_are_accepted(expression) -> None:
    assert validate_chart_config(_config(value_expression=expression)) == []


def test_default_exceeding_max_is_rejected() -> None:
    config = _config(parameter_schema={
        "limit": ParameterSpec(type=ParameterType.number, default=100, max=50, integer=True),
    })
    errors = validate_chart_config(config)
    assert any("exceeds max" in error for error in errors)


def test_filter_operator_must_match_parameter_type() -> None:
    config = _config(parameter_schema={
        "states": ParameterSpec(
            type=ParameterType.array,
            default=(),
            filter=ParameterFilter(column="vendors.state", operator=">="),
        ),
    })
    errors = validate_chart_config(config)
    assert any("filter operator '>='" in error for error in errors)


def test_limit_must_be_integer_number() -> None:
    config = _config(parameter_schema={"limit": ParameterSpec(type=ParameterType.string, default="10")})
    errors = validate_chart_config(config)
    assert any("integer number parameter" in error for error in errors)


def test_init_registry_reports_all_errors_at_once() -> None:
    bad = _config(chart_id="", value_expression="total_amount")
    with pytest.raises(ConfigurationError) as excinfo:
        init_registry([bad])
    assert len(excinfo.value.errors) == 2


def test_builtin_configurations_are_valid() -> None:
    for config in DEFAULT_CHART_CONFIGS:
        assert validate_chart_config(config) == []

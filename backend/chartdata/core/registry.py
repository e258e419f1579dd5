"""
Chart Registry - immutable lookup of chart configurations.

The registry is built once at process start by `init_registry()` and handed
to whatever needs it. It has no mutators, so concurrent readers need no
locking.
"""

import logging
import re
from types import MappingProxyType
from typing import Iterable, Iterator

from backend.chartdata.errors import ChartNotFoundError, ConfigurationError

from .configs import DEFAULT_CHART_CONFIGS
from .schema import (
    ALLOWED_FILTER_OPERATORS,
    ChartConfiguration,
    ChartSummary,
    ParameterType,
)

logger = logging.getLogger(__name__)

AGGREGATE_PATTERN = re.compile(r"^\s*(SUM|COUNT|AVG|MIN|MAX)\s*\(.+\)\s*$", re.IGNORECASE | re.DOTALL)


class ChartRegistry:
    """Read-only mapping from chart id to configuration, in registration order."""

    def __init__(self, configs: Iterable[ChartConfiguration]):
        configs = tuple(configs)
        errors = validate_chart_configs(configs)
        if errors:
            raise ConfigurationError(errors)
        self._configs = MappingProxyType({config.chart_id: config for config in configs})

    def get(self, chart_id: str) -> ChartConfiguration:
        """Get chart configuration by ID. Raises ChartNotFoundError if unknown."""
        try:
            return self._configs[chart_id]
        except KeyError:
            raise ChartNotFoundError(chart_id) from None

    def list(self) -> list[ChartSummary]:
        """Summaries of all charts, in registration order."""
        return [
            ChartSummary(id=config.chart_id, name=config.chart_name, type=config.chart_type)
            for config in self._configs.values()
        ]

    def __contains__(self, chart_id: object) -> bool:
        return chart_id in self._configs

    def __iter__(self) -> Iterator[ChartConfiguration]:
        return iter(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)


def init_registry(configs: Iterable[ChartConfiguration] = DEFAULT_CHART_CONFIGS) -> ChartRegistry:
    """Validate configurations and return the process-wide registry handle."""
    registry = ChartRegistry(configs)
    logger.info("Chart registry initialized with %d chart(s)", len(registry))
    return registry


# =============================================================================
# VALIDATION
# =============================================================================

def validate_chart_configs(configs: Iterable[ChartConfiguration]) -> list[str]:
    """Validate a batch of configurations; returns all problems found."""
    errors: list[str] = []
    seen: set[str] = set()
    for config in configs:
        if config.chart_id in seen:
            errors.append(f"Duplicate chart_id: {config.chart_id!r}")
        seen.add(config.chart_id)
        errors.extend(validate_chart_config(config))
    return errors


def validate_chart_config(config: ChartConfiguration) -> list[str]:
    """Validate a single configuration."""
    errors: list[str] = []
    name = config.chart_id or "<empty>"

    if not config.chart_id or not config.chart_id.strip():
        errors.append("ChartConfiguration.chart_id must be a non-empty string.")
    if not config.base_table.strip():
        errors.append(f"ChartConfiguration[{name}].base_table must be a non-empty string.")
    if not config.group_by_expression.strip():
        errors.append(f"ChartConfiguration[{name}].group_by_expression must be a non-empty string.")
    if not AGGREGATE_PATTERN.match(config.value_expression):
        errors.append(
            f"ChartConfiguration[{name}].value_expression must be an aggregate "
            f"(SUM/COUNT/AVG/MIN/MAX): {config.value_expression!r}."
        )

    for key, spec in config.parameter_schema.items():
        where = f"ChartConfiguration[{name}].parameter_schema[{key!r}]"
        if spec.max is not None:
            if spec.type != ParameterType.number:
                errors.append(f"{where} declares max but is not a number parameter.")
            elif spec.default is not None and spec.default > spec.max:
                errors.append(f"{where} default {spec.default!r} exceeds max {spec.max!r}.")
        if spec.filter is not None:
            allowed = ALLOWED_FILTER_OPERATORS[spec.type]
            if spec.filter.operator not in allowed:
                errors.append(
                    f"{where} filter operator {spec.filter.operator!r} is not allowed "
                    f"for {spec.type.value} parameters (allowed: {sorted(allowed)})."
                )
        if key == "limit" and (spec.type != ParameterType.number or not spec.integer):
            errors.append(f"{where} must be an integer number parameter.")
        if key == "limit" and spec.filter is not None:
            errors.append(f"{where} cannot declare a filter binding.")

    return errors

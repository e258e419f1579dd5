"""
Chart configuration and result types.

A chart is described declaratively: which table to aggregate, how to join,
what to group by, which aggregate to measure and which runtime parameters it
accepts. Everything here is immutable; configurations are created once when
the registry is initialized and shared by all requests.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class ChartType(str, Enum):
    """Visual chart type. Opaque to the query layer."""
    horizontal_bar = "horizontal_bar"
    bar = "bar"
    pie = "pie"
    donut = "donut"
    line = "line"


class ParameterType(str, Enum):
    """Declared type of a runtime parameter."""
    number = "number"
    string = "string"
    date_range = "date_range"
    array = "array"


# Operators a parameter filter binding may use, per parameter type.
ALLOWED_FILTER_OPERATORS: dict[ParameterType, frozenset[str]] = {
    ParameterType.number: frozenset({"=", ">=", "<="}),
    ParameterType.string: frozenset({"=", ">=", "<="}),
    ParameterType.array: frozenset({"in", "not_in"}),
    ParameterType.date_range: frozenset({"between"}),
}


@dataclass(frozen=True)
class ParameterFilter:
    """
    Static binding from a parameter to a WHERE predicate.

    `column` is trusted configuration text; the parameter value is always
    bound through a placeholder, never written into the SQL.
    """
    column: str
    operator: str


@dataclass(frozen=True)
class ParameterSpec:
    """Schema entry for one runtime parameter."""
    type: ParameterType
    default: Any = None
    max: Optional[float] = None
    integer: bool = False
    item_type: ParameterType = ParameterType.string
    filter: Optional[ParameterFilter] = None


@dataclass(frozen=True)
class JoinClause:
    """A join applied after the base table, in declaration order."""
    target: str
    predicate: str
    kind: str = "JOIN"


@dataclass(frozen=True)
class FilterRule:
    """
    Structural exclusion rule declared by the configuration.

    Applies only when `applies_when_grouped_by` is None or occurs in the
    chart's grouping expression.
    """
    column: str
    exclude_null: bool = True
    exclude_empty: bool = True
    applies_when_grouped_by: Optional[str] = None

    def applies_to(self, group_by_expression: str) -> bool:
        if self.applies_when_grouped_by is None:
            return True
        return self.applies_when_grouped_by in group_by_expression


@dataclass(frozen=True)
class ChartConfiguration:
    """Declarative description of an aggregation query plus display metadata."""

    chart_id: str
    chart_name: str
    chart_type: ChartType
    base_table: str
    group_by_expression: str
    value_expression: str
    label_expression: Optional[str] = None
    join_clauses: tuple[JoinClause, ...] = ()
    filter_rules: tuple[FilterRule, ...] = ()
    parameter_schema: Mapping[str, ParameterSpec] = field(default_factory=dict)

    # Presentation hints (colors, radii, ...). Never read by the core.
    chart_options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "join_clauses", tuple(self.join_clauses))
        object.__setattr__(self, "filter_rules", tuple(self.filter_rules))
        object.__setattr__(self, "parameter_schema", MappingProxyType(dict(self.parameter_schema)))
        object.__setattr__(self, "chart_options", MappingProxyType(dict(self.chart_options)))
        if self.label_expression is None:
            object.__setattr__(self, "label_expression", self.group_by_expression)


@dataclass(frozen=True)
class ChartSummary:
    """Entry returned when listing the registry."""
    id: str
    name: str
    type: ChartType


@dataclass(frozen=True)
class DateRange:
    """Optional inclusive date bounds."""
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_open(self) -> bool:
        return self.start is None and self.end is None


@dataclass(frozen=True)
class BuiltQuery:
    """
    Generated query: static SQL with `?` placeholders plus bound values.

    `params` are in placeholder order. `limit` is the effective positive
    limit, or None when the query is unlimited.
    """
    chart_id: str
    sql: str
    params: tuple[Any, ...] = ()
    limit: Optional[int] = None


@dataclass(frozen=True)
class ResultRow:
    """One aggregated group returned to the caller."""
    label: str
    value: float
    percentage: float

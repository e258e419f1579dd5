"""
Query Builder

Turns a chart configuration plus resolved parameters into an aggregation
query. Pure and deterministic: no I/O, identical inputs give identical SQL.

Structure (projection, joins, grouping, structural filters) comes from the
configuration and is trusted text. Every parameter-derived value goes through
a `?` placeholder and ends up in BuiltQuery.params.

Clause order:
    SELECT label, value, percentage
    FROM base table
    JOIN ... (declaration order)
    WHERE parameter filters AND structural rules   (omitted when empty)
    GROUP BY grouping expression
    ORDER BY value DESC
    LIMIT n                                         (only when n > 0)
"""

from datetime import date
from typing import Any, Callable, Mapping, Optional

from .schema import BuiltQuery, ChartConfiguration, DateRange, FilterRule, ParameterSpec

Binder = Callable[[Any], str]


def build_query(config: ChartConfiguration, parameters: Mapping[str, Any]) -> BuiltQuery:
    """
    Build the executable query for a chart.

    Args:
        config: Chart configuration
        parameters: Output of resolve_parameters()

    Returns:
        BuiltQuery with placeholder SQL and bound values
    """
    params: list[Any] = []

    def bind(value: Any) -> str:
        params.append(value)
        return "?"

    sql = _compose(config, parameters, bind)
    return BuiltQuery(
        chart_id=config.chart_id,
        sql=sql,
        params=tuple(params),
        limit=effective_limit(parameters),
    )


def render_query(config: ChartConfiguration, parameters: Mapping[str, Any]) -> str:
    """
    Render the query with literal values inlined, for display only.

    Never execute this text; use build_query() and bind the parameters.
    """
    return _compose(config, parameters, sql_literal)


def effective_limit(parameters: Mapping[str, Any]) -> Optional[int]:
    """Positive limit from resolved parameters; None means unlimited (includes 0 and negatives)."""
    limit = parameters.get("limit")
    if limit is None or isinstance(limit, bool):
        return None
    limit = int(limit)
    return limit if limit > 0 else None


def sql_literal(value: Any) -> str:
    """Quote a value as a SQL literal (display rendering only)."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, date):
        return f"'{value.isoformat()}'"
    return "'" + str(value).replace("'", "''") + "'"


# =============================================================================
# CLAUSE CONSTRUCTION
# =============================================================================

def _compose(config: ChartConfiguration, parameters: Mapping[str, Any], bind: Binder) -> str:
    value = config.value_expression
    group_by = [config.group_by_expression]
    if config.label_expression != config.group_by_expression:
        group_by.append(config.label_expression)

    parts = [
        f"SELECT {config.label_expression} AS label, {value} AS value, "
        f"ROUND({value} * 100.0 / NULLIF(SUM({value}) OVER (), 0), 1) AS percentage",
        f"FROM {config.base_table}",
    ]

    for join in config.join_clauses:
        parts.append(f"{join.kind} {join.target} ON {join.predicate}")

    conditions = _parameter_conditions(config, parameters, bind)
    conditions.extend(
        _rule_condition(rule)
        for rule in config.filter_rules
        if rule.applies_to(config.group_by_expression)
    )
    conditions = [c for c in conditions if c]
    if conditions:
        parts.append("WHERE " + " AND ".join(conditions))

    parts.append("GROUP BY " + ", ".join(group_by))
    parts.append("ORDER BY value DESC")

    limit = effective_limit(parameters)
    if limit is not None:
        parts.append(f"LIMIT {limit:d}")

    return " ".join(parts)


def _parameter_conditions(
    config: ChartConfiguration,
    parameters: Mapping[str, Any],
    bind: Binder,
) -> list[str]:
    conditions = []
    for name, spec in config.parameter_schema.items():
        if spec.filter is None:
            continue
        condition = _parameter_condition(spec, parameters.get(name), bind)
        if condition:
            conditions.append(condition)
    return conditions


def _parameter_condition(spec: ParameterSpec, value: Any, bind: Binder) -> Optional[str]:
    column = spec.filter.column
    operator = spec.filter.operator

    if value is None or value == "":
        return None

    if operator == "between":
        if not isinstance(value, DateRange) or value.is_open:
            return None
        if value.start is not None and value.end is not None:
            return f"{column} BETWEEN {bind(value.start)} AND {bind(value.end)}"
        if value.start is not None:
            return f"{column} >= {bind(value.start)}"
        return f"{column} <= {bind(value.end)}"

    if operator in ("in", "not_in"):
        if not value:
            return None
        placeholders = ", ".join(bind(item) for item in value)
        keyword = "IN" if operator == "in" else "NOT IN"
        return f"{column} {keyword} ({placeholders})"

    return f"{column} {operator} {bind(value)}"


def _rule_condition(rule: FilterRule) -> Optional[str]:
    checks = []
    if rule.exclude_null:
        checks.append(f"{rule.column} IS NOT NULL")
    if rule.exclude_empty:
        checks.append(f"{rule.column} <> ''")
    if not checks:
        return None
    if len(checks) == 1:
        return checks[0]
    return "(" + " AND ".join(checks) + ")"

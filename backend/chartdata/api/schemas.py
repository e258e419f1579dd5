"""
Pydantic request/response models for the chart data API.
All response models are read-only views of core objects.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from backend.chartdata.core.schema import (
    BuiltQuery,
    ChartConfiguration,
    ChartSummary,
    ChartType,
    ParameterType,
    ResultRow,
)


# =============================================================================
# 1. Chart Catalog
# =============================================================================

class ChartSummaryModel(BaseModel):
    """Single chart entry for the selector."""
    id: str
    name: str
    type: ChartType

    @classmethod
    def from_summary(cls, summary: ChartSummary) -> "ChartSummaryModel":
        return cls(id=summary.id, name=summary.name, type=summary.type)


class ChartsResponse(BaseModel):
    """Response for GET /charts."""
    charts: list[ChartSummaryModel]
    count: int


# =============================================================================
# 2. Chart Configuration
# =============================================================================

class ParameterFilterModel(BaseModel):
    column: str
    operator: str


class ParameterSpecModel(BaseModel):
    """Declared runtime parameter, used to render parameter controls."""
    type: ParameterType
    default: Any = None
    max: Optional[float] = None
    integer: bool = False
    item_type: ParameterType = ParameterType.string
    filter: Optional[ParameterFilterModel] = None


class JoinClauseModel(BaseModel):
    target: str
    predicate: str
    kind: str


class FilterRuleModel(BaseModel):
    column: str
    exclude_null: bool
    exclude_empty: bool
    applies_when_grouped_by: Optional[str] = None


class ChartConfigurationResponse(BaseModel):
    """Response for GET /charts/{chart_id}."""
    chart_id: str
    chart_name: str
    chart_type: ChartType
    base_table: str
    join_clauses: list[JoinClauseModel]
    group_by_expression: str
    value_expression: str
    label_expression: str
    filter_rules: list[FilterRuleModel]
    parameters: dict[str, ParameterSpecModel]
    chart_options: dict[str, Any]

    @classmethod
    def from_config(cls, config: ChartConfiguration) -> "ChartConfigurationResponse":
        return cls(
            chart_id=config.chart_id,
            chart_name=config.chart_name,
            chart_type=config.chart_type,
            base_table=config.base_table,
            join_clauses=[
                JoinClauseModel(target=j.target, predicate=j.predicate, kind=j.kind)
                for j in config.join_clauses
            ],
            group_by_expression=config.group_by_expression,
            value_expression=config.value_expression,
            label_expression=config.label_expression,
            filter_rules=[
                FilterRuleModel(
                    column=r.column,
                    exclude_null=r.exclude_null,
                    exclude_empty=r.exclude_empty,
                    applies_when_grouped_by=r.applies_when_grouped_by,
                )
                for r in config.filter_rules
            ],
            parameters={
                name: ParameterSpecModel(
                    type=spec.type,
                    default=spec.default,
                    max=spec.max,
                    integer=spec.integer,
                    item_type=spec.item_type,
                    filter=(
                        ParameterFilterModel(column=spec.filter.column, operator=spec.filter.operator)
                        if spec.filter else None
                    ),
                )
                for name, spec in config.parameter_schema.items()
            },
            chart_options=dict(config.chart_options),
        )


# =============================================================================
# 3. Generated Query
# =============================================================================

class ChartParametersRequest(BaseModel):
    """Request body carrying raw runtime parameters."""
    parameters: dict[str, Any] = Field(default_factory=dict, description="Raw parameter values")
    timeout_seconds: Optional[float] = Field(None, description="Execution deadline override")


class GeneratedQueryResponse(BaseModel):
    """The SQL a chart runs, its bound values and a display rendering."""
    chart_id: str
    sql: str
    params: list[Any]
    limit: Optional[int] = None
    rendered: str

    @classmethod
    def from_query(cls, query: BuiltQuery, rendered: str) -> "GeneratedQueryResponse":
        return cls(
            chart_id=query.chart_id,
            sql=query.sql,
            params=list(query.params),
            limit=query.limit,
            rendered=rendered,
        )


# =============================================================================
# 4. Chart Data
# =============================================================================

class ResultRowModel(BaseModel):
    """Single aggregated row for chart consumption."""
    label: str
    value: float
    percentage: float

    @classmethod
    def from_row(cls, row: ResultRow) -> "ResultRowModel":
        return cls(label=row.label, value=row.value, percentage=row.percentage)


class ChartDataResponse(BaseModel):
    """Response for POST /charts/{chart_id}/data."""
    chart_id: str
    chart_name: str
    chart_type: ChartType
    rows: list[ResultRowModel]
    count: int
    query: GeneratedQueryResponse


class ErrorResponse(BaseModel):
    """Error body; `kind` distinguishes not-found, validation, execution, timeout, cancelled."""
    kind: str
    message: str
    parameter: Optional[str] = None

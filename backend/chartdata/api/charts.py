"""
FastAPI Chart Data Endpoints

Thin HTTP adapter over ChartDataService. The service instance is created at
startup and stored on app.state; endpoints receive it as a dependency.

Endpoints:
- GET  /charts                     - Chart catalog (id, name, type)
- GET  /charts/{chart_id}          - Chart configuration
- POST /charts/{chart_id}/query    - Generated query for given parameters
- POST /charts/{chart_id}/data     - Chart rows for given parameters
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from backend.chartdata.core.service import ChartDataService
from backend.chartdata.errors import ChartDataError, ParameterValidationError

from .schemas import (
    ChartConfigurationResponse,
    ChartDataResponse,
    ChartParametersRequest,
    ChartsResponse,
    ChartSummaryModel,
    ErrorResponse,
    GeneratedQueryResponse,
    ResultRowModel,
)

router = APIRouter(prefix="/charts", tags=["charts"])

# Status code per error kind. 499 follows the "client closed request" convention.
ERROR_STATUS: dict[str, int] = {
    "not_found": 404,
    "validation_error": 422,
    "execution_error": 502,
    "timeout": 504,
    "cancelled": 499,
}

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Unknown chart id"},
    422: {"model": ErrorResponse, "description": "Invalid parameter value"},
}

DATA_ERROR_RESPONSES = {
    **ERROR_RESPONSES,
    502: {"model": ErrorResponse, "description": "Query execution failed"},
    504: {"model": ErrorResponse, "description": "Query exceeded its deadline"},
    499: {"model": ErrorResponse, "description": "Query cancelled"},
}


def get_chart_service(request: Request) -> ChartDataService:
    """Chart data service created at application startup."""
    return request.app.state.chart_service


def to_http_error(error: ChartDataError) -> HTTPException:
    """Map a chart data error to an HTTPException with a structured detail."""
    detail = ErrorResponse(
        kind=error.kind,
        message=error.message,
        parameter=error.parameter if isinstance(error, ParameterValidationError) else None,
    )
    return HTTPException(status_code=ERROR_STATUS.get(error.kind, 500), detail=detail.model_dump())


# =============================================================================
# ENDPOINT 1: Chart Catalog
# =============================================================================

@router.get("", response_model=ChartsResponse)
async def list_charts(service: ChartDataService = Depends(get_chart_service)) -> ChartsResponse:
    """Get all registered charts in registration order."""
    charts = [ChartSummaryModel.from_summary(s) for s in service.list_charts()]
    return ChartsResponse(charts=charts, count=len(charts))


# =============================================================================
# ENDPOINT 2: Chart Configuration
# =============================================================================

@router.get("/{chart_id}", response_model=ChartConfigurationResponse, responses=ERROR_RESPONSES)
async def get_configuration(
    chart_id: str,
    service: ChartDataService = Depends(get_chart_service),
) -> ChartConfigurationResponse:
    """Get the declarative configuration of a chart, including its parameter schema."""
    try:
        config = service.get_configuration(chart_id)
    except ChartDataError as e:
        raise to_http_error(e)
    return ChartConfigurationResponse.from_config(config)


# =============================================================================
# ENDPOINT 3: Generated Query
# =============================================================================

@router.post("/{chart_id}/query", response_model=GeneratedQueryResponse, responses=ERROR_RESPONSES)
async def get_generated_query(
    chart_id: str,
    body: Optional[ChartParametersRequest] = Body(None),
    service: ChartDataService = Depends(get_chart_service),
) -> GeneratedQueryResponse:
    """
    Get the query a chart would run for the given parameters.

    `sql` and `params` are what the gateway executes; `rendered` inlines the
    values for display and is never executed.
    """
    parameters = body.parameters if body else {}
    try:
        query = service.build_query(chart_id, parameters)
        rendered = service.render_query(chart_id, parameters)
    except ChartDataError as e:
        raise to_http_error(e)
    return GeneratedQueryResponse.from_query(query, rendered)


# =============================================================================
# ENDPOINT 4: Chart Data
# =============================================================================

@router.post("/{chart_id}/data", response_model=ChartDataResponse, responses=DATA_ERROR_RESPONSES)
async def get_chart_data(
    chart_id: str,
    body: Optional[ChartParametersRequest] = Body(None),
    service: ChartDataService = Depends(get_chart_service),
) -> ChartDataResponse:
    """
    Get aggregated rows for a chart.

    Rows are ordered by value descending. An empty `rows` list is a valid
    result, not an error.
    """
    body = body or ChartParametersRequest()
    try:
        result = await service.fetch(chart_id, body.parameters, timeout=body.timeout_seconds)
        config = service.get_configuration(chart_id)
        rendered = service.render_query(chart_id, body.parameters)
    except ChartDataError as e:
        raise to_http_error(e)

    rows = [ResultRowModel.from_row(row) for row in result.rows]
    return ChartDataResponse(
        chart_id=chart_id,
        chart_name=config.chart_name,
        chart_type=config.chart_type,
        rows=rows,
        count=len(rows),
        query=GeneratedQueryResponse.from_query(result.query, rendered),
    )

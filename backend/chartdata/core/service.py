"""
Chart Data Service

Resolves a chart request end to end:

    look up configuration -> resolve parameters -> build query
    -> execute via gateway -> post-process rows

Each request moves through
    pending -> parameters_resolved -> query_built -> executing -> succeeded | failed
and is never retried here; retry policy belongs to the caller.

The gateway call is the only suspension point. It is bounded by an optional
deadline and an optional caller-owned cancellation event.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from backend.chartdata.errors import (
    ChartDataError,
    QueryCancelledError,
    QueryExecutionError,
    QueryTimeoutError,
)
from backend.chartdata.gateway.base import ExecutionGateway

from .parameters import resolve_parameters
from .query_builder import build_query, render_query
from .registry import ChartRegistry
from .schema import BuiltQuery, ChartConfiguration, ChartSummary, ResultRow

logger = logging.getLogger(__name__)


class RequestState(str, Enum):
    """Lifecycle of a single chart data request."""
    pending = "pending"
    parameters_resolved = "parameters_resolved"
    query_built = "query_built"
    executing = "executing"
    succeeded = "succeeded"
    failed = "failed"


@dataclass
class ChartDataRequest:
    """Per-request record. Created by the service, discarded after the response."""

    chart_id: str
    raw_parameters: Mapping[str, Any] = field(default_factory=dict)
    state: RequestState = RequestState.pending
    parameters: Optional[Mapping[str, Any]] = None
    query: Optional[BuiltQuery] = None
    rows: list[ResultRow] = field(default_factory=list)
    error: Optional[ChartDataError] = None

    def advance(self, state: RequestState) -> None:
        logger.debug("Chart request %s: %s -> %s", self.chart_id, self.state.value, state.value)
        self.state = state


class ChartDataService:
    """
    The surface presentation collaborators depend on:
    list_charts(), get_configuration() and get_data().
    """

    def __init__(
        self,
        registry: ChartRegistry,
        gateway: ExecutionGateway,
        default_timeout: Optional[float] = None,
    ):
        self.registry = registry
        self.gateway = gateway
        self.default_timeout = default_timeout

    def list_charts(self) -> list[ChartSummary]:
        return self.registry.list()

    def get_configuration(self, chart_id: str) -> ChartConfiguration:
        return self.registry.get(chart_id)

    def build_query(self, chart_id: str, raw_parameters: Optional[Mapping[str, Any]] = None) -> BuiltQuery:
        """Resolve parameters and build the query without executing it."""
        config = self.registry.get(chart_id)
        return build_query(config, resolve_parameters(config, raw_parameters))

    def render_query(self, chart_id: str, raw_parameters: Optional[Mapping[str, Any]] = None) -> str:
        """Display rendering of the generated query, with values inlined."""
        config = self.registry.get(chart_id)
        return render_query(config, resolve_parameters(config, raw_parameters))

    async def get_data(
        self,
        chart_id: str,
        raw_parameters: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> list[ResultRow]:
        """Rows for a chart, sorted by value descending and limited."""
        request = await self.fetch(chart_id, raw_parameters, timeout=timeout, cancel_event=cancel_event)
        return request.rows

    async def fetch(
        self,
        chart_id: str,
        raw_parameters: Optional[Mapping[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ChartDataRequest:
        """
        Run a chart request and return its completed record.

        Args:
            chart_id: Registered chart id
            raw_parameters: Caller-supplied parameter values
            timeout: Deadline in seconds for execution (defaults to service default)
            cancel_event: Setting this event aborts the in-flight execution

        Raises:
            ChartNotFoundError, ParameterValidationError: unchanged, before any query is built
            QueryExecutionError: gateway failure, original exception as __cause__
            QueryTimeoutError, QueryCancelledError: execution aborted
        """
        request = ChartDataRequest(chart_id=chart_id, raw_parameters=dict(raw_parameters or {}))
        try:
            config = self.registry.get(chart_id)

            request.parameters = resolve_parameters(config, request.raw_parameters)
            request.advance(RequestState.parameters_resolved)

            request.query = build_query(config, request.parameters)
            request.advance(RequestState.query_built)

            request.advance(RequestState.executing)
            raw_rows = await self._execute(request, self._timeout(timeout), cancel_event)

            request.rows = postprocess_rows(raw_rows, request.query.limit, chart_id=chart_id)
        except ChartDataError as e:
            request.error = e
            request.advance(RequestState.failed)
            logger.warning("Chart request %s failed (%s): %s", chart_id, e.kind, e.message)
            raise

        request.advance(RequestState.succeeded)
        return request

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            timeout = self.default_timeout
        if timeout is None or timeout <= 0:
            return None
        return timeout

    async def _execute(
        self,
        request: ChartDataRequest,
        timeout: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> Sequence[Mapping[str, Any]]:
        chart_id = request.chart_id
        if cancel_event is not None and cancel_event.is_set():
            raise QueryCancelledError(chart_id)

        execution = asyncio.ensure_future(self.gateway.execute(request.query))
        waiters = {execution}
        cancel_waiter = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            execution.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if execution not in done:
            execution.cancel()
            await asyncio.gather(execution, return_exceptions=True)
            if cancel_waiter is not None and cancel_waiter in done:
                raise QueryCancelledError(chart_id)
            raise QueryTimeoutError(chart_id, timeout)

        try:
            return execution.result()
        except QueryExecutionError:
            raise
        except Exception as e:
            raise QueryExecutionError(chart_id, str(e) or type(e).__name__) from e


# =============================================================================
# POST-PROCESSING
# =============================================================================

def postprocess_rows(
    raw_rows: Sequence[Mapping[str, Any]],
    limit: Optional[int],
    chart_id: Optional[str] = None,
) -> list[ResultRow]:
    """
    Normalize gateway rows into ResultRows.

    - percentage: the gateway's value rounded to 1 decimal, or computed as
      value / total of returned rows * 100 when absent
    - rows are stable-sorted by value descending (ties keep gateway order)
    - the limit is applied again; gateways are not trusted to honor it
    """
    parsed = []
    for index, row in enumerate(raw_rows):
        try:
            label, value = row["label"], row["value"]
        except (KeyError, TypeError):
            raise QueryExecutionError(chart_id, f"row {index} is missing 'label' or 'value'") from None
        try:
            value = float(value) if value is not None else 0.0
        except (TypeError, ValueError):
            raise QueryExecutionError(chart_id, f"row {index} has a non-numeric value {value!r}") from None
        if not math.isfinite(value):
            raise QueryExecutionError(chart_id, f"row {index} has a non-finite value")
        percentage = row.get("percentage")
        if percentage is not None:
            try:
                percentage = float(percentage)
            except (TypeError, ValueError):
                raise QueryExecutionError(chart_id, f"row {index} has a non-numeric percentage") from None
        parsed.append((label, value, percentage))

    total = sum(value for _, value, _ in parsed)

    rows = []
    for label, value, percentage in parsed:
        if percentage is not None:
            percentage = round(percentage, 1)
        elif total:
            percentage = round(value / total * 100, 1)
        else:
            percentage = 0.0
        rows.append(ResultRow(label="" if label is None else str(label), value=value, percentage=percentage))

    rows.sort(key=lambda r: r.value, reverse=True)
    if limit is not None and limit > 0:
        rows = rows[:limit]
    return rows

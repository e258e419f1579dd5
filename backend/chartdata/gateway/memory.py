"""
In-memory Execution Gateway

Serves canned rows per chart id without interpreting the SQL. Useful as a
fixture for demos and for exercising the service without a database; the
service still sorts, rounds and limits whatever comes back.
"""

from typing import Any, Mapping, Optional, Sequence

from backend.chartdata.core.schema import BuiltQuery

from .base import ExecutionGateway


class InMemoryGateway(ExecutionGateway):
    """Returns fixed rows per chart id and records every query received."""

    def __init__(self, rows_by_chart: Optional[Mapping[str, Sequence[Mapping[str, Any]]]] = None):
        self.rows_by_chart = {chart_id: list(rows) for chart_id, rows in (rows_by_chart or {}).items()}
        self.queries: list[BuiltQuery] = []

    async def execute(self, query: BuiltQuery) -> list[dict[str, Any]]:
        self.queries.append(query)
        return [dict(row) for row in self.rows_by_chart.get(query.chart_id, [])]

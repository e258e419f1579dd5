"""
Execution Gateway interface.

The chart data service depends on this interface only. A gateway may be a
real database, an in-memory fixture or a test double.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping, Sequence

if TYPE_CHECKING:
    from backend.chartdata.core.schema import BuiltQuery


class ExecutionGateway(ABC):
    """Executes a generated chart query."""

    @abstractmethod
    async def execute(self, query: "BuiltQuery") -> Sequence[Mapping[str, Any]]:
        """
        Execute a query and return its rows.

        Each row has `label` and `value`, and optionally `percentage`.
        Implementations must bind `query.params` to the `?` placeholders of
        `query.sql` and must never splice them into the text. Failures should
        raise QueryExecutionError; the service wraps anything else.
        """

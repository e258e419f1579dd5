"""
DuckDB Execution Gateway

Runs chart queries against the procurement warehouse built by
`backend.chartdata.analytics.build_warehouse`. Each call opens its own
read-only connection, binds the query parameters and closes the connection
when done. DuckDB calls block, so they run in a worker thread; if the
awaiting task is cancelled the running statement is interrupted.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union

import duckdb

from backend.chartdata.core.schema import BuiltQuery
from backend.chartdata.errors import QueryCancelledError, QueryExecutionError

from .base import ExecutionGateway

logger = logging.getLogger(__name__)


class DuckDBGateway(ExecutionGateway):
    """Execution gateway backed by a DuckDB database file."""

    def __init__(self, database_path: Union[str, Path], read_only: bool = True):
        self.database_path = Path(database_path)
        self.read_only = read_only

    def get_db_connection(self) -> duckdb.DuckDBPyConnection:
        """Get a DuckDB connection (read-only unless configured otherwise)."""
        return duckdb.connect(str(self.database_path), read_only=self.read_only)

    async def execute(self, query: BuiltQuery) -> list[dict[str, Any]]:
        run = _QueryRun(self, query)
        try:
            return await asyncio.to_thread(run)
        except asyncio.CancelledError:
            run.interrupt()
            raise

    def execute_sync(self, query: BuiltQuery) -> list[dict[str, Any]]:
        """Blocking variant, for scripts and tests."""
        return _QueryRun(self, query)()


class _QueryRun:
    """One query execution; remembers its connection so it can be interrupted."""

    def __init__(self, gateway: DuckDBGateway, query: BuiltQuery):
        self.gateway = gateway
        self.query = query
        self._con: Optional[duckdb.DuckDBPyConnection] = None
        self._cancelled = False
        self._lock = threading.Lock()

    def __call__(self) -> list[dict[str, Any]]:
        try:
            con = self.gateway.get_db_connection()
        except duckdb.Error as e:
            raise QueryExecutionError(self.query.chart_id, f"cannot open {self.gateway.database_path}: {e}") from e

        # interrupt() may have run while the connection was opening
        with self._lock:
            if self._cancelled:
                con.close()
                raise QueryCancelledError(self.query.chart_id)
            self._con = con
        try:
            cursor = con.execute(self.query.sql, list(self.query.params))
            columns = [d[0] for d in cursor.description]
            rows = cursor.fetchall()
        except duckdb.Error as e:
            raise QueryExecutionError(self.query.chart_id, str(e)) from e
        finally:
            with self._lock:
                self._con = None
            con.close()

        logger.debug("Chart %s returned %d row(s)", self.query.chart_id, len(rows))
        return [dict(zip(columns, row)) for row in rows]

    def interrupt(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._con is not None:
                logger.info("Interrupting query for chart %s", self.query.chart_id)
                self._con.interrupt()

"""
Chart Data Errors

Every failure the chart data engine surfaces has its own class and a stable
`kind` string. The HTTP layer maps kinds to status codes; callers decide
whether to retry (only execution failures are worth retrying).
"""

from typing import Optional


class ChartDataError(Exception):
    """Base class for chart data engine errors."""

    kind = "chart_data_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ChartDataError):
    """One or more chart configurations are invalid at registration time."""

    kind = "invalid_configuration"

    def __init__(self, errors: list[str]):
        super().__init__("Invalid chart configuration: " + "; ".join(errors))
        self.errors = tuple(errors)


class ChartNotFoundError(ChartDataError):
    """Unknown chart id requested."""

    kind = "not_found"

    def __init__(self, chart_id: str):
        super().__init__(f"Chart configuration not found: {chart_id}")
        self.chart_id = chart_id


class ParameterValidationError(ChartDataError):
    """A provided parameter value does not satisfy its declared schema."""

    kind = "validation_error"

    def __init__(self, parameter: str, reason: str):
        super().__init__(f"Invalid value for parameter '{parameter}': {reason}")
        self.parameter = parameter
        self.reason = reason


class QueryExecutionError(ChartDataError):
    """The execution gateway failed. The original exception is the __cause__."""

    kind = "execution_error"

    def __init__(self, chart_id: Optional[str], reason: str):
        prefix = f"Query for chart '{chart_id}' failed" if chart_id else "Query failed"
        super().__init__(f"{prefix}: {reason}")
        self.chart_id = chart_id
        self.reason = reason


class QueryCancelledError(ChartDataError):
    """Execution aborted by the caller's cancellation signal."""

    kind = "cancelled"

    def __init__(self, chart_id: str):
        super().__init__(f"Query for chart '{chart_id}' was cancelled")
        self.chart_id = chart_id


class QueryTimeoutError(ChartDataError):
    """Execution exceeded the caller's deadline."""

    kind = "timeout"

    def __init__(self, chart_id: str, timeout: float):
        super().__init__(f"Query for chart '{chart_id}' timed out after {timeout:g} seconds")
        self.chart_id = chart_id
        self.timeout = timeout

"""
Chart Data Core

Configuration-driven aggregation queries for the procurement dashboard.

Components:
- schema: configuration and result types
- configs: built-in chart configurations
- registry: immutable chart registry
- parameters: runtime parameter resolution
- query_builder: SQL generation with bound parameters
- service: end-to-end chart data requests
"""

from .registry import ChartRegistry, init_registry
from .parameters import resolve_parameters
from .query_builder import build_query, render_query
from .service import ChartDataService, RequestState

__all__ = [
    "ChartRegistry",
    "init_registry",
    "resolve_parameters",
    "build_query",
    "render_query",
    "ChartDataService",
    "RequestState",
]

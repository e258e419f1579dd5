"""
Backend Entrypoint for the Procurement Chart Data API.

Composes the chart data router (/charts/*) with health endpoints.
The chart registry and execution gateway are created once per app and
handed to the chart data service explicitly.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

# =============================================================================
# PATH SETUP
# =============================================================================
# Add project root to sys.path for imports

PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# =============================================================================
# FASTAPI APP CREATION
# =============================================================================

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.chartdata.api.charts import router as charts_router
from backend.chartdata.config import configure_logging, get_config_summary, settings
from backend.chartdata.core.registry import init_registry
from backend.chartdata.core.service import ChartDataService
from backend.chartdata.gateway.duckdb_gateway import DuckDBGateway

logger = logging.getLogger(__name__)


def create_app(service: Optional[ChartDataService] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        service: Pre-built chart data service (tests pass one with a fake
            gateway). Defaults to the built-in registry over DuckDB.
    """
    app = FastAPI(
        title="Procurement Chart Data API",
        description="Configuration-driven chart queries over procurement spend",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if service is None:
        service = ChartDataService(
            registry=init_registry(),
            gateway=DuckDBGateway(settings.duckdb_path),
            default_timeout=settings.query_timeout,
        )
    app.state.chart_service = service

    # =========================================================================
    # HEALTH CHECK
    # =========================================================================

    @app.get("/")
    async def root():
        """Root endpoint listing mounted routers."""
        return {
            "service": "Procurement Chart Data API",
            "version": "1.0.0",
            "backends": {
                "charts": "/charts",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "charts": len(app.state.chart_service.registry),
        }

    app.include_router(charts_router)
    return app


configure_logging()
app = create_app()
logger.info("Chart data API configured: %s", get_config_summary())

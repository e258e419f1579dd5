"""
Server Runner for the Procurement Chart Data API.

Usage:
    python run.py

Host, port and auto-reload come from CHARTDATA_HOST, CHARTDATA_PORT and
CHARTDATA_RELOAD (or .env). The API expects the sample warehouse at
CHARTDATA_DUCKDB_PATH; build it with:
    python -m backend.chartdata.analytics.build_warehouse
"""

import uvicorn

from backend.chartdata.config import settings

if __name__ == "__main__":
    if not settings.duckdb_path.exists():
        print(f"\n⚠️  No warehouse at {settings.duckdb_path}; chart data requests will fail until it is built.")

    print(f"\n🚀 Starting Procurement Chart Data API on http://{settings.host}:{settings.port}\n")

    uvicorn.run(
        "backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        reload_dirs=["backend"] if settings.reload else None,
        log_level=settings.log_level.lower(),
    )

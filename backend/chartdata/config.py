"""
Configuration for the Chart Data module.
Loads environment variables (and the project .env) with sensible defaults.
"""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Chart data settings loaded from CHARTDATA_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CHARTDATA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # DuckDB warehouse holding spend_transactions, vendors, commodities
    duckdb_path: Path = PROJECT_ROOT / "data" / "procurement.duckdb"

    # Deadline applied to each chart data query (None or <= 0 disables it)
    query_timeout_seconds: Optional[float] = 30.0

    log_level: str = "INFO"

    # uvicorn server (run.py)
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = True

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    @property
    def query_timeout(self) -> Optional[float]:
        if self.query_timeout_seconds is None or self.query_timeout_seconds <= 0:
            return None
        return self.query_timeout_seconds


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Install a basic log handler for the chart data loggers."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)


def ensure_data_dirs(target: Optional[Path] = None) -> None:
    """Create the directory holding the DuckDB file if it doesn't exist."""
    (target or settings.duckdb_path).parent.mkdir(parents=True, exist_ok=True)


def get_config_summary() -> dict:
    """Return a summary of current configuration."""
    return {
        "CHARTDATA_DUCKDB_PATH": str(settings.duckdb_path),
        "duckdb_exists": settings.duckdb_path.exists(),
        "CHARTDATA_QUERY_TIMEOUT_SECONDS": settings.query_timeout,
        "CHARTDATA_LOG_LEVEL": settings.log_level,
    }

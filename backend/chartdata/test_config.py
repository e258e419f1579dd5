"""Tests for environment-driven settings."""

from backend.chartdata.config import Settings, get_config_summary


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("CHARTDATA_PORT", "9001")
    monkeypatch.setenv("CHARTDATA_RELOAD", "false")
    monkeypatch.setenv("CHARTDATA_QUERY_TIMEOUT_SECONDS", "2.5")
    s = Settings()
    assert s.port == 9001
    assert s.reload is False
    assert s.query_timeout == 2.5


def test_non_positive_timeout_disables_deadline(monkeypatch) -> None:
    monkeypatch.setenv("CHARTDATA_QUERY_TIMEOUT_SECONDS", "0")
    assert Settings().query_timeout is None


def test_config_summary_names_environment_keys() -> None:
    summary = get_config_summary()
    assert "CHARTDATA_DUCKDB_PATH" in summary
    assert "CHARTDATA_QUERY_TIMEOUT_SECONDS" in summary

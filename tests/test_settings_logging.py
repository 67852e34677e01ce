"""Tests for settings and logging setup."""

import pytest
import structlog
from structlog.testing import capture_logs

from py_terrain.config import Settings
from py_terrain.utils.logging import configure_logging, log_duration


class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self):
        settings = Settings()

        assert settings.log_level == "INFO"
        assert settings.default_num_hills == 2
        assert settings.placement_batch_size == 1000

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("PY_TERRAIN_DEFAULT_NUM_HILLS", "5")
        monkeypatch.setenv("PY_TERRAIN_LOG_FORMAT", "plain")

        settings = Settings()

        assert settings.default_num_hills == 5
        assert settings.log_format == "plain"


class TestLogging:
    """Test structlog configuration."""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_configure_json(self):
        configure_logging(Settings(log_level="debug", log_format="json"))
        assert structlog.is_configured()

    def test_configure_plain(self):
        configure_logging(Settings(log_format="plain"))
        structlog.get_logger("py_terrain.tests").info("Configured", format="plain")

        assert structlog.is_configured()

    def test_log_duration_propagates_errors(self):
        with pytest.raises(RuntimeError, match="boom"):
            with log_duration("failing"):
                raise RuntimeError("boom")

    def test_log_duration_logs_failed_stage(self):
        """Test a stage that raises still reports its timing."""
        with capture_logs() as logs:
            with pytest.raises(RuntimeError):
                with log_duration("failing", cells=4):
                    raise RuntimeError("boom")

        finished = [entry for entry in logs if entry["event"] == "Operation finished"]
        assert len(finished) == 1
        assert finished[0]["operation"] == "failing"
        assert finished[0]["cells"] == 4
        assert finished[0]["duration_ms"] >= 0

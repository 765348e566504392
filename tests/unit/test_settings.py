import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from typegraph.logging_config import LOG_FORMAT, setup_logging
from typegraph.settings import ExecutionSettings, load_settings


class TestExecutionSettings:
    """Tests for the settings model."""

    def test_defaults(self):
        settings = ExecutionSettings()

        assert settings.log_level == "INFO"
        assert settings.unknown_input_fields == "reject"
        assert settings.timeout is None
        assert settings.partial_results is False
        assert settings.sync_resolvers_in_threads is False

    def test_frozen(self):
        settings = ExecutionSettings()
        with pytest.raises(ValidationError):
            settings.timeout = 5  # type: ignore[misc]

    def test_rejects_invalid_values(self):
        with pytest.raises(ValidationError):
            ExecutionSettings(unknown_input_fields="warn")
        with pytest.raises(ValidationError):
            ExecutionSettings(timeout=0)


class TestLoadSettings:
    """Tests for environment and .env loading."""

    def test_defaults_without_environment(self):
        assert load_settings() == ExecutionSettings()

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("TYPEGRAPH_LOG_LEVEL", "debug")
        monkeypatch.setenv("TYPEGRAPH_UNKNOWN_INPUT_FIELDS", "IGNORE")
        monkeypatch.setenv("TYPEGRAPH_TIMEOUT", "2.5")
        monkeypatch.setenv("TYPEGRAPH_PARTIAL_RESULTS", "yes")
        monkeypatch.setenv("TYPEGRAPH_SYNC_RESOLVERS_IN_THREADS", "0")

        settings = load_settings()

        assert settings.log_level == "DEBUG"
        assert settings.unknown_input_fields == "ignore"
        assert settings.timeout == 2.5
        assert settings.partial_results is True
        assert settings.sync_resolvers_in_threads is False

    def test_dotenv_file(self, test_env_isolation):
        Path(test_env_isolation).write_text("TYPEGRAPH_TIMEOUT=7\nTYPEGRAPH_PARTIAL_RESULTS=true\n")

        settings = load_settings()

        assert settings.timeout == 7.0
        assert settings.partial_results is True

    def test_environment_wins_over_dotenv(self, test_env_isolation, monkeypatch):
        Path(test_env_isolation).write_text("TYPEGRAPH_TIMEOUT=7\n")
        monkeypatch.setenv("TYPEGRAPH_TIMEOUT", "3")

        assert load_settings().timeout == 3.0

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("TYPEGRAPH_TIMEOUT", "soon")
        with pytest.raises(ValidationError):
            load_settings()


class TestSetupLogging:
    """Tests for logging configuration."""

    def test_installs_single_handler(self):
        logger = logging.getLogger("typegraph.test_setup")
        try:
            handler = setup_logging("DEBUG", logger_name="typegraph.test_setup")
            again = setup_logging("WARNING", logger_name="typegraph.test_setup")

            assert handler is again
            assert logger.handlers == [handler]
            assert logger.level == logging.WARNING
            assert handler.level == logging.WARNING
            assert handler.formatter._fmt == LOG_FORMAT
        finally:
            logger.handlers.clear()

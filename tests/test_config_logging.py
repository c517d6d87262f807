import logging

import pytest
from pydantic import ValidationError

from fleet_tracker import logging_config
from fleet_tracker.config import Settings, get_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.TASK_NAME_POLICY in {"lenient", "strict"}
        assert settings.LOG_LEVEL in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

    def test_values_are_normalized(self):
        settings = Settings(TASK_NAME_POLICY=" Strict ", LOG_LEVEL="warning")
        assert settings.TASK_NAME_POLICY == "strict"
        assert settings.LOG_LEVEL == "WARNING"

    @pytest.mark.parametrize("field, value", [
        ("TASK_NAME_POLICY", "relaxed"),
        ("LOG_LEVEL", "verbose"),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("TASK_NAME_POLICY", "strict")
        monkeypatch.setenv("PROJECT_NAME", "Workshop A")
        settings = Settings()
        assert settings.TASK_NAME_POLICY == "strict"
        assert settings.APP_NAME == "Workshop A"

    def test_environment_flags(self):
        assert Settings(ENVIRONMENT="local").is_development()
        assert not Settings(ENVIRONMENT="production").is_development()

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_only_read_settings_are_declared(self):
        assert set(Settings.model_fields) == {
            "APP_NAME", "ENVIRONMENT", "DEBUG", "DATABASE_URL", "DATABASE_ECHO",
            "LOG_LEVEL", "TASK_NAME_POLICY",
        }


class TestLoggingConfig:
    def test_development_uses_colors(self):
        config = logging_config.build_logging_config(Settings(ENVIRONMENT="development"))
        assert config["handlers"]["console"]["formatter"] == "colored"
        assert config["formatters"]["colored"]["()"] == "colorlog.ColoredFormatter"

    def test_production_levels(self):
        settings = Settings(ENVIRONMENT="production", LOG_LEVEL="error", DEBUG=False, DATABASE_ECHO=True)
        config = logging_config.build_logging_config(settings)
        assert config["handlers"]["console"]["formatter"] == "standard"
        assert config["handlers"]["console"]["level"] == "ERROR"
        assert config["loggers"]["fleet_tracker"]["level"] == "ERROR"
        assert config["loggers"]["sqlalchemy.engine"]["level"] == "INFO"

    def test_debug_opens_the_handler(self):
        config = logging_config.build_logging_config(Settings(DEBUG=True, LOG_LEVEL="WARNING"))
        assert config["handlers"]["console"]["level"] == "DEBUG"

    def test_setup_runs_once(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging_config, "_configured", False)
        monkeypatch.setattr(logging.config, "dictConfig", calls.append)

        logging_config.setup_logging(Settings())
        logging_config.setup_logging(Settings())
        assert len(calls) == 1

        logging_config.setup_logging(Settings(), force=True)
        assert len(calls) == 2

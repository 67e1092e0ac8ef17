"""Tests for structured logging and request tracing."""

import json
import logging

import pytest

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import (
    RequestContext,
    generate_request_id,
    get_context_dict,
    get_request_id,
    get_user_id,
)
from src.logging_config.setup import (
    ConsoleFormatter,
    StructuredFormatter,
    configure_logging,
    get_logger,
)
from src.settings import Settings


def _record(msg="hello", **extra):
    record = logging.LogRecord("test.logger", logging.INFO, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingConfig:
    def test_defaults(self):
        config = LoggingConfig()
        assert config.level == LogLevel.INFO
        assert config.format == LogFormat.JSON
        assert config.service_name == "foodconnect"
        assert "/health" in config.exclude_paths

    def test_from_settings(self):
        config = LoggingConfig.from_settings(
            Settings(log_level="debug", log_format="console", service_name="fc-test")
        )
        assert config.level == LogLevel.DEBUG
        assert config.format == LogFormat.CONSOLE
        assert config.service_name == "fc-test"

    def test_from_settings_falls_back(self):
        config = LoggingConfig.from_settings(Settings(log_level="loud", log_format="xml"))
        assert config.level == LogLevel.INFO
        assert config.format == LogFormat.JSON


class TestRequestContext:
    def test_binds_and_restores(self):
        assert get_request_id() == ""
        with RequestContext(request_id="req-1", user_id="u-1", user_role="restaurant"):
            assert get_request_id() == "req-1"
            assert get_user_id() == "u-1"
            assert get_context_dict()["user_role"] == "restaurant"
        assert get_request_id() == ""
        assert get_context_dict() == {}

    def test_generates_id(self):
        ctx = RequestContext()
        assert len(ctx.request_id) == 36
        assert generate_request_id() != generate_request_id()

    def test_bind_extra(self):
        with RequestContext(request_id="r") as ctx:
            ctx.bind(campaign_id="c-1")
            assert get_context_dict()["campaign_id"] == "c-1"

    def test_elapsed(self):
        assert RequestContext().elapsed_ms >= 0


class TestFormatters:
    def test_structured_json(self):
        formatter = StructuredFormatter(service_name="svc")
        payload = json.loads(formatter.format(_record(campaign_id="c-9", to_status="paid")))
        assert payload["message"] == "hello"
        assert payload["service"] == "svc"
        assert payload["campaign_id"] == "c-9"
        assert payload["to_status"] == "paid"
        assert payload["line"] == 10

    def test_structured_includes_context(self):
        formatter = StructuredFormatter(include_caller=False)
        with RequestContext(request_id="req-7", user_id="u-7"):
            payload = json.loads(formatter.format(_record()))
        assert payload["request_id"] == "req-7"
        assert payload["user_id"] == "u-7"
        assert "module" not in payload

    def test_console(self):
        line = ConsoleFormatter().format(_record("plain"))
        assert "plain" in line
        assert "INFO" in line


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_handler(self):
        configure_logging(LoggingConfig(level=LogLevel.WARNING))
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert root.level == logging.WARNING

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("FOODCONNECT_LOG_FORMAT", "console")
        monkeypatch.setenv("FOODCONNECT_LOG_LEVEL", "debug")
        configure_logging()
        root = logging.getLogger()
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
        assert root.level == logging.DEBUG

    def test_get_logger(self):
        assert get_logger("src.marketplace").name == "src.marketplace"

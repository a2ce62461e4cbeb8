"""Unit tests for structured logging utilities."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
import structlog

from cerberus_client.utils.logging import REDACTED, get_logger, log_error, redact_secrets, setup_logging


class TestSetupLogging:
    """Test setup_logging function."""

    @pytest.fixture(autouse=True)
    def reset_logging(self):
        """Reset logging configuration around each test."""
        logging.root.handlers = []
        yield
        logging.root.handlers = []

    def test_setup_logging_default_parameters(self):
        """Test setup_logging with default parameters."""
        setup_logging()

        assert len(logging.root.handlers) > 0
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert processors[:2] == [structlog.contextvars.merge_contextvars, redact_secrets]

    def test_context_bound_token_redacted(self):
        """Test tokens bound through contextvars are masked too."""
        setup_logging()
        processors = structlog.get_config()["processors"]

        structlog.contextvars.bind_contextvars(token="abc")
        try:
            event = {"event": "authenticated"}
            for processor in processors[:2]:
                event = processor(None, "info", event)
        finally:
            structlog.contextvars.clear_contextvars()

        assert event["token"] == REDACTED

    def test_setup_logging_console_format(self):
        """Test console format uses the dev renderer."""
        setup_logging(format="console")

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_setup_logging_level_filters(self):
        """Test the bound logger filters below the configured level."""
        setup_logging(level="WARNING")

        wrapper_class = structlog.get_config()["wrapper_class"]
        assert wrapper_class is structlog.make_filtering_bound_logger(logging.WARNING)

    def test_setup_logging_unknown_level_defaults_to_info(self):
        """Test an unknown level name falls back to INFO."""
        setup_logging(level="VERBOSE")

        wrapper_class = structlog.get_config()["wrapper_class"]
        assert wrapper_class is structlog.make_filtering_bound_logger(logging.INFO)


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_with_name(self):
        logger = get_logger("cerberus_client.test")

        assert logger is not None
        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")


class TestLogError:
    """Test log_error helper."""

    def test_log_error_basic(self):
        """Test error type and message are attached."""
        logger = MagicMock()

        log_error(logger, ValueError("bad value"))

        logger.error.assert_called_once_with(
            "error_occurred", error_type="ValueError", error_message="bad value", exc_info=True
        )

    def test_log_error_with_operation_and_context(self):
        """Test operation and extra context are passed through."""
        logger = MagicMock()

        log_error(logger, RuntimeError("boom"), operation="authenticate", provider="StsCredentialsProvider")

        kwargs = logger.error.call_args.kwargs
        assert kwargs["operation"] == "authenticate"
        assert kwargs["provider"] == "StsCredentialsProvider"

    def test_log_error_custom_level(self):
        """Test the level selects the logger method."""
        logger = MagicMock()

        log_error(logger, KeyError("k"), level="warning", exc_info=False)

        logger.warning.assert_called_once()
        logger.error.assert_not_called()
        assert logger.warning.call_args.kwargs["exc_info"] is False


class TestRedactSecrets:
    """Test the redaction processor."""

    def test_sensitive_keys_masked(self):
        event = redact_secrets(None, "info", {"event": "authenticated", "client_token": "abc", "Token": "xyz"})

        assert event == {"event": "authenticated", "client_token": REDACTED, "Token": REDACTED}

    def test_nested_headers_masked(self):
        event = redact_secrets(
            None,
            "debug",
            {"event": "cerberus_request", "headers": {"X-Cerberus-Token": "abc", "Accept": "application/json"}},
        )

        assert event["headers"] == {"X-Cerberus-Token": REDACTED, "Accept": "application/json"}

    def test_other_values_untouched(self):
        event = redact_secrets(None, "info", {"event": "list_secrets", "url": "https://cerberus.example.com"})

        assert event["url"] == "https://cerberus.example.com"
"""Structured logging for the Cerberus client.

Every configured pipeline runs ``redact_secrets`` right after merging
context variables, so tokens and secret values handed to a logger never
reach the output.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

REDACTED = "**REDACTED**"
SENSITIVE_KEYS = frozenset(
    {
        "token",
        "client_token",
        "x-cerberus-token",
        "auth_data",
        "password",
        "secret",
        "data",
    }
)


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    return value


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask sensitive keys in the event, including inside nested mappings such as headers."""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _redact(event_dict[key])
    return event_dict


def _processors(format: str) -> list[Processor]:
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if format == "json":
        return shared + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return shared + [structlog.dev.ConsoleRenderer()]


def setup_logging(level: str = "INFO", format: str = "json", output: str = "stderr") -> None:
    """Configure structured logging.

    Logs go to stderr by default so they never mix with secret values a
    command prints on stdout.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        output: Output destination (stdout or stderr)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    stream = sys.stdout if output == "stdout" else sys.stderr

    logging.basicConfig(format="%(message)s", stream=stream, level=log_level)

    structlog.configure(
        processors=_processors(format),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger, typically for ``__name__``."""
    return structlog.get_logger(name)


def log_error(
    logger: structlog.BoundLogger,
    error: Exception,
    operation: str | None = None,
    level: str = "error",
    exc_info: bool = True,
    **kwargs: Any,
) -> None:
    """Log a failure as an ``error_occurred`` event.

    Args:
        logger: Logger instance
        error: The failure
        operation: What was being attempted, e.g. ``authenticate``
        level: Logger method to use; credential lookups that are expected
            to fail in some environments log at ``info`` or ``warning``
        exc_info: Attach the traceback
        **kwargs: Additional context fields
    """
    context: dict[str, Any] = {"error_type": type(error).__name__, "error_message": str(error)}
    if operation:
        context["operation"] = operation
    context.update(kwargs)

    getattr(logger, level)("error_occurred", **context, exc_info=exc_info)

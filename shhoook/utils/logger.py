"""Structured logging utilities for shhoook.

structlog is configured once per process (module import, then again by the
CLI / lifespan from the loaded Config). Per-request fields are bound with
structlog's contextvars integration: the dispatcher binds ``request_id`` on
entry and unbinds it on exit, and every log line emitted in between
(including those from the command task, which inherits the context) carries
it.
"""

import logging
import time
from typing import Any

import structlog
from structlog.types import EventDict, Processor

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def add_timestamp(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add epoch timestamp to log entries."""
    event_dict["timestamp"] = time.time()
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
                   anything else falls back to INFO.
        json_output: If True, one JSON object per line. If False, coloured
                     console output for local runs.
    """
    level = log_level.upper() if log_level.upper() in _LEVELS else "INFO"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    # Loggers are not cached: check/catalog lower the level after modules
    # have already logged, and the print target follows sys.stdout.
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "shhoook") -> Any:
    """Get a structlog logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def set_request_id(request_id: str) -> None:
    """Bind request_id into the log context of the current task."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_id() -> None:
    structlog.contextvars.unbind_contextvars("request_id")


# Initialize logging with sensible defaults.
configure_logging()

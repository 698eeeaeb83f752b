"""
Structured Logging with Structlog.

Provides JSON-formatted logs with service context.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from fcm_bridge.config import settings


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application-level context to all log entries."""
    event_dict["service"] = settings.service_name
    event_dict["version"] = settings.service_version
    return event_dict


def setup_logging() -> None:
    """
    Configure structured logging with structlog.

    Logs are formatted as JSON for machine parsing with the following structure:
    {
        "event": "fcm_token_exchange_completed",
        "level": "info",
        "timestamp": "2026-01-08T12:00:00.123456Z",
        "logger": "fcm_bridge.services.token_exchange",
        "service": "fcm-bridge",
        "version": "0.1.0",
        ...additional context
    }
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_level.upper() == "DEBUG":
        processors.append(structlog.processors.ExceptionRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def redact_token(value: str, visible: int = 6) -> str:
    """Keep only the tail of a token or key for log output."""
    if len(value) <= visible:
        return "***"
    return f"...{value[-visible:]}"


class log_context:
    """
    Context manager for adding structured logging context.

    Usage:
        with log_context(token_suffix="...a1b2c3"):
            logger.info("fcm_token_exchange_started")
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> None:
        structlog.contextvars.bind_contextvars(**self.context)

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())

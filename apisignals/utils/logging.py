"""
Structured logging configuration using structlog.

Evaluators emit one event per call with their own context (sla_id,
alert_id); the processors added here stamp every event with the package
version and a severity field for log shippers.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from apisignals import __version__
from apisignals.config import Settings, get_settings


def add_severity(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add severity level for structured logging."""
    event_dict["severity"] = method_name.upper()
    return event_dict


def add_engine_version(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp the apisignals version so results can be traced to a release."""
    event_dict.setdefault("engine_version", __version__)
    return event_dict


def build_processors(settings: Settings) -> list[Processor]:
    """
    Processor chain for the given settings.

    JSON output unless ``log_format`` is console or ``dev_mode`` is set.
    """
    if settings.log_format == "json" and not settings.dev_mode:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=settings.dev_mode)

    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_severity,
        add_engine_version,
        renderer,
    ]


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        settings: Settings to read log level and format from (default: cached settings)
    """
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "apisignals") -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)

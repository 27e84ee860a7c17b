"""
Structured logging configuration using structlog.

Import events are logged as snake_case event names with key/value context
(``section_created section_id=12 file_name=label.xml``): human-readable in
development, JSON everywhere else.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from splimport.config import settings


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure structlog for the import pipeline.

    Args:
        level: Log level name; defaults to settings.log_level
        json_output: Force JSON (True) or console (False) rendering;
            defaults to JSON outside the development environment
    """
    level_name = (level or settings.log_level).upper()
    if json_output is None:
        json_output = settings.environment != "development"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        # Batch imports: one JSON object per event for log aggregation
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level_name)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # lxml and other libraries log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.getLevelName(level_name),
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a logger instance with optional initial context.

    Args:
        name: Optional logger name (typically __name__)
        **initial_context: Key-value pairs to bind to all log messages

    Returns:
        Configured structlog logger

    Example:
        logger = get_logger(__name__, component="importer")
        logger.info("section_created", section_id=12, title="WARNINGS")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger

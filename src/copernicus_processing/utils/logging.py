"""
Structured logging for the Copernicus processing core.

Events are logged with structlog as snake_case event names plus keyword
fields, rendered for the terminal or as one JSON object per line for
service deployments. While a request is dispatched its ``request_id`` and
``selector`` are attached to every event through ``request_context``.

Example:
    >>> from copernicus_processing.utils import setup_logging, get_logger
    >>>
    >>> setup_logging(level="INFO", format="json")
    >>> logger = get_logger(__name__)
    >>> with request_context(request_id="a1b2c3", selector="ndvi"):
    ...     logger.info("stage_applied", stage="ndvi")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

LOG_FORMATS = ("console", "json")


def _context_processors(include_timestamp: bool, include_location: bool) -> list[Any]:
    chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if include_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    if include_location:
        chain.append(
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )
    return chain


def _render_processors(format: str) -> list[Any]:
    if format == "json":
        # exceptions rendered as structured dicts
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer(sort_keys=True)]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def setup_logging(
    level: str = "INFO",
    format: str = "console",
    *,
    include_timestamp: bool = True,
    include_location: bool = False,
) -> None:
    """Configure structlog on top of the standard library logging module.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: "console" for humans, "json" for log collectors
        include_timestamp: Add a UTC ISO timestamp
        include_location: Add module and line number

    Raises:
        ValueError: For an unknown format or level
    """
    if format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format '{format}'. Expected one of {LOG_FORMATS}")
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    # rasterio never logs below INFO
    logging.getLogger("rasterio").setLevel(max(numeric_level, logging.INFO))

    structlog.configure(
        processors=[
            *_context_processors(include_timestamp, include_location),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            *_render_processors(format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, usually ``get_logger(__name__)``."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every later event in the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all fields attached with bind_context or request_context."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def request_context(**fields: Any) -> Iterator[None]:
    """Attach ``fields`` to events logged inside the block.

    Previously bound values for the same keys are restored on exit, so
    nested dispatches (e.g. a stage that issues its own request) keep
    their outer context.

    Example:
        >>> with request_context(request_id="a1b2c3", selector="ndvi"):
        ...     logger.info("dispatch_started")
    """
    with structlog.contextvars.bound_contextvars(**fields):
        yield

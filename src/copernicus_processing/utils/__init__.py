"""
Utility functions for the Copernicus processing core.

Logging:
- setup_logging(): Configure structured logging with structlog
- get_logger(name): Get a logger instance
- request_context(**fields): Attach request fields to events in a block

Time:
- parse_datetime(value): Parse ISO strings into UTC datetimes
- stac_interval(start, end): STAC search interval string
"""

from copernicus_processing.utils.logging import get_logger, request_context, setup_logging
from copernicus_processing.utils.time import ensure_utc, parse_datetime, stac_interval

__all__ = [
    "ensure_utc",
    "get_logger",
    "parse_datetime",
    "request_context",
    "setup_logging",
    "stac_interval",
]

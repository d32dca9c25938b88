"""
Time helpers for acquisition windows.

Acquisition windows are handled as timezone-aware UTC datetimes.
Naive datetimes are assumed to be UTC.

Example:
    >>> from copernicus_processing.utils.time import parse_datetime, stac_interval
    >>>
    >>> start = parse_datetime("2024-06-01")
    >>> end = parse_datetime("2024-06-15T12:00:00Z")
    >>> stac_interval(start, end)
    '2024-06-01T00:00:00Z/2024-06-15T12:00:00Z'
"""

from __future__ import annotations

from datetime import UTC, date, datetime

# Compact timestamp used in export file names
FILENAME_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S"


def ensure_utc(dt: datetime) -> datetime:
    """Return dt as a timezone-aware UTC datetime.

    Args:
        dt: Datetime (assumed UTC if naive)

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_datetime(value: str | date | datetime) -> datetime:
    """Parse an ISO 8601 date or datetime into a UTC datetime.

    Accepts a trailing "Z" for UTC. Plain dates become midnight UTC.

    Args:
        value: ISO string, date or datetime

    Returns:
        Timezone-aware UTC datetime

    Raises:
        ValueError: If the string is not ISO 8601
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def format_iso(dt: datetime) -> str:
    """Format a datetime as ISO 8601 UTC with a "Z" suffix."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def stac_interval(start: datetime, end: datetime) -> str:
    """Build a STAC search datetime interval string.

    Args:
        start: Window start
        end: Window end

    Returns:
        "start/end" in ISO 8601 UTC
    """
    return f"{format_iso(start)}/{format_iso(end)}"


def filename_timestamp(dt: datetime | None = None) -> str:
    """Timestamp fragment for export file names (defaults to now)."""
    return ensure_utc(dt or datetime.now(UTC)).strftime(FILENAME_TIMESTAMP_FORMAT)

"""Shared utilities and helper functions for domain entities.

Pure utility functions with zero external dependencies.
"""

from datetime import UTC, datetime

# Formats seen in Last.fm album payloads, most specific first
_RELEASE_DATE_FORMATS = (
    "%d %b %Y, %H:%M",
    "%d %B %Y, %H:%M",
    "%d %b %Y",
    "%d %B %Y",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%b %d, %Y",
    "%B %d, %Y",
    "%Y",
)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure datetime is timezone-aware with UTC."""
    if dt is None:
        return None
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


def from_timestamp(value: int | float | str) -> datetime:
    """Convert unix epoch seconds (possibly a string) to a UTC datetime."""
    return datetime.fromtimestamp(int(value), tz=UTC)


def to_timestamp(dt: datetime) -> int:
    """Convert a datetime to whole unix epoch seconds."""
    return int(ensure_utc(dt).timestamp())  # type: ignore[union-attr]


def parse_release_date(raw: str | None) -> datetime | None:
    """Parse a loosely formatted release date string.

    Returns None for missing or unparseable input instead of raising.
    """
    if not raw or not isinstance(raw, str):
        return None

    text = " ".join(raw.split())
    if not text:
        return None

    for fmt in _RELEASE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    return None

"""Timestamp parsing and formatting shared by validation, recurrence and storage."""

from __future__ import annotations

from datetime import datetime, timezone

from dateutil import parser as date_parser


def ensure_aware_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse a user-supplied timestamp leniently.

    ISO-8601 strings (including a trailing "Z" and date-only values) are tried
    first, then dateutil's general parser for forms like "Jan 15 2025 10:00".

    Args:
        value: Raw timestamp string or datetime

    Returns:
        Aware UTC datetime, or None if value is empty or unparsable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware_utc(value)

    text = value.strip()
    if not text:
        return None

    try:
        return ensure_aware_utc(date_parser.isoparse(text))
    except (ValueError, OverflowError):
        pass

    try:
        return ensure_aware_utc(date_parser.parse(text))
    except (date_parser.ParserError, ValueError, OverflowError):
        return None


def format_timestamp(dt: datetime) -> str:
    """Format a datetime as a UTC ISO-8601 string with milliseconds and "Z"."""
    return ensure_aware_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

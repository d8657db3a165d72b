"""
Date utility functions.

Parsing of timestamps as they arrive in record payloads (ISO-8601
strings, epoch numbers or datetime objects) and age calculations used
for freshness checks.
"""

from datetime import UTC, datetime


def get_current_timestamp() -> datetime:
    """
    Get current UTC timestamp.

    Returns:
        Current datetime with UTC timezone.
    """
    return datetime.now(UTC)


def parse_timestamp(value: object) -> datetime | None:
    """
    Parse a timestamp into an aware UTC datetime.

    Accepts datetimes (naive values are taken as UTC), ISO-8601 strings
    (a trailing ``Z`` is allowed) and epoch numbers. Epoch values above
    1e11 are treated as milliseconds.

    Args:
        value: Raw timestamp.

    Returns:
        Parsed datetime, or None if the value cannot be interpreted.

    Example:
        parse_timestamp("2024-01-15T10:00:00Z") -> datetime(2024, 1, 15, 10, tzinfo=UTC)
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, int | float):
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def age_seconds(value: object, now: datetime | None = None) -> float | None:
    """
    Seconds elapsed since a timestamp.

    Args:
        value: Raw timestamp accepted by ``parse_timestamp``.
        now: Reference time, defaults to the current UTC time.

    Returns:
        Age in seconds (negative for future timestamps), or None if the
        value cannot be parsed.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    reference = now or get_current_timestamp()
    return (reference - parsed).total_seconds()

"""
Timestamp utilities for consistent time handling across the system.

All datetimes handled by BizMem are timezone-aware and in UTC.
"""

import time
from datetime import datetime, timezone
from typing import Optional, Union

TimestampLike = Union[datetime, str, int, float]


def to_datetime(timestamp: Optional[float] = None) -> datetime:
    """Convert timestamp to a UTC datetime object.

    Args:
        timestamp: Unix timestamp in seconds (optional, uses current time if None)

    Returns:
        Timezone-aware datetime object
    """
    if timestamp is None:
        timestamp = time.time()
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def to_millis(value: Optional[datetime] = None) -> int:
    """Convert a datetime (or now) to integer epoch milliseconds."""
    if value is None:
        value = to_datetime()
    return int(value.timestamp() * 1000)


def parse_timestamp(value: TimestampLike) -> datetime:
    """Parse a datetime, ISO-8601 string or epoch seconds into a UTC datetime.

    Naive datetimes are assumed to already be in UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, bool):
        raise ValueError(f'Invalid timestamp: {value!r}')

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            return to_datetime(value)
        except (OverflowError, OSError) as e:
            raise ValueError(f'Invalid timestamp: {value!r}') from e
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f'Invalid timestamp: {value!r}') from e
    else:
        raise ValueError(f'Invalid timestamp: {value!r}')

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a datetime as an ISO-8601 string."""
    return value.isoformat()

"""Wall clocks and timestamp formatting."""

import time
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Clock resolutions understood by the codec.
UNITS = ("s", "ms")


def now_micros():
    """Current time in microseconds since Unix epoch."""
    return time.time_ns() // 1_000


def now_millis():
    """Current time in milliseconds since Unix epoch."""
    return time.time_ns() // 1_000_000


def now_seconds():
    """Current time in whole seconds since Unix epoch."""
    return time.time_ns() // 1_000_000_000


def timestamp_to_datetime(value, unit="ms"):
    """Convert an epoch count in ``unit`` to an aware UTC datetime.

    Raises OverflowError when the value is outside the datetime range.
    """
    if unit == "ms":
        return EPOCH + timedelta(milliseconds=value)
    if unit == "s":
        return EPOCH + timedelta(seconds=value)
    raise ValueError(f"Unknown timestamp unit {unit!r}; expected one of {UNITS}")


def format_datetime(dt):
    """Format an aware datetime as ISO 8601 with microseconds."""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"


def format_timestamp(epoch_us=None):
    """Format timestamp as ISO 8601 with microseconds."""
    if epoch_us is None:
        epoch_us = now_micros()
    return format_datetime(EPOCH + timedelta(microseconds=epoch_us))

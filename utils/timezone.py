"""UTC-everywhere time handling. Eliminates timezone bugs at the source."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere. Services import it by name
    so tests can patch the clock per module.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def from_epoch_ms(value: int | float) -> datetime:
    """
    Convert a millisecond Unix timestamp to a UTC datetime.

    Legacy penpals documents store every timestamp as epoch milliseconds.
    """
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def coerce_timestamp(value):
    """
    Pydantic before-validator helper: epoch milliseconds become UTC datetimes.

    Anything else (datetime, ISO string, None) passes through for pydantic
    to validate normally.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return from_epoch_ms(value)
    return value


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a stored timestamp to UTC.

    Unlike to_utc(), naive values are accepted and read as UTC: hand-edited
    documents and older exports carry them.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value) -> datetime | None:
    """
    Best-effort parse of a raw document timestamp to an aware UTC datetime.

    Accepts epoch milliseconds, datetimes and ISO strings. Returns None for
    anything unparseable; model validation reports those properly.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return from_epoch_ms(value)
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None

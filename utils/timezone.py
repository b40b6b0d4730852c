"""UTC-everywhere time handling for stored timestamps."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def to_db_timestamp(dt: datetime) -> str:
    """
    Serialize an aware datetime for a TEXT timestamp column.

    Always stored as UTC ISO 8601 with microseconds, so the stored strings
    sort in the same order as the instants they represent.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot store naive datetime. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def db_now() -> str:
    """Current UTC time, ready to bind to a timestamp column."""
    return to_db_timestamp(now_utc())

from datetime import datetime, timezone as dt_timezone


def utcnow() -> datetime:
    """Current time as UTC-naive, the form every timestamp column is stored in."""
    return datetime.now(dt_timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-naive (tzinfo=None) for consistent storage/comparison.
    - Aware datetimes are converted to UTC and tzinfo is stripped
    - Naive datetimes are returned as-is (assumed UTC)
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(dt_timezone.utc).replace(tzinfo=None)


def to_utc_aware(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-aware (tzinfo=UTC) for API responses.
    - Aware datetimes are converted to UTC
    - Naive datetimes are assumed UTC and tz attached
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)

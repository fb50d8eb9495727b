from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; the store keeps timestamps without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def elapsed_seconds(start: datetime | None, end: datetime | None = None) -> int:
    """Whole seconds between start and end (now when omitted), never negative."""
    if start is None:
        return 0
    if end is None:
        end = utcnow()
    delta = to_naive_utc(end) - to_naive_utc(start)
    return max(int(delta.total_seconds()), 0)


def elapsed_minutes(start: datetime | None, end: datetime | None = None) -> float:
    return round(elapsed_seconds(start, end) / 60.0, 2)


def isoformat_or_none(value: datetime | None) -> str | None:
    return value.isoformat() if value else None

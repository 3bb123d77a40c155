"""Datetime helpers.

The database stores naive UTC timestamps; clients send epoch milliseconds;
exports and the dashboard read ISO-8601 with a ``Z`` suffix. Everything in
between is a naive UTC ``datetime``.
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Current UTC time, naive."""
    return datetime.now(UTC).replace(tzinfo=None)


def get_cutoff(hours: int = 0, days: int = 0) -> datetime:
    """Start of a look-back window ending now, naive UTC."""
    return utc_now() - timedelta(hours=hours, days=days)


def to_naive_utc(dt: datetime) -> datetime:
    # Naive input is taken to be UTC already
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def from_epoch_millis(millis: int) -> datetime:
    """Client timestamp (epoch milliseconds) to naive UTC."""
    return datetime.fromtimestamp(millis / 1000, tz=UTC).replace(tzinfo=None)


def to_iso_utc(dt: datetime) -> str:
    """
    Format as ISO-8601 UTC with millisecond precision.

    >>> to_iso_utc(datetime(2026, 1, 10, 12, 0))
    '2026-01-10T12:00:00.000Z'
    """
    return to_naive_utc(dt).isoformat(timespec="milliseconds") + "Z"

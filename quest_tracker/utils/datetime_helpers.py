"""Datetime utility functions for timezone handling and quest windows."""
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Optional


@dataclass(frozen=True)
class QuestWindow:
    """Inclusive time window passed to indexer event queries."""

    start: datetime
    end: datetime

    @property
    def start_ms(self) -> int:
        return to_epoch_millis(self.start)

    @property
    def end_ms(self) -> int:
        return to_epoch_millis(self.end)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware in UTC.

    This utility handles the common case where datetimes from the database
    may be timezone-naive but should be treated as UTC.

    Args:
        dt: Datetime to normalize (can be None)

    Returns:
        UTC-aware datetime or None if input was None

    Example:
        >>> naive_dt = datetime(2025, 1, 1, 12, 0, 0)
        >>> aware_dt = ensure_utc(naive_dt)
        >>> aware_dt.tzinfo == UTC
        True

        >>> ensure_utc(None) is None
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_epoch_millis(dt: datetime) -> int:
    """Convert a datetime to integer milliseconds since the Unix epoch."""
    return int(ensure_utc(dt).timestamp() * 1000)


def last_reset_boundary(now: datetime, reset_hour: int = 0, reset_minute: int = 1) -> datetime:
    """Return the most recent daily reset instant at or before ``now``."""
    now = ensure_utc(now)
    boundary = now.replace(hour=reset_hour, minute=reset_minute, second=0, microsecond=0)
    if boundary > now:
        boundary -= timedelta(days=1)
    return boundary


def next_reset_boundary(now: datetime, reset_hour: int = 0, reset_minute: int = 1) -> datetime:
    """Return the first daily reset instant strictly after ``now``."""
    return last_reset_boundary(now, reset_hour, reset_minute) + timedelta(days=1)


def get_daily_window(now: Optional[datetime] = None, reset_hour: int = 0, reset_minute: int = 1) -> QuestWindow:
    """
    Window for daily quests.

    Starts at the last reset boundary (00:01 UTC by default) and ends one
    second before the next one (00:00:59 UTC the following day).
    """
    start = last_reset_boundary(now or datetime.now(UTC), reset_hour, reset_minute)
    return QuestWindow(start=start, end=start + timedelta(days=1) - timedelta(seconds=1))


def get_milestone_window(epoch_start: datetime, now: Optional[datetime] = None) -> QuestWindow:
    """Window for one-time quests: the launch epoch up to now."""
    return QuestWindow(start=ensure_utc(epoch_start), end=ensure_utc(now or datetime.now(UTC)))


def next_interval_slot(now: datetime, interval_minutes: int, offset_minutes: int = 0) -> datetime:
    """
    Return the next scheduled slot strictly after ``now``.

    Slots fall at ``offset_minutes + k * interval_minutes`` past midnight UTC,
    so an interval of 30 with offset 2 gives :02 and :32 of every hour.
    """
    now = ensure_utc(now)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elapsed = (now - midnight).total_seconds() / 60 - offset_minutes
    slots_passed = int(elapsed // interval_minutes) + 1
    return midnight + timedelta(minutes=offset_minutes + slots_passed * interval_minutes)

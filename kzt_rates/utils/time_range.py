"""Helpers for parsing timestamps and normalising query ranges."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class TimeRange:
    """Container representing a closed ``[start, end]`` interval in UTC."""

    start: datetime
    end: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str | date | datetime) -> datetime:
    """Parse an ISO-8601 date or datetime (a trailing ``Z`` is accepted)."""

    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def normalise_range(start: datetime | None, end: datetime | None) -> TimeRange:
    """Fill unset bounds: start defaults to the epoch, end to "now"."""

    resolved_start = ensure_utc(start) if start is not None else EPOCH
    resolved_end = ensure_utc(end) if end is not None else utcnow()
    return TimeRange(start=resolved_start, end=resolved_end)


def to_storage(value: datetime) -> datetime:
    """Return the naive UTC form persisted by the store."""

    return ensure_utc(value).replace(tzinfo=None)


__all__ = [
    "EPOCH",
    "TimeRange",
    "utcnow",
    "ensure_utc",
    "parse_timestamp",
    "normalise_range",
    "to_storage",
]

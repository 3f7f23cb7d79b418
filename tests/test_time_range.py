from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from kzt_rates.utils.time_range import EPOCH, normalise_range, parse_timestamp, to_storage, utcnow


def test_parse_timestamp_accepts_zulu_suffix() -> None:
    assert parse_timestamp("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)


def test_parse_timestamp_converts_offsets_to_utc() -> None:
    parsed = parse_timestamp("2024-03-01T15:00:00+05:00")

    assert parsed == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
    assert parsed.tzinfo == timezone.utc


def test_parse_timestamp_accepts_dates_and_naive_values() -> None:
    assert parse_timestamp("2024-03-01") == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert parse_timestamp(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert parse_timestamp(datetime(2024, 3, 1, 8)).tzinfo == timezone.utc


def test_normalise_range_defaults_to_epoch_and_now() -> None:
    window = normalise_range(None, None)

    assert window.start == EPOCH
    assert utcnow() - window.end < timedelta(seconds=5)


def test_to_storage_is_naive_utc() -> None:
    value = datetime(2024, 3, 1, 15, tzinfo=timezone(timedelta(hours=5)))

    assert to_storage(value) == datetime(2024, 3, 1, 10)

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from services.timestamps import (
    NO_DATA,
    coerce_day,
    format_time,
    parse_timestamp,
    resolve_timezone,
    within_days,
)


def test_parse_iso_with_zulu_suffix() -> None:
    parsed = parse_timestamp("2024-01-01T10:30:00Z")

    assert parsed == datetime(2024, 1, 1, 10, 30, tzinfo=timezone.utc)


def test_parse_iso_with_offset_is_converted_to_utc() -> None:
    parsed = parse_timestamp("2024-01-01T10:30:00+07:00")

    assert parsed == datetime(2024, 1, 1, 3, 30, tzinfo=timezone.utc)


def test_parse_naive_uses_given_timezone() -> None:
    bangkok = timezone(timedelta(hours=7))

    parsed = parse_timestamp("2024-01-01 07:00:00", bangkok)

    assert parsed == datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)


def test_parse_legacy_date_token_has_zero_based_month() -> None:
    parsed = parse_timestamp("Date(2024,0,15,8,5,9)")

    assert parsed == datetime(2024, 1, 15, 8, 5, 9, tzinfo=timezone.utc)


def test_parse_epoch_milliseconds() -> None:
    assert parse_timestamp(1704067200000) == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_parse_datetime_passthrough() -> None:
    moment = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    assert parse_timestamp(moment) == moment


@pytest.mark.parametrize(
    "value", [None, "", "not-a-date", "Date(2024,13,40,0,0,0)", "Date(garbage)", True, {}]
)
def test_parse_invalid_returns_none(value) -> None:
    assert parse_timestamp(value) is None


def test_within_days_is_inclusive_and_rejects_missing_timestamps() -> None:
    moment = datetime(2024, 1, 2, 23, 59, tzinfo=timezone.utc)

    assert within_days(moment, "2024-01-02", "2024-01-02")
    assert within_days(moment, date(2024, 1, 1), None)
    assert not within_days(moment, "2024-01-03", None)
    assert not within_days(moment, None, "2024-01-01")
    assert within_days(None, None, None)
    assert not within_days(None, "2024-01-01", None)


def test_within_days_uses_display_timezone() -> None:
    moment = datetime(2024, 1, 1, 20, 0, tzinfo=timezone.utc)
    bangkok = timezone(timedelta(hours=7))

    assert within_days(moment, "2024-01-02", "2024-01-02", bangkok)
    assert not within_days(moment, "2024-01-02", "2024-01-02")


def test_coerce_day_and_format_time() -> None:
    assert coerce_day(" 2024-03-04 ") == "2024-03-04"
    assert coerce_day("") is None
    assert coerce_day(datetime(2024, 3, 4, 5)) == "2024-03-04"
    assert format_time(None) == NO_DATA
    assert format_time(datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc)) == "2024-03-04 05:06:07"


def test_resolve_timezone_falls_back_to_utc() -> None:
    assert resolve_timezone(None) is timezone.utc
    assert resolve_timezone("UTC") is timezone.utc
    assert resolve_timezone("Not/AZone") is timezone.utc

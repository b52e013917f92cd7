from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from hn_newest_audit.util.dates import EPOCH, parse_article_date


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_timestamp_is_epoch(raw) -> None:
    assert parse_article_date(raw) == EPOCH


def test_epoch_is_time_zero_utc() -> None:
    assert EPOCH == datetime.fromtimestamp(0, tz=timezone.utc)


def test_iso_timestamp_with_zulu() -> None:
    assert parse_article_date("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_hacker_news_title_uses_unix_seconds() -> None:
    dt = parse_article_date("2024-01-01T00:00:00 1704067200")
    assert dt == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert dt.tzinfo == timezone.utc


def test_naive_timestamp_is_taken_as_utc() -> None:
    assert parse_article_date("2024-01-01 09:30") == datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)


def test_offset_is_normalized_to_utc() -> None:
    dt = parse_article_date("2024-01-01T02:00:00+02:00")
    assert dt == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert dt.utcoffset().total_seconds() == 0


def test_garbage_falls_back_to_epoch_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="hn_newest_audit.util.dates"):
        assert parse_article_date("not-a-date", label="Show HN: thing") == EPOCH
    assert "not-a-date" in caplog.text


def test_out_of_range_unix_seconds_falls_back_to_epoch() -> None:
    assert parse_article_date("2024-01-01T00:00:00 99999999999999999999") == EPOCH


def test_trailing_year_is_not_mistaken_for_unix_seconds() -> None:
    assert parse_article_date("Jan 5 2024") == datetime(2024, 1, 5, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw", ["10", "May", "2024", "May 10", "May 2024"])
def test_partial_dates_are_not_completed_from_today(raw, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="hn_newest_audit.util.dates"):
        assert parse_article_date(raw, label="partial") == EPOCH
    assert repr(raw) in caplog.text


def test_date_without_time_is_midnight_utc() -> None:
    assert parse_article_date("2024-03-02") == datetime(2024, 3, 2, tzinfo=timezone.utc)

# tests/test_timeparse.py

from __future__ import annotations

from datetime import datetime

import pytest
from dateutil import tz

from tasklog.cli.timeparse import days_before_now, days_from_now, format_ts, parse_due

from .fakes import DAY, NOW


def _local(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=tz.tzlocal())


def test_relative_offsets() -> None:
    assert parse_due("+2h", now=NOW) == NOW + 7200
    assert parse_due("+30m", now=NOW) == NOW + 1800
    assert parse_due("+1w", now=NOW) == NOW + 7 * DAY


def test_day_words_mean_end_of_day() -> None:
    today = _local(parse_due("today", now=NOW))
    assert (today.hour, today.minute, today.second) == (23, 59, 59)
    assert today.date() == _local(NOW).date()

    tomorrow = parse_due("tomorrow", now=NOW)
    assert tomorrow > NOW
    assert _local(tomorrow).date() > _local(NOW).date()


def test_day_word_with_time() -> None:
    ts = parse_due("tomorrow 5PM", now=NOW)
    dt = _local(ts)
    assert (dt.hour, dt.minute) == (17, 0)


def test_absolute_dates() -> None:
    dt = _local(parse_due("2027-03-04 14:30", now=NOW))
    assert (dt.year, dt.month, dt.day, dt.hour, dt.minute) == (2027, 3, 4, 14, 30)


def test_garbage_raises_value_error() -> None:
    with pytest.raises(ValueError):
        parse_due("whenever", now=NOW)
    with pytest.raises(ValueError):
        parse_due("", now=NOW)


def test_day_windows_and_format() -> None:
    assert days_from_now(0, now=NOW) == NOW
    assert days_before_now(0, now=NOW) == NOW
    assert days_from_now(1, now=NOW) > NOW > days_before_now(1, now=NOW)
    assert format_ts(None) == "-"
    assert format_ts(NOW).startswith("2027-01-1")

from datetime import datetime, timedelta

import pytest

from groupbot.schedule import first_week, next_wake_time, should_fire
from groupbot.timer import Timer


def _timer(month, day, week, hour, minute):
    ts = Timer()
    ts.month, ts.day, ts.week, ts.hour, ts.minute = month, day, week, hour, minute
    return ts


def _weekday(date):
    return (date.weekday() + 1) % 7


def test_next_wake_time_weekly_is_in_future():
    ts = Timer()
    ts.month = -1
    ts.week = 6
    ts.hour = 16
    ts.minute = 30
    now = datetime.now()
    assert next_wake_time(ts, now) - now >= timedelta(0)


def test_weekly_saturday_from_monday():
    ts = _timer(-1, 0, 6, 16, 30)
    now = datetime(2021, 11, 15, 10, 0)
    wake = next_wake_time(ts, now)
    assert wake > now
    assert _weekday(wake) == 6
    assert (wake.hour, wake.minute) == (16, 30)
    assert wake - now < timedelta(days=7)


@pytest.mark.parametrize(
    "now",
    [
        datetime(2021, 1, 31, 23, 59, 30),
        datetime(2021, 6, 15, 12, 0),
        datetime(2024, 2, 29, 0, 0),
    ],
)
def test_every_minute(now):
    ts = _timer(-1, -1, -1, -1, -1)
    assert next_wake_time(ts, now) == now + timedelta(minutes=1)


def test_hourly_at_fixed_minute():
    ts = _timer(-1, -1, -1, -1, 15)
    now = datetime(2021, 6, 15, 10, 20)
    wake = next_wake_time(ts, now)
    assert wake.minute == 15
    assert now < wake <= now + timedelta(hours=1)


def test_daily_keeps_hour_and_minute():
    ts = _timer(-1, -1, -1, 8, 0)
    now = datetime(2021, 6, 15, 9, 0)
    wake = next_wake_time(ts, now)
    assert (wake.hour, wake.minute) == (8, 0)
    assert now < wake <= now + timedelta(days=2)


def test_result_always_after_now():
    now = datetime(2021, 12, 31, 23, 59)
    for ts in (
        _timer(12, 31, 0, 23, 59),
        _timer(2, 30, 0, 8, 0),
        _timer(0, 0, 0, 0, 0),
        _timer(-1, 0, 3, 8, 0),
    ):
        assert next_wake_time(ts, now) > now


def test_first_week():
    found = first_week(datetime(2021, 11, 15, 9, 30), 6)
    assert found == datetime(2021, 11, 6, 9, 30)
    assert _weekday(found) == 6 and found.day <= 7


def test_first_week_rejects_bad_weekday():
    with pytest.raises(ValueError):
        first_week(datetime(2021, 11, 15), -1)


def test_should_fire_daily():
    ts = _timer(-1, -1, -1, 8, 0)
    assert should_fire(ts, datetime(2021, 6, 15, 8, 0)) is True
    assert should_fire(ts, datetime(2021, 6, 15, 8, 1)) is False


def test_should_fire_weekly():
    ts = _timer(-1, 0, 6, 16, 30)
    assert should_fire(ts, datetime(2021, 11, 20, 16, 30)) is True
    assert should_fire(ts, datetime(2021, 11, 15, 16, 30)) is False


def test_should_fire_month_mismatch():
    ts = _timer(3, 1, 0, -1, -1)
    assert should_fire(ts, datetime(2021, 3, 1, 5, 5)) is True
    assert should_fire(ts, datetime(2021, 4, 1, 5, 5)) is False
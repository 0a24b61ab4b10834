"""Working out when a date-pattern timer should next wake up."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from .timer import Timer


def _go_weekday(date: datetime) -> int:
    return (date.weekday() + 1) % 7


def _normalized(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    microsecond: int,
    tz: tzinfo | None,
) -> datetime:
    """Build a datetime letting out-of-range parts roll over into the next unit."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    base = datetime(year, month, 1, tzinfo=tz)
    return base + timedelta(
        days=day - 1, hours=hour, minutes=minute, seconds=second, microseconds=microsecond
    )


def _add_date(date: datetime, years: int = 0, months: int = 0, days: int = 0) -> datetime:
    return _normalized(
        date.year + years,
        date.month + months,
        date.day + days,
        date.hour,
        date.minute,
        date.second,
        date.microsecond,
        date.tzinfo,
    )


def first_week(date: datetime, weekday: int) -> datetime:
    """Return the first day in ``date``'s month falling on ``weekday`` (Sunday 0)."""
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday out of range: {weekday}")
    day = _add_date(date, days=1 - date.day)
    while _go_weekday(day) != weekday:
        day = _add_date(day, days=1)
    return day


def next_wake_time(timer: Timer, now: datetime) -> datetime:
    """Return the moment after ``now`` at which ``timer`` should be checked."""
    m, d, h, mn, w = timer.month, timer.day, timer.hour, timer.minute, timer.week
    unit = timedelta(0)
    if mn >= 0:
        if h < 0:
            unit = timedelta(hours=1)
        elif d < 0 or w < 0:
            unit = timedelta(days=1)
        elif d == 0 and w >= 0:
            delta = timedelta(days=w - _go_weekday(now))
            if delta < timedelta(0):
                delta = timedelta(days=7)
            unit += delta
    else:
        unit = timedelta(minutes=1)

    stable = 0
    if mn < 0:
        mn = now.minute
    if h < 0:
        h = now.hour
    else:
        stable |= 0x8
    if d < 0:
        d = now.day
    elif d > 0:
        stable |= 0x4
    else:
        d = now.day
        if w >= 0:
            stable |= 0x2
    if m < 0:
        m = now.month
    else:
        stable |= 0x1

    if stable == 0b0101:
        if timer.day != now.day or timer.month != now.month:
            h = 0
    elif stable == 0b1001:
        if timer.month != now.month:
            d = 0
    elif stable == 0b0001:
        if timer.month != now.month:
            d = 0
            h = 0

    date = _normalized(now.year, m, d, h, mn, now.second, now.microsecond, now.tzinfo)
    if unit > timedelta(0):
        date += unit

    if date <= now:
        if timer.month < 0:
            if timer.day > 0 or (timer.day == 0 and timer.week >= 0):
                date = _add_date(date, months=1)
            elif timer.day < 0 or timer.week < 0:
                if timer.hour > 0:
                    date = _add_date(date, days=1)
                elif timer.minute > 0:
                    date += timedelta(hours=1)
        else:
            date = _add_date(date, years=1)

    if stable & 0x8 and date.hour != h:
        if not stable & 0x4:
            date = _add_date(date, days=1) - timedelta(hours=1)
        elif not stable & 0x2:
            date = _add_date(date, days=7) - timedelta(hours=1)
        else:
            date = _add_date(date, years=1) - timedelta(hours=1)

    if stable & 0x4 and date.day != d:
        date = _add_date(date, years=1, days=-1)

    if stable & 0x2 and _go_weekday(date) != w:
        date = first_week(_add_date(date, years=1), w)

    if date <= now:
        date = now + timedelta(minutes=1)
    return date


def should_fire(timer: Timer, now: datetime) -> bool:
    """Return whether ``timer`` matches the moment ``now``."""
    if not (timer.month < 0 or timer.month == now.month):
        return False
    if timer.day < 0 or timer.day == now.day:
        pass
    elif timer.day == 0:
        if not (timer.week < 0 or timer.week == _go_weekday(now)):
            return False
    else:
        return False
    if not (timer.hour < 0 or timer.hour == now.hour):
        return False
    return timer.minute < 0 or timer.minute == now.minute
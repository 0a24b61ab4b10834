"""Reminder timers: a packed schedule plus parsing of Chinese date phrases.

A timer's schedule packs an enable flag, month, day, weekday, hour and
minute into 24 bits (1/4/5/3/5/6 bits). A field whose bits are all set
reads back as -1, meaning "every". Weekdays count from Sunday as 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

log = logging.getLogger(__name__)

_ENABLE_BIT = 0x800000
_ALL_BITS = 0xFFFFFF
_DIGITS = "零一二三四五六七八九十"
_EVERY = "每"


def _bitfield(shift: int, width: int, doc: str) -> property:
    full = (1 << width) - 1
    mask = full << shift

    def fget(self: Timer) -> int:
        value = (self.packed & mask) >> shift
        return -1 if value == full else value

    def fset(self: Timer, value: int) -> None:
        self.packed = ((int(value) << shift) & mask) | (self.packed & ~mask & _ALL_BITS)

    return property(fget, fset, doc=doc)


@dataclass(eq=False)
class Timer:
    """A group reminder, either on a date pattern or on a cron spec."""

    alert: str = ""
    url: str = ""
    cron: str = ""
    self_id: int = 0
    packed: int = 0

    month = _bitfield(19, 4, "Month 1-12, or -1 for every month.")
    day = _bitfield(14, 5, "Day of month, 0 when unused, -1 for every day.")
    week = _bitfield(11, 3, "Weekday with Sunday as 0, or -1 for every day.")
    hour = _bitfield(6, 5, "Hour 0-23, or -1 for every hour.")
    minute = _bitfield(0, 6, "Minute 0-59, or -1 for every minute.")

    @property
    def enabled(self) -> bool:
        """Whether the timer is active."""
        return self.packed & _ENABLE_BIT != 0

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if value:
            self.packed |= _ENABLE_BIT
        else:
            self.packed &= _ALL_BITS ^ _ENABLE_BIT

    def timer_info(self, group: int) -> str:
        """Return the key that identifies this timer within ``group``."""
        if self.cron:
            return f"[{group}]{self.cron}"
        return (
            f"[{group}]{self.month}月{self.day}日{self.week}周"
            f"{self.hour}:{self.minute}"
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation."""
        return {
            "alert": self.alert,
            "url": self.url,
            "cron": self.cron,
            "self_id": self.self_id,
            "schedule": self.packed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Timer:
        """Build a timer from :meth:`to_dict` output."""
        return cls(
            alert=str(data.get("alert", "")),
            url=str(data.get("url", "")),
            cron=str(data.get("cron", "")),
            self_id=int(data.get("self_id", 0)),
            packed=int(data.get("schedule", 0)) & _ALL_BITS,
        )


def filled_cron_timer(cron: str, alert: str, url: str, self_id: int) -> Timer:
    """Return a timer driven by the cron spec ``cron``."""
    return Timer(alert=alert, url=url, cron=cron, self_id=self_id)


def _at_least_two(text: str) -> str:
    # "二十三" -> "二三": drop the middle ten
    return text[0] + text[2] if len(text) == 3 else text


def filled_timer(date_strs: Sequence[str | None], self_id: int, match_date_only: bool) -> Timer:
    """Build a timer from regex groups: month, day/week, hour, minute, url, alert.

    ``date_strs[0]`` is the whole match. When a field is out of range the
    returned timer stays disabled and its ``alert`` holds the complaint.
    With ``match_date_only`` the url and alert are ignored and the timer is
    left disabled, as used for cancelling.
    """
    groups = ["" if part is None else part for part in date_strs]
    month_str, day_week, hour_str, minute_str = groups[1:5]

    ts = Timer()
    month = chinese_num_to_int(month_str)
    if (month != -1 and month <= 0) or month > 12:
        ts.alert = "月份非法！"
        return ts
    ts.month = month

    if len(day_week) == 4:
        day = chinese_num_to_int(day_week[0] + day_week[2])
        if (day != -1 and day <= 0) or day > 31:
            ts.alert = "日期非法1！"
            return ts
        ts.day = day
    elif day_week.endswith("日"):
        day = chinese_num_to_int(day_week[:-1])
        if (day != -1 and day <= 0) or day > 31:
            ts.alert = "日期非法2！"
            return ts
        ts.day = day
    elif day_week.startswith(_EVERY):
        ts.week = -1
    else:
        week = chinese_num_to_int(day_week[1:])
        if week == 7:
            week = 0
        if not 0 <= week <= 6:
            ts.alert = "星期非法！"
            return ts
        ts.week = week

    hour = chinese_num_to_int(_at_least_two(hour_str))
    if hour < -1 or hour > 23:
        ts.alert = "小时非法！"
        return ts
    ts.hour = hour

    minute = chinese_num_to_int(_at_least_two(minute_str))
    if minute < -1 or minute > 59:
        ts.alert = "分钟非法！"
        return ts
    ts.minute = minute

    if not match_date_only:
        url_str = groups[5]
        if url_str:
            ts.url = url_str[1:]  # drop the leading "用"
            log.info("[群管]%s", ts.url)
            if not ts.url.startswith("http"):
                ts.url = "illegal"
                log.info("[群管]url非法！")
                return ts
        ts.alert = groups[6]
        ts.enabled = True
    ts.self_id = self_id
    return ts


def chinese_num_to_int(text: str) -> int:
    """Convert a number of at most two digits, Arabic or Chinese, to int.

    "每" alone means -1 and "每二" means -2. Arabic text that is not a
    plain number gives 0.
    """
    if not text:
        raise ValueError("empty number")
    first = text[0]
    if first.isdecimal():
        return int(text) if text.isascii() and text.isdigit() else 0
    if first == _EVERY:
        return -chinese_char_to_int(text[1]) if len(text) == 2 else -1
    if len(text) == 1:
        return chinese_char_to_int(first)
    tens = chinese_char_to_int(first)
    if tens != 10:
        tens *= 10
    ones = chinese_char_to_int(text[1])
    if ones == 10:
        ones = 0
    return tens + ones


def chinese_char_to_int(char: str) -> int:
    """Map one Chinese numeral to 0-10; "日" and "天" mean Sunday, 7."""
    if char in ("日", "天"):
        return 7
    index = _DIGITS.find(char)
    return index if index >= 0 and len(char) == 1 else 0
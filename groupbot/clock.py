"""Running and persisting group reminder timers."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
import threading
from datetime import datetime, timedelta
from typing import Any, Callable

from .fileutil import is_exist
from .schedule import next_wake_time, should_fire
from .timer import Timer

log = logging.getLogger(__name__)

Message = list[dict[str, Any]]
Sender = Callable[[int, int, Message], Any]

_AT_ALL = {"type": "at", "data": {"qq": "all"}}


def build_message(timer: Timer) -> Message:
    """Return the message segments a firing ``timer`` sends to its group."""
    message: Message = [
        {"type": "at", "data": dict(_AT_ALL["data"])},
        {"type": "text", "data": {"text": timer.alert}},
    ]
    if timer.url:
        message.append({"type": "image", "data": {"file": timer.url, "cache": "0"}})
    return message


class CronError(ValueError):
    """Raised for a cron spec that cannot be parsed."""


_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}
_MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"],
        start=1,
    )
}
_DAY_NAMES = {
    name: number
    for number, name in enumerate(["sun", "mon", "tue", "wed", "thu", "fri", "sat"])
}
_DURATION_UNITS = {
    "ns": 1e-9, "us": 1e-6, "µs": 1e-6, "μs": 1e-6, "ms": 1e-3, "s": 1, "m": 60, "h": 3600,
}
_DURATION_PART = r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)"


def _parse_duration(text: str) -> float:
    text = text.strip()
    if text == "0":
        return 0.0
    if not re.fullmatch(f"(?:{_DURATION_PART})+", text):
        raise CronError(f"invalid duration {text!r}")
    return sum(
        float(number) * _DURATION_UNITS[unit]
        for number, unit in re.findall(_DURATION_PART, text)
    )


def _parse_field(expr: str, low: int, high: int, names: dict[str, int]) -> tuple[set[int], bool]:
    values: set[int] = set()
    star = False

    def value_of(token: str) -> int:
        token = token.lower()
        if token in names:
            return names[token]
        if not token.isdigit():
            raise CronError(f"failed to parse int from {token!r}")
        return int(token)

    for part in expr.split(","):
        range_part, slash, step_part = part.partition("/")
        step = 1
        if slash:
            if not step_part.isdigit() or int(step_part) == 0:
                raise CronError(f"invalid step in {part!r}")
            step = int(step_part)
        if range_part in ("*", "?"):
            start, end = low, high
            star = star or step == 1
        else:
            lo, dash, hi = range_part.partition("-")
            start = value_of(lo)
            end = value_of(hi) if dash else (high if slash else start)
        if start < low or end > high or start > end:
            raise CronError(f"value out of range in {part!r}")
        values.update(range(start, end + 1, step))
    return values, star


class _CronSchedule:
    """A five-field cron schedule, or a fixed interval from ``@every``."""

    def __init__(self, spec: str) -> None:
        spec = spec.strip()
        self.interval: timedelta | None = None
        if spec.startswith("@every "):
            seconds = max(1, int(_parse_duration(spec[len("@every "):])))
            self.interval = timedelta(seconds=seconds)
            return
        spec = _DESCRIPTORS.get(spec, spec)
        if spec.startswith("@"):
            raise CronError(f"unrecognized descriptor: {spec}")
        fields = spec.split()
        if len(fields) != 5:
            raise CronError(f"expected exactly 5 fields, found {len(fields)}: {spec}")
        self.minutes, _ = _parse_field(fields[0], 0, 59, {})
        self.hours, _ = _parse_field(fields[1], 0, 23, {})
        self.days, self.day_star = _parse_field(fields[2], 1, 31, {})
        self.months, _ = _parse_field(fields[3], 1, 12, _MONTH_NAMES)
        self.weekdays, self.weekday_star = _parse_field(fields[4], 0, 6, _DAY_NAMES)

    def _day_matches(self, moment: datetime) -> bool:
        dom = moment.day in self.days
        dow = (moment.weekday() + 1) % 7 in self.weekdays
        if self.day_star or self.weekday_star:
            return dom and dow
        return dom or dow

    def next(self, after: datetime) -> datetime | None:
        """Return the first activation after ``after``, or None within five years."""
        if self.interval is not None:
            return after.replace(microsecond=0) + self.interval
        moment = after.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = moment.year + 5
        while moment.year <= limit:
            if moment.month not in self.months:
                year, month = (moment.year + 1, 1) if moment.month == 12 else (moment.year, moment.month + 1)
                moment = moment.replace(year=year, month=month, day=1, hour=0, minute=0)
            elif not self._day_matches(moment):
                moment = (moment + timedelta(days=1)).replace(hour=0, minute=0)
            elif moment.hour not in self.hours:
                moment = moment.replace(minute=0) + timedelta(hours=1)
            elif moment.minute not in self.minutes:
                moment += timedelta(minutes=1)
            else:
                return moment
        return None


class Clock:
    """Keeps reminder timers, runs them in background threads and saves them."""

    def __init__(self, path: str | os.PathLike[str], sender: Sender) -> None:
        self.path = os.fspath(path)
        self._sender = sender
        self._lock = threading.RLock()
        self._timers: dict[str, Timer] = {}
        self._stops: dict[str, threading.Event] = {}
        self._closed = threading.Event()
        self._load()

    def _load(self) -> None:
        if not is_exist(self.path):
            return
        try:
            with open(self.path, encoding="utf-8") as handle:
                data = handle.read()
        except OSError:
            return
        if not data:
            return
        try:
            raw = json.loads(data)["timers"]
            loaded = {str(key): Timer.from_dict(value) for key, value in raw.items()}
        except (ValueError, KeyError, TypeError, AttributeError) as err:
            log.error("[群管]读取定时器文件失败，将在下一次保存时覆盖原文件。err: %s", err)
            return
        self._timers = dict(loaded)
        for key, timer in loaded.items():
            try:
                group = int(key[1:key.index("]")])
            except ValueError:
                continue
            self.register_timer(timer, group, False)

    def _send(self, timer: Timer, group: int) -> None:
        try:
            self._sender(timer.self_id, group, build_message(timer))
        except Exception:  # noqa: BLE001 - a failed send must not stop the timer
            log.exception("[群管]发送提醒失败")

    def _run_cron(self, schedule: _CronSchedule, stop: threading.Event, timer: Timer, group: int) -> None:
        while True:
            now = datetime.now()
            wake = schedule.next(now)
            if wake is None:
                return
            if stop.wait(max((wake - now).total_seconds(), 0.0)):
                return
            self._send(timer, group)

    def _run_date(self, stop: threading.Event, timer: Timer, group: int, key: str) -> None:
        while timer.enabled:
            now = datetime.now()
            wake = next_wake_time(timer, now)
            delay = (wake - now).total_seconds()
            log.info("[群管]计时器%s将睡眠%ds", key, int(delay))
            if stop.wait(max(delay, 0.0)):
                return
            if timer.enabled and should_fire(timer, datetime.now()):
                self._send(timer, group)

    def _start(self, target: Callable[..., None], *args: Any) -> None:
        threading.Thread(target=target, args=args, daemon=True).start()

    def register_timer(self, timer: Timer, group: int, save: bool = True) -> bool:
        """Register ``timer`` for ``group`` and start it in the background.

        Returns False when a cron spec cannot be parsed (its error goes to
        ``timer.alert``) or when a date timer is not enabled.
        """
        key = timer.timer_info(group)
        with self._lock:
            old = self._timers.get(key)
            if old is not None and old is not timer:
                old.enabled = False
            old_stop = self._stops.pop(key, None)
            if old_stop is not None and old is not timer:
                old_stop.set()
            self._timers[key] = timer
        log.info("[群管]注册计时器 %s", key)

        if timer.cron:
            try:
                schedule = _CronSchedule(timer.cron)
            except CronError as err:
                timer.alert = str(err)
                return False
            stop = threading.Event()
            with self._lock:
                self._stops[key] = stop
            if self._closed.is_set():
                stop.set()
            self._start(self._run_cron, schedule, stop, timer, group)
            if save:
                self.save_timers()
            return True

        if save:
            self.save_timers()
        if not timer.enabled:
            return False
        stop = threading.Event()
        with self._lock:
            self._stops[key] = stop
        if self._closed.is_set():
            stop.set()
        self._start(self._run_date, stop, timer, group, key)
        return True

    def cancel_timer(self, key: str) -> bool:
        """Stop and forget the timer under ``key``; return whether it existed."""
        with self._lock:
            timer = self._timers.pop(key, None)
            if timer is None:
                return False
            if not timer.cron:
                timer.enabled = False
            stop = self._stops.pop(key, None)
            if stop is not None:
                stop.set()
        with contextlib.suppress(OSError):
            self.save_timers()
        return True

    def save_timers(self) -> None:
        """Write all timers to the clock's file."""
        with self._lock:
            payload = {"timers": {key: t.to_dict() for key, t in self._timers.items()}}
            with open(self.path, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False)

    def list_timers(self, group_id: int) -> list[str]:
        """Return a readable line for each timer whose key mentions ``group_id``."""
        needle = str(group_id)
        lines = []
        with self._lock:
            keys = list(self._timers)
        for key in keys:
            if needle not in key:
                continue
            line = key[key.index("]") + 1:] + "\n"
            line = line.replace("-1", "每")
            line = line.replace("月0日0周", "月周天")
            line = line.replace("月0日", "月")
            line = line.replace("日0周", "日")
            lines.append(line)
        return lines

    def get_timer(self, key: str) -> Timer | None:
        """Return the timer registered under ``key``, if any."""
        with self._lock:
            return self._timers.get(key)

    def close(self) -> None:
        """Stop every running timer thread."""
        self._closed.set()
        with self._lock:
            for stop in self._stops.values():
                stop.set()

    def __enter__(self) -> Clock:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
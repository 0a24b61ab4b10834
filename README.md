# groupbot

Building blocks for a group chat bot. Each module parses what a user typed
or holds some piece of bot state, and hands back plain Python values (text,
message segments, numbers) for the bot to act on. Nothing here depends on a
particular chat framework.

## What is inside

| Module | What it does |
| --- | --- |
| `groupbot.manager` | Group moderation: `match_command` recognises commands, `ban_minutes` / `self_ban_minutes` work out ban lengths (capped at `MAX_BAN_MINUTES`), `unescape_cq` restores escaped brackets, `pick_member` picks one of the ten most recently active members, `checkin_question` / `check_answer` run the join question, and `Config` keeps per-group welcome messages and verification switches in a JSON file. |
| `groupbot.timer` | The `Timer` reminder, with month, day, week, hour and minute fields packed into one integer, plus `filled_timer` (from Chinese date phrases), `filled_cron_timer`, `chinese_num_to_int` and `chinese_char_to_int`. |
| `groupbot.schedule` | `next_wake_time(timer, now)` and `should_fire(timer, now)` for date-pattern timers, and `first_week`. |
| `groupbot.clock` | `Clock` runs registered timers in background threads, calls a sender when they fire, saves them to a JSON file and reloads them on start. `build_message` gives the message segments a timer sends. |
| `groupbot.setutime` | `ImagePool`, per-category first-in first-out picture buffers, with `master_link`, `cached_file` and `status_text`. |
| `groupbot.fileutil` | `pwd`, `BOT_PATH`, `is_exist`, `is_not_exist` and `download_to`. |
| `groupbot.helpers` | `sleep_about_1s_to_2s` and `req_with`, a request with a given Referer and User-Agent. |

The only runtime dependency is `requests`. The tests use `pytest` and
`responses` (the `test` extra).

## Examples

Reminder timers. `filled_timer` takes the groups of a match: the whole
match, month, day or week, hour, minute, the optional `用<url>` part and the
alert text. A field that is out of range leaves the timer disabled with the
complaint in `alert`.

```python
from groupbot.timer import filled_timer, filled_cron_timer
from groupbot.clock import Clock

groups = ["", "12", "25日", "8", "0", "", "Merry Christmas"]
timer = filled_timer(groups, 0, False)
print(timer.enabled, timer.timer_info(123456))   # True [123456]12月25日0周8:0


def send(self_id, group, message):
    # message is a list of {"type": ..., "data": {...}} segments
    print(self_id, group, message)


with Clock("timers.json", send) as clock:
    clock.register_timer(filled_cron_timer("0 9 * * 1", "Weekly meeting", "", 0), 123456, True)
    clock.register_timer(timer, 123456, True)
    print(clock.list_timers(123456))
    clock.cancel_timer(timer.timer_info(123456))
```

Cron specs have five fields (minute, hour, day of month, month, weekday),
with names such as `jan` or `mon`, the descriptors `@yearly`, `@monthly`,
`@weekly`, `@daily`, `@hourly` and the like, and `@every 1h30m`. A spec that
cannot be parsed makes `register_timer` return False and puts the error in
the timer's `alert`.

Working out the next wake-up of a date timer:

```python
from datetime import datetime
from groupbot.schedule import next_wake_time, should_fire

now = datetime.now()
print(next_wake_time(timer, now), should_fire(timer, now))
```

Moderation helpers:

```python
import random
from groupbot.manager import Config, ban_minutes, check_answer, checkin_question, match_command

print(match_command("禁言@123456 2小时"))   # ('ban', (..., '123456', '2', '小时'))
print(ban_minutes(2, "小时"))                # 120

question, answer = checkin_question(random.Random(1), "bot")
print(question, check_answer(str(answer), answer))

config = Config.load("data/manager/config.json")
config.welcome[123456] = "Welcome!"
config.save("data/manager/config.json")
```

Picture pool:

```python
from groupbot.setutime import ImagePool, status_text

pool = ImagePool()
pool.push("风景", {"pid": 1})
print(pool.size("风景"), pool.pop("风景"), pool.pop("风景"))   # 1 {'pid': 1} None
print(status_text({"风景": 3, "车万": None}))
```

## What the package does not do

- It does not connect to any chat service and has no command to start a
  bot. The caller receives messages, calls `match_command` and the other
  helpers, and sends the results; `Clock` reports firing timers through the
  sender function it is given.
- `groupbot.setutime` only buffers pictures and finds cached files. It does
  not look pictures up, download them or keep a picture database.
- There are no online lookups, code running, translation or games beyond the
  modules listed above.
"""Group administration: command matching, ban durations, welcome settings."""

from __future__ import annotations

import json
import os
import random
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .fileutil import is_exist

DATA_PATH = "data/manager/"
CONFIG_FILE = DATA_PATH + "config.json"
TIMER_FILE = DATA_PATH + "timers.json"

HINT = (
    "====群管====\n"
    "- 禁言@QQ 1分钟\n"
    "- 解除禁言 @QQ\n"
    "- 我要自闭 1分钟\n"
    "- 开启全员禁言\n"
    "- 解除全员禁言\n"
    "- 升为管理@QQ\n"
    "- 取消管理@QQ\n"
    "- 修改名片@QQ XXX\n"
    "- 修改头衔@QQ XXX\n"
    "- 申请头衔 XXX\n"
    "- 踢出群聊@QQ\n"
    "- 退出群聊 1234\n"
    "- 群聊转发 1234 XXX\n"
    "- 私聊转发 0000 XXX\n"
    "- 在MM月dd日的hh点mm分时(用http://url)提醒大家XXX\n"
    "- 在MM月[每周|周几]的hh点mm分时(用http://url)提醒大家XXX\n"
    "- 取消在MM月dd日的hh点mm分的提醒\n"
    "- 取消在MM月[每周|周几]的hh点mm分的提醒\n"
    "- [x] 在\"cron\"时(用[url])提醒大家[xxx]\n"
    "- [x] 取消在\"cron\"的提醒\n"
    "- 列出所有提醒\n"
    "- 翻牌\n"
    "- 设置欢迎语XXX\n"
    "- [开启|关闭]入群验证"
)

# Longest possible group ban, just under a month, in minutes.
MAX_BAN_MINUTES = 43199

_DATE = r"(.{1,2})月(.{1,3}日|每?周.?)的(.{1,3})点(.{1,3})分"

# Checked in order; the first match wins.
_COMMANDS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (name, re.compile(pattern, re.ASCII))
    for name, pattern in (
        ("run", r"^run(.*)\Z"),
        ("menu", r"^群管系统\Z"),
        ("promote_admin", r"^升为管理.*?(\d+)"),
        ("demote_admin", r"^取消管理.*?(\d+)"),
        ("kick", r"^踢出群聊.*?(\d+)"),
        ("leave_group", r"^退出群聊.*?(\d+)"),
        ("whole_ban_on", r"^开启全员禁言\Z"),
        ("whole_ban_off", r"^解除全员禁言\Z"),
        ("ban", r"^禁言.*?(\d+).*?\s(\d+)(.*)"),
        ("unban", r"^解除禁言.*?(\d+)"),
        ("self_ban", r"^(我要自闭|禅定).*?(\d+)(.*)"),
        ("set_card", r"^修改名片.*?(\d+).*?\s(.*)"),
        ("set_title", r"^修改头衔.*?(\d+).*?\s(.*)"),
        ("apply_title", r"^申请头衔(.*)"),
        ("forward_group", r"^群聊转发.*?(\d+)\s(.*)"),
        ("forward_private", r"^私聊转发.*?(\d+)\s(.*)"),
        ("add_timer", r"^在" + _DATE + r"时(用.+)?提醒大家(.*)"),
        ("add_cron_timer", r'^在"(.*)"时(用.+)?提醒大家(.*)'),
        ("cancel_timer", r"^取消在" + _DATE + r"的提醒"),
        ("cancel_cron_timer", r'^取消在"(.*)"的提醒'),
        ("list_timers", r"^列出所有提醒\Z"),
        ("pick", r"^翻牌\Z"),
        ("set_welcome", r"^设置欢迎语([\s\S]*)\Z"),
        ("checkin_switch", r"^(.*)入群验证\Z"),
    )
)

_MINUTE_UNITS = {"分钟": 1, "小时": 60, "天": 60 * 24}
_SELF_MINUTE_UNITS = {
    **dict.fromkeys(("分钟", "min", "mins", "m"), 1),
    **dict.fromkeys(("小时", "hour", "hours", "h"), 60),
    **dict.fromkeys(("天", "day", "days", "d"), 60 * 24),
}
_ANSWER = re.compile(r"[+-]?[0-9]+")


@dataclass
class Config:
    """Per-group welcome messages and join-verification switches."""

    welcome: dict[int, str] = field(default_factory=dict)
    checkin: dict[int, bool] = field(default_factory=dict)

    @classmethod
    def load(cls, path: str | os.PathLike[str] = CONFIG_FILE) -> Config:
        """Read the config at ``path``, or return an empty one.

        The parent directory is created if missing; failing to create it
        raises :class:`OSError`.
        """
        path = os.fspath(path)
        os.makedirs(os.path.dirname(path) or ".", mode=0o755, exist_ok=True)
        if is_exist(path):
            try:
                with open(path, encoding="utf-8") as handle:
                    text = handle.read()
                if text:
                    raw = json.loads(text)
                    return cls(
                        welcome={int(k): str(v) for k, v in raw.get("welcome", {}).items()},
                        checkin={int(k): bool(v) for k, v in raw.get("checkin", {}).items()},
                    )
            except (OSError, ValueError, TypeError, AttributeError):
                pass
        return cls()

    def save(self, path: str | os.PathLike[str] = CONFIG_FILE) -> None:
        """Write the config to ``path``; nothing is written if its directory is missing."""
        path = os.fspath(path)
        if not is_exist(os.path.dirname(path) or "."):
            return
        payload = {
            "welcome": {str(k): v for k, v in self.welcome.items()},
            "checkin": {str(k): v for k, v in self.checkin.items()},
        }
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=False)


def match_command(text: str) -> tuple[str, tuple[str, ...]] | None:
    """Return the command name and its groups for ``text``, or None.

    The groups start with the whole match; groups that took no part in the
    match are empty strings.
    """
    for name, pattern in _COMMANDS:
        found = pattern.search(text)
        if found:
            groups = (found.group(0),) + tuple(g or "" for g in found.groups())
            return name, groups
    return None


def _capped(minutes: int) -> int:
    return MAX_BAN_MINUTES if minutes >= MAX_BAN_MINUTES + 1 else minutes


def ban_minutes(amount: int, unit: str) -> int:
    """Return the ban length in minutes for an admin ban; unknown units mean minutes."""
    return _capped(amount * _MINUTE_UNITS.get(unit, 1))


def self_ban_minutes(amount: int, unit: str) -> int:
    """Return the self-ban length in minutes, also accepting English units."""
    return _capped(amount * _SELF_MINUTE_UNITS.get(unit, 1))


def unescape_cq(text: str) -> str:
    """Undo the escaping of square brackets in CQ codes."""
    return text.replace("&#91;", "[").replace("&#93;", "]")


def pick_member(
    members: Sequence[Mapping[str, Any]], rng: random.Random | None = None
) -> Mapping[str, Any]:
    """Pick one of the ten members who spoke most recently."""
    if not members:
        raise ValueError("no members to pick from")
    rng = rng or random.Random()
    recent = sorted(members, key=lambda m: int(m.get("last_sent_time", 0)))[-10:]
    return recent[rng.randrange(len(recent))]


def checkin_question(rng: random.Random | None, nickname: str) -> tuple[str, int]:
    """Return a sum question for a newcomer and its answer."""
    rng = rng or random.Random()
    a = rng.randrange(100)
    b = rng.randrange(100)
    question = (
        f"考你一道题：{a}+{b}=?\n"
        f"如果60秒之内答不上来，{nickname}就要把你踢出去了哦~"
    )
    return question, a + b


def check_answer(text: str, answer: int) -> bool | None:
    """Judge a reply: None if it is not a number, else whether it is right.

    Spaces inside the reply are ignored.
    """
    compact = text.replace(" ", "")
    if not _ANSWER.fullmatch(compact):
        return None
    return int(compact) == answer
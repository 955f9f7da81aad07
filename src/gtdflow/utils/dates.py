"""
Date utilities: natural-language extraction for quick task capture, time
filter windows, and time-zone aware task instants.

Natural-language parsing is an ordered rule chain. Date phrases are tried
first, then time phrases against whatever text is left; within each chain
the first rule that matches wins and only one phrase is extracted.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .formatting import single_line

log = logging.getLogger(__name__)

TIME_FILTERS = ("today", "tomorrow", "next7Days")

# Latin keywords need their own boundaries: \b treats CJK characters as word
# characters, so "会议am9" or "开会15:00" would otherwise never match.
_NOT_LATIN_BEFORE = r"(?<![A-Za-z])"
_NOT_LATIN_AFTER = r"(?![A-Za-z])"


def iso(day: date) -> str:
    return day.isoformat()


def date_only(value: Optional[str]) -> Optional[str]:
    """Calendar-day part of a task date; ranges keep their start date."""
    if not value:
        return None
    return value.split(" ")[0].split("~")[0]


def date_for_time_filter(time_filter: Optional[str], today: date) -> Optional[str]:
    """
    Date a new task inherits from the active time view.

    "next7Days" defaults to today: the view has no single day to pick.
    """
    if time_filter in ("today", "next7Days"):
        return iso(today)
    if time_filter == "tomorrow":
        return iso(today + timedelta(days=1))
    return None


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _cut(text: str, match: "re.Match[str]") -> str:
    return _collapse(f"{text[: match.start()]} {text[match.end():]}")


# ---------------------------------------------------------------------------
# Date phrases
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DatePhrase:
    """A calendar phrase resolving to today + ``offset_days``."""

    name: str
    pattern: "re.Pattern[str]"
    offset_days: int

    def extract(self, text: str, today: date) -> Optional[Tuple[str, str]]:
        if not self.pattern.search(text):
            return None
        return iso(today + timedelta(days=self.offset_days)), _collapse(self.pattern.sub(" ", text))


DATE_PHRASES: Tuple[DatePhrase, ...] = (
    DatePhrase("today", re.compile(rf"今天|{_NOT_LATIN_BEFORE}today{_NOT_LATIN_AFTER}", re.I), 0),
    DatePhrase("tomorrow", re.compile(rf"明天|{_NOT_LATIN_BEFORE}tomorrow{_NOT_LATIN_AFTER}", re.I), 1),
    DatePhrase("day_after_tomorrow", re.compile(r"后天"), 2),
    DatePhrase("next_week", re.compile(rf"下周|下週|{_NOT_LATIN_BEFORE}next\s+week{_NOT_LATIN_AFTER}", re.I), 7),
)


def extract_natural_date(text: str, today: date) -> Optional[Tuple[str, str]]:
    """
    Find the first date phrase in ``text``.

    Returns:
        (YYYY-MM-DD, text with the phrase removed) or None
    """
    for phrase in DATE_PHRASES:
        found = phrase.extract(text, today)
        if found:
            return found
    return None


# ---------------------------------------------------------------------------
# Time phrases
# ---------------------------------------------------------------------------

def _minutes(match: "re.Match[str]", half_group: Optional[int], minute_groups: Tuple[int, ...]) -> int:
    if half_group is not None and match.group(half_group) == "半":
        return 30
    for group in minute_groups:
        if match.group(group):
            return int(match.group(group))
    return 0


def _pm(hour: int) -> int:
    return hour if hour >= 12 else hour + 12


@dataclass(frozen=True)
class TimePhrase:
    """A time-of-day phrase; ``resolve`` turns a match into (hour, minute)."""

    name: str
    pattern: "re.Pattern[str]"
    resolve: Callable[["re.Match[str]"], Tuple[int, int]]

    def extract(self, text: str) -> Optional[Tuple[str, str]]:
        match = self.pattern.search(text)
        if not match:
            return None
        hour, minute = self.resolve(match)
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            return None
        return f"{hour:02d}:{minute:02d}", _cut(text, match)


TIME_PHRASES: Tuple[TimePhrase, ...] = (
    TimePhrase(
        "noon",
        re.compile(rf"中午|{_NOT_LATIN_BEFORE}noon{_NOT_LATIN_AFTER}", re.I),
        lambda m: (12, 0),
    ),
    TimePhrase(
        "zh_morning",
        re.compile(r"(早上|早晨|上午)\s*(\d{1,2})\s*点(半|(\d{2})分?)?"),
        lambda m: (int(m.group(2)), _minutes(m, 3, (4,))),
    ),
    TimePhrase(
        "en_morning",
        re.compile(rf"{_NOT_LATIN_BEFORE}(?:morning|am)\s*(\d{{1,2}})(?::(\d{{2}}))?(?!\d)", re.I),
        lambda m: (int(m.group(1)) % 12, _minutes(m, None, (2,))),
    ),
    TimePhrase(
        "en_am_suffix",
        re.compile(rf"(?<!\d)(\d{{1,2}})(?::(\d{{2}}))?\s*am{_NOT_LATIN_AFTER}", re.I),
        lambda m: (int(m.group(1)) % 12, _minutes(m, None, (2,))),
    ),
    TimePhrase(
        "zh_afternoon",
        re.compile(r"下午\s*(\d{1,2})(?:\s*点(半|(\d{2})分?)?|\s*:(\d{2}))"),
        lambda m: (_pm(int(m.group(1))), _minutes(m, 2, (3, 4))),
    ),
    TimePhrase(
        "zh_evening",
        re.compile(r"(晚上|傍晚)\s*(\d{1,2})\s*点(半|(\d{2})分?)?"),
        lambda m: (_pm(int(m.group(2))), _minutes(m, 3, (4,))),
    ),
    TimePhrase(
        "en_afternoon",
        re.compile(rf"{_NOT_LATIN_BEFORE}(?:afternoon|evening|pm)\s*(\d{{1,2}})(?::(\d{{2}}))?(?!\d)", re.I),
        lambda m: (_pm(int(m.group(1))), _minutes(m, None, (2,))),
    ),
    TimePhrase(
        "en_pm_suffix",
        re.compile(rf"(?<!\d)(\d{{1,2}})(?::(\d{{2}}))?\s*pm{_NOT_LATIN_AFTER}", re.I),
        lambda m: (_pm(int(m.group(1))), _minutes(m, None, (2,))),
    ),
    TimePhrase(
        "clock",
        re.compile(r"(?<!\d)(\d{1,2}):(\d{2})(?!\d)"),
        lambda m: (int(m.group(1)), int(m.group(2))),
    ),
    TimePhrase(
        "zh_point",
        re.compile(r"(?<!\d)(\d{1,2})\s*点(半)?"),
        lambda m: (int(m.group(1)), 30 if m.group(2) else 0),
    ),
)


def parse_natural_time(text: str) -> Optional[Tuple[str, str]]:
    """
    Find the first time phrase in ``text``.

    Returns:
        ("HH:mm", text with the phrase removed) or None
    """
    for phrase in TIME_PHRASES:
        found = phrase.extract(text)
        if found:
            return found
    return None


def resolve_task_input(
    text: str,
    today: Optional[date] = None,
    time_filter: Optional[str] = None,
) -> Tuple[str, Optional[str]]:
    """
    Split quick-capture input into task content and an optional date.

    An active time filter supplies the date and disables date phrases; time
    phrases are still honoured. A time with no date lands on today.

    Returns:
        (content, date) where date is "YYYY-MM-DD", "YYYY-MM-DD HH:mm" or None
    """
    today = today or date.today()
    text = single_line(text).strip()

    day = date_for_time_filter(time_filter, today)
    if day is None:
        found = extract_natural_date(text, today)
        if found:
            day, text = found

    timed = parse_natural_time(text)
    if timed:
        clock, text = timed
        return text, f"{day or iso(today)} {clock}"
    return text, day


# ---------------------------------------------------------------------------
# Time zones
# ---------------------------------------------------------------------------

def resolve_zone(name: Optional[str]) -> ZoneInfo:
    """ZoneInfo for ``name``; unknown or empty names fall back to UTC."""
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.debug("Unknown time zone %r, using UTC", name)
        return ZoneInfo("UTC")


def task_moment(
    value: Optional[str],
    tz_name: Optional[str] = None,
    default_timezone: str = "UTC",
) -> Optional[datetime]:
    """
    Absolute UTC instant of a task date that carries a time of day.

    The wall-clock time is read in the task's own zone, or ``default_timezone``
    when the task has none. Date-only values have no instant and return None.
    """
    if not value or " " not in value:
        return None
    day_part, time_part = value.split(" ", 1)
    try:
        local = datetime.strptime(
            f"{day_part.split('~')[0]} {time_part.split('~')[0]}", "%Y-%m-%d %H:%M"
        )
    except ValueError:
        return None
    zone = resolve_zone(tz_name or default_timezone)
    return local.replace(tzinfo=zone).astimezone(timezone.utc)

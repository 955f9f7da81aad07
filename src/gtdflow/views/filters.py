"""
Read-only task queries over a parsed document.

All functions are pure: they take the flat task list from a DocumentTree
and return a new list, leaving the tasks untouched.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Literal, Optional

from ..models.task import Task
from ..utils.dates import date_only, iso, task_moment

FilterType = Literal["all", "project", "time", "tag"]


@dataclass
class TaskFilter:
    """The sidebar selection: everything, one project subtree, one tag, or a time window."""

    type: FilterType = "all"
    value: str = ""


def search_tasks(tasks: List[Task], query: Optional[str]) -> List[Task]:
    """Case-insensitive substring match on content."""
    if not query:
        return list(tasks)
    needle = query.lower()
    return [t for t in tasks if needle in t.content.lower()]


def filter_by_project(tasks: List[Task], path: str) -> List[Task]:
    """Tasks whose project path starts with ``path`` (the project and its descendants)."""
    return [t for t in tasks if t.project_path.startswith(path)]


def filter_by_tag(tasks: List[Task], tag: str) -> List[Task]:
    tag = tag.lstrip("#")
    return [t for t in tasks if tag in t.tags]


def matches_time_filter(task: Task, time_filter: str, today: date) -> bool:
    day = date_only(task.date)
    if not day:
        return False
    if time_filter == "today":
        return day == iso(today)
    if time_filter == "tomorrow":
        return day == iso(today + timedelta(days=1))
    if time_filter == "next7Days":
        return iso(today) <= day <= iso(today + timedelta(days=7))
    return False


def filter_by_time(tasks: List[Task], time_filter: str, today: Optional[date] = None) -> List[Task]:
    """Tasks dated today, tomorrow, or within [today, today + 7] inclusive."""
    today = today or date.today()
    return [t for t in tasks if matches_time_filter(t, time_filter, today)]


def filter_tasks(
    tasks: List[Task],
    query: Optional[str] = None,
    task_filter: Optional[TaskFilter] = None,
    today: Optional[date] = None,
) -> List[Task]:
    """Apply the text search, then the selected sidebar filter."""
    result = search_tasks(tasks, query)
    if task_filter is None or task_filter.type == "all":
        return result
    if task_filter.type == "project":
        return filter_by_project(result, task_filter.value)
    if task_filter.type == "tag":
        return filter_by_tag(result, task_filter.value)
    if task_filter.type == "time":
        return filter_by_time(result, task_filter.value, today)
    return result


def upcoming_tasks(
    tasks: List[Task],
    now: Optional[datetime] = None,
    window_minutes: int = 10,
    default_timezone: str = "UTC",
) -> List[Task]:
    """
    Incomplete timed tasks starting within the next ``window_minutes``.

    Only dates with a time of day have an instant; each is read in the
    task's own ``@tz`` zone or ``default_timezone``.
    """
    now = now or datetime.now(timezone.utc)
    horizon = now + timedelta(minutes=window_minutes)
    result = []
    for task in tasks:
        if task.completed:
            continue
        moment = task_moment(task.date, task.timezone, default_timezone)
        if moment is not None and now < moment <= horizon:
            result.append(task)
    return result

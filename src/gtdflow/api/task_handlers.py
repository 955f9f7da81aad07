"""Task handler functions shared by MCP tools, REST API and CLI."""

import logging
import re
from dataclasses import asdict
from datetime import date, datetime
from typing import Optional, Union

from ..models.task import Subtask, Task
from ..parsers.line_parser import DATE_VALUE
from ..utils.dates import TIME_FILTERS, resolve_task_input
from ..views.filters import (
    filter_by_project,
    filter_by_tag,
    filter_by_time,
    search_tasks,
    upcoming_tasks,
)
from ..views.stats import compute_statistics

log = logging.getLogger(__name__)

RECURRENCES = ("day", "week", "month")

_DATE_VALUE_RE = re.compile(DATE_VALUE)
_DONE_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TIMEZONE_RE = re.compile(r"[^\s()#]+")


def _subtask_to_dict(subtask: Subtask) -> dict:
    return {
        "line_index": subtask.line_index,
        "content": subtask.content,
        "completed": subtask.completed,
        "date": subtask.date,
        "done_date": subtask.done_date,
        "recurrence": subtask.recurrence,
        "priority": subtask.priority,
        "tags": list(subtask.tags),
        "timezone": subtask.timezone,
    }


def _task_to_dict(task: Task) -> dict:
    """Serialize a Task (with its subtasks and notes) to a JSON-serializable dict."""
    d = {"id": task.id}
    d.update(_subtask_to_dict(task))
    d.update({
        "line_count": task.line_count,
        "project_path": task.project_path,
        "notes": list(task.notes),
        "subtasks": [_subtask_to_dict(s) for s in task.subtasks],
    })
    return d


def _item_to_dict(item: Union[Task, Subtask]) -> dict:
    if isinstance(item, Task):
        return _task_to_dict(item)
    return _subtask_to_dict(item)


def _not_found(line_index: int) -> dict:
    return {"error": f"No task on line {line_index} (document changed?); task not found"}


def _changed(store, changed: bool) -> dict:
    return {"ok": True, "changed": changed, "task_count": len(store.tree.all_tasks)}


def _check_calendar(value: str) -> None:
    for day in _DONE_DATE_RE.findall(value):
        try:
            date.fromisoformat(day)
        except ValueError:
            raise ValueError(f"Invalid date '{value}'") from None


def _normalize_date(value: str) -> Optional[str]:
    """
    Accept "YYYY-MM-DD[ HH:mm]" (ranges allowed) or a phrase like "tomorrow 3pm".

    Raises:
        ValueError: the value is neither
    """
    value = value.strip()
    if not value:
        return None
    if _DATE_VALUE_RE.fullmatch(value):
        _check_calendar(value)
        return value
    rest, resolved = resolve_task_input(value)
    if resolved and not rest:
        return resolved
    raise ValueError(f"Invalid date '{value}' (expected YYYY-MM-DD, YYYY-MM-DD HH:mm or e.g. 'tomorrow')")


def _normalize_done_date(value: str) -> Optional[str]:
    value = value.strip()
    if not value:
        return None
    if not _DONE_DATE_RE.fullmatch(value):
        raise ValueError(f"Invalid done date '{value}' (expected YYYY-MM-DD)")
    _check_calendar(value)
    return value


def _normalize_timezone(value: str) -> Optional[str]:
    value = value.strip()
    if not value:
        return None
    if not _TIMEZONE_RE.fullmatch(value):
        raise ValueError(f"Invalid time zone '{value}'")
    return value


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def handle_markdown_get(store) -> dict:
    return {"markdown": store.text}


def handle_markdown_put(store, *, markdown: str) -> dict:
    store.replace_text(markdown)
    return {"ok": True}


def handle_task_list(
    store,
    *,
    q: Optional[str] = None,
    project: Optional[str] = None,
    tag: Optional[str] = None,
    time: Optional[str] = None,
    today: Optional[date] = None,
) -> list[dict]:
    """
    List top-level tasks narrowed by search text and any of the sidebar filters.

    Raises:
        ValueError: ``time`` is not one of today, tomorrow, next7Days
    """
    if time and time not in TIME_FILTERS:
        raise ValueError(f"Unknown time filter '{time}' (expected one of {', '.join(TIME_FILTERS)})")

    tasks = search_tasks(store.tree.all_tasks, q)
    if project:
        tasks = filter_by_project(tasks, project)
    if tag:
        tasks = filter_by_tag(tasks, tag)
    if time:
        tasks = filter_by_time(tasks, time, today)
    return [_task_to_dict(t) for t in tasks]


def handle_task_get(store, *, line_index: int) -> dict:
    item = store.tree.find_item(line_index)
    if item is None:
        return _not_found(line_index)
    return _item_to_dict(item)


def handle_stats(store, *, today: Optional[date] = None) -> dict:
    return asdict(compute_statistics(store.tree.all_tasks, today=today, lang=store.lang))


def handle_upcoming(store, *, minutes: int = 10, now: Optional[datetime] = None) -> list[dict]:
    tasks = upcoming_tasks(
        store.tree.all_tasks,
        now=now,
        window_minutes=minutes,
        default_timezone=store.default_timezone,
    )
    return [_task_to_dict(t) for t in tasks]


def handle_status(store) -> dict:
    return store.status()


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def handle_task_add(
    store,
    *,
    text: str,
    time_filter: Optional[str] = None,
    today: Optional[date] = None,
) -> dict:
    """Capture a task; date/time phrases in ``text`` become its date."""
    if time_filter and time_filter not in TIME_FILTERS:
        raise ValueError(f"Unknown time filter '{time_filter}'")
    changed = store.apply("add_task", input_text=text, time_filter=time_filter, today=today)
    if not changed:
        return {"error": "Task text is empty once date and time phrases are removed"}
    return _changed(store, changed)


def handle_task_toggle(store, *, line_index: int) -> dict:
    if store.tree.find_item(line_index) is None:
        return _not_found(line_index)
    store.apply("toggle", line_index=line_index)
    return handle_task_get(store, line_index=line_index)


def handle_task_update(
    store,
    *,
    line_index: int,
    content: Optional[str] = None,
    completed: Optional[bool] = None,
    priority: Optional[int] = None,
    date: Optional[str] = None,
    recurrence: Optional[str] = None,
    timezone: Optional[str] = None,
    done_date: Optional[str] = None,
    tags: Optional[str] = None,
) -> dict:
    """
    Change fields on one task or subtask line.

    None leaves a field alone; an empty string (0 for priority) clears it.
    ``tags`` is a comma- or space-separated list that replaces all tags.
    ``date`` also accepts a capture phrase such as "tomorrow 3pm".

    Raises:
        ValueError: a field value cannot be written as its annotation
    """
    if store.tree.find_item(line_index) is None:
        return _not_found(line_index)

    updates = {}
    if content is not None:
        if not content.strip():
            raise ValueError("content cannot be empty")
        updates["content"] = content
    if completed is not None:
        updates["completed"] = completed
    if priority is not None:
        if priority not in (0, 1, 2, 3):
            raise ValueError("priority must be 1, 2, 3 (or 0 to clear)")
        updates["priority"] = priority or None
    if recurrence is not None:
        if recurrence and recurrence not in RECURRENCES:
            raise ValueError(f"recurrence must be one of {', '.join(RECURRENCES)}")
        updates["recurrence"] = recurrence or None
    if date is not None:
        updates["date"] = _normalize_date(date)
    if timezone is not None:
        updates["timezone"] = _normalize_timezone(timezone)
    if done_date is not None:
        updates["done_date"] = _normalize_done_date(done_date)
    if tags is not None:
        updates["tags"] = [t.lstrip("#") for t in tags.replace(",", " ").split() if t.lstrip("#")]

    store.apply("update", line_index=line_index, updates=updates)
    return handle_task_get(store, line_index=line_index)


def handle_task_delete(store, *, line_index: int) -> dict:
    if store.tree.find_item(line_index) is None:
        return _not_found(line_index)
    return _changed(store, store.apply("delete_task", line_index=line_index))


def handle_task_move(
    store,
    *,
    line_index: int,
    target_line_index: int,
    promote: Optional[bool] = None,
) -> dict:
    """Reorder a task block (or promote a subtask) to start at ``target_line_index``."""
    if store.tree.find_item(line_index) is None:
        return _not_found(line_index)
    line_total = store.text.count("\n") + 1
    if not 0 <= target_line_index <= line_total:
        raise ValueError(f"target line {target_line_index} is outside the document")
    changed = store.apply(
        "move_task",
        source_line_index=line_index,
        target_line_index=target_line_index,
        promote=promote,
    )
    return _changed(store, changed)


def handle_task_move_to_project(store, *, line_index: int, project_path: str) -> dict:
    from ..models.workflow import workflow_paths

    if store.tree.find_item(line_index) is None:
        return _not_found(line_index)
    if store.tree.find_project(project_path) is None and project_path not in workflow_paths():
        return {"error": f"Project '{project_path}' not found"}
    changed = store.apply("move_to_project", line_index=line_index, target_path=project_path)
    return _changed(store, changed)


def handle_task_make_subtask(store, *, line_index: int, target_line_index: int) -> dict:
    tree = store.tree
    source = tree.find_task(line_index)
    if source is None:
        return _not_found(line_index)
    if tree.find_item(target_line_index) is None:
        return _not_found(target_line_index)
    if source.line_index <= target_line_index < source.end_index:
        raise ValueError("Cannot nest a task under itself")
    changed = store.apply(
        "make_subtask",
        source_line_index=line_index,
        target_line_index=target_line_index,
    )
    return _changed(store, changed)

"""
Canonical rendering of task lines.

This module is the single source of truth for how task fields are written
back to markdown. Annotations are emitted in a fixed order regardless of
the order they had in the source line:

    - [x] content !priority @date @every(...) @tz(...) @done(...) #tag #tag
"""

import re
from typing import Iterable, Optional

_LINE_BREAK_RE = re.compile(r"[\r\n\x0b\x0c\x1c-\x1e\x85\u2028\u2029]+")


def single_line(text: str) -> str:
    """Replace line breaks with spaces so a value always stays on one document line."""
    return _LINE_BREAK_RE.sub(" ", text)


def format_checkbox(completed: bool) -> str:
    return "[x]" if completed else "[ ]"


def render_tags(tags: Iterable[str]) -> str:
    return " ".join(f"#{single_line(tag)}" for tag in tags if tag)


def render_task_line(
    content: str,
    completed: bool = False,
    *,
    priority: Optional[int] = None,
    date: Optional[str] = None,
    recurrence: Optional[str] = None,
    timezone: Optional[str] = None,
    done_date: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
    indent: str = "",
) -> str:
    """
    Render one task or subtask line.

    Empty or None fields are omitted.

    Args:
        content: Task text without annotations
        completed: Checkbox state
        priority: 1, 2 or 3
        date: "YYYY-MM-DD" or "YYYY-MM-DD HH:mm"
        recurrence: "day", "week" or "month"
        timezone: IANA zone name
        done_date: Completion date "YYYY-MM-DD"
        tags: Tag names without the leading '#'
        indent: Leading whitespace (subtask lines)

    Returns:
        The markdown line
    """
    line = f"{indent}- {format_checkbox(completed)} {single_line(content)}"
    if priority:
        line += f" !{priority}"
    if date:
        line += f" @{single_line(date)}"
    if recurrence:
        line += f" @every({recurrence})"
    if timezone:
        line += f" @tz({single_line(timezone)})"
    if done_date:
        line += f" @done({single_line(done_date)})"
    tag_str = render_tags(tags or [])
    if tag_str:
        line += f" {tag_str}"
    return line


def render_task(task, indent: str = "") -> str:
    """Render a Task or Subtask's own line from its current field values."""
    return render_task_line(
        task.content,
        task.completed,
        priority=task.priority,
        date=task.date,
        recurrence=task.recurrence,
        timezone=task.timezone,
        done_date=task.done_date,
        tags=task.tags,
        indent=indent,
    )

from .dates import (
    TIME_FILTERS,
    date_only,
    extract_natural_date,
    parse_natural_time,
    resolve_task_input,
    task_moment,
)
from .formatting import render_task, render_task_line, single_line

__all__ = [
    "TIME_FILTERS",
    "date_only",
    "extract_natural_date",
    "parse_natural_time",
    "resolve_task_input",
    "task_moment",
    "render_task",
    "render_task_line",
    "single_line",
]

from .filters import (
    TaskFilter,
    filter_by_project,
    filter_by_tag,
    filter_by_time,
    filter_tasks,
    search_tasks,
    upcoming_tasks,
)
from .stats import Statistics, compute_statistics, percent

__all__ = [
    "TaskFilter",
    "filter_tasks",
    "search_tasks",
    "filter_by_project",
    "filter_by_tag",
    "filter_by_time",
    "upcoming_tasks",
    "Statistics",
    "compute_statistics",
    "percent",
]

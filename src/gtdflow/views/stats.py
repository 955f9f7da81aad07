"""Completion statistics for the review screen."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional

from ..models.task import Task
from ..models.workflow import DEFAULT_LANG, translate
from ..utils.dates import date_only, iso


@dataclass
class DayCount:
    date: str
    label: str
    count: int


@dataclass
class ProjectProgress:
    name: str
    total: int
    completed: int
    percent: int


@dataclass
class Statistics:
    total: int
    total_completed: int
    completion_rate: int
    active_days: int
    weekly_trend: List[DayCount] = field(default_factory=list)
    project_distribution: List[ProjectProgress] = field(default_factory=list)


def percent(part: int, total: int) -> int:
    """Whole percentage rounded half up; 0 when total is 0."""
    if not total:
        return 0
    return (part * 200 + total) // (total * 2)


def _day_label(day: date, lang: str) -> str:
    if lang == "zh":
        return f"{day.month}/{day.day}"
    return day.strftime("%a")


def weekly_trend(tasks: List[Task], today: date, lang: str = DEFAULT_LANG) -> List[DayCount]:
    """Completions per day over the 7 days ending today, bucketed by done date."""
    done_days = [date_only(t.done_date) for t in tasks if t.completed and t.done_date]
    trend = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        trend.append(DayCount(date=iso(day), label=_day_label(day, lang), count=done_days.count(iso(day))))
    return trend


def project_distribution(tasks: List[Task], lang: str = DEFAULT_LANG) -> List[ProjectProgress]:
    """Completed/total per project path, largest projects first."""
    buckets: Dict[str, List[int]] = {}
    for task in tasks:
        name = task.project_path or translate("uncategorized", lang)
        bucket = buckets.setdefault(name, [0, 0])
        bucket[0] += 1
        if task.completed:
            bucket[1] += 1
    progress = [
        ProjectProgress(name=name, total=total, completed=done, percent=percent(done, total))
        for name, (total, done) in buckets.items()
    ]
    return sorted(progress, key=lambda p: p.total, reverse=True)


def compute_statistics(
    tasks: List[Task],
    today: Optional[date] = None,
    lang: str = DEFAULT_LANG,
) -> Statistics:
    today = today or date.today()
    completed = [t for t in tasks if t.completed]
    done_days = {date_only(t.done_date) for t in completed if t.done_date}
    return Statistics(
        total=len(tasks),
        total_completed=len(completed),
        completion_rate=percent(len(completed), len(tasks)),
        active_days=len(done_days),
        weekly_trend=weekly_trend(tasks, today, lang),
        project_distribution=project_distribution(tasks, lang),
    )

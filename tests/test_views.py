"""
Tests for views/filters.py and views/stats.py.
"""

import sys
from datetime import date, datetime, timezone
from pathlib import Path

# Add src to path so imports work without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from gtdflow.parsers.document_parser import parse_content
from gtdflow.views.filters import (
    TaskFilter,
    filter_by_project,
    filter_by_tag,
    filter_by_time,
    filter_tasks,
    search_tasks,
    upcoming_tasks,
)
from gtdflow.views.stats import compute_statistics, percent

TODAY = date(2025, 3, 14)

DOC = (
    "- [ ] Loose task\n"
    "# Work\n"
    "- [ ] Write Report @2025-03-14 #urgent\n"
    "- [x] Send invoice @2025-03-10 @done(2025-03-13) #billing\n"
    "## Client A\n"
    "- [ ] Call client @2025-03-15 09:00 #urgent\n"
    "- [x] Prepare deck @done(2025-03-14)\n"
    "# Workshop\n"
    "- [ ] Fix bench @2025-03-21\n"
    "- [ ] Oil hinges @2025-03-22\n"
    "- [x] Old thing @done(2025-02-01)\n"
)


@pytest.fixture
def tasks():
    return parse_content(DOC).all_tasks


def _contents(tasks):
    return [t.content for t in tasks]


class TestSearch:
    def test_case_insensitive(self, tasks):
        assert _contents(search_tasks(tasks, "report")) == ["Write Report"]

    def test_empty_query_returns_all(self, tasks):
        assert len(search_tasks(tasks, "")) == len(tasks)
        assert len(search_tasks(tasks, None)) == len(tasks)


class TestProjectFilter:
    def test_includes_descendants(self, tasks):
        assert _contents(filter_by_project(tasks, "Work / Client A")) == ["Call client", "Prepare deck"]

    def test_prefix_match_is_textual(self, tasks):
        # "Work" is a string prefix of "Workshop"
        assert len(filter_by_project(tasks, "Work")) == 7


class TestTagFilter:
    def test_exact_membership(self):
        tasks = parse_content("- [ ] a #urgent\n- [ ] b\n- [ ] c #urgently\n").all_tasks
        assert _contents(filter_by_tag(tasks, "urgent")) == ["a"]

    def test_leading_hash_ignored(self, tasks):
        assert _contents(filter_by_tag(tasks, "#billing")) == ["Send invoice"]


class TestTimeFilter:
    def test_today(self, tasks):
        assert _contents(filter_by_time(tasks, "today", TODAY)) == ["Write Report"]

    def test_tomorrow_ignores_time_of_day(self, tasks):
        assert _contents(filter_by_time(tasks, "tomorrow", TODAY)) == ["Call client"]

    def test_next_seven_days_inclusive(self, tasks):
        assert _contents(filter_by_time(tasks, "next7Days", TODAY)) == [
            "Write Report", "Call client", "Fix bench",
        ]

    def test_unknown_window_matches_nothing(self, tasks):
        assert filter_by_time(tasks, "someday", TODAY) == []


class TestFilterTasks:
    def test_search_then_filter(self, tasks):
        result = filter_tasks(tasks, "c", TaskFilter("tag", "urgent"), TODAY)
        assert _contents(result) == ["Call client"]

    def test_all(self, tasks):
        assert filter_tasks(tasks, None, TaskFilter()) == tasks

    def test_project_selection(self, tasks):
        assert len(filter_tasks(tasks, None, TaskFilter("project", "Workshop"))) == 3

    def test_time_selection(self, tasks):
        assert _contents(filter_tasks(tasks, None, TaskFilter("time", "today"), TODAY)) == ["Write Report"]


class TestUpcoming:
    NOW = datetime(2025, 3, 15, 8, 55, tzinfo=timezone.utc)

    def test_within_window(self, tasks):
        assert _contents(upcoming_tasks(tasks, self.NOW)) == ["Call client"]

    def test_outside_window(self, tasks):
        later = datetime(2025, 3, 15, 8, 30, tzinfo=timezone.utc)
        assert upcoming_tasks(tasks, later) == []

    def test_wider_window(self, tasks):
        later = datetime(2025, 3, 15, 8, 30, tzinfo=timezone.utc)
        assert _contents(upcoming_tasks(tasks, later, window_minutes=60)) == ["Call client"]

    def test_started_tasks_excluded(self, tasks):
        after = datetime(2025, 3, 15, 9, 1, tzinfo=timezone.utc)
        assert upcoming_tasks(tasks, after) == []

    def test_default_timezone_applies(self, tasks):
        # 09:00 in Tokyo is 00:00 UTC
        now = datetime(2025, 3, 14, 23, 55, tzinfo=timezone.utc)
        assert _contents(upcoming_tasks(tasks, now, default_timezone="Asia/Tokyo")) == ["Call client"]

    def test_completed_tasks_excluded(self):
        tasks = parse_content("- [x] done @2025-03-15 09:00\n").all_tasks
        assert upcoming_tasks(tasks, self.NOW) == []


class TestStatistics:
    def test_percent_rounds_half_up(self):
        assert percent(1, 8) == 13
        assert percent(2, 3) == 67
        assert percent(1, 3) == 33
        assert percent(0, 0) == 0

    def test_totals(self, tasks):
        stats = compute_statistics(tasks, today=TODAY)
        assert stats.total == 8
        assert stats.total_completed == 3
        assert stats.completion_rate == 38
        assert stats.active_days == 3

    def test_empty(self):
        stats = compute_statistics([], today=TODAY)
        assert stats.completion_rate == 0
        assert stats.active_days == 0
        assert stats.project_distribution == []
        assert [d.count for d in stats.weekly_trend] == [0] * 7

    def test_weekly_trend(self, tasks):
        trend = compute_statistics(tasks, today=TODAY).weekly_trend
        assert [d.date for d in trend][0] == "2025-03-08"
        assert [d.date for d in trend][-1] == "2025-03-14"
        assert [d.count for d in trend] == [0, 0, 0, 0, 0, 1, 1]
        assert trend[-1].label == "Fri"

    def test_weekly_trend_labels_zh(self, tasks):
        trend = compute_statistics(tasks, today=TODAY, lang="zh").weekly_trend
        assert trend[-1].label == "3/14"

    def test_project_distribution(self, tasks):
        dist = compute_statistics(tasks, today=TODAY).project_distribution
        assert [(p.name, p.total, p.completed) for p in dist] == [
            ("Workshop", 3, 1),
            ("Work", 2, 1),
            ("Work / Client A", 2, 1),
            ("Uncategorized", 1, 0),
        ]
        assert dist[0].percent == 33

    def test_uncategorized_label_zh(self, tasks):
        dist = compute_statistics(tasks, today=TODAY, lang="zh").project_distribution
        assert dist[-1].name == "未分类"

"""
Core document models.

Everything here is a disposable projection of the document text: the parser
rebuilds the whole tree on every call, so line indices and task ids are only
valid against the snapshot they were parsed from. The text stays the source
of truth and the mutation engine edits it directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Literal, Optional, Union

Recurrence = Literal["day", "week", "month"]
Priority = Literal[1, 2, 3]


@dataclass
class Subtask:
    """An indented checkbox line directly beneath a task."""

    content: str
    completed: bool = False
    line_index: int = 0
    date: Optional[str] = None
    done_date: Optional[str] = None
    recurrence: Optional[Recurrence] = None
    priority: Optional[Priority] = None
    tags: List[str] = field(default_factory=list)
    timezone: Optional[str] = None


@dataclass
class Task:
    """
    A top-level checkbox line and the block it owns.

    ``line_count`` covers the task line, its subtask lines and its note lines,
    so deleting or moving ``line_count`` lines from ``line_index`` handles the
    whole block at once.
    """

    content: str
    completed: bool = False
    line_index: int = 0
    line_count: int = 1
    date: Optional[str] = None
    done_date: Optional[str] = None
    recurrence: Optional[Recurrence] = None
    priority: Optional[Priority] = None
    tags: List[str] = field(default_factory=list)
    timezone: Optional[str] = None
    project_path: str = ""
    notes: List[str] = field(default_factory=list)
    subtasks: List[Subtask] = field(default_factory=list)

    @property
    def id(self) -> str:
        """Per-parse identifier; shifts whenever lines above it change."""
        return f"task-{self.line_index}"

    @property
    def end_index(self) -> int:
        """Index one past the last line of this task's block."""
        return self.line_index + self.line_count


@dataclass
class ProjectNode:
    """A markdown heading and the tasks and sub-headings beneath it."""

    name: str
    display_name: str
    level: int
    path: str
    line_index: int = 0
    children: List[ProjectNode] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    incomplete_count: int = 0

    def walk(self) -> Iterator[ProjectNode]:
        """Yield this node and every descendant in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class DocumentTree:
    """
    Result of parsing one document snapshot.

    ``projects`` holds the top-level headings; ``all_tasks`` is every
    top-level task in document order, including tasks that appear before
    the first heading (those have an empty ``project_path`` and are not
    reachable from ``projects``).
    """

    projects: List[ProjectNode] = field(default_factory=list)
    all_tasks: List[Task] = field(default_factory=list)

    def iter_projects(self) -> Iterator[ProjectNode]:
        """All heading nodes in pre-order (i.e. document order)."""
        for project in self.projects:
            yield from project.walk()

    def find_task(self, line_index: int) -> Optional[Task]:
        """The top-level task starting at ``line_index``, or None."""
        for task in self.all_tasks:
            if task.line_index == line_index:
                return task
        return None

    def find_subtask(self, line_index: int) -> Optional[Subtask]:
        """The subtask on ``line_index``, or None."""
        for task in self.all_tasks:
            for subtask in task.subtasks:
                if subtask.line_index == line_index:
                    return subtask
        return None

    def find_item(self, line_index: int) -> Optional[Union[Task, Subtask]]:
        """Task or subtask on ``line_index``."""
        return self.find_task(line_index) or self.find_subtask(line_index)

    def find_project(self, path: str) -> Optional[ProjectNode]:
        """First project with this path (duplicate sibling names resolve to the first)."""
        for project in self.iter_projects():
            if project.path == path:
                return project
        return None

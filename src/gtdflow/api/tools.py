"""MCP tool registration for gtd-flow."""

import json
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from ..storage import StorageError
from .project_handlers import (
    handle_project_add,
    handle_project_delete,
    handle_project_rename,
    handle_project_tree,
)
from .task_handlers import (
    handle_stats,
    handle_status,
    handle_task_add,
    handle_task_delete,
    handle_task_list,
    handle_task_make_subtask,
    handle_task_move,
    handle_task_move_to_project,
    handle_task_toggle,
    handle_task_update,
    handle_upcoming,
)

log = logging.getLogger(__name__)


def _run(handler, store, **kwargs) -> str:
    try:
        return json.dumps(handler(store, **kwargs), indent=2, ensure_ascii=False)
    except (StorageError, ValueError) as e:
        return json.dumps({"error": str(e)})


def register_tools(mcp: FastMCP, store) -> None:
    """Register all MCP tools onto the FastMCP instance."""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @mcp.tool()
    def task_list(
        q: Optional[str] = None,
        project: Optional[str] = None,
        tag: Optional[str] = None,
        time: Optional[str] = None,
    ) -> str:
        """
        List top-level tasks, optionally filtered.

        Filters combine (all must match). Line indices in the result are only
        valid until the next change; list again after every mutation.

        Args:
            q: Case-insensitive text to search for in task content
            project: Project path such as "Work / Client A" (includes sub-projects)
            tag: Tag name without the leading '#'
            time: "today", "tomorrow" or "next7Days"

        Returns:
            JSON array of task objects
        """
        return _run(handle_task_list, store, q=q, project=project, tag=tag, time=time)

    @mcp.tool()
    def project_list(include_tasks: bool = False) -> str:
        """
        Get the project tree (markdown headings), with incomplete task counts.

        Args:
            include_tasks: Also include each project's tasks

        Returns:
            JSON array of top-level projects with nested children
        """
        return _run(handle_project_tree, store, include_tasks=include_tasks)

    @mcp.tool()
    def task_stats() -> str:
        """Completion rate, active days, 7-day completion trend and per-project progress."""
        return _run(handle_stats, store)

    @mcp.tool()
    def task_upcoming(minutes: int = 10) -> str:
        """
        Incomplete tasks with a time of day starting within the next few minutes.

        Args:
            minutes: Look-ahead window (default 10)
        """
        return _run(handle_upcoming, store, minutes=minutes)

    @mcp.tool()
    def document_status() -> str:
        """Storage location, counts and last save time of the active document."""
        return _run(handle_status, store)

    # ------------------------------------------------------------------
    # Task mutations
    # ------------------------------------------------------------------

    @mcp.tool()
    def task_add(text: str, time_filter: Optional[str] = None) -> str:
        """
        Capture a task into the inbox.

        Phrases like "tomorrow", "下周", "3pm" or "下午3点" are removed from the
        text and become the task's date.

        Args:
            text: Task text, optionally with a date/time phrase
            time_filter: "today", "tomorrow" or "next7Days"; used as the date
                         when the text has none

        Returns:
            JSON result object, or error message
        """
        return _run(handle_task_add, store, text=text, time_filter=time_filter)

    @mcp.tool()
    def task_toggle(line_index: int) -> str:
        """
        Flip a task or subtask between open and done.

        Args:
            line_index: Line of the task (from task_list)
        """
        return _run(handle_task_toggle, store, line_index=line_index)

    @mcp.tool()
    def task_update(
        line_index: int,
        content: Optional[str] = None,
        completed: Optional[bool] = None,
        priority: Optional[int] = None,
        date: Optional[str] = None,
        recurrence: Optional[str] = None,
        timezone: Optional[str] = None,
        done_date: Optional[str] = None,
        tags: Optional[str] = None,
    ) -> str:
        """
        Update fields of a task or subtask line.

        Only fields you pass will be changed. Pass an empty string (0 for
        priority) to clear a field.

        Args:
            line_index: Line of the task
            content: New text
            completed: New status
            priority: 1 (high), 2, 3 (low), or 0 to clear
            date: "YYYY-MM-DD", "YYYY-MM-DD HH:MM", or a range like "YYYY-MM-DD HH:MM~HH:MM"
            recurrence: "day", "week" or "month"
            timezone: IANA zone name such as "Asia/Shanghai"
            done_date: Completion date "YYYY-MM-DD"
            tags: Comma-separated tags; replaces all existing tags

        Returns:
            Updated task JSON or error message
        """
        return _run(
            handle_task_update,
            store,
            line_index=line_index,
            content=content,
            completed=completed,
            priority=priority,
            date=date,
            recurrence=recurrence,
            timezone=timezone,
            done_date=done_date,
            tags=tags,
        )

    @mcp.tool()
    def task_delete(line_index: int) -> str:
        """Delete a task with its subtasks and notes (or a single subtask line)."""
        return _run(handle_task_delete, store, line_index=line_index)

    @mcp.tool()
    def task_move(line_index: int, target_line_index: int, promote: Optional[bool] = None) -> str:
        """
        Move a task block so it starts at another line.

        Args:
            line_index: Line of the task to move
            target_line_index: Destination line, counted before the move
            promote: Force (or suppress) turning a subtask into a top-level task
        """
        return _run(
            handle_task_move,
            store,
            line_index=line_index,
            target_line_index=target_line_index,
            promote=promote,
        )

    @mcp.tool()
    def task_move_to_project(line_index: int, project_path: str) -> str:
        """
        Move a task block to the top of a project.

        Args:
            line_index: Line of the task to move
            project_path: Heading path such as "Work / Client A"; a missing
                          workflow list (e.g. "⏳ Waiting For") is created
        """
        return _run(handle_task_move_to_project, store, line_index=line_index, project_path=project_path)

    @mcp.tool()
    def task_make_subtask(line_index: int, target_line_index: int) -> str:
        """
        Nest a task (and its block) under another task.

        The moved lines are indented one level and lose their dates.
        """
        return _run(
            handle_task_make_subtask,
            store,
            line_index=line_index,
            target_line_index=target_line_index,
        )

    # ------------------------------------------------------------------
    # Project mutations
    # ------------------------------------------------------------------

    @mcp.tool()
    def project_add(name: Optional[str] = None) -> str:
        """
        Append a top-level project heading.

        Args:
            name: Heading text; a unique "New Project-NNNN" name is generated when omitted
        """
        return _run(handle_project_add, store, name=name)

    @mcp.tool()
    def project_rename(path: str, new_name: str) -> str:
        """Rename the heading at ``path``, keeping its level."""
        return _run(handle_project_rename, store, path=path, new_name=new_name)

    @mcp.tool()
    def project_delete(path: str) -> str:
        """Delete a heading with all of its tasks and sub-projects."""
        return _run(handle_project_delete, store, path=path)

"""
gtdflow - command line for a GTD markdown document

Usage:
    gtdflow list [--search TEXT] [--project PATH] [--tag TAG] [--time WINDOW]
    gtdflow projects
    gtdflow add <text> [--time WINDOW]
    gtdflow toggle <line>
    gtdflow delete <line>
    gtdflow move <line> <target-line> [--promote | --no-promote]
    gtdflow stats
    gtdflow serve [--host HOST] [--port PORT]

Examples:
    gtdflow add "Call the bank tomorrow 3pm"
    gtdflow list --time today
    gtdflow list --project "Work / Client A" --tag urgent
    gtdflow toggle 4
    gtdflow --document ~/notes/gtd.md --lang zh projects
"""

import argparse
import logging
import sys
from pathlib import Path

from .api.project_handlers import handle_project_tree
from .api.task_handlers import (
    handle_stats,
    handle_task_add,
    handle_task_delete,
    handle_task_list,
    handle_task_move,
    handle_task_toggle,
)
from .config import load_settings
from .models.task import Task
from .storage import StorageError, open_storage
from .store import DocumentStore
from .utils.dates import TIME_FILTERS, resolve_task_input
from .utils.formatting import render_task

log = logging.getLogger(__name__)


def _fail(message: str) -> None:
    print(f"Error: {message}")
    sys.exit(1)


def _check(result) -> dict:
    if isinstance(result, dict) and "error" in result:
        _fail(result["error"])
    return result


def _print_task(task: Task) -> None:
    print(f"{task.line_index:>5}  {render_task(task)}")
    for subtask in task.subtasks:
        print(f"{subtask.line_index:>5}    {render_task(subtask)}")


def list_tasks(args):
    """List tasks with optional filtering."""
    try:
        tasks = handle_task_list(
            args.store, q=args.search, project=args.project, tag=args.tag, time=args.time
        )
    except ValueError as e:
        _fail(str(e))
    tree = args.store.tree
    for item in tasks:
        _print_task(tree.find_task(item["line_index"]))

    if not tasks:
        print("No tasks found matching filters.")
    else:
        print(f"{len(tasks)} task(s) found.")


def _print_project(project: dict, depth: int) -> None:
    count = project["incomplete_count"]
    suffix = f" ({count})" if count else ""
    print(f"{'  ' * depth}{project['display_name']}{suffix}")
    for child in project["children"]:
        _print_project(child, depth + 1)


def list_projects(args):
    """Print the heading tree with open task counts."""
    projects = handle_project_tree(args.store, include_tasks=False)
    if not projects:
        print("No projects.")
    for project in projects:
        _print_project(project, 0)


def add_task(args):
    """Capture a task into the inbox."""
    content, task_date = resolve_task_input(args.text, time_filter=args.time)
    _check(handle_task_add(args.store, text=args.text, time_filter=args.time))
    print(f"Added: {content}")
    if task_date:
        print(f"  Date: {task_date}")


def toggle_task(args):
    """Flip a task between open and done."""
    item = _check(handle_task_toggle(args.store, line_index=args.line))
    state = "done" if item["completed"] else "open"
    print(f"{item['content']}: {state}")


def delete_task(args):
    """Delete a task block."""
    _check(handle_task_delete(args.store, line_index=args.line))
    print(f"Deleted task on line {args.line}")


def move_task(args):
    """Move a task block to another line."""
    try:
        result = _check(handle_task_move(
            args.store,
            line_index=args.line,
            target_line_index=args.target,
            promote=args.promote,
        ))
    except ValueError as e:
        _fail(str(e))
    if result["changed"]:
        print(f"Moved task from line {args.line} to line {args.target}")
    else:
        print("No changes made.")


def show_stats(args):
    """Print completion statistics."""
    stats = handle_stats(args.store)
    print(f"Tasks: {stats['total']}  Completed: {stats['total_completed']}  "
          f"Rate: {stats['completion_rate']}%  Active days: {stats['active_days']}")
    print("\nLast 7 days:")
    for day in stats["weekly_trend"]:
        print(f"  {day['label']:>5} {day['date']}  {'#' * day['count']} {day['count']}")
    if stats["project_distribution"]:
        print("\nProjects:")
        for project in stats["project_distribution"]:
            print(f"  {project['name']}: {project['completed']}/{project['total']} ({project['percent']}%)")


def serve(args):
    """Run the REST API in the foreground."""
    from .server import run_api_server

    run_api_server(args.store, args.host, args.port)


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(
        prog="gtdflow",
        description="GTD task management for a single markdown document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--document", default=str(settings.document_path),
                        help="Path of the backing document")
    parser.add_argument("--format", dest="store_format", choices=["markdown", "json"],
                        default=settings.store_format, help="Storage format")
    parser.add_argument("--lang", choices=["en", "zh"], default=settings.lang,
                        help="Display language")
    parser.add_argument("--timezone", default=settings.timezone,
                        help="Default time zone for tasks without @tz")
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # --- list ---
    list_p = subparsers.add_parser("list", help="List tasks")
    list_p.add_argument("--search", help="Text to search for")
    list_p.add_argument("--project", help="Project path (includes sub-projects)")
    list_p.add_argument("--tag", help="Tag name")
    list_p.add_argument("--time", choices=TIME_FILTERS, help="Date window")
    list_p.set_defaults(func=list_tasks)

    # --- projects ---
    projects_p = subparsers.add_parser("projects", help="Show the project tree")
    projects_p.set_defaults(func=list_projects)

    # --- add ---
    add_p = subparsers.add_parser("add", help="Add a task to the inbox")
    add_p.add_argument("text", help="Task text; date phrases like 'tomorrow 3pm' become its date")
    add_p.add_argument("--time", choices=TIME_FILTERS, help="Date to use when the text has none")
    add_p.set_defaults(func=add_task)

    # --- toggle ---
    toggle_p = subparsers.add_parser("toggle", help="Mark a task done or open")
    toggle_p.add_argument("line", type=int, help="Line of the task (see list)")
    toggle_p.set_defaults(func=toggle_task)

    # --- delete ---
    delete_p = subparsers.add_parser("delete", help="Delete a task with its subtasks")
    delete_p.add_argument("line", type=int, help="Line of the task")
    delete_p.set_defaults(func=delete_task)

    # --- move ---
    move_p = subparsers.add_parser("move", help="Move a task block to another line")
    move_p.add_argument("line", type=int, help="Line of the task")
    move_p.add_argument("target", type=int, help="Destination line (before the move)")
    move_p.add_argument("--promote", action=argparse.BooleanOptionalAction, default=None,
                        help="Turn a subtask into a top-level task")
    move_p.set_defaults(func=move_task)

    # --- stats ---
    stats_p = subparsers.add_parser("stats", help="Show completion statistics")
    stats_p.set_defaults(func=show_stats)

    # --- serve ---
    serve_p = subparsers.add_parser("serve", help="Run the REST API")
    serve_p.add_argument("--host", default=settings.api_host)
    serve_p.add_argument("--port", type=int, default=settings.api_port)
    serve_p.set_defaults(func=serve)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    storage = open_storage(Path(args.document), args.store_format)
    args.store = DocumentStore(storage, lang=args.lang, default_timezone=args.timezone)
    try:
        args.store.load()
        args.func(args)
    except StorageError as e:
        _fail(str(e))


if __name__ == "__main__":
    main()

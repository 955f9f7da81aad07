"""
Parser for GTD markdown documents.

Main API:
    parse_content(text, lang) -> DocumentTree

Single pass over the lines with a heading stack (innermost last) and a
"current task" cursor:

- blank line: ends the current task's block
- heading: ends the current task, pops the stack down to the parent level,
  pushes a new ProjectNode whose path is the parent path plus its own name
- indented line while a task is open: subtask if it is a one-level checkbox,
  note otherwise; either way it extends the task's line_count
- checkbox line: new top-level task under the innermost heading
- any other unindented text: ends the current task and is otherwise ignored

The parser is total: nothing in a hand-edited document makes it raise.
"""

from pathlib import Path
from typing import List, Optional

from ..models.task import DocumentTree, ProjectNode, Subtask, Task
from ..models.workflow import DEFAULT_LANG, localized_name
from .line_parser import (
    calculate_indent_level,
    is_checkbox,
    leading_whitespace,
    parse_heading_line,
    parse_task_fields,
)

PATH_SEPARATOR = " / "


def join_path(parent_path: str, name: str) -> str:
    return f"{parent_path}{PATH_SEPARATOR}{name}" if parent_path else name


def split_path(path: str) -> List[str]:
    return [part.strip() for part in path.split(PATH_SEPARATOR)]


def _build_task(stripped: str, line_index: int, project_path: str) -> Task:
    fields = parse_task_fields(stripped)
    return Task(
        content=fields.content,
        completed=fields.completed,
        line_index=line_index,
        line_count=1,
        date=fields.date,
        done_date=fields.done_date,
        recurrence=fields.recurrence,
        priority=fields.priority,
        tags=fields.tags,
        timezone=fields.timezone,
        project_path=project_path,
    )


def _build_subtask(stripped: str, line_index: int) -> Subtask:
    fields = parse_task_fields(stripped)
    return Subtask(
        content=fields.content,
        completed=fields.completed,
        line_index=line_index,
        date=fields.date,
        done_date=fields.done_date,
        recurrence=fields.recurrence,
        priority=fields.priority,
        tags=fields.tags,
        timezone=fields.timezone,
    )


def _count_incomplete(node: ProjectNode) -> int:
    count = sum(1 for task in node.tasks if not task.completed)
    for child in node.children:
        count += _count_incomplete(child)
    node.incomplete_count = count
    return count


def parse_content(content: str, lang: str = DEFAULT_LANG) -> DocumentTree:
    """
    Parse document text into a project tree and a flat task list.

    Args:
        content: Full document text ("\\n"-separated)
        lang: Language used for workflow display names

    Returns:
        DocumentTree with projects and all_tasks in document order
    """
    root = ProjectNode(name="", display_name="", level=0, path="", line_index=-1)
    stack: List[ProjectNode] = [root]
    all_tasks: List[Task] = []
    current_task: Optional[Task] = None

    for line_index, line in enumerate(content.split("\n")):
        stripped = line.strip()

        if not stripped:
            current_task = None
            continue

        heading = parse_heading_line(stripped)
        if heading:
            current_task = None
            level, name = heading
            while len(stack) > 1 and stack[-1].level >= level:
                stack.pop()
            parent = stack[-1]
            node = ProjectNode(
                name=name,
                display_name=localized_name(name, lang),
                level=level,
                path=join_path(parent.path, name),
                line_index=line_index,
            )
            parent.children.append(node)
            stack.append(node)
            continue

        indent = leading_whitespace(line)
        if current_task and indent:
            if is_checkbox(stripped) and calculate_indent_level(indent) == 1:
                current_task.subtasks.append(_build_subtask(stripped, line_index))
            else:
                current_task.notes.append(stripped)
            current_task.line_count += 1
            continue

        if is_checkbox(stripped):
            task = _build_task(stripped, line_index, stack[-1].path)
            stack[-1].tasks.append(task)
            all_tasks.append(task)
            current_task = task
            continue

        current_task = None

    for project in root.children:
        _count_incomplete(project)

    return DocumentTree(projects=root.children, all_tasks=all_tasks)


def parse_file(file_path: Path, lang: str = DEFAULT_LANG) -> DocumentTree:
    """Parse a markdown document from disk."""
    return parse_content(file_path.read_text(encoding="utf-8"), lang)

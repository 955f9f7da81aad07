"""
Text-level mutation engine.

Every operation takes the current document text (plus, where positions
matter, the parse result computed from that same text) and returns a new
document text. Nothing is edited in place: callers re-parse the returned
text before issuing the next operation, since any edit may shift every line
index below it.

A target that no longer resolves (stale line index, renamed heading) makes
the operation a no-op: the input text is returned unchanged.
"""

import logging
import re
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models.task import DocumentTree, Subtask
from ..models.workflow import (
    DEFAULT_LANG,
    WORKFLOW_BY_KEY,
    is_inbox_heading,
    translate,
    workflow_paths,
)
from ..parsers.document_parser import parse_content, split_path
from ..parsers.line_parser import leading_whitespace, strip_date
from ..utils.dates import resolve_task_input
from ..utils.formatting import render_task, render_task_line, single_line
from .headings import find_heading, iter_headings, subtree_end

log = logging.getLogger(__name__)

INDENT = "  "

# Fields a caller may change through update_fields
UPDATABLE_FIELDS = (
    "content",
    "completed",
    "priority",
    "date",
    "recurrence",
    "timezone",
    "done_date",
    "tags",
)

_UNCHECKED_RE = re.compile(r"^(\s*-\s*)\[ \]")
_CHECKED_RE = re.compile(r"^(\s*-\s*)\[x\]")
_ONE_LEVEL_RE = re.compile(r"^(?:\t| {1,2})")


def _split(text: str) -> List[str]:
    return text.split("\n")


def _join(lines: List[str]) -> str:
    return "\n".join(lines)


def _tree(text: str, tree: Optional[DocumentTree]) -> DocumentTree:
    return tree if tree is not None else parse_content(text)


def _resolve_block(tree: DocumentTree, line_index: int) -> Optional[Tuple[int, bool]]:
    """
    Size of the block owned by the item on ``line_index``.

    Returns:
        (line_count, is_subtask) or None when no task or subtask starts there
    """
    task = tree.find_task(line_index)
    if task:
        return task.line_count, False
    if tree.find_subtask(line_index):
        return 1, True
    return None


def _promote(moved: List[str]) -> List[str]:
    """
    Strip one indent level from every line of a block.

    A lone subtask line loses all of its indentation so it always ends up
    as a top-level task.
    """
    if len(moved) == 1:
        return [moved[0].lstrip(" \t")]
    return [_ONE_LEVEL_RE.sub("", line, count=1) for line in moved]


# ---------------------------------------------------------------------------
# Single-line edits
# ---------------------------------------------------------------------------

def toggle_completion(
    text: str,
    line_index: int,
    completed: Optional[bool] = None,
    tree: Optional[DocumentTree] = None,
) -> str:
    """
    Flip the checkbox on one task or subtask line.

    Only the marker changes; the rest of the line is kept byte for byte.

    Args:
        text: Document text
        line_index: Line holding the checkbox
        completed: Current status of the item (read from the parse when omitted)
        tree: Parse of ``text``
    """
    item = _tree(text, tree).find_item(line_index)
    if item is None:
        log.debug("toggle: no task on line %d", line_index)
        return text
    if completed is None:
        completed = item.completed

    lines = _split(text)
    if line_index >= len(lines):
        return text
    line = lines[line_index]
    if completed:
        lines[line_index] = _CHECKED_RE.sub(r"\1[ ]", line, count=1)
    else:
        lines[line_index] = _UNCHECKED_RE.sub(r"\1[x]", line, count=1)
    return _join(lines)


def update_fields(
    text: str,
    line_index: int,
    updates: Dict[str, Any],
    tree: Optional[DocumentTree] = None,
) -> str:
    """
    Re-render one task line with some fields replaced.

    Fields missing from ``updates`` keep their current value; a field given
    as None (or an empty list for tags) is cleared. Subtask and note lines
    below the task are untouched.
    """
    item = _tree(text, tree).find_item(line_index)
    if item is None:
        log.debug("update: no task on line %d", line_index)
        return text

    lines = _split(text)
    if line_index >= len(lines):
        return text
    merged = Subtask(
        content=item.content,
        completed=item.completed,
        date=item.date,
        done_date=item.done_date,
        recurrence=item.recurrence,
        priority=item.priority,
        tags=list(item.tags),
        timezone=item.timezone,
    )
    for name in UPDATABLE_FIELDS:
        if name in updates:
            setattr(merged, name, updates[name])
    merged.tags = list(merged.tags or [])
    merged.content = (merged.content or "").strip()

    lines[line_index] = render_task(merged, indent=leading_whitespace(lines[line_index]))
    return _join(lines)


# ---------------------------------------------------------------------------
# Task block edits
# ---------------------------------------------------------------------------

def add_task(
    text: str,
    input_text: str,
    time_filter: Optional[str] = None,
    lang: str = DEFAULT_LANG,
    today: Optional[date] = None,
) -> str:
    """
    Capture a new unchecked task.

    Date and time phrases in ``input_text`` (or the active time filter) become
    the task's date. The task goes right below the first inbox heading, else
    below the first heading, else under a newly appended inbox heading.
    """
    content, task_date = resolve_task_input(input_text, today=today, time_filter=time_filter)
    if not content:
        return text

    task_line = render_task_line(content, date=task_date)
    lines = _split(text)
    headings = list(iter_headings(lines))

    target = next((h for h in headings if is_inbox_heading(h.name)), None)
    if target is None and headings:
        target = headings[0]

    if target is None:
        if lines == [""]:
            lines = []
        lines.extend([f"# {WORKFLOW_BY_KEY['inbox'].heading_text(lang)}", task_line])
    else:
        lines.insert(target.line_index + 1, task_line)
    return _join(lines)


def delete_task(text: str, line_index: int, tree: Optional[DocumentTree] = None) -> str:
    """Remove a task together with its subtask and note lines (or a single subtask line)."""
    block = _resolve_block(_tree(text, tree), line_index)
    if block is None:
        log.debug("delete: no task on line %d", line_index)
        return text
    count, _ = block
    lines = _split(text)
    del lines[line_index:line_index + count]
    return _join(lines)


def move_task(
    text: str,
    source_line_index: int,
    target_line_index: int,
    promote: Optional[bool] = None,
    tree: Optional[DocumentTree] = None,
) -> str:
    """
    Move a task block so that it starts at ``target_line_index``.

    ``target_line_index`` refers to the document before the move. A single
    subtask line being moved is promoted to a top-level task; ``promote``
    overrides that detection.
    """
    block = _resolve_block(_tree(text, tree), source_line_index)
    if block is None:
        return text
    count, is_subtask = block
    if promote is None:
        promote = is_subtask
    if source_line_index == target_line_index and not promote:
        return text

    lines = _split(text)
    if not 0 <= target_line_index <= len(lines):
        return text
    if source_line_index < target_line_index < source_line_index + count:
        return text

    moved = lines[source_line_index:source_line_index + count]
    del lines[source_line_index:source_line_index + count]
    if promote:
        moved = _promote(moved)

    if source_line_index < target_line_index:
        target_line_index -= count
    lines[target_line_index:target_line_index] = moved
    return _join(lines)


def move_task_to_project(
    text: str,
    line_index: int,
    target_path: str,
    tree: Optional[DocumentTree] = None,
) -> str:
    """
    Move a task block directly below the heading at ``target_path``.

    A single indented line is promoted to a top-level task; multi-line blocks
    keep their subtask indentation. A missing reserved workflow heading is
    recreated at the end of the document.
    """
    block = _resolve_block(_tree(text, tree), line_index)
    if block is None:
        return text
    count, _ = block

    lines = _split(text)
    moved = lines[line_index:line_index + count]
    del lines[line_index:line_index + count]
    if len(moved) == 1 and leading_whitespace(moved[0]):
        moved = _promote(moved)

    heading = find_heading(lines, target_path)
    if heading is not None:
        lines[heading.line_index + 1:heading.line_index + 1] = moved
        return _join(lines)

    if target_path in workflow_paths():
        if lines and lines[-1].strip():
            lines.append("")
        lines.append(f"# {split_path(target_path)[-1]}")
        lines.extend(moved)
        return _join(lines)

    log.debug("move to project: no heading for path %r", target_path)
    return text


def make_subtask(
    text: str,
    source_line_index: int,
    target_line_index: int,
    tree: Optional[DocumentTree] = None,
) -> str:
    """
    Nest a task block under the task or subtask on ``target_line_index``.

    Every line of the block is indented one level and loses its date
    annotation, then the block is inserted right after the target line.
    """
    tree = _tree(text, tree)
    source = tree.find_task(source_line_index)
    if source is None or tree.find_item(target_line_index) is None:
        return text
    if source.line_index <= target_line_index < source.end_index:
        return text

    count = source.line_count
    lines = _split(text)
    moved = lines[source_line_index:source_line_index + count]
    del lines[source_line_index:source_line_index + count]
    moved = [strip_date(INDENT + line) for line in moved]

    if source_line_index < target_line_index:
        target_line_index -= count
    lines[target_line_index + 1:target_line_index + 1] = moved
    return _join(lines)


# ---------------------------------------------------------------------------
# Heading edits
# ---------------------------------------------------------------------------

def _generate_project_name(lines: List[str], lang: str) -> str:
    existing = {h.name for h in iter_headings(lines)}
    prefix = translate("new_project", lang)
    suffix = int(time.time() * 1000) % 10000
    name = f"{prefix}-{suffix:04d}"
    while name in existing:
        suffix = (suffix + 1) % 10000
        name = f"{prefix}-{suffix:04d}"
    return name


def add_project(text: str, name: Optional[str] = None, lang: str = DEFAULT_LANG) -> str:
    """Append a blank line and a level-1 heading (named, or with a generated unique name)."""
    lines = _split(text)
    name = single_line(name or "").strip() or _generate_project_name(lines, lang)
    if lines == [""]:
        return f"# {name}"
    lines.extend(["", f"# {name}"])
    return _join(lines)


def rename_project(text: str, path: str, new_name: str) -> str:
    """Replace a heading's text, keeping its depth."""
    new_name = single_line(new_name).strip()
    if not new_name:
        return text
    lines = _split(text)
    heading = find_heading(lines, path)
    if heading is None:
        log.debug("rename: no heading for path %r", path)
        return text
    lines[heading.line_index] = f"{'#' * heading.level} {new_name}"
    return _join(lines)


def delete_project(text: str, path: str) -> str:
    """Remove a heading and everything up to the next heading at the same or a shallower level."""
    lines = _split(text)
    heading = find_heading(lines, path)
    if heading is None:
        log.debug("delete project: no heading for path %r", path)
        return text
    del lines[heading.line_index:subtree_end(lines, heading)]
    return _join(lines)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

# name -> (function, takes a parse result)
MUTATIONS: Dict[str, Tuple[Callable[..., str], bool]] = {
    "toggle": (toggle_completion, True),
    "update": (update_fields, True),
    "add_task": (add_task, False),
    "delete_task": (delete_task, True),
    "move_task": (move_task, True),
    "move_to_project": (move_task_to_project, True),
    "make_subtask": (make_subtask, True),
    "add_project": (add_project, False),
    "rename_project": (rename_project, False),
    "delete_project": (delete_project, False),
}


def apply_mutation(
    text: str,
    op: str,
    tree: Optional[DocumentTree] = None,
    **kwargs: Any,
) -> str:
    """
    Run the mutation named ``op`` against ``text``.

    Args:
        text: Document text
        op: One of the MUTATIONS keys
        tree: Parse of ``text``; computed when omitted
        **kwargs: Arguments of the mutation function

    Returns:
        The new document text (``text`` itself when nothing changed)

    Raises:
        ValueError: ``op`` is not a known mutation
    """
    if op not in MUTATIONS:
        raise ValueError(f"Unknown mutation '{op}'")
    func, takes_tree = MUTATIONS[op]
    if takes_tree:
        kwargs["tree"] = _tree(text, tree)
    return func(text, **kwargs)

"""
Line tokenizer and inline field extraction.

A line is one of: heading, task (checkbox, no indent), subtask (checkbox with
leading whitespace), blank, or plain text. Annotations on a task line are
matched independently of each other, so their order in the source line does
not matter. A malformed annotation simply fails its pattern and stays in the
content text.
"""

import re
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

LineKind = Literal["heading", "task", "subtask", "blank", "text"]

CHECKBOX_RE = re.compile(r"^- \[[ x]\]\s*")
# Body of a date annotation: day or day range, optional time or time range
DATE_VALUE = r"\d{4}-\d{2}-\d{2}(?:~\d{4}-\d{2}-\d{2})?(?: \d{2}:\d{2}(?:~\d{2}:\d{2})?)?"
DATE_RE = re.compile(rf"@({DATE_VALUE})")
DONE_RE = re.compile(r"@done\((\d{4}-\d{2}-\d{2})\)")
EVERY_RE = re.compile(r"@every\((day|week|month)\)")
TZ_RE = re.compile(r"@tz\(([^)]+)\)")
PRIORITY_RE = re.compile(r"!([1-3])(?!\d)")
TAG_RE = re.compile(r"#([^\s#]+)")
HEADING_RE = re.compile(r"^#+")


@dataclass
class LineFields:
    """Fields extracted from a single task or subtask line."""

    content: str
    completed: bool
    date: Optional[str] = None
    done_date: Optional[str] = None
    recurrence: Optional[str] = None
    priority: Optional[int] = None
    tags: List[str] = field(default_factory=list)
    timezone: Optional[str] = None


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" \t"))]


def calculate_indent_level(indent_str: str) -> int:
    """
    Indentation level of a leading-whitespace string.

    Two columns make one level and a tab counts as one level. Any non-empty
    indent is at least level 1.
    """
    if not indent_str:
        return 0
    width = len(indent_str.replace("\t", "  "))
    return max(1, width // 2)


def is_checkbox(stripped: str) -> bool:
    return stripped.startswith("- [ ]") or stripped.startswith("- [x]")


def parse_heading_line(stripped: str) -> Optional[Tuple[int, str]]:
    """Return (level, name) for a stripped heading line, or None."""
    match = HEADING_RE.match(stripped)
    if not match:
        return None
    level = len(match.group())
    return level, stripped[level:].strip()


def classify_line(line: str) -> LineKind:
    stripped = line.strip()
    if not stripped:
        return "blank"
    if stripped.startswith("#"):
        return "heading"
    if is_checkbox(stripped):
        return "subtask" if leading_whitespace(line) else "task"
    return "text"


def parse_task_fields(stripped: str) -> LineFields:
    """
    Extract every inline annotation from a stripped checkbox line.

    The content is the line with the checkbox and every annotation removed,
    then trimmed; inner whitespace is left alone. A repeated annotation
    reports its first occurrence and all copies leave the content.
    """
    date = DATE_RE.search(stripped)
    done = DONE_RE.search(stripped)
    every = EVERY_RE.search(stripped)
    tz = TZ_RE.search(stripped)
    priority = PRIORITY_RE.search(stripped)
    tags = TAG_RE.findall(stripped)

    content = CHECKBOX_RE.sub("", stripped, count=1)
    for pattern in (DATE_RE, DONE_RE, EVERY_RE, TZ_RE, PRIORITY_RE, TAG_RE):
        content = pattern.sub("", content)

    return LineFields(
        content=content.strip(),
        completed=stripped.startswith("- [x]"),
        date=date.group(1) if date else None,
        done_date=done.group(1) if done else None,
        recurrence=every.group(1) if every else None,
        priority=int(priority.group(1)) if priority else None,
        tags=tags,
        timezone=tz.group(1).strip() if tz else None,
    )


def strip_date(line: str) -> str:
    """Remove every date annotation (and the whitespace before it) from a line."""
    return re.sub(r"\s*" + DATE_RE.pattern, "", line)

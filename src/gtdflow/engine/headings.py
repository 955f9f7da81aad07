"""
Heading path walk over raw document lines.

Replays the parser's heading stack so that mutations can address a heading
by the same path the parser assigned it, without needing a parse result.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from ..parsers.document_parser import join_path
from ..parsers.line_parser import parse_heading_line


@dataclass
class HeadingLine:
    line_index: int
    level: int
    name: str
    path: str


def iter_headings(lines: List[str]) -> Iterator[HeadingLine]:
    """Yield every heading line with its computed path, in document order."""
    stack: List[Tuple[int, str]] = []  # (level, path)
    for index, line in enumerate(lines):
        heading = parse_heading_line(line.strip())
        if not heading:
            continue
        level, name = heading
        while stack and stack[-1][0] >= level:
            stack.pop()
        path = join_path(stack[-1][1] if stack else "", name)
        stack.append((level, path))
        yield HeadingLine(line_index=index, level=level, name=name, path=path)


def find_heading(lines: List[str], path: str) -> Optional[HeadingLine]:
    """First heading whose path equals ``path``; sibling duplicates resolve to the first."""
    for heading in iter_headings(lines):
        if heading.path == path:
            return heading
    return None


def subtree_end(lines: List[str], heading: HeadingLine) -> int:
    """Index of the next heading at the same or a shallower level (or len(lines))."""
    for index in range(heading.line_index + 1, len(lines)):
        found = parse_heading_line(lines[index].strip())
        if found and found[0] <= heading.level:
            return index
    return len(lines)

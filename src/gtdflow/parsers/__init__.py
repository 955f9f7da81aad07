from .document_parser import PATH_SEPARATOR, join_path, parse_content, parse_file, split_path
from .line_parser import (
    LineFields,
    calculate_indent_level,
    classify_line,
    parse_heading_line,
    parse_task_fields,
)

__all__ = [
    "parse_content",
    "parse_file",
    "join_path",
    "split_path",
    "PATH_SEPARATOR",
    "LineFields",
    "calculate_indent_level",
    "classify_line",
    "parse_heading_line",
    "parse_task_fields",
]

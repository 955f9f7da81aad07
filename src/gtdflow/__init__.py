"""gtd-flow: a GTD task manager whose only state is one markdown document."""

from .engine import MUTATIONS, apply_mutation
from .models import DocumentTree, ProjectNode, Subtask, Task
from .parsers import parse_content, parse_file
from .utils import render_task_line

__version__ = "0.1.0"

__all__ = [
    "parse_content",
    "parse_file",
    "apply_mutation",
    "MUTATIONS",
    "render_task_line",
    "Task",
    "Subtask",
    "ProjectNode",
    "DocumentTree",
]

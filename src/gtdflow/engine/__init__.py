from .headings import HeadingLine, find_heading, iter_headings, subtree_end
from .mutations import (
    MUTATIONS,
    add_project,
    add_task,
    apply_mutation,
    delete_project,
    delete_task,
    make_subtask,
    move_task,
    move_task_to_project,
    rename_project,
    toggle_completion,
    update_fields,
)

__all__ = [
    "MUTATIONS",
    "apply_mutation",
    "toggle_completion",
    "update_fields",
    "add_task",
    "delete_task",
    "move_task",
    "move_task_to_project",
    "make_subtask",
    "add_project",
    "rename_project",
    "delete_project",
    "HeadingLine",
    "find_heading",
    "iter_headings",
    "subtree_end",
]

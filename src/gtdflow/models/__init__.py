from .task import DocumentTree, ProjectNode, Subtask, Task
from .workflow import (
    WORKFLOW_CATEGORIES,
    WorkflowCategory,
    default_template,
    localized_name,
    workflow_paths,
)

__all__ = [
    "Task",
    "Subtask",
    "ProjectNode",
    "DocumentTree",
    "WorkflowCategory",
    "WORKFLOW_CATEGORIES",
    "default_template",
    "localized_name",
    "workflow_paths",
]

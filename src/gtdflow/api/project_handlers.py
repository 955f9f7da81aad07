"""Project (heading) handler functions shared by MCP tools, REST API and CLI."""

import logging
from typing import Optional

from .task_handlers import _task_to_dict

log = logging.getLogger(__name__)


def _project_to_dict(node, include_tasks: bool = True) -> dict:
    d = {
        "name": node.name,
        "display_name": node.display_name,
        "level": node.level,
        "path": node.path,
        "line_index": node.line_index,
        "incomplete_count": node.incomplete_count,
        "children": [_project_to_dict(c, include_tasks) for c in node.children],
    }
    if include_tasks:
        d["tasks"] = [_task_to_dict(t) for t in node.tasks]
    return d


def handle_project_tree(store, *, include_tasks: bool = True) -> list[dict]:
    return [_project_to_dict(p, include_tasks) for p in store.tree.projects]


def handle_project_add(store, *, name: Optional[str] = None) -> dict:
    """Append a level-1 heading; without a name a unique one is generated."""
    store.apply("add_project", name=name)
    # the new heading is always the last top-level project
    project = store.tree.projects[-1]
    return {"ok": True, "changed": True, "project": _project_to_dict(project, include_tasks=False)}


def handle_project_rename(store, *, path: str, new_name: str) -> dict:
    if not new_name.strip():
        raise ValueError("new_name cannot be empty")
    if store.tree.find_project(path) is None:
        return {"error": f"Project '{path}' not found"}
    changed = store.apply("rename_project", path=path, new_name=new_name)
    return {"ok": True, "changed": changed}


def handle_project_delete(store, *, path: str) -> dict:
    if store.tree.find_project(path) is None:
        return {"error": f"Project '{path}' not found"}
    changed = store.apply("delete_project", path=path)
    return {"ok": True, "changed": changed}

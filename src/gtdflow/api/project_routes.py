"""REST API routes for project headings."""

from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from .project_handlers import (
    handle_project_add,
    handle_project_delete,
    handle_project_rename,
    handle_project_tree,
)
from .task_routes import call_handler


class ProjectAddBody(BaseModel):
    name: Optional[str] = None


class ProjectRenameBody(BaseModel):
    path: str
    new_name: str


def register_project_routes(app_router: APIRouter, store) -> None:
    """Attach project tree and heading routes."""

    @app_router.get("/projects")
    def list_projects(include_tasks: bool = Query(True)):
        return call_handler(handle_project_tree, store, include_tasks=include_tasks)

    @app_router.post("/projects", status_code=201)
    def add_project(body: ProjectAddBody):
        return call_handler(handle_project_add, store, name=body.name)

    @app_router.patch("/projects")
    def rename_project(body: ProjectRenameBody):
        return call_handler(handle_project_rename, store, path=body.path, new_name=body.new_name)

    @app_router.delete("/projects")
    def delete_project(path: str = Query(...)):
        return call_handler(handle_project_delete, store, path=path)

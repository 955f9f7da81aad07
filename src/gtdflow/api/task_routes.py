"""REST API routes for the document and its tasks."""

from typing import Callable, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..storage import StorageError
from .task_handlers import (
    handle_markdown_get,
    handle_markdown_put,
    handle_stats,
    handle_status,
    handle_task_add,
    handle_task_delete,
    handle_task_get,
    handle_task_list,
    handle_task_make_subtask,
    handle_task_move,
    handle_task_move_to_project,
    handle_task_toggle,
    handle_task_update,
    handle_upcoming,
)


class TaskAddBody(BaseModel):
    text: str
    time_filter: Optional[str] = None


class TaskUpdateBody(BaseModel):
    content: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[int] = None
    date: Optional[str] = None
    recurrence: Optional[str] = None
    timezone: Optional[str] = None
    done_date: Optional[str] = None
    tags: Optional[str] = None


class TaskMoveBody(BaseModel):
    target_line_index: int
    promote: Optional[bool] = None


class TaskProjectBody(BaseModel):
    project_path: str


class TaskSubtaskBody(BaseModel):
    target_line_index: int


def call_handler(handler: Callable, store, **kwargs):
    """
    Run a handler and translate its failures to HTTP errors.

    ``{"error": ...}`` results become 404 when something was not found and
    400 otherwise; ValueError is 400; StorageError is 503.
    """
    try:
        result = handler(store, **kwargs)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if isinstance(result, dict) and "error" in result:
        status_code = 404 if "not found" in result["error"] else 400
        raise HTTPException(status_code=status_code, detail=result["error"])
    return result


def register_task_routes(app_router: APIRouter, store) -> None:
    """Attach document sync and task routes."""

    # --- Whole-document sync ---

    @app_router.get("/markdown")
    def get_markdown():
        return JSONResponse(
            content=handle_markdown_get(store),
            headers={"Cache-Control": "no-store"},
        )

    @app_router.post("/markdown")
    async def put_markdown(request: Request):
        try:
            body = await request.json()
        except ValueError:
            body = None
        markdown = body.get("markdown") if isinstance(body, dict) else None
        if not isinstance(markdown, str):
            raise HTTPException(status_code=400, detail="markdown required")
        return call_handler(handle_markdown_put, store, markdown=markdown)

    # --- Queries ---

    @app_router.get("/tasks")
    def list_tasks(
        q: Optional[str] = Query(None),
        project: Optional[str] = Query(None),
        tag: Optional[str] = Query(None),
        time: Optional[str] = Query(None),
    ):
        return call_handler(handle_task_list, store, q=q, project=project, tag=tag, time=time)

    @app_router.get("/tasks/upcoming")
    def list_upcoming(minutes: int = Query(10, ge=1)):
        return call_handler(handle_upcoming, store, minutes=minutes)

    @app_router.get("/tasks/{line_index}")
    def get_task(line_index: int):
        return call_handler(handle_task_get, store, line_index=line_index)

    @app_router.get("/stats")
    def get_stats():
        return call_handler(handle_stats, store)

    @app_router.get("/status")
    def get_status():
        return handle_status(store)

    # --- Mutations ---

    @app_router.post("/tasks", status_code=201)
    def add_task(body: TaskAddBody):
        return call_handler(handle_task_add, store, text=body.text, time_filter=body.time_filter)

    @app_router.patch("/tasks/{line_index}")
    def update_task(line_index: int, body: TaskUpdateBody):
        return call_handler(handle_task_update, store, line_index=line_index, **body.model_dump())

    @app_router.post("/tasks/{line_index}/toggle")
    def toggle_task(line_index: int):
        return call_handler(handle_task_toggle, store, line_index=line_index)

    @app_router.delete("/tasks/{line_index}")
    def delete_task(line_index: int):
        return call_handler(handle_task_delete, store, line_index=line_index)

    @app_router.post("/tasks/{line_index}/move")
    def move_task(line_index: int, body: TaskMoveBody):
        return call_handler(
            handle_task_move,
            store,
            line_index=line_index,
            target_line_index=body.target_line_index,
            promote=body.promote,
        )

    @app_router.post("/tasks/{line_index}/project")
    def move_task_to_project(line_index: int, body: TaskProjectBody):
        return call_handler(
            handle_task_move_to_project,
            store,
            line_index=line_index,
            project_path=body.project_path,
        )

    @app_router.post("/tasks/{line_index}/subtask")
    def make_subtask(line_index: int, body: TaskSubtaskBody):
        return call_handler(
            handle_task_make_subtask,
            store,
            line_index=line_index,
            target_line_index=body.target_line_index,
        )

"""FastAPI application factory for the gtd-flow REST API."""

from fastapi import APIRouter, FastAPI

from .project_routes import register_project_routes
from .task_routes import register_task_routes


def create_app(store) -> FastAPI:
    """Build and return a FastAPI app wired to the given DocumentStore."""
    app = FastAPI(title="gtd-flow", docs_url="/api/docs", openapi_url="/api/openapi.json")

    api = APIRouter(prefix="/api")
    register_task_routes(api, store)
    register_project_routes(api, store)
    app.include_router(api)

    return app

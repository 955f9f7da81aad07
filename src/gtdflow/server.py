"""
gtd-flow MCP server entry point.

Startup sequence:
1. Read settings from the environment
2. Open the storage backend and load the document (or the default template)
3. Start REST API server in background thread (if API_ENABLED)
4. Register all MCP tools
5. Run MCP server (stdio transport)
"""

import logging
import sys
import threading

from mcp.server.fastmcp import FastMCP

from .api.tools import register_tools
from .config import Settings, load_settings
from .storage import StorageError, open_storage
from .store import DocumentStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr,
)
log = logging.getLogger(__name__)


def open_store(settings: Settings) -> DocumentStore:
    """Build the DocumentStore described by ``settings`` and load it."""
    storage = open_storage(settings.document_path, settings.store_format)
    store = DocumentStore(storage, lang=settings.lang, default_timezone=settings.timezone)
    store.load()
    return store


def run_api_server(store: DocumentStore, host: str, port: int) -> None:
    """Run the FastAPI/uvicorn server (blocks)."""
    import uvicorn

    from .api.app import create_app

    app = create_app(store)
    log.info("Starting REST API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level="warning")


def main() -> None:
    settings = load_settings()
    log.info("Document: %s (%s)", settings.document_path, settings.store_format)

    try:
        store = open_store(settings)
    except StorageError as e:
        log.error("Cannot load document: %s", e)
        sys.exit(1)

    if settings.api_enabled:
        api_thread = threading.Thread(
            target=run_api_server,
            args=(store, settings.api_host, settings.api_port),
            daemon=True,
        )
        api_thread.start()

    mcp = FastMCP("gtd-flow")
    register_tools(mcp, store)

    log.info("Starting gtd-flow server")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()

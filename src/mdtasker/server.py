"""
mdtasker server entry point.

Startup sequence:
1. Read PROJECT_FILE and the other settings from the environment
2. Load the project session (creating the file if it does not exist)
3. Start ProjectWatcher daemon thread
4. Start REST API server in background thread (if API_ENABLED)
5. Register MCP tools and run the MCP server (stdio transport)
"""

import logging
import os
import sys
import threading
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from mdtasker.store.project_file import ProjectFileError
from mdtasker.store.session import ProjectSession
from mdtasker.tools import register_document_tools
from mdtasker.watcher.project_watcher import ProjectWatcher

log = logging.getLogger(__name__)


def _configure_logging() -> None:
    # stdout belongs to the MCP stdio transport
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _start_api_server(session, port: int) -> None:
    """Run the FastAPI/uvicorn server in a daemon thread."""
    import uvicorn

    from mdtasker.api.app import create_app

    app = create_app(session)
    log.info("Starting REST API on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="warning")


def main() -> None:
    _configure_logging()

    project_file_env = os.environ.get("PROJECT_FILE", "")
    if not project_file_env:
        log.error("PROJECT_FILE environment variable is not set")
        sys.exit(1)

    project_file = Path(project_file_env)
    if project_file.is_dir():
        log.error("PROJECT_FILE is a directory: %s", project_file)
        sys.exit(1)

    session = ProjectSession(project_file)
    try:
        session.load()
    except ProjectFileError as e:
        log.error("%s", e)
        sys.exit(1)

    watcher = ProjectWatcher(session)
    watcher.start()

    api_enabled = os.environ.get("API_ENABLED", "true").lower() in ("true", "1", "yes")
    if api_enabled:
        api_port = int(os.environ.get("API_PORT", "9410"))
        api_thread = threading.Thread(
            target=_start_api_server, args=(session, api_port), daemon=True
        )
        api_thread.start()

    mcp = FastMCP("mdtasker")
    register_document_tools(mcp, session)

    log.info("Starting mdtasker server for %s", project_file)
    try:
        mcp.run(transport="stdio")
    finally:
        watcher.stop()


if __name__ == "__main__":
    main()

"""FastAPI application factory for the mdtasker REST API."""

from fastapi import APIRouter, FastAPI

from mdtasker.api.routes import register_routes


def create_app(session) -> FastAPI:
    """Build and return a FastAPI app wired to the given ProjectSession."""
    app = FastAPI(title="mdtasker", docs_url="/api/docs", openapi_url="/api/openapi.json")

    api = APIRouter(prefix="/api")
    register_routes(api, session)
    app.include_router(api)

    return app

"""
Infinity Todo - local API for a tree-structured todo list.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from todo_api.config import AppSettings, get_settings, resolve_database_path
from todo_api.database import Database
from todo_api.exceptions import ERROR_RESPONSES, register_exception_handlers
from todo_api.logging_config import get_logger
from todo_api.routes import settings, todos

logger = get_logger(__name__)


def create_app(app_settings: AppSettings | None = None) -> FastAPI:
    """
    Build the API application.

    The task store is opened by the lifespan handler from the resolved
    database path and closed on shutdown.
    """
    app_settings = app_settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown events."""
        logger.info("Starting Infinity Todo API...")
        database = Database(resolve_database_path(app_settings), echo=app_settings.debug)
        await database.open()
        app.state.database = database
        yield
        logger.info("Shutting down Infinity Todo API...")
        await database.close()

    app = FastAPI(
        title="Infinity Todo",
        description="Hierarchical todo list with ordering and completion cascades",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(
        todos.router, prefix="/api/todos", tags=["Todos"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        settings.router, prefix="/api/settings", tags=["Settings"],
        responses=ERROR_RESPONSES,
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app

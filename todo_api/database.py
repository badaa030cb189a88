"""
Owned handle on the SQLite task store.

A ``Database`` is created with an already resolved file path, opened once at
startup (which also brings the schema up to date) and closed at shutdown.
All reads and writes go through ``Database.session()``, one unit of work that
commits on success and rolls back on any error.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from todo_api.exceptions import StorageError
from todo_api.logging_config import get_logger
from todo_api.migrations import run_migrations

logger = get_logger(__name__)


def _configure_sqlite(engine: AsyncEngine) -> None:
    """
    Per-connection SQLite setup.

    The sqlite3 driver only opens transactions lazily before DML, which would
    leave the reads of a unit of work outside its transaction. Turn that off
    and emit BEGIN ourselves whenever SQLAlchemy starts a transaction.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """The task store: one engine, explicit open/close."""

    def __init__(self, path: Path | str, echo: bool = False):
        self.path = Path(path)
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self) -> None:
        """Create the engine and migrate the schema. Safe to call twice."""
        if self._engine is not None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Single writer: units of work queue for the one pooled connection
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{self.path}",
            echo=self.echo,
            future=True,
            poolclass=AsyncAdaptedQueuePool,
            pool_size=1,
            max_overflow=0,
        )
        _configure_sqlite(engine)

        try:
            async with engine.begin() as conn:
                version = await conn.run_sync(run_migrations)
        except SQLAlchemyError as exc:
            await engine.dispose()
            raise StorageError(f"Could not open database {self.path}: {exc}") from exc

        self._engine = engine
        self._session_maker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info(f"Opened database {self.path} (schema version {version})")

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        logger.info(f"Closed database {self.path}")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: commit on success, roll back on any error."""
        if self._session_maker is None:
            raise StorageError(f"Database {self.path} is not open")

        async with self._session_maker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.exception("Storage failure, transaction rolled back")
                raise StorageError("Storage operation failed") from exc
            except Exception:
                await session.rollback()
                raise


def get_database(request: Request) -> Database:
    """FastAPI dependency: the store owned by the running application."""
    return request.app.state.database

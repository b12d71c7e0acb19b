"""SQLite storage behind the saved objects client."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional, Union

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from kbn_server.saved_objects.models import Base

logger = structlog.get_logger(__name__)


class SavedObjectsStore:
    """
    Owns the engine for one saved objects database file.

    The application opens its store during startup and keeps it on
    ``app.state``; clients borrow transactions from it.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self) -> None:
        """Create the database file and the ``saved_objects`` table if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._engine = create_async_engine(f"sqlite+aiosqlite:///{self.db_path}")
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Saved objects store opened", db_path=str(self.db_path))

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Saved objects store closed", db_path=str(self.db_path))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Session inside one transaction: committed on exit, rolled back on error."""
        if self._sessionmaker is None:
            raise RuntimeError(f"Saved objects store {self.db_path} is not open")

        async with self._sessionmaker() as session:
            async with session.begin():
                yield session

    async def status(self) -> dict[str, Any]:
        """Health summary for the ``/health`` endpoint."""
        summary: dict[str, Any] = {"db_path": str(self.db_path)}
        if self._engine is None:
            return {**summary, "status": "not_initialized"}

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Saved objects store unreachable", db_path=str(self.db_path), error=str(e))
            return {**summary, "status": "unhealthy", "error": str(e)}

        return {**summary, "status": "healthy"}

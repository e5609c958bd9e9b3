"""Session management for the metadata store."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from dbdock.config import get_settings
from dbdock.models.base import Base
from dbdock.utils import get_logger

logger = get_logger(__name__)


def to_async_url(db_path: str) -> str:
    """
    Turn a settings value into an aiosqlite URL.

    Args:
        db_path: Plain file path, ``:memory:`` or a ``sqlite://`` URL

    Returns:
        SQLAlchemy URL using the aiosqlite driver
    """
    if db_path.startswith("sqlite+aiosqlite://"):
        return db_path
    if db_path.startswith("sqlite://"):
        return db_path.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return f"sqlite+aiosqlite:///{db_path}"


class DatabaseManager:
    """Manages the metadata store engine and sessions."""

    def __init__(self, state_db: str | None = None) -> None:
        """
        Initialize database manager.

        Args:
            state_db: Database path or URL; defaults to the configured state_db
        """
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[AsyncSession] | None = None
        self.db_url = to_async_url(state_db or get_settings().state_db)

    def get_engine(self) -> AsyncEngine:
        """
        Get or create async database engine.

        Returns:
            AsyncEngine instance
        """
        if self._engine is None:
            self._engine = create_async_engine(self.db_url, echo=False)
            logger.info("Database engine created", extra={"db_url": self.db_url})
        return self._engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                self.get_engine(),
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_maker

    async def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        async with self.get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def close(self) -> None:
        """Dispose of the engine."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
            logger.info("Database engine closed")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Open a session that commits on success and rolls back on error.

        Yields:
            AsyncSession instance
        """
        async with self.get_session_maker()() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


# Global instance
_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    """
    Get global database manager instance.

    Returns:
        DatabaseManager instance
    """
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def init_db() -> None:
    """Initialize database (create tables)."""
    await get_db_manager().create_tables()


async def close_db() -> None:
    """Close database connection."""
    global _db_manager
    if _db_manager:
        await _db_manager.close()
        _db_manager = None

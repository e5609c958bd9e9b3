"""Generic repository over an async session."""

from typing import Generic, List, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dbdock.models.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Common CRUD operations for one mapped class."""

    def __init__(self, session: AsyncSession, model: type[T]) -> None:
        """
        Initialize repository.

        Args:
            session: Database session
            model: SQLAlchemy model class
        """
        self.session = session
        self.model = model

    async def get(self, id: str) -> T | None:
        """
        Get entity by primary key.

        Args:
            id: Primary key value

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def get_all(self) -> List[T]:
        result = await self.session.execute(select(self.model))
        return list(result.scalars().all())

    async def create(self, entity: T) -> T:
        """
        Insert a new entity and flush it.

        Args:
            entity: Entity to create

        Returns:
            Created entity, refreshed from the database
        """
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(self, entity: T) -> T:
        """Flush pending changes on an attached entity."""
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity: T) -> None:
        await self.session.delete(entity)
        await self.session.flush()

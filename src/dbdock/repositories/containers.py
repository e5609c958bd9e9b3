"""Repository for persisted container metadata."""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dbdock.models.records import ContainerRecord

from .base import BaseRepository


class ContainerRecordRepository(BaseRepository[ContainerRecord]):
    """CRUD and lookups for container records."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize container record repository.

        Args:
            session: Database session
        """
        super().__init__(session, ContainerRecord)

    async def get_by_name(self, name: str) -> ContainerRecord | None:
        """
        Get a record by database name.

        Args:
            name: Container name

        Returns:
            Record or None if not found
        """
        stmt = select(ContainerRecord).where(ContainerRecord.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_ordered(self) -> List[ContainerRecord]:
        """
        List all records, oldest first.

        Returns:
            Records ordered by creation time, then id
        """
        stmt = select(ContainerRecord).order_by(ContainerRecord.created_at, ContainerRecord.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_runtime_state(
        self, record: ContainerRecord, status: str, container_id: str | None
    ) -> bool:
        """
        Apply the status and Docker id observed at runtime.

        Args:
            record: Attached record
            status: Observed status
            container_id: Observed Docker container id, or None when missing

        Returns:
            True if anything changed
        """
        if record.status == status and record.container_id == container_id:
            return False
        record.status = status
        record.container_id = container_id
        await self.session.flush()
        return True

    async def delete_by_id(self, id: str) -> bool:
        """
        Delete a record by id.

        Args:
            id: Record id

        Returns:
            True if a record was deleted
        """
        record = await self.get(id)
        if record is None:
            return False
        await self.delete(record)
        return True

"""
Attachment Repository

Provides database operations for attachment metadata and chunk rows.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dcmaint.models.enums import AttachmentStatus
from dcmaint.models.orm.attachment import FileChunk, FileRecord
from dcmaint.repositories.base import BaseRepository


class AttachmentRepository(BaseRepository[FileRecord]):
    """Repository for FileRecord and FileChunk operations."""

    model = FileRecord

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def list_files(
        self,
        *,
        search: str | None = None,
        category: str | None = None,
        include_incomplete: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[FileRecord], int]:
        """
        List attachment metadata, newest first.

        Args:
            search: Case-insensitive substring matched against the file name
            category: Exact category to match
            include_incomplete: Also return records still uploading
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Tuple of (records, total count)
        """
        filters = []
        if not include_incomplete:
            filters.append(FileRecord.status == AttachmentStatus.COMPLETED)
        if search:
            filters.append(func.lower(FileRecord.file_name).contains(search.lower(), autoescape=True))
        if category:
            filters.append(FileRecord.category == category)

        count_query = select(func.count(FileRecord.id)).where(*filters)
        total = (await self.session.execute(count_query)).scalar() or 0

        query = (
            select(FileRecord)
            .where(*filters)
            .order_by(FileRecord.uploaded_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def list_stale_uploads(self, cutoff: datetime) -> list[UUID]:
        """
        Get IDs of attachments still uploading that were created before cutoff.

        Args:
            cutoff: Records created at or after this instant are left alone

        Returns:
            List of attachment IDs, oldest first
        """
        result = await self.session.execute(
            select(FileRecord.id)
            .where(
                FileRecord.status == AttachmentStatus.UPLOADING,
                FileRecord.uploaded_at < cutoff,
            )
            .order_by(FileRecord.uploaded_at)
        )
        return list(result.scalars().all())

    async def set_status(self, file_id: UUID, status: AttachmentStatus) -> int:
        """Set the upload status of one record. Returns affected row count."""
        result = await self.session.execute(
            update(FileRecord).where(FileRecord.id == file_id).values(status=status)
        )
        return result.rowcount

    async def add_chunks(self, file_id: UUID, start_index: int, fragments: Sequence[str]) -> None:
        """
        Insert consecutive chunk rows starting at start_index.

        Args:
            file_id: Owning attachment
            start_index: Index of the first fragment
            fragments: Fragment texts in order
        """
        if not fragments:
            return
        await self.session.execute(
            insert(FileChunk),
            [
                {"file_id": file_id, "index": start_index + offset, "data": fragment}
                for offset, fragment in enumerate(fragments)
            ],
        )

    async def get_chunks(self, file_id: UUID) -> list[tuple[int, str]]:
        """
        Get all chunks of an attachment ordered by index.

        Returns:
            List of (index, data) tuples
        """
        result = await self.session.execute(
            select(FileChunk.index, FileChunk.data)
            .where(FileChunk.file_id == file_id)
            .order_by(FileChunk.index)
        )
        return [(row.index, row.data) for row in result.all()]

    async def delete_chunks(self, file_id: UUID) -> int:
        """Delete every chunk row of an attachment. Returns deleted row count."""
        result = await self.session.execute(delete(FileChunk).where(FileChunk.file_id == file_id))
        return result.rowcount

"""
Report Repositories

Provides database operations for maintenance documents, their photos and
corrective reports.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcmaint.models.contracts.report import PhotoCreate
from dcmaint.models.enums import CorrectiveStatus, DocumentType
from dcmaint.models.orm.report import CorrectiveReport, DocumentPhoto, MaintenanceDocument
from dcmaint.repositories.base import BaseRepository


class MaintenanceDocumentRepository(BaseRepository[MaintenanceDocument]):
    """Repository for MaintenanceDocument and DocumentPhoto operations."""

    model = MaintenanceDocument

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def list_documents(
        self,
        *,
        created_by: UUID | None = None,
        search: str | None = None,
        document_type: DocumentType | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        newest_first: bool = True,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[MaintenanceDocument], int]:
        """
        List maintenance documents.

        Args:
            created_by: Only documents created by this user
            search: Case-insensitive substring of the file name, maintenance
                name or creator email
            document_type: Only documents of this format
            created_from: Inclusive lower bound on created_at
            created_to: Exclusive upper bound on created_at
            newest_first: Sort direction on created_at
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Tuple of (documents, total count)
        """
        filters = []
        if created_by is not None:
            filters.append(MaintenanceDocument.created_by == created_by)
        if search:
            term = search.lower()
            filters.append(
                or_(
                    func.lower(MaintenanceDocument.file_name).contains(term, autoescape=True),
                    func.lower(MaintenanceDocument.maintenance_name).contains(term, autoescape=True),
                    func.lower(MaintenanceDocument.created_by_email).contains(term, autoescape=True),
                )
            )
        if document_type is not None:
            filters.append(MaintenanceDocument.document_type == document_type)
        if created_from is not None:
            filters.append(MaintenanceDocument.created_at >= created_from)
        if created_to is not None:
            filters.append(MaintenanceDocument.created_at < created_to)

        count_query = select(func.count(MaintenanceDocument.id)).where(*filters)
        total = (await self.session.execute(count_query)).scalar() or 0

        order = MaintenanceDocument.created_at.desc() if newest_first else MaintenanceDocument.created_at.asc()
        query = select(MaintenanceDocument).where(*filters).order_by(order).limit(limit).offset(offset)
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def add_photos(self, document_id: UUID, photos: Sequence[PhotoCreate]) -> None:
        """Insert the photo rows of a document."""
        if not photos:
            return
        await self.session.execute(
            insert(DocumentPhoto),
            [
                {
                    "document_id": document_id,
                    "index": photo.index,
                    "photo_data": photo.photo_data,
                    "description": photo.description,
                }
                for photo in photos
            ],
        )

    async def get_photos(self, document_id: UUID) -> list[DocumentPhoto]:
        """Get a document's photos ordered by card position."""
        result = await self.session.execute(
            select(DocumentPhoto)
            .where(DocumentPhoto.document_id == document_id)
            .order_by(DocumentPhoto.index)
        )
        return list(result.scalars().all())

    async def delete_document(self, document: MaintenanceDocument) -> int:
        """
        Delete a document and its photos.

        Returns:
            Number of photo rows removed
        """
        result = await self.session.execute(
            delete(DocumentPhoto).where(DocumentPhoto.document_id == document.id)
        )
        await self.delete(document)
        return result.rowcount

    async def get_stats(self) -> dict[str, int]:
        """Count documents per type and distinct creators."""
        type_counts = await self.session.execute(
            select(MaintenanceDocument.document_type, func.count(MaintenanceDocument.id))
            .group_by(MaintenanceDocument.document_type)
        )
        per_type = {DocumentType(doc_type): count for doc_type, count in type_counts.all()}
        users = await self.session.execute(
            select(func.count(func.distinct(MaintenanceDocument.created_by_email)))
        )
        return {
            "total_documents": sum(per_type.values()),
            "total_excel": per_type.get(DocumentType.EXCEL, 0),
            "total_pdf": per_type.get(DocumentType.PDF, 0),
            "total_users": users.scalar() or 0,
        }


class CorrectiveReportRepository(BaseRepository[CorrectiveReport]):
    """Repository for CorrectiveReport operations."""

    model = CorrectiveReport

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def list_reports(
        self,
        *,
        status: CorrectiveStatus | None = None,
        search: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[CorrectiveReport], int]:
        """
        List corrective reports, newest first.

        Args:
            status: Only reports in this status
            search: Case-insensitive substring of the issue, action or location

        Returns:
            Tuple of (reports, total count)
        """
        filters = []
        if status is not None:
            filters.append(CorrectiveReport.status == status)
        if search:
            term = search.lower()
            filters.append(
                or_(
                    func.lower(CorrectiveReport.issue).contains(term, autoescape=True),
                    func.lower(CorrectiveReport.action_taken).contains(term, autoescape=True),
                    func.lower(CorrectiveReport.location).contains(term, autoescape=True),
                )
            )

        count_query = select(func.count(CorrectiveReport.id)).where(*filters)
        total = (await self.session.execute(count_query)).scalar() or 0

        query = (
            select(CorrectiveReport)
            .where(*filters)
            .order_by(CorrectiveReport.reported_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

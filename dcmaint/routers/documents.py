"""
Maintenance Documents Router

Provides endpoints for exported maintenance report records:
- Recording an exported Excel or PDF report with its photos
- Listing a user's own reports, or every report for admins
- Admin dashboard totals
- Fetching a report with its photos for regeneration
- Delete (owner or admin)
"""

import logging
from datetime import date
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from dcmaint.config import get_settings
from dcmaint.core.auth import CurrentActiveUser, RequireAdmin, UserPrincipal
from dcmaint.core.database import DbSession
from dcmaint.models.contracts.report import (
    DocumentCreate,
    DocumentDetail,
    DocumentList,
    DocumentPublic,
    DocumentStats,
    PhotoPublic,
)
from dcmaint.models.enums import DateRange, DocumentType
from dcmaint.models.orm.report import MaintenanceDocument
from dcmaint.repositories.report import MaintenanceDocumentRepository
from dcmaint.services.report_filters import date_window
from dcmaint.services.upload_validation import validate_photo_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])

ALL_TYPES = "all"


async def get_owned_document(
    repo: MaintenanceDocumentRepository,
    document_id: UUID,
    user: UserPrincipal,
) -> MaintenanceDocument:
    """
    Load a document the user may see.

    Raises:
        HTTPException: 404 if it does not exist, 403 if it belongs to
            someone else and the user is not an admin
    """
    document = await repo.get_by_id(document_id)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    if document.created_by != user.user_id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the creator or an admin can access this document",
        )
    return document


@router.get("", response_model=DocumentList)
async def list_documents(
    current_user: CurrentActiveUser,
    db: DbSession,
    search: str | None = Query(None, description="Match on file name, maintenance name or creator email"),
    document_type: Literal["all", "excel", "pdf"] = Query(ALL_TYPES),
    date_range: DateRange = Query(DateRange.ALL),
    start_date: date | None = Query(None, description="First day of a custom range"),
    end_date: date | None = Query(None, description="Last day of a custom range, included"),
    sort: Literal["newest", "oldest"] = Query("newest"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> DocumentList:
    """
    List maintenance documents.

    Admins see every user's documents; everyone else sees their own.
    """
    try:
        created_from, created_to = date_window(date_range, start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    documents, total = await MaintenanceDocumentRepository(db).list_documents(
        created_by=None if current_user.is_admin else current_user.user_id,
        search=search.strip() if search else None,
        document_type=None if document_type == ALL_TYPES else DocumentType(document_type),
        created_from=created_from,
        created_to=created_to,
        newest_first=sort == "newest",
        limit=limit,
        offset=offset,
    )
    return DocumentList(
        items=[DocumentPublic.model_validate(d) for d in documents],
        total=total,
    )


@router.get("/stats", response_model=DocumentStats)
async def get_document_stats(current_user: RequireAdmin, db: DbSession) -> DocumentStats:
    """Get dashboard totals across all users."""
    stats = await MaintenanceDocumentRepository(db).get_stats()
    return DocumentStats(**stats)


@router.post("", response_model=DocumentPublic, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    current_user: CurrentActiveUser,
    db: DbSession,
) -> DocumentPublic:
    """
    Record an exported maintenance report.

    Raises:
        UploadValidationError: If a photo is not an image or is too large
    """
    max_chars = get_settings().attachment_record_ceiling
    for i, photo in enumerate(document_data.photos):
        validate_photo_data(photo.photo_data, max_chars, field=f"photos[{i}]")

    repo = MaintenanceDocumentRepository(db)
    document = await repo.create(
        MaintenanceDocument(
            document_type=document_data.document_type,
            file_name=document_data.file_name,
            maintenance_name=document_data.maintenance_name,
            maintenance_time=document_data.maintenance_time,
            specific_detail=document_data.specific_detail,
            file_size=document_data.file_size,
            total_photos=document_data.total_photos,
            photos_with_image=len(document_data.photos),
            created_by=current_user.user_id,
            created_by_email=current_user.email,
        )
    )
    await repo.add_photos(document.id, document_data.photos)

    logger.info(
        f"Recorded {document_data.document_type.value} report {document.file_name}",
        extra={
            "document_id": str(document.id),
            "user_id": str(current_user.user_id),
            "photos": len(document_data.photos),
        },
    )
    return DocumentPublic.model_validate(document)


@router.get("/{document_id}", response_model=DocumentDetail)
async def get_document(
    document_id: UUID,
    current_user: CurrentActiveUser,
    db: DbSession,
) -> DocumentDetail:
    """Get a document with its photos."""
    repo = MaintenanceDocumentRepository(db)
    document = await get_owned_document(repo, document_id, current_user)
    photos = await repo.get_photos(document.id)
    return DocumentDetail(
        **DocumentPublic.model_validate(document).model_dump(),
        photos=[PhotoPublic.model_validate(p) for p in photos],
    )


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    current_user: CurrentActiveUser,
    db: DbSession,
) -> None:
    """Delete a document and its photos."""
    repo = MaintenanceDocumentRepository(db)
    document = await get_owned_document(repo, document_id, current_user)
    photo_count = await repo.delete_document(document)

    logger.info(
        f"Deleted document {document_id}",
        extra={
            "document_id": str(document_id),
            "user_id": str(current_user.user_id),
            "photos": photo_count,
        },
    )

"""
Attachments Router

Provides endpoints for maintenance document attachments:
- List and search attachments
- Upload (admin only)
- Download
- Delete (admin only)
"""

import logging
from typing import Annotated
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status

from dcmaint.config import get_settings
from dcmaint.core.auth import CurrentActiveUser, RequireAdmin
from dcmaint.core.database import DbSession
from dcmaint.core.pubsub import publish_files_changed
from dcmaint.models.contracts.attachment import (
    AttachmentCreate,
    AttachmentList,
    AttachmentPublic,
    CategoryList,
)
from dcmaint.models.enums import FileCategory
from dcmaint.repositories.attachment import AttachmentRepository
from dcmaint.services.attachment_store import AttachmentStore, get_attachment_store
from dcmaint.services.upload_validation import (
    resolve_category,
    resolve_content_type,
    validate_content_type,
    validate_size,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["attachments"])

Store = Annotated[AttachmentStore, Depends(get_attachment_store)]

ALL_CATEGORIES = "All"


def content_disposition(filename: str) -> str:
    """Build an attachment Content-Disposition header safe for non-ASCII names."""
    ascii_name = filename.encode("ascii", "replace").decode().replace('"', "'")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.get("", response_model=AttachmentList)
async def list_files(
    current_user: CurrentActiveUser,
    db: DbSession,
    search: str | None = Query(None, description="Case-insensitive file name match"),
    category: str | None = Query(None, description="Category filter; 'All' disables it"),
    include_incomplete: bool = Query(False, description="Include uploads still in progress (admin only)"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> AttachmentList:
    """List attachments, newest first."""
    if category == ALL_CATEGORIES:
        category = None

    records, total = await AttachmentRepository(db).list_files(
        search=search,
        category=category,
        include_incomplete=include_incomplete and current_user.is_admin,
        limit=limit,
        offset=offset,
    )
    return AttachmentList(
        items=[AttachmentPublic.model_validate(r) for r in records],
        total=total,
    )


@router.get("/categories", response_model=CategoryList)
async def list_categories(current_user: CurrentActiveUser) -> CategoryList:
    """List the fixed attachment categories."""
    return CategoryList(
        categories=[c.value for c in FileCategory if c != FileCategory.CUSTOM],
        custom_marker=FileCategory.CUSTOM.value,
    )


@router.post("", response_model=AttachmentPublic, status_code=status.HTTP_201_CREATED)
async def upload_file(
    current_user: RequireAdmin,
    store: Store,
    file: UploadFile = File(...),
    category: str = Form(FileCategory.DAILY_REPORT.value),
    custom_category: str | None = Form(None),
    description: str | None = Form(None),
) -> AttachmentPublic:
    """
    Upload a document.

    The file is stored in chunks; it only shows up in listings once every
    chunk has been written.

    Raises:
        UploadValidationError: If the type, size or category is rejected
        HTTPException: If storing the file fails
    """
    settings = get_settings()
    max_bytes = settings.attachment_max_upload_bytes
    filename = file.filename or "upload"

    content_type = resolve_content_type(filename, file.content_type)
    validate_content_type(content_type)
    if file.size is not None:
        validate_size(file.size, max_bytes)

    content = await file.read(max_bytes + 1)
    validate_size(len(content), max_bytes)

    stored_category, custom = resolve_category(category, custom_category)

    metadata = AttachmentCreate(
        file_name=filename,
        file_type=content_type,
        file_size=len(content),
        category=stored_category,
        custom_category=custom,
        description=description.strip() if description and description.strip() else None,
        uploaded_by=current_user.user_id,
        uploaded_by_email=current_user.email,
    )

    try:
        attachment_id = await store.write(metadata, content)
    except Exception as e:
        logger.error(f"Failed to upload {filename}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to upload file",
        ) from e

    record = await store.get(attachment_id)
    await publish_files_changed("created", attachment_id)

    logger.info(
        f"Uploaded attachment {filename}",
        extra={"attachment_id": str(attachment_id), "user_id": str(current_user.user_id)},
    )
    return AttachmentPublic.model_validate(record)


@router.get("/{file_id}", response_model=AttachmentPublic)
async def get_file(file_id: UUID, current_user: CurrentActiveUser, store: Store) -> AttachmentPublic:
    """Get attachment metadata."""
    record = await store.get(file_id)
    return AttachmentPublic.model_validate(record)


@router.get("/{file_id}/download")
async def download_file(file_id: UUID, current_user: CurrentActiveUser, store: Store) -> Response:
    """
    Download an attachment's content.

    Raises:
        AttachmentNotFoundError: If the attachment does not exist
        AttachmentUnavailableError: If its data is incomplete
    """
    record, content = await store.read(file_id)
    return Response(
        content=content,
        media_type=record.file_type,
        headers={"Content-Disposition": content_disposition(record.file_name)},
    )


@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(file_id: UUID, current_user: RequireAdmin, store: Store) -> None:
    """Delete an attachment and all of its chunks."""
    await store.delete(file_id)
    await publish_files_changed("deleted", file_id)

    logger.info(
        f"Deleted attachment {file_id}",
        extra={"attachment_id": str(file_id), "user_id": str(current_user.user_id)},
    )

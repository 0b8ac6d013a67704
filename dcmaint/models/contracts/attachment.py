"""
Attachment contracts (API request/response schemas).
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from dcmaint.models.enums import AttachmentStatus


class AttachmentCreate(BaseModel):
    """Metadata captured for a new attachment before its payload is stored."""

    file_name: str = Field(..., max_length=255, description="Original filename")
    file_type: str = Field(..., max_length=255, description="MIME type")
    file_size: int = Field(..., ge=0, description="File size in bytes")
    category: str = Field(..., min_length=1, max_length=255, description="Resolved category")
    custom_category: str | None = Field(None, max_length=255)
    description: str | None = Field(None, description="Optional free text")
    uploaded_by: UUID = Field(..., description="ID of the uploading user")
    uploaded_by_email: str = Field(..., max_length=320)


class AttachmentPublic(BaseModel):
    """Attachment metadata response model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    file_name: str
    file_type: str
    file_size: int
    category: str
    custom_category: str | None = None
    description: str | None = None
    uploaded_by: UUID
    uploaded_by_email: str
    uploaded_at: datetime
    total_chunks: int
    status: AttachmentStatus


class AttachmentList(BaseModel):
    """List of attachments response."""

    items: list[AttachmentPublic]
    total: int


class FileListSnapshot(AttachmentList):
    """Full attachment list pushed to live subscribers."""

    type: Literal["snapshot"] = "snapshot"
    taken_at: datetime


class CategoryList(BaseModel):
    """Fixed attachment categories, including the free-text marker."""

    categories: list[str]
    custom_marker: str

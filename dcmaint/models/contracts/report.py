"""
Maintenance report contracts (API request/response schemas).
"""

from datetime import UTC, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dcmaint.models.enums import CorrectiveStatus, DocumentType

# =============================================================================
# Maintenance Documents
# =============================================================================


class PhotoCreate(BaseModel):
    """Evidence photo attached to a new maintenance document."""

    model_config = ConfigDict(extra="forbid")

    index: int = Field(..., ge=1, description="1-based card position")
    photo_data: str = Field(..., description="Image as a base64 data URL")
    description: str = Field("", max_length=1000)


class PhotoPublic(BaseModel):
    """Evidence photo response model."""

    model_config = ConfigDict(from_attributes=True)

    index: int
    photo_data: str
    description: str


class DocumentCreate(BaseModel):
    """Record of an exported maintenance report."""

    model_config = ConfigDict(extra="forbid")

    document_type: DocumentType
    file_name: str = Field(..., min_length=1, max_length=255)
    maintenance_name: str = Field(..., min_length=1, max_length=255)
    maintenance_time: datetime
    specific_detail: str | None = Field(None, max_length=255)
    file_size: int = Field(0, ge=0, description="Size of the rendered file in bytes")
    total_photos: int = Field(0, ge=0, description="Filled photo cards, with or without an image")
    photos: list[PhotoCreate] = Field(default_factory=list)

    @field_validator("maintenance_name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Maintenance name is required")
        return v.strip()

    @field_validator("specific_detail")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("maintenance_time")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Browsers send local times without an offset; store them as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @model_validator(mode="after")
    def check_photos(self) -> "DocumentCreate":
        indices = [p.index for p in self.photos]
        if len(indices) != len(set(indices)):
            raise ValueError("Photo positions must be unique")
        if self.total_photos < len(self.photos):
            raise ValueError("total_photos cannot be less than the number of photos")
        return self


class DocumentPublic(BaseModel):
    """Maintenance document metadata response model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_type: DocumentType
    file_name: str
    maintenance_name: str
    maintenance_time: datetime
    specific_detail: str | None = None
    file_size: int
    total_photos: int
    photos_with_image: int
    created_by: UUID
    created_by_email: str
    created_at: datetime


class DocumentDetail(DocumentPublic):
    """Maintenance document with its photos, enough to regenerate the report."""

    photos: list[PhotoPublic]


class DocumentList(BaseModel):
    """List of maintenance documents response."""

    items: list[DocumentPublic]
    total: int


class DocumentStats(BaseModel):
    """Totals shown on the admin dashboard."""

    total_documents: int
    total_excel: int
    total_pdf: int
    total_users: int


# =============================================================================
# Corrective Reports
# =============================================================================


class CorrectiveReportCreate(BaseModel):
    """Corrective maintenance report creation request."""

    model_config = ConfigDict(extra="forbid")

    issue: str = Field(..., max_length=5000)
    action_taken: str = Field(..., max_length=5000)
    spare_parts: str = Field("", max_length=5000)
    status: CorrectiveStatus = CorrectiveStatus.OPEN
    location: str = Field(..., max_length=255)
    photo_data: str = Field(..., description="Evidence image as a base64 data URL")
    photo_description: str = Field("", max_length=1000)

    @field_validator("issue", "action_taken", "location")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Issue, action and location must not be blank."""
        if not v.strip():
            raise ValueError("Issue, action and location are required")
        return v.strip()


class CorrectiveReportPublic(BaseModel):
    """Corrective report response model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    issue: str
    action_taken: str
    spare_parts: str
    status: CorrectiveStatus
    location: str
    photo_data: str
    photo_description: str
    reported_by: UUID
    reported_by_email: str
    reported_at: datetime


class CorrectiveReportList(BaseModel):
    """List of corrective reports response."""

    items: list[CorrectiveReportPublic]
    total: int


class CorrectiveReportSnapshot(CorrectiveReportList):
    """Full corrective report list pushed to live subscribers."""

    type: Literal["snapshot"] = "snapshot"
    taken_at: datetime

"""
Maintenance report ORM models.

A maintenance document records one exported Excel or PDF report. The
rendered file itself is not kept: its evidence photos are, one row each in
``document_photos``, so an admin can regenerate the report later. Corrective
reports carry a single evidence photo inline.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from dcmaint.models.enums import CorrectiveStatus, DocumentType
from dcmaint.models.orm.base import Base


class MaintenanceDocument(Base):
    """Exported maintenance report metadata."""

    __tablename__ = "maintenance_documents"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    document_type: Mapped[DocumentType] = mapped_column(String(10), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    maintenance_name: Mapped[str] = mapped_column(String(255), nullable=False)
    maintenance_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Unit or room the work covered; older reports have none
    specific_detail: Mapped[str | None] = mapped_column(String(255), default=None)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_photos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    photos_with_image: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_by: Mapped[UUID] = mapped_column(nullable=False)
    created_by_email: Mapped[str] = mapped_column(String(320), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_maintenance_documents_created_at", "created_at"),
        Index("ix_maintenance_documents_created_by", "created_by", "created_at"),
    )


class DocumentPhoto(Base):
    """One evidence photo of a maintenance document."""

    __tablename__ = "document_photos"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    document_id: Mapped[UUID] = mapped_column(
        ForeignKey("maintenance_documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    # 1-based card position in the report layout
    index: Mapped[int] = mapped_column(Integer, nullable=False)
    photo_data: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (UniqueConstraint("document_id", "index", name="uq_document_photos_position"),)


class CorrectiveReport(Base):
    """Corrective maintenance report raised by a standby engineer."""

    __tablename__ = "corrective_reports"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    issue: Mapped[str] = mapped_column(Text, nullable=False)
    action_taken: Mapped[str] = mapped_column(Text, nullable=False)
    spare_parts: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[CorrectiveStatus] = mapped_column(
        String(20), nullable=False, default=CorrectiveStatus.OPEN
    )
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    photo_data: Mapped[str] = mapped_column(Text, nullable=False)
    photo_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reported_by: Mapped[UUID] = mapped_column(nullable=False)
    reported_by_email: Mapped[str] = mapped_column(String(320), nullable=False)
    reported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )

    __table_args__ = (Index("ix_corrective_reports_reported_at", "reported_at"),)

"""
Attachment ORM models.

An attachment is one metadata row in ``files`` plus ``total_chunks`` rows in
``file_chunks`` holding consecutive slices of the base64 data URL.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from dcmaint.models.enums import AttachmentStatus
from dcmaint.models.orm.base import Base


class FileRecord(Base):
    """Attachment metadata table."""

    __tablename__ = "files"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    custom_category: Mapped[str | None] = mapped_column(String(255), default=None)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    uploaded_by: Mapped[UUID] = mapped_column(nullable=False)
    uploaded_by_email: Mapped[str] = mapped_column(String(320), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )
    total_chunks: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[AttachmentStatus] = mapped_column(
        String(20), nullable=False, default=AttachmentStatus.UPLOADING
    )

    __table_args__ = (
        Index("ix_files_uploaded_at", "uploaded_at"),
        Index("ix_files_status_uploaded_at", "status", "uploaded_at"),
    )


class FileChunk(Base):
    """One slice of an attachment's encoded payload."""

    __tablename__ = "file_chunks"

    file_id: Mapped[UUID] = mapped_column(
        ForeignKey("files.id", ondelete="CASCADE"),
        primary_key=True,
    )
    index: Mapped[int] = mapped_column(Integer, primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)

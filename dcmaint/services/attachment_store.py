"""
Chunked attachment storage.

Stores each attachment as one metadata row plus ordered chunk rows:

- write: commit metadata as ``uploading``, commit chunks in bounded batches
  in index order, then flip the status to ``completed``
- read: load every chunk in one transaction and refuse anything that is not
  a complete, contiguous set
- delete: remove chunks and metadata in a single transaction
- sweep_orphans: delete uploads stuck in ``uploading`` past a timeout

A failed write leaves its metadata row ``uploading`` with whatever chunks
were committed; sweep_orphans reclaims those. A write whose record is deleted
under it (by the sweep or an admin) fails with AttachmentNotFoundError and
leaves no chunk rows behind.
"""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dcmaint.config import Settings, get_settings
from dcmaint.core.database import get_session_factory
from dcmaint.models.contracts.attachment import AttachmentCreate
from dcmaint.models.enums import AttachmentStatus
from dcmaint.models.orm.attachment import FileRecord
from dcmaint.repositories.attachment import AttachmentRepository
from dcmaint.services.chunking import (
    PayloadDecodeError,
    decode_data_url,
    encode_data_url,
    split_fragments,
)

logger = logging.getLogger(__name__)


class AttachmentError(Exception):
    """Base exception for attachment storage failures."""

    def __init__(self, message: str, attachment_id: UUID | None = None):
        self.attachment_id = attachment_id
        super().__init__(message)


class AttachmentNotFoundError(AttachmentError):
    """No metadata record exists for the attachment."""


class AttachmentUnavailableError(AttachmentError):
    """The attachment exists but its data cannot be served in full."""


class AttachmentStore:
    """Chunked attachment storage over an async session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        chunk_size: int,
        batch_size: int,
    ):
        """
        Args:
            session_factory: Factory for sessions; each atomic group gets its own
            chunk_size: Characters of encoded payload per chunk row
            batch_size: Maximum chunk rows committed per transaction
        """
        if chunk_size <= 0 or batch_size <= 0:
            raise ValueError("chunk_size and batch_size must be positive")
        self._session_factory = session_factory
        self.chunk_size = chunk_size
        self.batch_size = batch_size

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ) -> "AttachmentStore":
        settings = settings or get_settings()
        return cls(
            session_factory,
            chunk_size=settings.attachment_chunk_size,
            batch_size=settings.attachment_batch_size,
        )

    async def write(self, metadata: AttachmentCreate, content: bytes) -> UUID:
        """
        Store an attachment.

        Args:
            metadata: Descriptive fields for the metadata row
            content: Raw file bytes

        Returns:
            ID of the new attachment

        Raises:
            AttachmentNotFoundError: If the record was deleted while the upload
                was in flight, e.g. by the orphan sweep
            Exception: Whatever else the database raised; remaining batches are
                skipped and the record stays ``uploading``
        """
        payload = encode_data_url(content, metadata.file_type)
        fragments = split_fragments(payload, self.chunk_size)

        async with self._session_factory() as session, session.begin():
            record = FileRecord(
                **metadata.model_dump(),
                total_chunks=len(fragments),
                status=AttachmentStatus.UPLOADING,
            )
            session.add(record)
            await session.flush()
            attachment_id = record.id

        logger.info(
            f"Started attachment upload: {metadata.file_name}",
            extra={
                "attachment_id": str(attachment_id),
                "total_chunks": len(fragments),
                "file_size": metadata.file_size,
            },
        )

        for start in range(0, len(fragments), self.batch_size):
            batch = fragments[start:start + self.batch_size]
            try:
                await self._write_batch(attachment_id, start, batch)
            except IntegrityError as e:
                if await self._exists(attachment_id):
                    raise
                raise AttachmentNotFoundError(
                    "Attachment was deleted during upload", attachment_id
                ) from e
            logger.debug(
                f"Committed chunks {start}-{start + len(batch) - 1} of {len(fragments)}",
                extra={"attachment_id": str(attachment_id)},
            )

        async with self._session_factory() as session, session.begin():
            repo = AttachmentRepository(session)
            completed = await repo.set_status(attachment_id, AttachmentStatus.COMPLETED) == 1
            if not completed:
                # Chunks written after the record vanished have no owner left
                await repo.delete_chunks(attachment_id)

        if not completed:
            logger.warning(
                f"Attachment {attachment_id} was deleted before its upload completed",
                extra={"attachment_id": str(attachment_id)},
            )
            raise AttachmentNotFoundError("Attachment was deleted during upload", attachment_id)

        logger.info(
            f"Completed attachment upload: {metadata.file_name}",
            extra={"attachment_id": str(attachment_id)},
        )
        return attachment_id

    async def _write_batch(self, attachment_id: UUID, start: int, fragments: Sequence[str]) -> None:
        """Commit one batch of chunk rows atomically."""
        async with self._session_factory() as session, session.begin():
            await AttachmentRepository(session).add_chunks(attachment_id, start, fragments)

    async def _exists(self, attachment_id: UUID) -> bool:
        async with self._session_factory() as session:
            return await AttachmentRepository(session).get_by_id(attachment_id) is not None

    async def get(self, attachment_id: UUID) -> FileRecord:
        """
        Get attachment metadata.

        Raises:
            AttachmentNotFoundError: If no record exists
        """
        async with self._session_factory() as session:
            record = await AttachmentRepository(session).get_by_id(attachment_id)
        if record is None:
            raise AttachmentNotFoundError("Attachment not found", attachment_id)
        return record

    async def read(self, attachment_id: UUID) -> tuple[FileRecord, bytes]:
        """
        Reassemble an attachment's content.

        Returns:
            Tuple of (metadata record, file bytes)

        Raises:
            AttachmentNotFoundError: If no record exists
            AttachmentUnavailableError: If the upload is incomplete, chunks are
                missing, or the payload does not decode
        """
        async with self._session_factory() as session, session.begin():
            repo = AttachmentRepository(session)
            record = await repo.get_by_id(attachment_id)
            if record is None:
                raise AttachmentNotFoundError("Attachment not found", attachment_id)
            if record.status != AttachmentStatus.COMPLETED:
                raise AttachmentUnavailableError(
                    "Attachment upload is not complete", attachment_id
                )
            total_chunks = record.total_chunks
            chunks = await repo.get_chunks(attachment_id)

        if not chunks:
            raise AttachmentUnavailableError("File data not found", attachment_id)

        indices = [index for index, _ in chunks]
        if indices != list(range(total_chunks)):
            logger.warning(
                f"Attachment {attachment_id} has {len(chunks)} of {total_chunks} chunks",
                extra={"attachment_id": str(attachment_id)},
            )
            raise AttachmentUnavailableError("File data is incomplete", attachment_id)

        try:
            content, _ = decode_data_url("".join(data for _, data in chunks))
        except PayloadDecodeError as e:
            logger.error(f"Attachment {attachment_id} payload is corrupt: {e}")
            raise AttachmentUnavailableError("File data is corrupt", attachment_id) from e

        return record, content

    async def delete(self, attachment_id: UUID) -> int:
        """
        Delete an attachment's chunks and metadata in one transaction.

        Returns:
            Number of chunk rows removed

        Raises:
            AttachmentNotFoundError: If no record exists
        """
        async with self._session_factory() as session, session.begin():
            repo = AttachmentRepository(session)
            record = await repo.get_by_id(attachment_id)
            if record is None:
                raise AttachmentNotFoundError("Attachment not found", attachment_id)
            file_name = record.file_name
            removed = await repo.delete_chunks(attachment_id)
            await repo.delete(record)

        logger.info(
            f"Deleted attachment: {file_name}",
            extra={"attachment_id": str(attachment_id), "chunks_removed": removed},
        )
        return removed

    async def sweep_orphans(self, older_than: timedelta) -> list[UUID]:
        """
        Delete uploads that never reached ``completed``.

        Args:
            older_than: Minimum age of an ``uploading`` record before it is swept

        Returns:
            IDs of the attachments that were deleted
        """
        cutoff = datetime.now(UTC) - older_than
        async with self._session_factory() as session:
            stale_ids = await AttachmentRepository(session).list_stale_uploads(cutoff)

        swept: list[UUID] = []
        for attachment_id in stale_ids:
            try:
                await self.delete(attachment_id)
            except AttachmentNotFoundError:
                # Deleted concurrently
                continue
            except Exception as e:
                logger.error(f"Failed to sweep orphaned upload {attachment_id}: {e}", exc_info=True)
                continue
            swept.append(attachment_id)

        if stale_ids:
            logger.info(
                f"Swept {len(swept)} of {len(stale_ids)} orphaned uploads older than {cutoff}",
                extra={"swept": len(swept), "cutoff": cutoff.isoformat()},
            )
        return swept


# Module-level singleton for convenience
_attachment_store: AttachmentStore | None = None


def get_attachment_store() -> AttachmentStore:
    """Get the attachment store singleton bound to the application database."""
    global _attachment_store
    if _attachment_store is None:
        _attachment_store = AttachmentStore.from_settings(get_session_factory())
    return _attachment_store


def reset_attachment_store() -> None:
    """Reset the attachment store singleton (for testing)."""
    global _attachment_store
    _attachment_store = None

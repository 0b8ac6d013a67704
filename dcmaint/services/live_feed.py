"""
Live lists.

Turns change events into lazy sequences of full list snapshots: the
attachment list on the "files" topic and the corrective report list on the
"corrective_reports" topic. Each call to a snapshot generator is an
independent subscription; a consumer that reconnects simply starts a new one
and receives a fresh initial snapshot.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dcmaint.core.pubsub import CORRECTIVE_TOPIC, FILES_TOPIC, ChangeFeed
from dcmaint.models.contracts.attachment import AttachmentPublic, FileListSnapshot
from dcmaint.models.contracts.report import CorrectiveReportPublic, CorrectiveReportSnapshot
from dcmaint.repositories.attachment import AttachmentRepository
from dcmaint.repositories.report import CorrectiveReportRepository

SNAPSHOT_LIMIT = 500

SnapshotT = TypeVar("SnapshotT")


async def load_file_snapshot(
    session_factory: async_sessionmaker[AsyncSession],
    limit: int = SNAPSHOT_LIMIT,
) -> FileListSnapshot:
    """Load the completed attachments, newest first."""
    async with session_factory() as session:
        records, total = await AttachmentRepository(session).list_files(limit=limit)
    return FileListSnapshot(
        items=[AttachmentPublic.model_validate(r) for r in records],
        total=total,
        taken_at=datetime.now(UTC),
    )


async def load_corrective_snapshot(
    session_factory: async_sessionmaker[AsyncSession],
    limit: int = SNAPSHOT_LIMIT,
) -> CorrectiveReportSnapshot:
    """Load the corrective reports, newest first."""
    async with session_factory() as session:
        reports, total = await CorrectiveReportRepository(session).list_reports(limit=limit)
    return CorrectiveReportSnapshot(
        items=[CorrectiveReportPublic.model_validate(r) for r in reports],
        total=total,
        taken_at=datetime.now(UTC),
    )


async def _snapshots(
    feed: ChangeFeed,
    topic: str,
    load: Callable[[], Awaitable[SnapshotT]],
) -> AsyncGenerator[SnapshotT, None]:
    # Subscribe before the first load so no change between the two is lost
    async with feed.subscribe(topic) as queue:
        yield await load()
        while True:
            await queue.get()
            yield await load()


def file_snapshots(
    feed: ChangeFeed,
    session_factory: async_sessionmaker[AsyncSession],
    limit: int = SNAPSHOT_LIMIT,
) -> AsyncGenerator[FileListSnapshot, None]:
    """Yield the current attachment list, then a new full list after every change."""
    return _snapshots(feed, FILES_TOPIC, lambda: load_file_snapshot(session_factory, limit))


def corrective_snapshots(
    feed: ChangeFeed,
    session_factory: async_sessionmaker[AsyncSession],
    limit: int = SNAPSHOT_LIMIT,
) -> AsyncGenerator[CorrectiveReportSnapshot, None]:
    """Yield the current corrective report list, then a new one after every change."""
    return _snapshots(feed, CORRECTIVE_TOPIC, lambda: load_corrective_snapshot(session_factory, limit))

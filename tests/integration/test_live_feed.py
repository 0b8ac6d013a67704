"""
Integration tests for the live list feeds.
"""

import asyncio

import pytest

from dcmaint.core.pubsub import (
    CORRECTIVE_TOPIC,
    FILES_TOPIC,
    ChangeEvent,
    ChangeFeed,
    get_change_feed,
    publish_corrective_changed,
    publish_files_changed,
)
from dcmaint.models.contracts.attachment import AttachmentCreate
from dcmaint.models.enums import CorrectiveStatus
from dcmaint.models.orm.report import CorrectiveReport
from dcmaint.services.live_feed import (
    corrective_snapshots,
    file_snapshots,
    load_corrective_snapshot,
    load_file_snapshot,
)


async def write_file(store, principal, name: str):
    metadata = AttachmentCreate(
        file_name=name,
        file_type="application/pdf",
        file_size=3,
        category="MOP",
        uploaded_by=principal.user_id,
        uploaded_by_email=principal.email,
    )
    return await store.write(metadata, b"pdf")


@pytest.mark.integration
class TestLoadFileSnapshot:
    """Tests for load_file_snapshot."""

    async def test_empty_snapshot(self, session_factory):
        snapshot = await load_file_snapshot(session_factory)

        assert snapshot.type == "snapshot"
        assert snapshot.items == []
        assert snapshot.total == 0

    async def test_snapshot_lists_completed_files(self, session_factory, store, admin_principal):
        await write_file(store, admin_principal, "mop-1.pdf")

        snapshot = await load_file_snapshot(session_factory)

        assert [item.file_name for item in snapshot.items] == ["mop-1.pdf"]
        dumped = snapshot.model_dump(mode="json")
        assert dumped["type"] == "snapshot"
        assert dumped["items"][0]["status"] == "completed"

    async def test_snapshot_respects_limit(self, session_factory, store, admin_principal):
        for i in range(3):
            await write_file(store, admin_principal, f"mop-{i}.pdf")

        snapshot = await load_file_snapshot(session_factory, limit=2)

        assert len(snapshot.items) == 2
        assert snapshot.total == 3


@pytest.mark.integration
class TestFileSnapshots:
    """Tests for the file_snapshots subscription."""

    async def test_initial_snapshot_then_one_per_change(self, session_factory, store, admin_principal):
        feed = ChangeFeed()
        snapshots = file_snapshots(feed, session_factory)

        try:
            first = await asyncio.wait_for(anext(snapshots), timeout=1)
            assert first.total == 0
            assert feed.get_subscriber_count(FILES_TOPIC) == 1

            file_id = await write_file(store, admin_principal, "mop-1.pdf")
            await feed.publish(ChangeEvent(topic=FILES_TOPIC, action="created"))
            second = await asyncio.wait_for(anext(snapshots), timeout=1)
            assert [item.id for item in second.items] == [file_id]

            await store.delete(file_id)
            await feed.publish(ChangeEvent(topic=FILES_TOPIC, action="deleted"))
            third = await asyncio.wait_for(anext(snapshots), timeout=1)
            assert third.total == 0
        finally:
            await snapshots.aclose()

        assert feed.get_subscriber_count(FILES_TOPIC) == 0

    async def test_burst_of_changes_yields_one_fresh_snapshot(
        self, session_factory, store, admin_principal
    ):
        feed = get_change_feed()
        snapshots = file_snapshots(feed, session_factory)

        try:
            await asyncio.wait_for(anext(snapshots), timeout=1)

            for i in range(3):
                await write_file(store, admin_principal, f"mop-{i}.pdf")
                await publish_files_changed("created")

            latest = await asyncio.wait_for(anext(snapshots), timeout=1)
            assert latest.total == 3

            # The burst was coalesced; nothing else is pending
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(anext(snapshots), timeout=0.1)
        finally:
            await snapshots.aclose()

    async def test_closing_unsubscribes(self, session_factory):
        feed = ChangeFeed()
        snapshots = file_snapshots(feed, session_factory)

        await anext(snapshots)
        await snapshots.aclose()

        assert feed.get_subscriber_count(FILES_TOPIC) == 0


async def add_report(session_factory, principal, issue: str) -> CorrectiveReport:
    async with session_factory() as session:
        report = CorrectiveReport(
            issue=issue,
            action_taken="Replaced breaker",
            location="UPS Room 2",
            photo_data="data:image/png;base64,iVBORw0KGgo=",
            reported_by=principal.user_id,
            reported_by_email=principal.email,
        )
        session.add(report)
        await session.commit()
        return report


@pytest.mark.integration
class TestCorrectiveSnapshots:
    """Tests for the corrective report feed."""

    async def test_snapshot_lists_reports(self, session_factory, standby_principal):
        await add_report(session_factory, standby_principal, "Tripped breaker")

        snapshot = await load_corrective_snapshot(session_factory)

        assert snapshot.total == 1
        dumped = snapshot.model_dump(mode="json")
        assert dumped["type"] == "snapshot"
        assert dumped["items"][0]["issue"] == "Tripped breaker"
        assert dumped["items"][0]["status"] == CorrectiveStatus.OPEN.value

    async def test_refreshes_on_corrective_changes_only(self, session_factory, standby_principal):
        feed = get_change_feed()
        snapshots = corrective_snapshots(feed, session_factory)

        try:
            first = await asyncio.wait_for(anext(snapshots), timeout=1)
            assert first.total == 0
            assert feed.get_subscriber_count(CORRECTIVE_TOPIC) == 1

            await publish_files_changed("created")
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(anext(snapshots), timeout=0.1)
        finally:
            await snapshots.aclose()

        snapshots = corrective_snapshots(feed, session_factory)
        try:
            await anext(snapshots)
            report = await add_report(session_factory, standby_principal, "Leaking CRAC unit")
            await publish_corrective_changed("created", report.id)

            second = await asyncio.wait_for(anext(snapshots), timeout=1)
            assert [item.id for item in second.items] == [report.id]
        finally:
            await snapshots.aclose()

        assert feed.get_subscriber_count(CORRECTIVE_TOPIC) == 0

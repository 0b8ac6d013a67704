"""
arq Worker Configuration.

Runs scheduled maintenance for the attachment store: uploads that never
reached ``completed`` are swept once they are older than the configured
timeout.

Run the worker with:
    arq dcmaint.worker.WorkerSettings
"""

import logging
from datetime import timedelta
from typing import Any

from arq import cron
from arq.connections import RedisSettings

from dcmaint.config import get_settings
from dcmaint.core.database import get_session_factory
from dcmaint.core.pubsub import FILES_TOPIC, ChangeEvent, publish_to_redis
from dcmaint.services.attachment_store import AttachmentStore

logger = logging.getLogger(__name__)


async def sweep_orphaned_uploads_task(ctx: dict[str, Any]) -> int:
    """
    Delete interrupted uploads.

    Runs hourly via cron. API instances are told about removals through the
    Redis change feed so admins watching in-progress uploads see them go.

    Args:
        ctx: arq context (contains redis connection, job info, etc.)

    Returns:
        Number of uploads swept
    """
    settings = get_settings()
    older_than = timedelta(minutes=settings.orphan_upload_timeout_minutes)

    logger.info("Starting orphaned upload sweep")

    store = AttachmentStore.from_settings(get_session_factory(), settings)
    swept = await store.sweep_orphans(older_than)

    if swept:
        try:
            await publish_to_redis(
                ChangeEvent(
                    topic=FILES_TOPIC,
                    action="swept",
                    data={"file_ids": [str(file_id) for file_id in swept]},
                )
            )
        except Exception as e:
            logger.warning(f"Failed to publish sweep notification: {e}")

    logger.info(
        f"Orphaned upload sweep complete: removed {len(swept)} uploads",
        extra={"swept_count": len(swept), "older_than_minutes": settings.orphan_upload_timeout_minutes},
    )
    return len(swept)


class WorkerSettings:
    """
    arq worker settings.

    Configures the worker's connection to Redis, task functions,
    concurrency limits, timeouts, and retry behavior.
    """

    functions = [
        sweep_orphaned_uploads_task,
    ]

    # Run hourly at quarter past
    cron_jobs = [
        cron(sweep_orphaned_uploads_task, minute=15),
    ]

    # Redis connection settings (loaded from environment)
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)

    max_jobs = 10

    # Sweeping a large backlog deletes one attachment per transaction
    job_timeout = 600

    retry_jobs = True

    max_tries = 3

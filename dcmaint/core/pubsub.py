"""
Change Feed with Redis Pub/Sub

Fans out "something changed" events to in-process subscribers (WebSocket
handlers) and relays them across API instances and the worker via Redis
pub/sub. Falls back to local-only delivery when Redis is unavailable.
"""

import asyncio
import json
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from dcmaint.core.cache import get_redis

logger = logging.getLogger(__name__)

FILES_TOPIC = "files"
CORRECTIVE_TOPIC = "corrective_reports"


@dataclass
class ChangeEvent:
    """
    Change notification.

    Attributes:
        topic: Collection that changed ("files" or "corrective_reports")
        action: What happened (created, deleted, swept)
        data: Extra payload, such as the affected record id
        timestamp: When the event was created
    """

    topic: str
    action: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(
            {
                "topic": self.topic,
                "action": self.action,
                "data": self.data,
                "timestamp": self.timestamp.isoformat(),
            }
        )

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeEvent":
        """Deserialize event from JSON string."""
        data = json.loads(json_str)
        return cls(
            topic=data["topic"],
            action=data["action"],
            data=data.get("data") or {},
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


class ChangeFeed:
    """
    Topic-based change notifications.

    Each subscriber gets a queue holding at most one pending event. Events
    only tell consumers to refetch a full snapshot, so a pending event already
    covers any that arrive before it is consumed.
    """

    PUBSUB_CHANNEL_PREFIX = "dcmaint:changes:"

    def __init__(self) -> None:
        self._subscribers: dict[str, set[asyncio.Queue[ChangeEvent]]] = defaultdict(set)
        self._pubsub_task: asyncio.Task[None] | None = None
        self._redis_enabled = False
        self._lock = asyncio.Lock()

    @property
    def redis_enabled(self) -> bool:
        return self._redis_enabled

    async def start_pubsub(self) -> None:
        """
        Start Redis pub/sub listener for multi-instance delivery.

        Falls back to local-only if Redis is unavailable.
        """
        if self._pubsub_task is not None:
            return

        try:
            redis = await get_redis()
            if not await redis.ping():  # type: ignore[misc]
                raise ConnectionError("Redis ping failed")
            self._redis_enabled = True
            self._pubsub_task = asyncio.create_task(self._listen_pubsub())
            logger.info("Change feed Redis pub/sub started")
        except Exception as e:
            logger.warning(f"Redis pub/sub not available, using local-only mode: {e}")
            self._redis_enabled = False

    async def stop_pubsub(self) -> None:
        """Stop Redis pub/sub listener."""
        if self._pubsub_task is not None:
            self._pubsub_task.cancel()
            try:
                await self._pubsub_task
            except asyncio.CancelledError:
                pass
            self._pubsub_task = None
            self._redis_enabled = False
            logger.info("Change feed Redis pub/sub stopped")

    async def _listen_pubsub(self) -> None:
        """Listen for events from Redis pub/sub and deliver locally."""
        try:
            redis = await get_redis()
            pubsub = redis.pubsub()
            await pubsub.psubscribe(f"{self.PUBSUB_CHANNEL_PREFIX}*")

            async for message in pubsub.listen():
                if message["type"] != "pmessage":
                    continue
                try:
                    data = message["data"]
                    if isinstance(data, bytes):
                        data = data.decode()
                    event = ChangeEvent.from_json(data)
                    await self._deliver_local(event)
                except Exception as e:
                    logger.error(f"Error processing pub/sub message: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Redis pub/sub listener error: {e}")
            self._redis_enabled = False

    @asynccontextmanager
    async def subscribe(self, topic: str) -> AsyncIterator["asyncio.Queue[ChangeEvent]"]:
        """
        Register a subscriber queue for a topic for the lifetime of the context.

        Usage:
            async with feed.subscribe("files") as queue:
                event = await queue.get()
        """
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=1)
        async with self._lock:
            self._subscribers[topic].add(queue)
        try:
            yield queue
        finally:
            async with self._lock:
                self._subscribers[topic].discard(queue)
                if not self._subscribers[topic]:
                    del self._subscribers[topic]

    async def publish(self, event: ChangeEvent) -> None:
        """
        Publish an event to every subscriber of its topic.

        Goes through Redis when the listener is running so other instances see
        it too; the local listener then delivers it here.
        """
        if self._redis_enabled:
            try:
                await publish_to_redis(event)
                return
            except Exception as e:
                logger.warning(f"Redis publish failed, falling back to local: {e}")

        await self._deliver_local(event)

    async def _deliver_local(self, event: ChangeEvent) -> None:
        async with self._lock:
            queues = list(self._subscribers.get(event.topic, ()))

        for queue in queues:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                pass

    def get_subscriber_count(self, topic: str) -> int:
        """Get the number of local subscribers for a topic."""
        return len(self._subscribers.get(topic, ()))


# Singleton instance
_change_feed: ChangeFeed | None = None


def get_change_feed() -> ChangeFeed:
    """Get the singleton ChangeFeed instance."""
    global _change_feed
    if _change_feed is None:
        _change_feed = ChangeFeed()
    return _change_feed


def reset_change_feed() -> None:
    """Reset the change feed singleton (for testing)."""
    global _change_feed
    _change_feed = None


async def publish_to_redis(event: ChangeEvent) -> None:
    """
    Publish an event directly to Redis pub/sub.

    Used by the worker process, which has no local subscribers; the API
    instances' listeners forward it to their WebSocket clients.
    """
    redis = await get_redis()
    await redis.publish(f"{ChangeFeed.PUBSUB_CHANNEL_PREFIX}{event.topic}", event.to_json())
    logger.debug(f"Published {event.action} to Redis topic {event.topic}")


async def publish_files_changed(action: str, file_id: UUID | None = None) -> None:
    """Notify file-list subscribers that the attachment collection changed."""
    data = {"file_id": str(file_id)} if file_id else {}
    await get_change_feed().publish(ChangeEvent(topic=FILES_TOPIC, action=action, data=data))


async def publish_corrective_changed(action: str, report_id: UUID | None = None) -> None:
    """Notify corrective report subscribers that the report list changed."""
    data = {"report_id": str(report_id)} if report_id else {}
    await get_change_feed().publish(ChangeEvent(topic=CORRECTIVE_TOPIC, action=action, data=data))

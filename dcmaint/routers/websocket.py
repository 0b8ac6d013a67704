"""
WebSocket Router

Pushes live lists to connected browsers:
- /ws/files: completed attachments
- /ws/corrective-reports: corrective maintenance reports

Connections are authenticated from the token alone; role and account
changes reach them at token expiry.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel
from starlette.websockets import WebSocketState

from dcmaint.core.auth import UserPrincipal, principal_from_token
from dcmaint.core.database import get_session_factory
from dcmaint.core.pubsub import get_change_feed
from dcmaint.services.live_feed import corrective_snapshots, file_snapshots

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["websocket"])

# Ping interval in seconds
PING_INTERVAL = 15


def authenticate_websocket(websocket: WebSocket) -> UserPrincipal | None:
    """
    Authenticate a WebSocket connection.

    Checks for authentication token in:
    1. access_token cookie (browser clients)
    2. token query parameter (fallback)
    """
    token = None

    if "access_token" in websocket.cookies:
        token = websocket.cookies["access_token"]
    elif "token" in websocket.query_params:
        token = websocket.query_params["token"]

    if not token:
        return None

    return principal_from_token(token)


async def ping_loop(websocket: WebSocket, connection_id: str) -> None:
    """Send periodic ping messages to keep the connection alive."""
    try:
        while True:
            await asyncio.sleep(PING_INTERVAL)

            if websocket.client_state != WebSocketState.CONNECTED:
                break

            try:
                await websocket.send_json({"type": "ping"})
            except Exception as e:
                logger.debug(f"Ping failed for {connection_id}: {e}")
                break
    except asyncio.CancelledError:
        pass


async def snapshot_loop(websocket: WebSocket, snapshots: AsyncGenerator[BaseModel, None]) -> None:
    """Send the current list, then a fresh one after every change."""
    try:
        async for snapshot in snapshots:
            await websocket.send_json(snapshot.model_dump(mode="json"))
    finally:
        await snapshots.aclose()


async def receive_loop(websocket: WebSocket) -> None:
    """Drain client messages until the socket closes. Only pongs are expected."""
    while True:
        await websocket.receive_text()


async def serve_live_list(
    websocket: WebSocket,
    name: str,
    open_snapshots: Callable[[], AsyncGenerator[BaseModel, None]],
) -> None:
    """
    Authenticate, then push snapshots until either side goes away.

    The snapshot subscription is only opened once the connection is accepted.
    """
    connection_id = str(uuid4())

    user = authenticate_websocket(websocket)
    if user is None:
        await websocket.close(code=4001, reason="Unauthorized")
        return

    await websocket.accept()
    logger.info(
        f"WebSocket {connection_id} connected to {name}",
        extra={"user_id": str(user.user_id)},
    )

    snapshot_task = asyncio.create_task(snapshot_loop(websocket, open_snapshots()))
    ping_task = asyncio.create_task(ping_loop(websocket, connection_id))
    receive_task = asyncio.create_task(receive_loop(websocket))

    try:
        done, _ = await asyncio.wait(
            {receive_task, snapshot_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in done:
            task.result()
    except WebSocketDisconnect:
        logger.info(f"WebSocket {connection_id} disconnected normally")
    except Exception as e:
        logger.error(f"WebSocket error for {connection_id}: {e}")
    finally:
        for task in (receive_task, snapshot_task, ping_task):
            task.cancel()
        await asyncio.gather(receive_task, snapshot_task, ping_task, return_exceptions=True)


@router.websocket("/files")
async def websocket_files(websocket: WebSocket) -> None:
    """
    Live attachment list.

    Message Format (outgoing):
        {
            "type": "snapshot",
            "items": [ ...attachment metadata... ],
            "total": 12,
            "taken_at": "ISO8601 timestamp"
        }

    A {"type": "ping"} message is sent every PING_INTERVAL seconds.
    """
    await serve_live_list(
        websocket,
        "files",
        lambda: file_snapshots(get_change_feed(), get_session_factory()),
    )


@router.websocket("/corrective-reports")
async def websocket_corrective_reports(websocket: WebSocket) -> None:
    """
    Live corrective report list.

    Same message format as /ws/files, with corrective reports as items.
    """
    await serve_live_list(
        websocket,
        "corrective reports",
        lambda: corrective_snapshots(get_change_feed(), get_session_factory()),
    )

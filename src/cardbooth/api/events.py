"""WebSocket push of queue events to print stations."""

import asyncio
import contextlib
import logging
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from cardbooth.notifications import QUEUE_UPDATE_EVENT, QueueEvent, Subscription

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])

# These will be set by the app during startup
_app_state: dict[str, Any] = {}


def set_app_state(queue: Any) -> None:
    """Set application state references for the event stream."""
    _app_state["queue"] = queue


@router.websocket("/ws/print")
async def print_events(websocket: WebSocket, clientId: str | None = None) -> None:  # noqa: N803
    """Stream new-job and queue-depth events to a connected station.

    The current pending count is sent immediately on connect. Text frames
    of the form ``{"event": "echo", ...}`` are echoed back for connectivity checks.
    """
    queue = _app_state.get("queue")
    if queue is None:
        await websocket.close(code=1011)
        return

    await websocket.accept()
    subscription = queue.notifier.subscribe(f"{clientId or 'station'}-{uuid4().hex[:8]}")
    await websocket.send_json(
        QueueEvent(event=QUEUE_UPDATE_EVENT, data={"pendingCount": queue.pending_count()}).model_dump()
    )

    sender = asyncio.create_task(_forward_events(websocket, subscription))
    receiver = asyncio.create_task(_receive_until_closed(websocket))
    try:
        done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.debug(f"Event stream for {subscription.name} closed: {task.exception()}")
    finally:
        sender.cancel()
        receiver.cancel()
        queue.notifier.unsubscribe(subscription)


async def _forward_events(websocket: WebSocket, subscription: Subscription) -> None:
    while True:
        event = await subscription.get()
        await websocket.send_json(event.model_dump())


async def _receive_until_closed(websocket: WebSocket) -> None:
    try:
        while True:
            message = await websocket.receive_json()
            if isinstance(message, dict) and message.get("event") == "echo":
                await websocket.send_json(message)
    except WebSocketDisconnect:
        return
    except ValueError as e:
        logger.debug(f"Ignoring malformed station message: {e}")
        await websocket.close(code=1003)

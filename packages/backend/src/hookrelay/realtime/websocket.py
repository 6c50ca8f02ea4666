"""WebSocket endpoint — clients subscribe to one webhook id.

Learn: Each client connects to /ws?id=<webhook id>. The handler:
1. Accepts the upgrade, then checks for the id. No id → close with 1008
   right away; the connection is never registered.
2. Marks the subscriber OPEN and registers it in the same step, so there
   is no window where it is registered but not yet deliverable.
3. Reads client frames until disconnect. {"type": "ping"} gets a pong,
   everything else is ignored (events only flow relay → client).
4. On the way out (clean close, abrupt drop or cancellation) marks the
   subscriber CLOSED and unregisters it. Both are idempotent, so a send
   failure that already pruned it is harmless.

Any number of clients may share an id; each gets its own copy of every event.
"""

import json

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from hookrelay.dependencies import get_registry
from hookrelay.events.types import PING, PONG
from hookrelay.realtime.registry import ConnectionRegistry
from hookrelay.realtime.subscriber import Subscriber

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def subscribe(
    websocket: WebSocket,
    registry: ConnectionRegistry[Subscriber] = Depends(get_registry),
):
    """Stream webhook events for ?id= to this client."""
    webhook_id = websocket.query_params.get("id")

    await websocket.accept()

    if not webhook_id:
        logger.info("ws.rejected_missing_id")
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Missing webhook id"
        )
        return

    subscriber = Subscriber(webhook_id, websocket)
    subscriber.mark_open()
    count = registry.register(webhook_id, subscriber)
    logger.info(
        "ws.connected",
        webhook_id=webhook_id,
        connection_id=subscriber.connection_id,
        connections=count,
    )

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            data = message.get("text")
            if not data:
                continue  # binary frames are ignored
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(msg, dict) and msg.get("type") == PING:
                await subscriber.send(json.dumps({"type": PONG}))
    except WebSocketDisconnect:
        pass
    finally:
        subscriber.mark_closed()
        registry.unregister(webhook_id, subscriber)
        logger.info(
            "ws.disconnected",
            webhook_id=webhook_id,
            connection_id=subscriber.connection_id,
        )

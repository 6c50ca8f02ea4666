"""Webhook receiver — AnyQuest posts here, the relay fans it out.

Learn: The receiver never fails because nobody is listening. It:
1. Reads the body (JSON content-type → object/array, empty → {}, else → text)
2. Builds a WebhookEvent from the aq-* headers
3. Awaits Relay.deliver(), which attempts every current subscriber once
4. Acknowledges with plain text, with or without subscribers

Only a body that claims to be JSON but isn't an object or array gets
rejected (400), and that happens before the relay is touched.
"""

import json
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from hookrelay.dependencies import get_relay
from hookrelay.events.webhook import WebhookEvent
from hookrelay.realtime.relay import Relay

logger = structlog.get_logger()
router = APIRouter()

ACK_TEXT = "Webhook received successfully"


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


async def _read_content(request: Request) -> Any:
    body = await request.body()
    if _is_json(request.headers.get("content-type", "")):
        # AnyQuest-compatible JSON: an empty body is {}, and only objects
        # and arrays are accepted at the top level.
        if not body.strip():
            return {}
        try:
            content = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        if not isinstance(content, (dict, list)):
            raise HTTPException(
                status_code=400, detail="JSON body must be an object or an array"
            )
        return content
    return body.decode("utf-8", errors="replace")


@router.post("/webhook/{webhook_id}", response_class=PlainTextResponse)
async def receive_webhook(
    webhook_id: str,
    request: Request,
    relay: Relay = Depends(get_relay),
):
    """Relay an incoming AnyQuest webhook to every subscriber of webhook_id."""
    content = await _read_content(request)
    event = WebhookEvent.from_request(webhook_id, request.headers, content)

    logger.info(
        "webhook.received",
        webhook_id=webhook_id,
        event_type=event.event_type,
    )

    await relay.deliver(event)
    return ACK_TEXT

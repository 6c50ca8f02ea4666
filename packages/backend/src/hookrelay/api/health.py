"""Health check endpoint.

Learn: A read-only projection of the connection registry — which webhook
ids currently have listeners and how many. Nothing here mutates state.
"""

from fastapi import APIRouter, Depends

from hookrelay import __version__
from hookrelay.dependencies import get_registry
from hookrelay.realtime.registry import ConnectionRegistry
from hookrelay.realtime.subscriber import Subscriber

router = APIRouter()


@router.get("/health")
async def health_check(
    registry: ConnectionRegistry[Subscriber] = Depends(get_registry),
):
    """Server status plus live connection counts per webhook id."""
    return {
        "status": "ok",
        "version": __version__,
        "activeConnections": [
            {"webhookId": webhook_id, "connections": count}
            for webhook_id, count in registry.entries().items()
        ],
    }

"""HTTP route aggregation.

All routers registered here get mounted in main.py. The paths are part of
the public contract (AnyQuest is configured with /webhook/{id}), so there
is no /api/v1 prefix. Everything is open — no auth at this layer.
"""

from fastapi import APIRouter

from hookrelay.api.health import router as health_router
from hookrelay.api.info import router as info_router
from hookrelay.api.webhooks import router as webhooks_router

api_router = APIRouter()

api_router.include_router(info_router, tags=["info"])
api_router.include_router(health_router, tags=["health"])
api_router.include_router(webhooks_router, tags=["webhooks"])

"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance that owns its own ConnectionRegistry and Relay (on app.state).
Tests build fresh apps, or pass in a registry they want to inspect.
Lifespan only logs startup/shutdown: there is nothing to connect to and
nothing to persist.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hookrelay import __version__
from hookrelay.api import api_router
from hookrelay.config import settings
from hookrelay.observability import configure_logging
from hookrelay.realtime import ConnectionRegistry, Relay, Subscriber

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` at
    shutdown. Live sockets are closed by the server; the registry just
    goes away with the process.
    """
    logger.info(
        "hookrelay.starting",
        service=settings.service_name,
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )
    logger.info(
        "hookrelay.urls",
        webhook=f"http://localhost:{settings.port}/webhook/",
        websocket=f"ws://localhost:{settings.port}/ws?id=",
    )

    yield

    logger.info(
        "hookrelay.shutdown",
        open_webhook_ids=len(app.state.registry),
    )


def create_app(
    registry: Optional[ConnectionRegistry[Subscriber]] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings.log_level, json_logs=settings.log_json)

    app = FastAPI(
        title=settings.service_name,
        description="Relays AnyQuest webhooks to WebSocket subscribers",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.registry = registry if registry is not None else ConnectionRegistry()
    app.state.relay = Relay(app.state.registry)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestContext → CORS → handler

    from hookrelay.middleware.request_context import RequestContextMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    app.include_router(api_router)

    from hookrelay.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: hookrelay.main:app)
app = create_app()

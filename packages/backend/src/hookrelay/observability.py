"""structlog setup.

Learn: every module does `logger = structlog.get_logger()` and logs dotted
event names with key/value context (`logger.info("relay.delivered", ...)`).
This module wires the processor chain once at startup:

1. merge_contextvars — pulls in request_id/path bound by the middleware
2. add_log_level + TimeStamper — standard fields
3. ConsoleRenderer for humans, JSONRenderer for log shippers
"""

import logging

import structlog


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog (idempotent — safe to call on every app start)."""
    lvl = logging.getLevelName(level.upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(lvl),
        cache_logger_on_first_use=False,
    )

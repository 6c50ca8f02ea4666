"""Subscriber — one live WebSocket registered under an identifier.

Learn: The subscriber owns its connection state explicitly:

    CONNECTING ──accept──▶ OPEN ──close/error──▶ CLOSED

The relay never peeks at the socket itself. It calls send(), which checks
the state and writes the frame under the same per-subscriber lock, so a
frame is never written to a connection that has already been marked closed,
and two fan-outs never interleave bytes on one socket.

send() never raises. A write error flips the subscriber to CLOSED and comes
back as SendOutcome.FAILED; the caller decides what to do about it. A write
that doesn't finish within send_timeout (a client that stopped reading, so
the socket's buffer never drains) counts as a write error too, so it can't
hold up the fan-out its siblings are waiting on.
"""

import asyncio
import enum
import uuid
from typing import Optional, Protocol

import structlog

from hookrelay.config import settings

logger = structlog.get_logger()


class ConnectionState(str, enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class SendOutcome(str, enum.Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"  # not OPEN at send time
    FAILED = "failed"  # write raised, subscriber is now CLOSED


class TextSink(Protocol):
    """Anything with an async send_text — a Starlette WebSocket in practice."""

    async def send_text(self, data: str) -> None: ...


class Subscriber:
    def __init__(
        self,
        identifier: str,
        sink: TextSink,
        send_timeout: Optional[float] = None,
    ):
        self.identifier = identifier
        self.sink = sink
        self.send_timeout = (
            settings.send_timeout_seconds if send_timeout is None else send_timeout
        )
        self.connection_id = uuid.uuid4().hex[:12]
        self._state = ConnectionState.CONNECTING
        self._send_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return (
            f"Subscriber(identifier={self.identifier!r}, "
            f"connection_id={self.connection_id!r}, state={self._state.value})"
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    def mark_open(self) -> None:
        if self._state is ConnectionState.CONNECTING:
            self._state = ConnectionState.OPEN

    def mark_closed(self) -> bool:
        """Move to CLOSED. Returns False if it was already closed."""
        if self._state is ConnectionState.CLOSED:
            return False
        self._state = ConnectionState.CLOSED
        return True

    async def send(self, text: str) -> SendOutcome:
        async with self._send_lock:
            if self._state is not ConnectionState.OPEN:
                return SendOutcome.SKIPPED
            try:
                await asyncio.wait_for(self.sink.send_text(text), self.send_timeout)
            except asyncio.TimeoutError:
                self.mark_closed()
                logger.warning(
                    "subscriber.send_timeout",
                    webhook_id=self.identifier,
                    connection_id=self.connection_id,
                    timeout_seconds=self.send_timeout,
                )
                return SendOutcome.FAILED
            except Exception as e:
                self.mark_closed()
                logger.warning(
                    "subscriber.send_failed",
                    webhook_id=self.identifier,
                    connection_id=self.connection_id,
                    error=repr(e),
                )
                return SendOutcome.FAILED
            return SendOutcome.DELIVERED

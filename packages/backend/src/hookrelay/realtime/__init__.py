"""Real-time infrastructure — connection registry + WebSocket fan-out.

Learn: Events flow in one direction:
1. AnyQuest → POST /webhook/{id} → Relay.deliver()
2. Relay → ConnectionRegistry.snapshot(id) → Subscriber.send() per socket

The registry is an in-process object owned by the app (app.state), never
a module global. A restart empties it and every client reconnects.
"""

from hookrelay.realtime.registry import ConnectionRegistry
from hookrelay.realtime.relay import DeliveryReport, Relay
from hookrelay.realtime.subscriber import ConnectionState, SendOutcome, Subscriber

__all__ = [
    "ConnectionRegistry",
    "ConnectionState",
    "DeliveryReport",
    "Relay",
    "SendOutcome",
    "Subscriber",
]

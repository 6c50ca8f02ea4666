"""HookRelay — webhook-to-WebSocket relay.

Receives webhook calls from AnyQuest on /webhook/{id} and pushes them to
every WebSocket client currently connected on /ws?id={id}. Useful for apps
that can't accept inbound HTTP callbacks (browsers, hosts behind NAT).
"""

__version__ = "0.1.0"

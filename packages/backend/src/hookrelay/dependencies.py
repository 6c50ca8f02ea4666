"""FastAPI dependencies — hand the app-owned registry and relay to routes.

Learn: create_app() stores one ConnectionRegistry and one Relay on
app.state. Routes ask for them with Depends(get_registry) instead of
importing a global, so every test app gets its own clean registry.
HTTPConnection covers both Request and WebSocket, so the same dependency
works for HTTP routes and the /ws endpoint.
"""

from starlette.requests import HTTPConnection

from hookrelay.realtime import ConnectionRegistry, Relay, Subscriber


def get_registry(conn: HTTPConnection) -> ConnectionRegistry[Subscriber]:
    return conn.app.state.registry


def get_relay(conn: HTTPConnection) -> Relay:
    return conn.app.state.relay

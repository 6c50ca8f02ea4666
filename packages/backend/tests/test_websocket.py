"""WebSocket subscription + end-to-end relay tests.

Learn: These use Starlette's TestClient so the HTTP webhook call and the
WebSocket session run against the same app and event loop. A ping/pong
round-trip is used as a barrier: once the pong arrives, the server-side
handler is past registration and inside its receive loop.

Leaving a `websocket_connect` block waits for the server handler to
finish, so registry assertions right after it are deterministic.
"""

import json

import pytest
from starlette.websockets import WebSocketDisconnect


def _wait_registered(ws):
    ws.send_text(json.dumps({"type": "ping"}))
    assert ws.receive_json() == {"type": "pong"}


def test_end_to_end_relay(ws_client, registry):
    with ws_client.websocket_connect("/ws?id=abc") as ws:
        _wait_registered(ws)

        health = ws_client.get("/health").json()
        assert health["activeConnections"] == [{"webhookId": "abc", "connections": 1}]

        r = ws_client.post(
            "/webhook/abc",
            json={"x": 1},
            headers={"aq-event-type": "order.created", "aq-reference-id": "r-1"},
        )
        assert r.status_code == 200
        assert r.text == "Webhook received successfully"

        assert ws.receive_json() == {
            "id": "abc",
            "eventType": "order.created",
            "content": {"x": 1},
            "headers": {"aq-event-type": "order.created", "aq-reference-id": "r-1"},
        }

    assert "abc" not in registry
    assert ws_client.get("/health").json()["activeConnections"] == []


def test_missing_id_is_accepted_then_closed(ws_client, registry):
    with ws_client.websocket_connect("/ws") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_text()
    assert exc.value.code == 1008
    assert registry.entries() == {}


def test_empty_id_is_rejected(ws_client, registry):
    with ws_client.websocket_connect("/ws?id=") as ws:
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_text()
    assert exc.value.code == 1008
    assert registry.entries() == {}


def test_multiple_clients_same_id_all_receive(ws_client, registry):
    with ws_client.websocket_connect("/ws?id=shared") as ws1:
        _wait_registered(ws1)
        with ws_client.websocket_connect("/ws?id=shared") as ws2:
            _wait_registered(ws2)
            assert registry.entries() == {"shared": 2}

            ws_client.post("/webhook/shared", json={"n": 1}, headers={"aq-event-type": "t"})

            m1 = ws1.receive_json()
            m2 = ws2.receive_json()
            assert m1 == m2
            assert m1["content"] == {"n": 1}

        # ws2 gone, ws1 still registered
        assert registry.entries() == {"shared": 1}

        ws_client.post("/webhook/shared", json={"n": 2})
        assert ws1.receive_json()["content"] == {"n": 2}

    assert registry.entries() == {}


def test_other_identifiers_not_delivered(ws_client):
    with ws_client.websocket_connect("/ws?id=A") as ws_a:
        _wait_registered(ws_a)
        with ws_client.websocket_connect("/ws?id=B") as ws_b:
            _wait_registered(ws_b)

            ws_client.post("/webhook/B", json={"to": "B"})
            ws_client.post("/webhook/A", json={"to": "A"})

            # A's first frame is A's event, not B's
            assert ws_a.receive_json()["content"] == {"to": "A"}
            assert ws_b.receive_json()["content"] == {"to": "B"}


def test_events_arrive_in_webhook_order(ws_client):
    with ws_client.websocket_connect("/ws?id=seq") as ws:
        _wait_registered(ws)
        for n in range(5):
            ws_client.post("/webhook/seq", json={"n": n})
        assert [ws.receive_json()["content"]["n"] for _ in range(5)] == [0, 1, 2, 3, 4]


def test_non_ping_client_frames_are_ignored(ws_client):
    with ws_client.websocket_connect("/ws?id=abc") as ws:
        ws.send_text("not json")
        ws.send_text(json.dumps({"type": "subscribe", "id": "other"}))
        ws.send_bytes(b"\x00\x01")
        _wait_registered(ws)

        ws_client.post("/webhook/abc", content=b"hi", headers={"content-type": "text/plain"})
        assert ws.receive_json()["content"] == "hi"


class _BrokenPipe:
    async def send_text(self, data: str) -> None:
        raise ConnectionResetError("write failed")


def test_failed_send_then_close_keeps_sibling_registered(ws_client, registry):
    with ws_client.websocket_connect("/ws?id=abc") as ws_ok:
        _wait_registered(ws_ok)
        with ws_client.websocket_connect("/ws?id=abc") as ws_broken:
            _wait_registered(ws_broken)
            healthy, broken = registry.snapshot("abc")
            # Writes to the second connection now fail as if the peer vanished
            broken.sink = _BrokenPipe()

            r = ws_client.post("/webhook/abc", json={"n": 1})
            assert r.status_code == 200
            assert ws_ok.receive_json()["content"] == {"n": 1}

            # Send failure already pruned it; the socket itself is still up
            assert registry.snapshot("abc") == (healthy,)

        # Its own close unregisters a second time without touching the sibling
        assert registry.entries() == {"abc": 1}
        assert registry.snapshot("abc") == (healthy,)

        ws_client.post("/webhook/abc", json={"n": 2})
        assert ws_ok.receive_json()["content"] == {"n": 2}

    assert registry.entries() == {}

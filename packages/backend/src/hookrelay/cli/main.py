"""HookRelay CLI — run the relay, inspect it, fire and watch test events.

Usage:
    hookrelay serve                              # Run the relay (uvicorn)
    hookrelay status                             # Webhook ids with live listeners
    hookrelay send abc -e order.created -d '{"x": 1}'   # Fire a test webhook
    hookrelay listen abc                         # Print events relayed to id "abc"
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional
from urllib.parse import quote

import click
import httpx

from hookrelay import __version__
from hookrelay.events.types import (
    ACTIVITY_JOB_ID_HEADER,
    EVENT_TYPE_HEADER,
    INSTRUCTIONS_HEADER,
    REFERENCE_ID_HEADER,
)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3001"


def _api_url(api_url: Optional[str] = None) -> str:
    return (api_url or os.environ.get("HOOKRELAY_API_URL", DEFAULT_API_URL)).rstrip("/")


def _client(api_url: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the relay."""
    return httpx.AsyncClient(base_url=_api_url(api_url), timeout=30.0)


def _ws_url(api_url: str, webhook_id: str) -> str:
    if api_url.startswith("https://"):
        base = "wss://" + api_url[len("https://"):]
    elif api_url.startswith("http://"):
        base = "ws://" + api_url[len("http://"):]
    else:
        base = api_url
    return f"{base}/ws?id={quote(webhook_id, safe='')}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. CliRunner inside an async test) by
    offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="hookrelay")
def main():
    """HookRelay — relay AnyQuest webhooks to WebSocket clients."""


# ---------------------------------------------------------------------------
# hookrelay serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", help="Bind address (default: HOOKRELAY_HOST)")
@click.option("--port", type=int, help="Port (default: HOOKRELAY_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the relay server."""
    import uvicorn

    from hookrelay.config import settings

    host = host or settings.host
    port = port or settings.port

    click.secho(f"{settings.service_name} running on port {port}", bold=True)
    click.echo(f"Webhook URL:   http://localhost:{port}/webhook/<id>")
    click.echo(f"WebSocket URL: ws://localhost:{port}/ws?id=<id>")

    uvicorn.run(
        "hookrelay.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# hookrelay status
# ---------------------------------------------------------------------------


@main.command()
@click.option("--api-url", help="Relay base URL (or set HOOKRELAY_API_URL)")
@click.option("--json", "as_json", is_flag=True, help="Print the raw health JSON")
def status(api_url: Optional[str], as_json: bool):
    """Show webhook ids that currently have listeners."""
    _run(_status_impl(api_url, as_json))


async def _status_impl(api_url: Optional[str], as_json: bool):
    async with _client(api_url) as c:
        try:
            r = await c.get("/health")
        except httpx.TransportError as e:
            _fail(f"relay not reachable at {_api_url(api_url)} ({e})")
        if r.status_code != 200:
            _fail(f"health check returned {r.status_code}")
        health = r.json()

    if as_json:
        click.echo(json.dumps(health, indent=2))
        return

    click.secho(f"Relay status: {health.get('status')} (v{health.get('version', '?')})", fg="green")
    active = health.get("activeConnections", [])
    if not active:
        click.echo("No active connections.")
        return
    _print_table(
        active,
        [("WEBHOOK ID", "webhookId", 40), ("CONNECTIONS", "connections", 11)],
    )


# ---------------------------------------------------------------------------
# hookrelay send
# ---------------------------------------------------------------------------


@main.command()
@click.argument("webhook_id")
@click.option("--event-type", "-e", help=f"Sent as {EVENT_TYPE_HEADER}")
@click.option("--data", "-d", default="{}", show_default=True, help="Request body")
@click.option("--text", "as_text", is_flag=True, help="Send the body as text/plain instead of JSON")
@click.option("--job-id", help=f"Sent as {ACTIVITY_JOB_ID_HEADER}")
@click.option("--reference-id", help=f"Sent as {REFERENCE_ID_HEADER}")
@click.option("--instructions", help=f"Sent as {INSTRUCTIONS_HEADER}")
@click.option("--api-url", help="Relay base URL (or set HOOKRELAY_API_URL)")
def send(webhook_id: str, event_type: Optional[str], data: str, as_text: bool,
         job_id: Optional[str], reference_id: Optional[str],
         instructions: Optional[str], api_url: Optional[str]):
    """Fire a test webhook at WEBHOOK_ID, as AnyQuest would."""
    if not as_text:
        try:
            json.loads(data)
        except json.JSONDecodeError as e:
            _fail(f"--data is not valid JSON ({e}); use --text for plain bodies")

    headers = {
        "content-type": "text/plain" if as_text else "application/json",
    }
    for name, value in (
        (EVENT_TYPE_HEADER, event_type),
        (ACTIVITY_JOB_ID_HEADER, job_id),
        (REFERENCE_ID_HEADER, reference_id),
        (INSTRUCTIONS_HEADER, instructions),
    ):
        if value is not None:
            headers[name] = value

    _run(_send_impl(webhook_id, data, headers, api_url))


async def _send_impl(webhook_id: str, body: str, headers: dict, api_url: Optional[str]):
    async with _client(api_url) as c:
        try:
            r = await c.post(
                f"/webhook/{quote(webhook_id, safe='')}",
                content=body.encode(),
                headers=headers,
            )
        except httpx.TransportError as e:
            _fail(f"relay not reachable at {_api_url(api_url)} ({e})")

    if r.status_code != 200:
        _fail(f"relay returned {r.status_code}: {r.text}")
    click.secho(r.text, fg="green")


# ---------------------------------------------------------------------------
# hookrelay listen
# ---------------------------------------------------------------------------


@main.command()
@click.argument("webhook_id")
@click.option("--count", "-n", type=int, help="Exit after this many events")
@click.option("--api-url", help="Relay base URL (or set HOOKRELAY_API_URL)")
def listen(webhook_id: str, count: Optional[int], api_url: Optional[str]):
    """Subscribe to WEBHOOK_ID and print every relayed event."""
    try:
        _run(_listen_impl(webhook_id, count, api_url))
    except KeyboardInterrupt:
        pass


async def _listen_impl(webhook_id: str, count: Optional[int], api_url: Optional[str]):
    from websockets.asyncio.client import connect
    from websockets.exceptions import ConnectionClosed

    url = _ws_url(_api_url(api_url), webhook_id)
    click.secho(f"Listening on {url} (Ctrl+C to stop)", dim=True)

    received = 0
    try:
        async with connect(url) as ws:
            async for message in ws:
                try:
                    event = json.loads(message)
                except json.JSONDecodeError:
                    click.echo(message)
                    continue
                click.secho(f"▶ {event.get('eventType') or '(no event type)'}", fg="cyan", bold=True)
                click.echo(json.dumps(event, indent=2))
                received += 1
                if count is not None and received >= count:
                    return
    except ConnectionClosed as e:
        _fail(f"connection closed by relay (code {e.rcvd.code if e.rcvd else '?'})")
    except OSError as e:
        _fail(f"relay not reachable at {url} ({e})")

"""Subscriber state machine + send outcome tests."""

import asyncio

import pytest

from hookrelay.realtime import ConnectionState, SendOutcome, Subscriber


def test_new_subscriber_is_connecting(fake_socket):
    sub = Subscriber("abc", fake_socket())
    assert sub.state is ConnectionState.CONNECTING
    assert not sub.is_open


def test_mark_open_then_closed(fake_socket):
    sub = Subscriber("abc", fake_socket())
    sub.mark_open()
    assert sub.state is ConnectionState.OPEN

    assert sub.mark_closed() is True
    assert sub.state is ConnectionState.CLOSED
    # Closing again is allowed and reports nothing changed
    assert sub.mark_closed() is False


def test_closed_subscriber_cannot_reopen(fake_socket):
    sub = Subscriber("abc", fake_socket())
    sub.mark_closed()
    sub.mark_open()
    assert sub.state is ConnectionState.CLOSED


@pytest.mark.asyncio
async def test_send_when_open_delivers(open_subscriber):
    sub = open_subscriber()
    assert await sub.send("hello") is SendOutcome.DELIVERED
    assert sub.sink.sent == ["hello"]


@pytest.mark.asyncio
async def test_send_when_not_open_is_skipped(fake_socket):
    sock = fake_socket()
    connecting = Subscriber("abc", sock)
    assert await connecting.send("x") is SendOutcome.SKIPPED

    connecting.mark_open()
    connecting.mark_closed()
    assert await connecting.send("x") is SendOutcome.SKIPPED
    assert sock.attempts == 0


@pytest.mark.asyncio
async def test_send_failure_closes_subscriber(open_subscriber):
    sub = open_subscriber(fail=True)
    assert await sub.send("x") is SendOutcome.FAILED
    assert sub.state is ConnectionState.CLOSED
    # Subsequent sends don't touch the broken socket again
    assert await sub.send("y") is SendOutcome.SKIPPED
    assert sub.sink.attempts == 1


class NeverDrains:
    async def send_text(self, data: str) -> None:
        await asyncio.sleep(3600)


@pytest.mark.asyncio
async def test_send_timeout_counts_as_failure():
    sub = Subscriber("abc", NeverDrains(), send_timeout=0.01)
    sub.mark_open()

    assert await sub.send("x") is SendOutcome.FAILED
    assert sub.state is ConnectionState.CLOSED


def test_send_timeout_defaults_to_settings(fake_socket):
    from hookrelay.config import settings

    assert Subscriber("abc", fake_socket()).send_timeout == settings.send_timeout_seconds

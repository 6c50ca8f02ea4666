"""Relay — fan a webhook event out to its identifier's subscribers.

Learn: Delivery is best-effort and at-most-once:

1. Snapshot the registry for the event's identifier. Anyone who connects
   after this point misses the event — there is no buffering.
2. Nobody listening → log it and return. Not an error.
3. Serialize once, then send the same text to every snapshot member
   concurrently. Each send yields its own SendOutcome, so one broken
   socket can't stop delivery to its siblings.
4. FAILED subscribers are unregistered right away.

Fan-outs for the same identifier run one at a time (a small lock per
identifier, kept only while a fan-out is in flight). That keeps every
subscriber's stream in webhook arrival order; different identifiers still
fan out in parallel.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import structlog

from hookrelay.events.webhook import WebhookEvent
from hookrelay.realtime.registry import ConnectionRegistry
from hookrelay.realtime.subscriber import SendOutcome, Subscriber

logger = structlog.get_logger()


@dataclass
class DeliveryReport:
    webhook_id: str
    attempted: int = 0
    delivered: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: SendOutcome) -> None:
        self.attempted += 1
        if outcome is SendOutcome.DELIVERED:
            self.delivered += 1
        elif outcome is SendOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


@dataclass
class _FanoutSlot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class Relay:
    def __init__(self, registry: ConnectionRegistry[Subscriber]):
        self.registry = registry
        self._fanouts: dict[str, _FanoutSlot] = {}

    @asynccontextmanager
    async def _fanout_guard(self, identifier: str):
        slot = self._fanouts.get(identifier)
        if slot is None:
            slot = self._fanouts[identifier] = _FanoutSlot()
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if slot.users == 0:
                del self._fanouts[identifier]

    async def deliver(self, event: WebhookEvent) -> DeliveryReport:
        report = DeliveryReport(webhook_id=event.identifier)

        async with self._fanout_guard(event.identifier):
            subscribers = self.registry.snapshot(event.identifier)
            if not subscribers:
                logger.info(
                    "relay.no_subscribers",
                    webhook_id=event.identifier,
                    event_type=event.event_type,
                )
                return report

            logger.info(
                "relay.broadcasting",
                webhook_id=event.identifier,
                event_type=event.event_type,
                clients=len(subscribers),
            )

            text = event.to_json()
            outcomes = await asyncio.gather(*(sub.send(text) for sub in subscribers))

            for sub, outcome in zip(subscribers, outcomes):
                report.record(outcome)
                if outcome is SendOutcome.FAILED:
                    self.registry.unregister(sub.identifier, sub)

        logger.info(
            "relay.delivered",
            webhook_id=event.identifier,
            delivered=report.delivered,
            skipped=report.skipped,
            failed=report.failed,
        )
        return report

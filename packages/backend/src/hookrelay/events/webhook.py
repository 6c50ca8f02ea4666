"""WebhookEvent — the transient record built from one inbound webhook call.

Learn: An event lives only for the duration of the webhook request. It is
serialized once (to_json) and the same text goes to every subscriber, so all
of them receive byte-identical frames. Nothing is stored afterwards.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from hookrelay.events.types import CORRELATION_HEADERS, EVENT_TYPE_HEADER


@dataclass(frozen=True)
class WebhookEvent:
    identifier: str
    event_type: Optional[str]
    content: Any
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(
        cls,
        identifier: str,
        headers: Mapping[str, str],
        content: Any,
    ) -> "WebhookEvent":
        """Build an event from request headers (case-insensitive mapping).

        Correlation headers that were not sent are left out of the block.
        """
        forwarded = {
            name: headers[name] for name in CORRELATION_HEADERS if name in headers
        }
        return cls(
            identifier=identifier,
            event_type=forwarded.get(EVENT_TYPE_HEADER),
            content=content,
            headers=forwarded,
        )

    def to_message(self) -> dict[str, Any]:
        return {
            "id": self.identifier,
            "eventType": self.event_type,
            "content": self.content,
            "headers": dict(self.headers),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_message(), separators=(",", ":"), default=str)

"""Header and message type constants.

Learn: AnyQuest describes each delivery with a handful of `aq-*` headers.
Centralizing the names here keeps the receiver, the payload builder and
the CLI in agreement.
"""

# ─── Inbound webhook headers ─────────────────────────────

EVENT_TYPE_HEADER = "aq-event-type"
ACTIVITY_JOB_ID_HEADER = "aq-activity-job-id"
REFERENCE_ID_HEADER = "aq-reference-id"
INSTRUCTIONS_HEADER = "aq-instructions"

# Forwarded into every outbound message's "headers" block, in this order
CORRELATION_HEADERS = (
    EVENT_TYPE_HEADER,
    ACTIVITY_JOB_ID_HEADER,
    REFERENCE_ID_HEADER,
    INSTRUCTIONS_HEADER,
)

# ─── Client → relay control messages ─────────────────────

PING = "ping"
PONG = "pong"

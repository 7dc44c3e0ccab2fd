"""Inbound and outbound message models for the SMS webhook."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

XML_MEDIA_TYPE = "application/xml"
TEXT_MEDIA_TYPE = "text/plain"


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    sender: str  # the gateway's "From" field, used verbatim as storage key
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class OutgoingReply:
    """What the webhook sends back to the gateway."""

    status_code: int
    body: str
    media_type: str = XML_MEDIA_TYPE
    answer: str | None = None  # unescaped reply text, None for transport rejections

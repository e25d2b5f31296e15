"""Webhook event data models."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class EventKind(str, Enum):
    """Kind of repository event, taken from the X-GitHub-Event header."""

    PULL_REQUEST = "pull_request"
    PUSH = "push"
    OTHER = "other"

    @classmethod
    def from_header(cls, value: Optional[str]) -> "EventKind":
        if value == cls.PULL_REQUEST.value:
            return cls.PULL_REQUEST
        if value == cls.PUSH.value:
            return cls.PUSH
        return cls.OTHER


class WebhookEvent(BaseModel):
    """Normalized webhook delivery, built once per request."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    event_type: Optional[str] = None  # raw header value
    action: Optional[str] = None
    raw_payload: Dict[str, Any] = {}
    delivery_id: Optional[str] = None

    @classmethod
    def from_request(
        cls,
        event_type: Optional[str],
        payload: Dict[str, Any],
        delivery_id: Optional[str] = None,
    ) -> "WebhookEvent":
        action = payload.get("action")
        return cls(
            kind=EventKind.from_header(event_type),
            event_type=event_type,
            action=action if isinstance(action, str) else None,
            raw_payload=payload,
            delivery_id=delivery_id,
        )

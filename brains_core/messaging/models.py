"""Message and response models for the channel bus."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def _message_id() -> str:
    return f"msg-{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """A single dispatch event, built fresh for every send."""

    id: str = Field(default_factory=_message_id)
    channel: str
    payload: Any = None
    source: str
    target: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class MessageResponse(BaseModel):
    """Response returned to the sender of a message.

    `handled` is False when nobody is subscribed to the channel; such sends
    still succeed.
    """

    success: bool = True
    handled: bool = True
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def noop(cls) -> "MessageResponse":
        return cls(success=True, handled=False)

    @classmethod
    def failure(cls, error: str, handled: bool = True) -> "MessageResponse":
        return cls(success=False, handled=handled, error=error)

"""
Pydantic event schemas for the order change channel.

Consumers treat every event as "something changed, reload"; the payload is
informational and no consumer may depend on it for correctness.
"""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ChangeKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class EventBase(BaseModel):
    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    event_version: int = 1
    correlation_id: str | None = None  # X-Request-ID of the triggering request, if any
    occurred_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = {"extra": "ignore"}


class OrderChangedEvent(EventBase):
    kind: ChangeKind
    order_id: uuid.UUID
    order_number: str | None = None
    status: str | None = None

"""Notification Sink Protocol.

Defines the outbound interface the lifecycle services use to notify users.
This is a Protocol (structural subtyping) so the dispatcher, or a recording
fake in tests, just needs to match the shape.

The domain layer has ZERO imports from SQLAlchemy, FastAPI, or asyncio queues.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class NotificationMessage:
    """A notification to be written to a user's inbox.

    Attributes:
        user_id: The recipient user (not the student/company profile id).
        type: NotificationType value, e.g. "CONTRACT_DISPUTE".
        title: Short headline.
        message: Human-readable body.
        metadata: JSON-serializable context (ids, statuses).
    """

    user_id: uuid.UUID
    type: str
    title: str
    message: str
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize for logging."""
        return {
            "user_id": str(self.user_id),
            "type": self.type,
            "title": self.title,
            "metadata": self.metadata,
        }


@runtime_checkable
class NotificationSink(Protocol):
    """Protocol for best-effort outbound notification delivery.

    Implementations must never raise from enqueue() and never block the
    caller on delivery. Concrete implementation:
        - services/notification_service.py (NotificationDispatcher)
    """

    def enqueue(self, message: NotificationMessage) -> None:
        """Schedule a notification for delivery after the caller's commit."""
        ...

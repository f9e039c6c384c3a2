"""Domain layer - pure business logic with zero framework dependencies."""

from internhub.domain.enums import (
    ContractStatus,
    DisputeEventType,
    DisputeStatus,
    NotificationType,
    UserRole,
)
from internhub.domain.exceptions import (
    ActiveDisputeExistsError,
    ConflictError,
    ContractNotFoundError,
    DisputeAlreadyClosedError,
    DisputeNotFoundError,
    ForbiddenError,
    InternHubError,
    InvalidStateTransitionError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from internhub.domain.notification_protocol import (
    NotificationMessage,
    NotificationSink,
)
from internhub.domain.state_machine import (
    DisputeStateMachine,
    validate_transition,
)

__all__ = [
    "ContractStatus",
    "DisputeEventType",
    "DisputeStatus",
    "NotificationType",
    "UserRole",
    "ActiveDisputeExistsError",
    "ConflictError",
    "ContractNotFoundError",
    "DisputeAlreadyClosedError",
    "DisputeNotFoundError",
    "ForbiddenError",
    "InternHubError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "UnauthenticatedError",
    "ValidationError",
    "NotificationMessage",
    "NotificationSink",
    "DisputeStateMachine",
    "validate_transition",
]

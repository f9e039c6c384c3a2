"""Domain enumerations for InternHub.

These enums define the canonical statuses and tags used throughout the system.
They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class UserRole(enum.StrEnum):
    """Roles carried in the bearer token issued by the auth service."""

    STUDENT = "STUDENT"
    COMPANY = "COMPANY"


class ContractStatus(enum.StrEnum):
    """Known contract statuses.

    The contract status column is an open vocabulary; these are the values
    this service reads and writes. DISPUTED is owned by the dispute
    lifecycle and is never set directly by a company.
    """

    DRAFT = "Draft"
    PENDING = "Pending"
    ACTIVE = "Active"
    RUNNING = "Running"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    DISPUTED = "Disputed"


class DisputeStatus(enum.StrEnum):
    """Lifecycle states of a dispute.

    Transitions are enforced by the DisputeStateMachine guard.
    See domain/state_machine.py for the transition table.
    """

    OPEN = "Open"
    UNDER_REVIEW = "UnderReview"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"


# A contract is Disputed exactly while one of its disputes is in one of these.
ACTIVE_DISPUTE_STATUSES: frozenset[DisputeStatus] = frozenset(
    {DisputeStatus.OPEN, DisputeStatus.UNDER_REVIEW}
)
TERMINAL_DISPUTE_STATUSES: frozenset[DisputeStatus] = frozenset(
    {DisputeStatus.RESOLVED, DisputeStatus.REJECTED}
)

# Statuses a company may set on its own through the review endpoint.
REVIEW_STATUSES: tuple[DisputeStatus, ...] = (
    DisputeStatus.OPEN,
    DisputeStatus.UNDER_REVIEW,
)

# Statuses a contract may be released to when a dispute is resolved.
RESOLUTION_CONTRACT_STATUSES: tuple[ContractStatus, ...] = (
    ContractStatus.RUNNING,
    ContractStatus.COMPLETED,
    ContractStatus.CANCELLED,
)


class NotificationType(enum.StrEnum):
    """Type tags stored on notification records."""

    CONTRACT_CREATED = "CONTRACT_CREATED"
    CONTRACT_UPDATED = "CONTRACT_UPDATED"
    CONTRACT_DISPUTE = "CONTRACT_DISPUTE"
    DISPUTE_UPDATE = "DISPUTE_UPDATE"
    DISPUTE_RESOLVED = "DISPUTE_RESOLVED"
    DISPUTE_REJECTED = "DISPUTE_REJECTED"


class DisputeEventType(enum.StrEnum):
    """Types of audit events recorded in the dispute_events table.

    Every dispute transition produces exactly one event.
    """

    DISPUTE_FILED = "DISPUTE_FILED"
    DISPUTE_STATUS_CHANGED = "DISPUTE_STATUS_CHANGED"
    DISPUTE_RESOLVED = "DISPUTE_RESOLVED"
    DISPUTE_REJECTED = "DISPUTE_REJECTED"

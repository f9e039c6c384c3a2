"""Database infrastructure - engine, ORM models, and repositories."""

from internhub.infrastructure.database.engine import Database
from internhub.infrastructure.database.orm_models import (
    Base,
    Company,
    Contract,
    Dispute,
    DisputeEvent,
    Notification,
    Student,
    User,
)
from internhub.infrastructure.database.repositories import (
    ContractRepository,
    DisputeEventRepository,
    DisputeRepository,
    NotificationRepository,
    ProfileRepository,
)

__all__ = [
    "Base",
    "Company",
    "Contract",
    "Dispute",
    "DisputeEvent",
    "Notification",
    "Student",
    "User",
    "ContractRepository",
    "DisputeEventRepository",
    "DisputeRepository",
    "NotificationRepository",
    "ProfileRepository",
    "Database",
]

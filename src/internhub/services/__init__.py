"""Application services - use case orchestration."""

from internhub.services.contract_service import ContractService
from internhub.services.dispute_service import DisputeService
from internhub.services.notification_service import (
    NotificationDispatcher,
    NotificationService,
)
from internhub.services.unit_of_work import PageQuery, unit_of_work

__all__ = [
    "ContractService",
    "DisputeService",
    "NotificationDispatcher",
    "NotificationService",
    "PageQuery",
    "unit_of_work",
]

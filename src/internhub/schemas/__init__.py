"""Pydantic API schemas."""

from internhub.schemas.common import CamelModel, Envelope, HealthResponse, Page, page_of
from internhub.schemas.contract import (
    ContractResponse,
    CreateContractRequest,
    UpdateContractStatusRequest,
)
from internhub.schemas.dispute import (
    CompanySummary,
    ContractSummary,
    DisputeEventResponse,
    DisputeResponse,
    DisputeStatsResponse,
    FileDisputeRequest,
    RejectDisputeRequest,
    ResolveDisputeRequest,
    StudentSummary,
    UpdateDisputeStatusRequest,
)

__all__ = [
    "CamelModel",
    "CompanySummary",
    "ContractResponse",
    "ContractSummary",
    "CreateContractRequest",
    "DisputeEventResponse",
    "DisputeResponse",
    "DisputeStatsResponse",
    "Envelope",
    "FileDisputeRequest",
    "HealthResponse",
    "Page",
    "page_of",
    "RejectDisputeRequest",
    "ResolveDisputeRequest",
    "StudentSummary",
    "UpdateContractStatusRequest",
    "UpdateDisputeStatusRequest",
]

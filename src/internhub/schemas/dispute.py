"""Pydantic schemas for the Dispute API.

These schemas define the request/response shapes for the REST API. They
are separate from the ORM models to maintain clean boundaries between the
API and database layers. Business rules (non-empty reason after trimming,
allowed statuses) are enforced by DisputeService, not here.
"""

from __future__ import annotations

import uuid  # noqa: TC003 - resolved at runtime by pydantic
from datetime import datetime  # noqa: TC003 - resolved at runtime by pydantic

from pydantic import Field

from internhub.schemas.common import CamelModel

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class FileDisputeRequest(CamelModel):
    """Request body for a student filing a dispute against a contract."""

    reason: str = Field(
        ...,
        max_length=5000,
        description="Why the student disputes the contract",
        examples=["Allowance for March was not paid"],
    )
    note: str | None = Field(
        default=None,
        max_length=5000,
        description="Optional extra context",
    )


class UpdateDisputeStatusRequest(CamelModel):
    """Request body for moving a dispute between Open and UnderReview."""

    status: str = Field(..., description="Open or UnderReview", examples=["UnderReview"])


class ResolveDisputeRequest(CamelModel):
    """Request body for resolving a dispute."""

    resolution: str = Field(..., max_length=5000, description="Resolution message")
    new_contract_status: str = Field(
        ...,
        description="Status the contract moves to: Running, Completed or Cancelled",
        examples=["Running"],
    )


class RejectDisputeRequest(CamelModel):
    """Request body for rejecting a dispute."""

    resolution: str = Field(..., max_length=5000, description="Rejection reason")


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class ContractSummary(CamelModel):
    id: uuid.UUID
    contract_title: str
    in_contract_number: str
    status: str


class StudentSummary(CamelModel):
    id: uuid.UUID
    name: str
    email: str


class CompanySummary(CamelModel):
    id: uuid.UUID
    name: str


class DisputeResponse(CamelModel):
    """Response schema for a dispute with its contract and parties."""

    id: uuid.UUID
    contract_id: uuid.UUID
    student_id: uuid.UUID
    company_id: uuid.UUID
    reason: str
    note: str | None
    status: str
    previous_contract_status: str | None
    resolution: str | None
    resolved_by: uuid.UUID | None
    resolved_at: datetime | None
    created_at: datetime
    updated_at: datetime
    contract: ContractSummary
    student: StudentSummary
    company: CompanySummary


class DisputeStatsResponse(CamelModel):
    """Dispute counts for a company. `pending` is open + under review."""

    total: int
    open: int
    under_review: int
    resolved: int
    rejected: int
    pending: int


class DisputeEventResponse(CamelModel):
    """Response schema for a dispute audit event."""

    id: uuid.UUID
    dispute_id: uuid.UUID
    contract_id: uuid.UUID
    event_type: str
    old_status: str | None
    new_status: str
    contract_status: str
    actor: str
    metadata: dict | None = Field(
        default=None,
        validation_alias="metadata_json",
        serialization_alias="metadata",
    )
    created_at: datetime

"""Pydantic schemas for the Contract API."""

from __future__ import annotations

import uuid  # noqa: TC003 - resolved at runtime by pydantic
from datetime import datetime  # noqa: TC003 - resolved at runtime by pydantic
from decimal import Decimal  # noqa: TC003 - resolved at runtime by pydantic

from pydantic import Field

from internhub.schemas.common import CamelModel


class CreateContractRequest(CamelModel):
    """Request body for a company issuing a contract to a student."""

    contract_title: str = Field(..., min_length=1, max_length=200)
    email: str = Field(
        ...,
        min_length=3,
        max_length=255,
        description="Email of the student's user account",
        examples=["student@example.com"],
    )
    name: str | None = Field(
        default=None,
        max_length=200,
        description="Student name on the contract (defaults to the profile name)",
    )
    in_contract_number: str = Field(..., min_length=1, max_length=64, examples=["IC-2024-001"])
    currency: str = Field(..., min_length=1, max_length=8, examples=["USD"])
    duration: str = Field(..., min_length=1, max_length=64, examples=["6 months"])
    monthly_allowance: Decimal = Field(..., ge=0, decimal_places=2)
    salary: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    work_location: str | None = Field(default=None, max_length=200)
    note: str | None = Field(default=None, max_length=5000)
    status: str = Field(default="Running", max_length=20)
    opportunity_id: uuid.UUID | None = None


class UpdateContractStatusRequest(CamelModel):
    """Request body for changing a contract's status."""

    status: str = Field(..., max_length=20, examples=["Completed"])


class ContractResponse(CamelModel):
    """Response schema for a contract."""

    id: uuid.UUID
    company_id: uuid.UUID
    student_id: uuid.UUID
    opportunity_id: uuid.UUID | None
    contract_title: str
    in_contract_number: str
    name: str
    email: str
    currency: str
    duration: str
    monthly_allowance: Decimal
    salary: Decimal | None
    work_location: str
    note: str | None
    status: str
    created_at: datetime
    updated_at: datetime

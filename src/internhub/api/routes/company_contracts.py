"""Company-facing contract routes.

Routes:
    POST   /company/contracts                      - Issue a contract to a student
    GET    /company/contracts                      - List own contracts
    GET    /company/contracts/{contract_id}        - Get one contract
    PUT    /company/contracts/{contract_id}/status - Change status (not while Disputed)
"""

from __future__ import annotations

import uuid  # noqa: TC003 - resolved at runtime by FastAPI

from fastapi import APIRouter, Depends, Query

from internhub.api.deps import get_contract_service, get_page_query, require_company
from internhub.infrastructure.database.orm_models import Company  # noqa: TC001
from internhub.schemas.common import Envelope, Page, page_of
from internhub.schemas.contract import (
    ContractResponse,
    CreateContractRequest,
    UpdateContractStatusRequest,
)
from internhub.services.contract_service import ContractService  # noqa: TC001
from internhub.services.unit_of_work import PageQuery  # noqa: TC001

router = APIRouter(prefix="/company/contracts", tags=["Company Contracts"])


@router.post(
    "",
    response_model=Envelope[ContractResponse],
    status_code=201,
    summary="Issue a contract",
)
async def create_contract(
    request: CreateContractRequest,
    company: Company = Depends(require_company),
    svc: ContractService = Depends(get_contract_service),
) -> Envelope[ContractResponse]:
    """Issue a contract to the student whose account uses `email`."""
    contract = await svc.create_contract(
        company=company,
        contract_title=request.contract_title,
        email=request.email,
        in_contract_number=request.in_contract_number,
        currency=request.currency,
        duration=request.duration,
        monthly_allowance=request.monthly_allowance,
        name=request.name,
        salary=request.salary,
        work_location=request.work_location,
        note=request.note,
        status=request.status,
        opportunity_id=request.opportunity_id,
    )
    return Envelope(
        data=ContractResponse.model_validate(contract),
        message="Contract created successfully",
    )


@router.get("", response_model=Envelope[Page[ContractResponse]], summary="List your contracts")
async def list_contracts(
    status: str | None = Query(default=None, description="Filter by contract status"),
    search: str | None = Query(
        default=None, description="Match title, student name or contract number"
    ),
    page: PageQuery = Depends(get_page_query),
    company: Company = Depends(require_company),
    svc: ContractService = Depends(get_contract_service),
) -> Envelope[Page[ContractResponse]]:
    contracts, total = await svc.list_for_company(company, page, status=status, search=search)
    return Envelope(data=page_of(ContractResponse, contracts, total, page))


@router.get("/{contract_id}", response_model=Envelope[ContractResponse], summary="Get a contract")
async def get_contract(
    contract_id: uuid.UUID,
    company: Company = Depends(require_company),
    svc: ContractService = Depends(get_contract_service),
) -> Envelope[ContractResponse]:
    contract = await svc.get_for_company(company, contract_id)
    return Envelope(data=ContractResponse.model_validate(contract))


@router.put(
    "/{contract_id}/status",
    response_model=Envelope[ContractResponse],
    summary="Change a contract's status",
)
async def update_contract_status(
    contract_id: uuid.UUID,
    request: UpdateContractStatusRequest,
    company: Company = Depends(require_company),
    svc: ContractService = Depends(get_contract_service),
) -> Envelope[ContractResponse]:
    """Disputed contracts are changed through the dispute endpoints instead."""
    contract = await svc.update_status(company, contract_id, request.status)
    return Envelope(
        data=ContractResponse.model_validate(contract),
        message="Contract status updated successfully",
    )

"""Student-facing contract routes (read only)."""

from __future__ import annotations

import uuid  # noqa: TC003 - resolved at runtime by FastAPI

from fastapi import APIRouter, Depends, Query

from internhub.api.deps import get_contract_service, get_page_query, require_student
from internhub.infrastructure.database.orm_models import Student  # noqa: TC001
from internhub.schemas.common import Envelope, Page, page_of
from internhub.schemas.contract import ContractResponse
from internhub.services.contract_service import ContractService  # noqa: TC001
from internhub.services.unit_of_work import PageQuery  # noqa: TC001

router = APIRouter(prefix="/api/student/contracts", tags=["Student Contracts"])


@router.get("", response_model=Envelope[Page[ContractResponse]], summary="List your contracts")
async def list_contracts(
    status: str | None = Query(default=None, description="Filter by contract status"),
    page: PageQuery = Depends(get_page_query),
    student: Student = Depends(require_student),
    svc: ContractService = Depends(get_contract_service),
) -> Envelope[Page[ContractResponse]]:
    contracts, total = await svc.list_for_student(student, page, status=status)
    return Envelope(data=page_of(ContractResponse, contracts, total, page))


@router.get(
    "/{contract_id}", response_model=Envelope[ContractResponse], summary="Get one of your contracts"
)
async def get_contract(
    contract_id: uuid.UUID,
    student: Student = Depends(require_student),
    svc: ContractService = Depends(get_contract_service),
) -> Envelope[ContractResponse]:
    contract = await svc.get_for_student(student, contract_id)
    return Envelope(data=ContractResponse.model_validate(contract))

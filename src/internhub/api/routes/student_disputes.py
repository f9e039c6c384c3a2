"""Student-facing dispute routes.

Routes:
    POST   /api/student/contracts/{contract_id}/dispute - File a dispute
    GET    /api/student/disputes                        - List own disputes
    GET    /api/student/disputes/{dispute_id}           - Get one own dispute
"""

from __future__ import annotations

import uuid  # noqa: TC003 - resolved at runtime by FastAPI

from fastapi import APIRouter, Depends, Query

from internhub.api.deps import get_dispute_service, get_page_query, require_student
from internhub.infrastructure.database.orm_models import Student  # noqa: TC001
from internhub.schemas.common import Envelope, Page, page_of
from internhub.schemas.dispute import DisputeResponse, FileDisputeRequest
from internhub.services.dispute_service import DisputeService  # noqa: TC001
from internhub.services.unit_of_work import PageQuery  # noqa: TC001

router = APIRouter(prefix="/api/student", tags=["Student Disputes"])


@router.post(
    "/contracts/{contract_id}/dispute",
    response_model=Envelope[DisputeResponse],
    status_code=201,
    summary="File a dispute against one of your contracts",
)
async def file_dispute(
    contract_id: uuid.UUID,
    request: FileDisputeRequest,
    student: Student = Depends(require_student),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[DisputeResponse]:
    """Open a dispute. The contract moves to Disputed in the same transaction."""
    dispute = await svc.file_dispute(
        student=student,
        contract_id=contract_id,
        reason=request.reason,
        note=request.note,
    )
    return Envelope(
        data=DisputeResponse.model_validate(dispute),
        message="Dispute filed successfully",
    )


@router.get(
    "/disputes",
    response_model=Envelope[Page[DisputeResponse]],
    summary="List your disputes",
)
async def list_disputes(
    status: str | None = Query(default=None, description="Filter by dispute status"),
    page: PageQuery = Depends(get_page_query),
    student: Student = Depends(require_student),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[Page[DisputeResponse]]:
    disputes, total = await svc.list_for_student(student, page, status=status)
    return Envelope(data=page_of(DisputeResponse, disputes, total, page))


@router.get(
    "/disputes/{dispute_id}",
    response_model=Envelope[DisputeResponse],
    summary="Get one of your disputes",
)
async def get_dispute(
    dispute_id: uuid.UUID,
    student: Student = Depends(require_student),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[DisputeResponse]:
    dispute = await svc.get_for_student(student, dispute_id)
    return Envelope(data=DisputeResponse.model_validate(dispute))

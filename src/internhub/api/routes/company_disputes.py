"""Company-facing dispute routes.

Routes:
    GET    /company/disputes                     - List disputes on own contracts
    GET    /company/disputes/stats               - Counts by status
    GET    /company/disputes/{dispute_id}        - Get one dispute
    GET    /company/disputes/{dispute_id}/events - Audit trail
    PUT    /company/disputes/{dispute_id}/status - Open <-> UnderReview
    PUT    /company/disputes/{dispute_id}/resolve - Resolve + release contract
    PUT    /company/disputes/{dispute_id}/reject  - Reject + restore contract

/stats is registered before /{dispute_id} so it is not parsed as an id.
"""

from __future__ import annotations

import uuid  # noqa: TC003 - resolved at runtime by FastAPI

from fastapi import APIRouter, Depends, Query

from internhub.api.deps import get_dispute_service, get_page_query, require_company
from internhub.infrastructure.database.orm_models import Company  # noqa: TC001
from internhub.schemas.common import Envelope, Page, page_of
from internhub.schemas.dispute import (
    DisputeEventResponse,
    DisputeResponse,
    DisputeStatsResponse,
    RejectDisputeRequest,
    ResolveDisputeRequest,
    UpdateDisputeStatusRequest,
)
from internhub.services.dispute_service import DisputeService  # noqa: TC001
from internhub.services.unit_of_work import PageQuery  # noqa: TC001

router = APIRouter(prefix="/company/disputes", tags=["Company Disputes"])


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=Envelope[Page[DisputeResponse]],
    summary="List disputes on your contracts",
)
async def list_disputes(
    status: str | None = Query(default=None, description="Filter by dispute status"),
    page: PageQuery = Depends(get_page_query),
    company: Company = Depends(require_company),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[Page[DisputeResponse]]:
    disputes, total = await svc.list_for_company(company, page, status=status)
    return Envelope(data=page_of(DisputeResponse, disputes, total, page))


@router.get(
    "/stats",
    response_model=Envelope[DisputeStatsResponse],
    summary="Dispute counts by status",
)
async def dispute_stats(
    company: Company = Depends(require_company),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[DisputeStatsResponse]:
    stats = await svc.get_stats(company)
    return Envelope(data=DisputeStatsResponse(**stats))


@router.get(
    "/{dispute_id}",
    response_model=Envelope[DisputeResponse],
    summary="Get a dispute",
)
async def get_dispute(
    dispute_id: uuid.UUID,
    company: Company = Depends(require_company),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[DisputeResponse]:
    dispute = await svc.get_for_company(company, dispute_id)
    return Envelope(data=DisputeResponse.model_validate(dispute))


@router.get(
    "/{dispute_id}/events",
    response_model=Envelope[list[DisputeEventResponse]],
    summary="Get the audit trail of a dispute",
)
async def get_dispute_events(
    dispute_id: uuid.UUID,
    company: Company = Depends(require_company),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[list[DisputeEventResponse]]:
    """Return every transition recorded for the dispute, oldest first."""
    events = await svc.get_events(company, dispute_id)
    return Envelope(data=[DisputeEventResponse.model_validate(e) for e in events])


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


@router.put(
    "/{dispute_id}/status",
    response_model=Envelope[DisputeResponse],
    summary="Mark a dispute Open or UnderReview",
)
async def update_dispute_status(
    dispute_id: uuid.UUID,
    request: UpdateDisputeStatusRequest,
    company: Company = Depends(require_company),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[DisputeResponse]:
    """Change the review status. The contract stays Disputed."""
    dispute = await svc.update_status(company, dispute_id, request.status)
    return Envelope(
        data=DisputeResponse.model_validate(dispute),
        message="Dispute status updated successfully",
    )


@router.put(
    "/{dispute_id}/resolve",
    response_model=Envelope[DisputeResponse],
    summary="Resolve a dispute",
)
async def resolve_dispute(
    dispute_id: uuid.UUID,
    request: ResolveDisputeRequest,
    company: Company = Depends(require_company),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[DisputeResponse]:
    """Resolve the dispute and move the contract to newContractStatus."""
    dispute = await svc.resolve_dispute(
        company=company,
        dispute_id=dispute_id,
        resolution=request.resolution,
        new_contract_status=request.new_contract_status,
    )
    return Envelope(
        data=DisputeResponse.model_validate(dispute),
        message="Dispute resolved successfully",
    )


@router.put(
    "/{dispute_id}/reject",
    response_model=Envelope[DisputeResponse],
    summary="Reject a dispute",
)
async def reject_dispute(
    dispute_id: uuid.UUID,
    request: RejectDisputeRequest,
    company: Company = Depends(require_company),
    svc: DisputeService = Depends(get_dispute_service),
) -> Envelope[DisputeResponse]:
    """Reject the dispute and return the contract to its pre-dispute status."""
    dispute = await svc.reject_dispute(
        company=company,
        dispute_id=dispute_id,
        resolution=request.resolution,
    )
    return Envelope(
        data=DisputeResponse.model_validate(dispute),
        message="Dispute rejected successfully",
    )

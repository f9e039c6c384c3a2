"""Dispute Service - the contract/dispute lifecycle manager.

This is the application layer that coordinates between:
    - Domain state machine (transition guard)
    - Repositories (contracts, disputes, audit events)
    - Notification sink (best-effort, after commit)

Every mutating operation runs as one unit of work: the dispute row, the
contract row and the audit event commit together or not at all. Rows are
locked contract first, then dispute, so concurrent requests on the same
contract serialize in the database. Notifications are enqueued only once
the commit has succeeded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from statemachine.exceptions import TransitionNotAllowed

from internhub.domain.enums import (
    RESOLUTION_CONTRACT_STATUSES,
    REVIEW_STATUSES,
    TERMINAL_DISPUTE_STATUSES,
    ContractStatus,
    DisputeEventType,
    DisputeStatus,
    NotificationType,
)
from internhub.domain.exceptions import (
    ActiveDisputeExistsError,
    ContractNotFoundError,
    DisputeAlreadyClosedError,
    DisputeNotFoundError,
    ForbiddenError,
    InvalidStateTransitionError,
    ValidationError,
)
from internhub.domain.notification_protocol import NotificationMessage
from internhub.domain.state_machine import REVIEW_EVENTS, validate_transition
from internhub.infrastructure.database.orm_models import Dispute
from internhub.infrastructure.database.repositories import (
    ContractRepository,
    DisputeEventRepository,
    DisputeRepository,
)
from internhub.logging_config import get_logger
from internhub.services.unit_of_work import unit_of_work

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from internhub.domain.notification_protocol import NotificationSink
    from internhub.infrastructure.database.orm_models import (
        Company,
        Contract,
        DisputeEvent,
        Student,
    )
    from internhub.services.unit_of_work import PageQuery

logger = get_logger(__name__)


class DisputeService:
    """Manages the dispute lifecycle and its coupling to contract status."""

    def __init__(self, session: AsyncSession, notifier: NotificationSink) -> None:
        self._session = session
        self._notifier = notifier
        self._contract_repo = ContractRepository(session)
        self._dispute_repo = DisputeRepository(session)
        self._event_repo = DisputeEventRepository(session)

    # ------------------------------------------------------------------
    # File (student)
    # ------------------------------------------------------------------

    async def file_dispute(
        self,
        student: Student,
        contract_id: uuid.UUID,
        reason: str,
        note: str | None = None,
    ) -> Dispute:
        """Open a dispute on one of the student's contracts.

        The contract moves to Disputed in the same transaction. Its status
        before filing is kept on the dispute so a rejection can restore it.
        """
        reason = _require_text(reason, "Dispute reason is required")
        note = note.strip() or None if note else None

        async with unit_of_work(self._session):
            contract = await self._contract_repo.get_for_update(contract_id)
            if contract is None:
                raise ContractNotFoundError(str(contract_id))
            if contract.student_id != student.id:
                raise ForbiddenError("Access denied. This contract does not belong to you.")

            if await self._dispute_repo.get_active_for_contract(contract.id) is not None:
                raise ActiveDisputeExistsError(str(contract_id))

            previous_status = contract.status
            dispute = Dispute(
                contract=contract,
                student=contract.student,
                company=contract.company,
                reason=reason,
                note=note,
                status=DisputeStatus.OPEN.value,
                previous_contract_status=previous_status,
            )
            try:
                dispute = await self._dispute_repo.create(dispute)
            except IntegrityError as err:
                # Lost a race: another request opened a dispute after our check.
                raise ActiveDisputeExistsError(str(contract_id)) from err

            await self._contract_repo.update_status(contract, ContractStatus.DISPUTED.value)
            await self._event_repo.record(
                dispute=dispute,
                event_type=DisputeEventType.DISPUTE_FILED,
                old_status=None,
                contract_status=contract.status,
                actor=student.user_id,
                metadata={"reason": reason, "previous_contract_status": previous_status},
            )

        self._notifier.enqueue(
            NotificationMessage(
                user_id=contract.company.user_id,
                type=NotificationType.CONTRACT_DISPUTE.value,
                title="Contract Dispute Filed",
                message=(
                    f'{student.name} has filed a dispute for contract '
                    f'"{contract.contract_title}" ({contract.in_contract_number}). '
                    f"Reason: {reason}"
                ),
                metadata={
                    "disputeId": str(dispute.id),
                    "contractId": str(contract.id),
                    "studentId": str(student.id),
                    "studentName": student.name,
                },
            )
        )
        logger.info(
            "dispute.filed",
            dispute_id=str(dispute.id),
            contract_id=str(contract.id),
            student_id=str(student.id),
            company_id=str(contract.company_id),
        )
        return dispute

    # ------------------------------------------------------------------
    # Review (company)
    # ------------------------------------------------------------------

    async def update_status(
        self,
        company: Company,
        dispute_id: uuid.UUID,
        status: str,
    ) -> Dispute:
        """Move a dispute between Open and UnderReview. The contract stays Disputed."""
        if status not in REVIEW_STATUSES:
            allowed = ", ".join(s.value for s in REVIEW_STATUSES)
            raise ValidationError(f"Status must be one of: {allowed}")
        target = DisputeStatus(status)

        async with unit_of_work(self._session):
            dispute = await self._get_owned_by_company(company, dispute_id)
            dispute = await self._lock_dispute(dispute.id)
            old_status = dispute.status
            new_status = self._fire_transition(dispute, REVIEW_EVENTS[target])
            await self._dispute_repo.update_status(dispute, new_status)
            await self._event_repo.record(
                dispute=dispute,
                event_type=DisputeEventType.DISPUTE_STATUS_CHANGED,
                old_status=old_status,
                contract_status=dispute.contract.status,
                actor=company.user_id,
            )

        self._notifier.enqueue(
            NotificationMessage(
                user_id=dispute.student.user_id,
                type=NotificationType.DISPUTE_UPDATE.value,
                title="Dispute Status Updated",
                message=(
                    f'Your dispute for contract "{dispute.contract.contract_title}" '
                    f"has been marked as {new_status}"
                ),
                metadata={
                    "disputeId": str(dispute.id),
                    "contractId": str(dispute.contract_id),
                    "status": new_status,
                },
            )
        )
        logger.info(
            "dispute.status_updated",
            dispute_id=str(dispute.id),
            old_status=old_status,
            new_status=new_status,
        )
        return dispute

    # ------------------------------------------------------------------
    # Close (company)
    # ------------------------------------------------------------------

    async def resolve_dispute(
        self,
        company: Company,
        dispute_id: uuid.UUID,
        resolution: str,
        new_contract_status: str,
    ) -> Dispute:
        """Resolve a dispute and release the contract to the chosen status."""
        resolution = _require_text(resolution, "Resolution message is required")
        if new_contract_status not in RESOLUTION_CONTRACT_STATUSES:
            allowed = ", ".join(s.value for s in RESOLUTION_CONTRACT_STATUSES)
            raise ValidationError(f"Contract status must be one of: {allowed}")

        async with unit_of_work(self._session):
            dispute, contract = await self._lock_for_closing(company, dispute_id)
            old_status = dispute.status
            new_status = self._fire_transition(dispute, "resolve")
            await self._dispute_repo.close(dispute, new_status, resolution, company.user_id)
            await self._contract_repo.update_status(contract, str(new_contract_status))
            await self._event_repo.record(
                dispute=dispute,
                event_type=DisputeEventType.DISPUTE_RESOLVED,
                old_status=old_status,
                contract_status=contract.status,
                actor=company.user_id,
                metadata={"resolution": resolution},
            )

        self._notifier.enqueue(
            NotificationMessage(
                user_id=dispute.student.user_id,
                type=NotificationType.DISPUTE_RESOLVED.value,
                title="Dispute Resolved",
                message=(
                    f'Your dispute for contract "{contract.contract_title}" has been '
                    f"resolved. {company.name}: {resolution}"
                ),
                metadata={
                    "disputeId": str(dispute.id),
                    "contractId": str(contract.id),
                    "resolution": resolution,
                    "newContractStatus": contract.status,
                },
            )
        )
        logger.info(
            "dispute.resolved",
            dispute_id=str(dispute.id),
            company_id=str(company.id),
            contract_id=str(contract.id),
            new_contract_status=contract.status,
        )
        return dispute

    async def reject_dispute(
        self,
        company: Company,
        dispute_id: uuid.UUID,
        resolution: str,
    ) -> Dispute:
        """Reject a dispute and give the contract back its pre-dispute status."""
        resolution = _require_text(resolution, "Rejection reason is required")

        async with unit_of_work(self._session):
            dispute, contract = await self._lock_for_closing(company, dispute_id)
            old_status = dispute.status
            new_status = self._fire_transition(dispute, "reject")
            await self._dispute_repo.close(dispute, new_status, resolution, company.user_id)
            if contract.status == ContractStatus.DISPUTED:
                await self._contract_repo.update_status(
                    contract, _restorable_status(dispute.previous_contract_status)
                )
            await self._event_repo.record(
                dispute=dispute,
                event_type=DisputeEventType.DISPUTE_REJECTED,
                old_status=old_status,
                contract_status=contract.status,
                actor=company.user_id,
                metadata={"resolution": resolution},
            )

        self._notifier.enqueue(
            NotificationMessage(
                user_id=dispute.student.user_id,
                type=NotificationType.DISPUTE_REJECTED.value,
                title="Dispute Rejected",
                message=(
                    f'Your dispute for contract "{contract.contract_title}" has been '
                    f"rejected. {company.name}: {resolution}"
                ),
                metadata={
                    "disputeId": str(dispute.id),
                    "contractId": str(contract.id),
                    "resolution": resolution,
                },
            )
        )
        logger.info(
            "dispute.rejected",
            dispute_id=str(dispute.id),
            company_id=str(company.id),
            contract_id=str(contract.id),
            restored_contract_status=contract.status,
        )
        return dispute

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_for_student(self, student: Student, dispute_id: uuid.UUID) -> Dispute:
        dispute = await self._dispute_repo.get_by_id(dispute_id)
        if dispute is None:
            raise DisputeNotFoundError(str(dispute_id))
        if dispute.student_id != student.id:
            raise ForbiddenError("Access denied. This dispute does not belong to you.")
        return dispute

    async def get_for_company(self, company: Company, dispute_id: uuid.UUID) -> Dispute:
        return await self._get_owned_by_company(company, dispute_id)

    async def list_for_student(
        self, student: Student, page: PageQuery, status: str | None = None
    ) -> tuple[list[Dispute], int]:
        return await self._dispute_repo.list_for_student(
            student.id, page.offset, page.page_size, status=status
        )

    async def list_for_company(
        self, company: Company, page: PageQuery, status: str | None = None
    ) -> tuple[list[Dispute], int]:
        return await self._dispute_repo.list_for_company(
            company.id, page.offset, page.page_size, status=status
        )

    async def get_stats(self, company: Company) -> dict[str, int]:
        """Count a company's disputes by status."""
        counts = await self._dispute_repo.count_by_status(company.id)
        open_ = counts.get(DisputeStatus.OPEN.value, 0)
        under_review = counts.get(DisputeStatus.UNDER_REVIEW.value, 0)
        return {
            "total": sum(counts.values()),
            "open": open_,
            "under_review": under_review,
            "resolved": counts.get(DisputeStatus.RESOLVED.value, 0),
            "rejected": counts.get(DisputeStatus.REJECTED.value, 0),
            "pending": open_ + under_review,
        }

    async def get_events(self, company: Company, dispute_id: uuid.UUID) -> list[DisputeEvent]:
        """Audit trail of a dispute, oldest first."""
        dispute = await self._get_owned_by_company(company, dispute_id)
        return await self._event_repo.get_by_dispute(dispute.id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_owned_by_company(self, company: Company, dispute_id: uuid.UUID) -> Dispute:
        dispute = await self._dispute_repo.get_by_id(dispute_id)
        if dispute is None:
            raise DisputeNotFoundError(str(dispute_id))
        if dispute.company_id != company.id:
            raise ForbiddenError("Access denied. This dispute does not belong to your company.")
        return dispute

    async def _lock_dispute(self, dispute_id: uuid.UUID) -> Dispute:
        dispute = await self._dispute_repo.get_for_update(dispute_id)
        if dispute is None:
            raise DisputeNotFoundError(str(dispute_id))
        return dispute

    async def _lock_for_closing(
        self, company: Company, dispute_id: uuid.UUID
    ) -> tuple[Dispute, Contract]:
        dispute = await self._get_owned_by_company(company, dispute_id)
        contract = await self._contract_repo.get_for_update(dispute.contract_id)
        if contract is None:
            raise ContractNotFoundError(str(dispute.contract_id))
        # Re-read under lock: a concurrent close may have committed meanwhile.
        return await self._lock_dispute(dispute.id), contract

    def _fire_transition(self, dispute: Dispute, event_name: str) -> str:
        """Validate a state machine transition and return the new status.

        Raises DisputeAlreadyClosedError for terminal disputes and
        InvalidStateTransitionError for any other illegal transition.
        """
        if dispute.status in TERMINAL_DISPUTE_STATUSES:
            raise DisputeAlreadyClosedError(str(dispute.id), dispute.status)
        try:
            return validate_transition(dispute.status, event_name)
        except (TransitionNotAllowed, ValueError) as err:
            raise InvalidStateTransitionError(dispute.status, event_name) from err


def _require_text(value: str | None, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(message)
    return value


def _restorable_status(previous_status: str | None) -> str:
    """Status a contract returns to when its dispute is rejected."""
    if not previous_status or previous_status == ContractStatus.DISPUTED:
        return ContractStatus.RUNNING.value
    return previous_status

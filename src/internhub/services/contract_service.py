"""Contract Service - company-side contract issue and status management.

The Disputed status is owned by the dispute lifecycle: this service never
sets it, and refuses to change a contract while it is under dispute.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from internhub.domain.enums import ContractStatus, NotificationType
from internhub.domain.exceptions import (
    ContractNotFoundError,
    ContractUnderDisputeError,
    ForbiddenError,
    StudentNotFoundError,
    ValidationError,
)
from internhub.domain.notification_protocol import NotificationMessage
from internhub.infrastructure.database.orm_models import Contract
from internhub.infrastructure.database.repositories import (
    ContractRepository,
    ProfileRepository,
)
from internhub.logging_config import get_logger
from internhub.services.unit_of_work import unit_of_work

if TYPE_CHECKING:
    import uuid
    from decimal import Decimal

    from sqlalchemy.ext.asyncio import AsyncSession

    from internhub.domain.notification_protocol import NotificationSink
    from internhub.infrastructure.database.orm_models import Company, Student
    from internhub.services.unit_of_work import PageQuery

logger = get_logger(__name__)


class ContractService:
    """Issues contracts and manages their non-dispute status changes."""

    def __init__(self, session: AsyncSession, notifier: NotificationSink) -> None:
        self._session = session
        self._notifier = notifier
        self._contract_repo = ContractRepository(session)
        self._profile_repo = ProfileRepository(session)

    async def create_contract(
        self,
        company: Company,
        contract_title: str,
        email: str,
        in_contract_number: str,
        currency: str,
        duration: str,
        monthly_allowance: Decimal,
        name: str | None = None,
        salary: Decimal | None = None,
        work_location: str | None = None,
        note: str | None = None,
        status: str = ContractStatus.RUNNING.value,
        opportunity_id: uuid.UUID | None = None,
    ) -> Contract:
        """Issue a contract to the student registered under `email`."""
        _check_settable_status(status)

        async with unit_of_work(self._session):
            student = await self._profile_repo.get_student_by_email(email)
            if student is None:
                raise StudentNotFoundError(email)

            contract = Contract(
                company_id=company.id,
                student_id=student.id,
                opportunity_id=opportunity_id,
                contract_title=contract_title.strip(),
                in_contract_number=in_contract_number.strip(),
                name=(name or "").strip() or student.name,
                email=student.email,
                currency=currency,
                duration=duration,
                monthly_allowance=monthly_allowance,
                salary=salary,
                work_location=(work_location or "").strip(),
                note=(note or "").strip() or None,
                status=status,
            )
            contract = await self._contract_repo.create(contract)

        self._notifier.enqueue(
            NotificationMessage(
                user_id=student.user_id,
                type=NotificationType.CONTRACT_CREATED.value,
                title="New contract created",
                message=f'A contract "{contract.contract_title}" has been created for you',
                metadata={"contractId": str(contract.id), "companyId": str(company.id)},
            )
        )
        logger.info(
            "contract.created",
            contract_id=str(contract.id),
            company_id=str(company.id),
            student_id=str(student.id),
            status=contract.status,
        )
        return contract

    async def update_status(
        self, company: Company, contract_id: uuid.UUID, status: str
    ) -> Contract:
        """Change a contract's status outside of the dispute flow."""
        _check_settable_status(status)

        async with unit_of_work(self._session):
            contract = await self._contract_repo.get_for_update(contract_id)
            if contract is None:
                raise ContractNotFoundError(str(contract_id))
            if contract.company_id != company.id:
                raise ForbiddenError(
                    "Access denied. This contract does not belong to your company."
                )
            if contract.status == ContractStatus.DISPUTED:
                raise ContractUnderDisputeError(str(contract_id))
            old_status = contract.status
            await self._contract_repo.update_status(contract, status)

        self._notifier.enqueue(
            NotificationMessage(
                user_id=contract.student.user_id,
                type=NotificationType.CONTRACT_UPDATED.value,
                title="Contract updated",
                message=(
                    f'Your contract "{contract.contract_title}" has been updated '
                    f"- Status: {contract.status}"
                ),
                metadata={"contractId": str(contract.id), "status": contract.status},
            )
        )
        logger.info(
            "contract.status_updated",
            contract_id=str(contract.id),
            old_status=old_status,
            new_status=contract.status,
        )
        return contract

    async def get_for_company(self, company: Company, contract_id: uuid.UUID) -> Contract:
        contract = await self._contract_repo.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        if contract.company_id != company.id:
            raise ForbiddenError("Access denied. This contract does not belong to your company.")
        return contract

    async def get_for_student(self, student: Student, contract_id: uuid.UUID) -> Contract:
        contract = await self._contract_repo.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        if contract.student_id != student.id:
            raise ForbiddenError("Access denied. This contract does not belong to you.")
        return contract

    async def list_for_company(
        self,
        company: Company,
        page: PageQuery,
        status: str | None = None,
        search: str | None = None,
    ) -> tuple[list[Contract], int]:
        return await self._contract_repo.list_for_company(
            company.id,
            page.offset,
            page.page_size,
            status=status,
            search=(search or "").strip() or None,
        )

    async def list_for_student(
        self, student: Student, page: PageQuery, status: str | None = None
    ) -> tuple[list[Contract], int]:
        return await self._contract_repo.list_for_student(
            student.id, page.offset, page.page_size, status=status
        )


def _check_settable_status(status: str) -> None:
    if not status or not status.strip():
        raise ValidationError("Contract status is required")
    if status == ContractStatus.DISPUTED:
        raise ValidationError(
            "Contract status cannot be set to Disputed; file a dispute instead"
        )

"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the service layer. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select

from internhub.infrastructure.database.orm_models import (
    Company,
    Contract,
    Dispute,
    DisputeEvent,
    Notification,
    Student,
    User,
)

if TYPE_CHECKING:
    import uuid

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from internhub.domain.enums import DisputeEventType


class ProfileRepository:
    """Read access to users and their student/company profiles."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_student_by_user(self, user_id: uuid.UUID) -> Student | None:
        result = await self._session.execute(
            select(Student).where(Student.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_company_by_user(self, user_id: uuid.UUID) -> Company | None:
        result = await self._session.execute(
            select(Company).where(Company.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_student_by_email(self, email: str) -> Student | None:
        """Find the student profile behind a user account email."""
        result = await self._session.execute(
            select(Student)
            .join(User, User.id == Student.user_id)
            .where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()


class ContractRepository:
    """Data access for contracts."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, contract: Contract) -> Contract:
        """Insert a new contract."""
        self._session.add(contract)
        await self._session.flush()
        return contract

    async def get_by_id(self, contract_id: uuid.UUID) -> Contract | None:
        """Fetch a contract by its UUID."""
        result = await self._session.execute(
            select(Contract).where(Contract.id == contract_id)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, contract_id: uuid.UUID) -> Contract | None:
        """Fetch a contract and lock its row until the transaction ends."""
        result = await self._session.execute(
            select(Contract)
            .where(Contract.id == contract_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_company(
        self,
        company_id: uuid.UUID,
        offset: int,
        limit: int,
        status: str | None = None,
        search: str | None = None,
    ) -> tuple[list[Contract], int]:
        """Page through a company's contracts, newest first."""
        stmt = select(Contract).where(Contract.company_id == company_id)
        if status:
            stmt = stmt.where(Contract.status == status)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Contract.contract_title).like(pattern),
                    func.lower(Contract.name).like(pattern),
                    func.lower(Contract.in_contract_number).like(pattern),
                )
            )
        return await self._page(stmt, offset, limit)

    async def list_for_student(
        self,
        student_id: uuid.UUID,
        offset: int,
        limit: int,
        status: str | None = None,
    ) -> tuple[list[Contract], int]:
        """Page through a student's contracts, newest first."""
        stmt = select(Contract).where(Contract.student_id == student_id)
        if status:
            stmt = stmt.where(Contract.status == status)
        return await self._page(stmt, offset, limit)

    async def update_status(self, contract: Contract, new_status: str) -> Contract:
        """Set the contract status (callers enforce the dispute invariant)."""
        contract.status = new_status
        contract.updated_at = datetime.now(UTC)
        await self._session.flush()
        return contract

    async def _page(
        self, stmt: Select, offset: int, limit: int
    ) -> tuple[list[Contract], int]:
        total = await self._session.scalar(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        )
        result = await self._session.execute(
            stmt.order_by(Contract.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), int(total or 0)


class DisputeRepository:
    """Data access for disputes."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, dispute: Dispute) -> Dispute:
        """Insert a new dispute."""
        self._session.add(dispute)
        await self._session.flush()
        return dispute

    async def get_by_id(self, dispute_id: uuid.UUID) -> Dispute | None:
        """Fetch a dispute by its UUID."""
        result = await self._session.execute(
            select(Dispute).where(Dispute.id == dispute_id)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, dispute_id: uuid.UUID) -> Dispute | None:
        """Fetch a dispute and lock its row until the transaction ends."""
        result = await self._session.execute(
            select(Dispute)
            .where(Dispute.id == dispute_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_active_for_contract(self, contract_id: uuid.UUID) -> Dispute | None:
        """Return the Open/UnderReview dispute on a contract, if any."""
        result = await self._session.execute(
            select(Dispute)
            .where(Dispute.contract_id == contract_id)
            .where(Dispute.status.in_(("Open", "UnderReview")))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_company(
        self,
        company_id: uuid.UUID,
        offset: int,
        limit: int,
        status: str | None = None,
    ) -> tuple[list[Dispute], int]:
        """Page through disputes on a company's contracts, newest first."""
        stmt = select(Dispute).where(Dispute.company_id == company_id)
        if status:
            stmt = stmt.where(Dispute.status == status)
        return await self._page(stmt, offset, limit)

    async def list_for_student(
        self,
        student_id: uuid.UUID,
        offset: int,
        limit: int,
        status: str | None = None,
    ) -> tuple[list[Dispute], int]:
        """Page through a student's disputes, newest first."""
        stmt = select(Dispute).where(Dispute.student_id == student_id)
        if status:
            stmt = stmt.where(Dispute.status == status)
        return await self._page(stmt, offset, limit)

    async def count_by_status(self, company_id: uuid.UUID) -> dict[str, int]:
        """Return {status: count} for a company's disputes."""
        result = await self._session.execute(
            select(Dispute.status, func.count())
            .where(Dispute.company_id == company_id)
            .group_by(Dispute.status)
        )
        return {status: count for status, count in result.all()}

    async def update_status(self, dispute: Dispute, new_status: str) -> Dispute:
        """Set the dispute status (call AFTER state machine validation)."""
        dispute.status = new_status
        dispute.updated_at = datetime.now(UTC)
        await self._session.flush()
        return dispute

    async def close(
        self,
        dispute: Dispute,
        new_status: str,
        resolution: str,
        resolved_by: uuid.UUID,
    ) -> Dispute:
        """Move a dispute to a terminal status and record the outcome."""
        now = datetime.now(UTC)
        dispute.status = new_status
        dispute.resolution = resolution
        dispute.resolved_by = resolved_by
        dispute.resolved_at = now
        dispute.updated_at = now
        await self._session.flush()
        return dispute

    async def _page(
        self, stmt: Select, offset: int, limit: int
    ) -> tuple[list[Dispute], int]:
        total = await self._session.scalar(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        )
        result = await self._session.execute(
            stmt.order_by(Dispute.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), int(total or 0)


class DisputeEventRepository:
    """Data access for the append-only dispute audit log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        dispute: Dispute,
        event_type: DisputeEventType,
        old_status: str | None,
        contract_status: str,
        actor: uuid.UUID,
        metadata: dict | None = None,
    ) -> DisputeEvent:
        """Append a new audit event. This is the ONLY write operation allowed."""
        evt = DisputeEvent(
            dispute_id=dispute.id,
            contract_id=dispute.contract_id,
            event_type=event_type.value,
            old_status=old_status,
            new_status=dispute.status,
            contract_status=contract_status,
            actor=str(actor),
            metadata_json=metadata,
        )
        self._session.add(evt)
        await self._session.flush()
        return evt

    async def get_by_dispute(self, dispute_id: uuid.UUID) -> list[DisputeEvent]:
        """Fetch all events for a dispute in chronological order."""
        result = await self._session.execute(
            select(DisputeEvent)
            .where(DisputeEvent.dispute_id == dispute_id)
            .order_by(DisputeEvent.created_at.asc())
        )
        return list(result.scalars().all())


class NotificationRepository:
    """Data access for notification records."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, notification: Notification) -> Notification:
        """Insert a new notification."""
        self._session.add(notification)
        await self._session.flush()
        return notification

    async def get_by_user(self, user_id: uuid.UUID) -> list[Notification]:
        """Fetch a user's notifications, newest first."""
        result = await self._session.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars().all())

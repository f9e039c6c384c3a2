"""SQLAlchemy 2.0 ORM models for InternHub.

Tables:
    1. users            - Identity read-model (owned by the auth service).
    2. students         - Student profiles, one per STUDENT user.
    3. companies        - Company profiles, one per COMPANY user.
    4. contracts        - Engagements between one company and one student.
    5. disputes         - Student complaints about one contract.
    6. dispute_events   - Append-only audit log of every dispute transition.
    7. notifications    - Outbound inbox records (write-only from here).

Design decisions:
    - UUIDs as primary keys.
    - Decimal for allowances and salaries.
    - JSON (JSONB on PostgreSQL) for notification and event metadata.
    - CHECK constraint on dispute status; contract status is an open vocabulary.
    - Partial unique index so a contract has at most one Open/UnderReview dispute.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal  # noqa: TC003 - needed at runtime by SQLAlchemy Mapped[]

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    event,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

JSONType = JSON().with_variant(JSONB(), "postgresql")

_ACTIVE_DISPUTE_CLAUSE = "status IN ('Open', 'UnderReview')"


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Helper: auto-set updated_at on flush
# ---------------------------------------------------------------------------
def _set_updated_at(mapper, connection, target):  # noqa: ANN001
    """SQLAlchemy event listener that updates `updated_at` before flush."""
    if hasattr(target, "updated_at"):
        target.updated_at = _utcnow()


# ---------------------------------------------------------------------------
# 1-3. Identity and profiles
# ---------------------------------------------------------------------------
class User(Base):
    """An authenticated account. Tokens carry this id, email and role."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        CheckConstraint("role IN ('STUDENT', 'COMPANY')", name="ck_user_valid_role"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role}>"


class Student(Base):
    """A student profile."""

    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Student id={self.id} name={self.name!r}>"


class Company(Base):
    """A company profile."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# 4. contracts
# ---------------------------------------------------------------------------
class Contract(Base):
    """An engagement between a company and a student."""

    __tablename__ = "contracts"

    # --- Primary Key ---
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # --- Participants ---
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        comment="Issuing company (owner)",
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        comment="Counterparty student",
    )
    opportunity_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        default=None,
        comment="Opportunity this contract was derived from, if any",
    )

    # --- Terms ---
    contract_title: Mapped[str] = mapped_column(String(200), nullable=False)
    in_contract_number: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Human-readable contract number",
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, comment="Student name")
    email: Mapped[str] = mapped_column(String(255), nullable=False, comment="Student email")
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    duration: Mapped[str] = mapped_column(String(64), nullable=False)
    monthly_allowance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True, default=None)
    work_location: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    note: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    # --- Status (open vocabulary) ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Running",
        comment="Disputed only while an Open/UnderReview dispute exists",
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # --- Relationships ---
    company: Mapped[Company] = relationship("Company", lazy="selectin")
    student: Mapped[Student] = relationship("Student", lazy="selectin")

    __table_args__ = (
        CheckConstraint("monthly_allowance >= 0", name="ck_contract_allowance_non_negative"),
        Index("idx_contract_company", "company_id"),
        Index("idx_contract_student", "student_id"),
        Index("idx_contract_status", "status"),
        Index("idx_contract_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Contract id={self.id} number={self.in_contract_number} "
            f"status={self.status}>"
        )


# ---------------------------------------------------------------------------
# 5. disputes
# ---------------------------------------------------------------------------
class Dispute(Base):
    """A formal complaint raised by a student about one of their contracts."""

    __tablename__ = "disputes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # --- Back-references ---
    contract_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )

    # --- Complaint ---
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    # --- Status (Enum-guarded) ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Open",
        comment="Current lifecycle state (guarded by DisputeStateMachine)",
    )
    previous_contract_status: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        default=None,
        comment="Contract status when the dispute was filed; restored on rejection",
    )

    # --- Outcome ---
    resolution: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    resolved_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        default=None,
        comment="User id of the company member who closed the dispute",
    )
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # --- Relationships ---
    contract: Mapped[Contract] = relationship("Contract", lazy="selectin")
    student: Mapped[Student] = relationship("Student", lazy="selectin")
    company: Mapped[Company] = relationship("Company", lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "status IN ('Open', 'UnderReview', 'Resolved', 'Rejected')",
            name="ck_dispute_valid_status",
        ),
        CheckConstraint(
            "status IN ('Open', 'UnderReview') OR resolution IS NOT NULL",
            name="ck_dispute_closed_has_resolution",
        ),
        Index(
            "uq_dispute_active_per_contract",
            "contract_id",
            unique=True,
            postgresql_where=text(_ACTIVE_DISPUTE_CLAUSE),
            sqlite_where=text(_ACTIVE_DISPUTE_CLAUSE),
        ),
        Index("idx_dispute_company", "company_id"),
        Index("idx_dispute_student", "student_id"),
        Index("idx_dispute_status", "status"),
        Index("idx_dispute_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Dispute id={self.id} contract={self.contract_id} status={self.status}>"


# ---------------------------------------------------------------------------
# 6. dispute_events (Append-Only Audit Log)
# ---------------------------------------------------------------------------
class DisputeEvent(Base):
    """Immutable audit record of a dispute transition.

    This table is APPEND-ONLY. No UPDATE or DELETE operations are permitted
    at the application level.
    """

    __tablename__ = "dispute_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    dispute_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("disputes.id", ondelete="CASCADE"), nullable=False
    )
    contract_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    event_type: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        comment="DisputeEventType value (e.g., DISPUTE_FILED, DISPUTE_RESOLVED)",
    )
    old_status: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="Dispute status before (null on filing)"
    )
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    contract_status: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="Contract status after this event"
    )
    actor: Mapped[str] = mapped_column(
        String(64), nullable=False, comment="User id that triggered the event"
    )
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata", JSONType, nullable=True, default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        Index("idx_dispute_event_dispute", "dispute_id"),
        Index("idx_dispute_event_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<DisputeEvent id={self.id} type={self.event_type} "
            f"{self.old_status}->{self.new_status}>"
        )


# ---------------------------------------------------------------------------
# 7. notifications
# ---------------------------------------------------------------------------
class Notification(Base):
    """A user-facing inbox record. Created fire-and-forget, never read here."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata", JSONType, nullable=True, default=None
    )
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        Index("idx_notification_user", "user_id"),
        Index("idx_notification_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} user={self.user_id} type={self.type}>"


# ---------------------------------------------------------------------------
# Register the auto-update listener for updated_at
# ---------------------------------------------------------------------------
event.listen(Contract, "before_update", _set_updated_at)
event.listen(Dispute, "before_update", _set_updated_at)

"""Shared test fixtures for the InternHub test suite.

Provides:
    - A file-backed SQLite database per test (aiosqlite), tables created
    - Seed data: two companies, two students, contracts between them
    - A recording notification sink for service-level tests
    - Factory functions for creating test data
    - Async test support via pytest-asyncio
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from jose import jwt
from sqlalchemy import select

from internhub.config import Settings
from internhub.infrastructure.database.engine import Database
from internhub.infrastructure.database.orm_models import (
    Company,
    Contract,
    Dispute,
    Student,
    User,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from internhub.domain.notification_protocol import NotificationMessage

JWT_SECRET = "test-secret"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingSink:
    """NotificationSink that keeps every message in memory."""

    def __init__(self) -> None:
        self.messages: list[NotificationMessage] = []

    def enqueue(self, message: NotificationMessage) -> None:
        self.messages.append(message)

    def of_type(self, type_: str) -> list[NotificationMessage]:
        return [m for m in self.messages if m.type == type_]


@dataclass
class Seed:
    """Ids of the rows created by the `seed` fixture."""

    company_user_id: uuid.UUID
    company_id: uuid.UUID
    other_company_user_id: uuid.UUID
    other_company_id: uuid.UUID
    student_user_id: uuid.UUID
    student_id: uuid.UUID
    other_student_user_id: uuid.UUID
    other_student_id: uuid.UUID
    contract_id: uuid.UUID
    other_contract_id: uuid.UUID


def make_token(user_id: uuid.UUID, role: str, email: str = "user@example.com") -> str:
    """Issue a bearer token the way the auth service does."""
    return jwt.encode(
        {"id": str(user_id), "email": email, "role": role},
        JWT_SECRET,
        algorithm="HS256",
    )


def auth_header(user_id: uuid.UUID, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def make_contract(
    company_id: uuid.UUID,
    student_id: uuid.UUID,
    status: str = "Running",
    title: str = "Backend Internship",
    number: str = "IC-001",
) -> Contract:
    return Contract(
        company_id=company_id,
        student_id=student_id,
        contract_title=title,
        in_contract_number=number,
        name="Ada Student",
        email="ada@example.com",
        currency="USD",
        duration="6 months",
        monthly_allowance=Decimal("1500.00"),
        work_location="Remote",
        status=status,
    )


async def fetch(database: Database, model: type, row_id: uuid.UUID):  # noqa: ANN201
    """Load a row through a fresh session (sees only committed state)."""
    async with database.session_factory() as session:
        return await session.get(model, row_id)


async def assert_dispute_invariant(database: Database) -> None:
    """A contract is Disputed exactly when it has an Open/UnderReview dispute."""
    async with database.session_factory() as session:
        contracts = (await session.execute(select(Contract))).scalars().all()
        disputes = (await session.execute(select(Dispute))).scalars().all()
    active = {d.contract_id for d in disputes if d.status in ("Open", "UnderReview")}
    for contract in contracts:
        assert (contract.status == "Disputed") == (contract.id in active), contract


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        app_env="development",
        app_debug=False,
        app_log_level="WARNING",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'internhub-test.db'}",
        jwt_secret=JWT_SECRET,
        notification_drain_timeout_seconds=2.0,
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncIterator[Database]:
    db = Database(settings)
    db.connect()
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncIterator[AsyncSession]:
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest_asyncio.fixture
async def seed(database: Database) -> Seed:
    """Two companies and two students; one Running contract for each pair."""
    company_user = User(email="hr@acme.example", role="COMPANY")
    other_company_user = User(email="hr@globex.example", role="COMPANY")
    student_user = User(email="ada@example.com", role="STUDENT")
    other_student_user = User(email="grace@example.com", role="STUDENT")

    async with database.session_factory() as session:
        session.add_all([company_user, other_company_user, student_user, other_student_user])
        await session.flush()

        company = Company(user_id=company_user.id, name="Acme Corp")
        other_company = Company(user_id=other_company_user.id, name="Globex")
        student = Student(user_id=student_user.id, name="Ada Student", email="ada@example.com")
        other_student = Student(
            user_id=other_student_user.id, name="Grace Student", email="grace@example.com"
        )
        session.add_all([company, other_company, student, other_student])
        await session.flush()

        contract = make_contract(company.id, student.id)
        other_contract = make_contract(
            other_company.id, other_student.id, title="Data Internship", number="IC-002"
        )
        session.add_all([contract, other_contract])
        await session.commit()

        return Seed(
            company_user_id=company_user.id,
            company_id=company.id,
            other_company_user_id=other_company_user.id,
            other_company_id=other_company.id,
            student_user_id=student_user.id,
            student_id=student.id,
            other_student_user_id=other_student_user.id,
            other_student_id=other_student.id,
            contract_id=contract.id,
            other_contract_id=other_contract.id,
        )


@pytest.fixture
def fetch_row(database: Database):
    """fetch(model, id) through a fresh session."""

    async def _fetch(model: type, row_id: uuid.UUID):  # noqa: ANN202
        return await fetch(database, model, row_id)

    return _fetch


@pytest.fixture
def check_invariant(database: Database):
    """Awaitable check of the Disputed <-> active dispute invariant."""

    async def _check() -> None:
        await assert_dispute_invariant(database)

    return _check


@pytest.fixture
def add_contract(database: Database):
    """Insert and commit a contract; returns its id."""

    async def _add(
        company_id: uuid.UUID, student_id: uuid.UUID, status: str = "Running", **kwargs
    ) -> uuid.UUID:
        async with database.session_factory() as session:
            contract = make_contract(company_id, student_id, status=status, **kwargs)
            session.add(contract)
            await session.commit()
            return contract.id

    return _add


@pytest.fixture
def auth():
    """auth(user_id, role) -> Authorization header dict."""
    return auth_header

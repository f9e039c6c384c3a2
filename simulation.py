#!/usr/bin/env python3
"""InternHub Disputes - End-to-End Simulation.

Simulates five scenarios with StudentBot and CompanyBot actors:

    Scenario A: File a dispute
        - Student disputes a Running contract ("Late payment")
        - Contract moves to Disputed, company gets CONTRACT_DISPUTE

    Scenario B: Resolve
        - Company marks the dispute UnderReview, then resolves it
        - Contract goes back to Running, student gets DISPUTE_RESOLVED

    Scenario C: Reject
        - Company rejects the dispute ("Insufficient evidence")
        - Contract gets its pre-dispute status back, student gets DISPUTE_REJECTED

    Scenario D: Double resolve
        - Company resolves a dispute that is already Resolved -> Conflict

    Scenario E: Foreign company
        - A second company tries to read and resolve the dispute -> Forbidden

Usage:
    # Option A: With Docker (PostgreSQL, DATABASE_URL from .env):
    docker compose up -d
    uv run python simulation.py --postgres

    # Option B: Without Docker (temporary SQLite file):
    uv run python simulation.py

    # Run a specific scenario:
    uv run python simulation.py --scenario B
"""

from __future__ import annotations

import argparse
import asyncio
import tempfile
import uuid
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Configure structured logging BEFORE importing app modules
# ---------------------------------------------------------------------------
from internhub.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

from internhub.config import Settings  # noqa: E402
from internhub.domain.exceptions import ConflictError, ForbiddenError  # noqa: E402
from internhub.infrastructure.database.engine import Database  # noqa: E402
from internhub.infrastructure.database.orm_models import (  # noqa: E402
    Company,
    Contract,
    Dispute,
    Student,
    User,
)
from internhub.infrastructure.database.repositories import (  # noqa: E402
    NotificationRepository,
    ProfileRepository,
)
from internhub.services.contract_service import ContractService  # noqa: E402
from internhub.services.dispute_service import DisputeService  # noqa: E402
from internhub.services.notification_service import NotificationDispatcher  # noqa: E402

# Module-level state
_database: Database | None = None
_notifier: NotificationDispatcher | None = None
_tmpdir: tempfile.TemporaryDirectory | None = None


# ---------------------------------------------------------------------------
# Database lifecycle helpers
# ---------------------------------------------------------------------------
async def init_database(use_postgres: bool = False) -> None:
    """Connect, create tables and start the notification worker."""
    global _database, _notifier, _tmpdir

    if use_postgres:
        settings = Settings()
    else:
        _tmpdir = tempfile.TemporaryDirectory(prefix="internhub-sim-")
        db_path = Path(_tmpdir.name) / "simulation.db"
        settings = Settings(
            _env_file=None,
            app_log_level="INFO",
            database_url=f"sqlite+aiosqlite:///{db_path}",
        )

    _database = Database(settings)
    _database.connect()
    await _database.create_all()

    _notifier = NotificationDispatcher(
        _database.session_factory,
        max_queue_size=settings.notification_queue_size,
        drain_timeout=settings.notification_drain_timeout_seconds,
    )
    await _notifier.start()
    logger.info("simulation.database_ready", url=settings.database_url.split("@")[-1])


async def get_session() -> Any:
    """Get a fresh database session."""
    if _database is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _database.session_factory()


async def shutdown_database() -> None:
    """Drain notifications and close database connections."""
    global _database, _notifier, _tmpdir

    if _notifier is not None:
        await _notifier.stop()
        _notifier = None
    if _database is not None:
        await _database.dispose()
        _database = None
    if _tmpdir is not None:
        _tmpdir.cleanup()
        _tmpdir = None


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------
@dataclass
class StudentBot:
    """Simulated student who disputes contracts.

    Holds plain ids only; the profile is re-read for every call, the way the
    API resolves it from the bearer token.
    """

    user_id: uuid.UUID
    email: str

    async def _profile(self, session: Any) -> Student:
        return await ProfileRepository(session).get_student_by_user(self.user_id)

    async def file_dispute(self, session: Any, contract_id: uuid.UUID, reason: str) -> Any:
        svc = DisputeService(session, _notifier)
        dispute = await svc.file_dispute(await self._profile(session), contract_id, reason)
        logger.info(
            "🟢 STUDENT: Dispute filed",
            dispute_id=str(dispute.id),
            previous_contract_status=dispute.previous_contract_status,
        )
        return dispute


@dataclass
class CompanyBot:
    """Simulated company that issues contracts and processes disputes."""

    user_id: uuid.UUID

    async def _profile(self, session: Any) -> Company:
        return await ProfileRepository(session).get_company_by_user(self.user_id)

    async def issue_contract(self, session: Any, student_email: str, title: str) -> uuid.UUID:
        """Issue a Running contract to a student. Returns contract_id."""
        svc = ContractService(session, _notifier)
        contract = await svc.create_contract(
            await self._profile(session),
            contract_title=title,
            email=student_email,
            in_contract_number=f"SIM-{title[:3].upper()}",
            currency="USD",
            duration="6 months",
            monthly_allowance=Decimal("1500.00"),
            work_location="Remote",
        )
        logger.info("🔵 COMPANY: Contract issued", contract_id=str(contract.id), title=title)
        return contract.id

    async def mark_under_review(self, session: Any, dispute_id: uuid.UUID) -> Any:
        svc = DisputeService(session, _notifier)
        dispute = await svc.update_status(await self._profile(session), dispute_id, "UnderReview")
        logger.info("🔵 COMPANY: Dispute under review", dispute_id=str(dispute_id))
        return dispute

    async def resolve(
        self, session: Any, dispute_id: uuid.UUID, resolution: str, new_contract_status: str
    ) -> Any:
        svc = DisputeService(session, _notifier)
        dispute = await svc.resolve_dispute(
            await self._profile(session), dispute_id, resolution, new_contract_status
        )
        logger.info(
            "🔵 COMPANY: Dispute resolved ✅",
            dispute_id=str(dispute_id),
            contract_status=new_contract_status,
        )
        return dispute

    async def reject(self, session: Any, dispute_id: uuid.UUID, reason: str) -> Any:
        svc = DisputeService(session, _notifier)
        dispute = await svc.reject_dispute(await self._profile(session), dispute_id, reason)
        logger.info("🔵 COMPANY: Dispute rejected ❌", dispute_id=str(dispute_id))
        return dispute

    async def view(self, session: Any, dispute_id: uuid.UUID) -> Any:
        svc = DisputeService(session, _notifier)
        return await svc.get_for_company(await self._profile(session), dispute_id)

    async def events(self, session: Any, dispute_id: uuid.UUID) -> list:
        svc = DisputeService(session, _notifier)
        return await svc.get_events(await self._profile(session), dispute_id)


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------
async def seed_actors(session: Any, suffix: str) -> tuple[StudentBot, CompanyBot, CompanyBot]:
    """Create one student and two companies with their user accounts."""
    student_user = User(email=f"student-{suffix}@example.com", role="STUDENT")
    company_user = User(email=f"hr-{suffix}@acme.example", role="COMPANY")
    rival_user = User(email=f"hr-{suffix}@globex.example", role="COMPANY")
    session.add_all([student_user, company_user, rival_user])
    await session.flush()

    session.add_all(
        [
            Student(user_id=student_user.id, name="Ada Student", email=student_user.email),
            Company(user_id=company_user.id, name="Acme Corp"),
            Company(user_id=rival_user.id, name="Globex"),
        ]
    )
    await session.commit()
    return (
        StudentBot(student_user.id, student_user.email),
        CompanyBot(company_user.id),
        CompanyBot(rival_user.id),
    )


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    """Print a prominent banner."""
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    """Print a section header."""
    print(f"\n--- {text} ---\n")


async def print_state(session: Any, dispute_id: uuid.UUID, contract_id: uuid.UUID) -> None:
    """Pretty-print a dispute and its contract as currently committed."""
    dispute = await session.get(Dispute, dispute_id, populate_existing=True)
    contract = await session.get(Contract, contract_id, populate_existing=True)
    print(f"  Dispute:  {dispute.status}")
    print(f"  Contract: {contract.status}")
    if dispute.resolution:
        print(f"  Resolution: {dispute.resolution}")
    if dispute.resolved_at:
        print(f"  Closed at: {dispute.resolved_at.isoformat()}")


async def print_audit_trail(session: Any, company: CompanyBot, dispute_id: uuid.UUID) -> None:
    """Print the full audit trail for a dispute."""
    events = await company.events(session, dispute_id)
    print("\n  📜 Audit Trail:")
    for i, evt in enumerate(events, 1):
        old = evt.old_status or "(new)"
        print(
            f"    {i}. [{evt.event_type}] {old} -> {evt.new_status} "
            f"(contract {evt.contract_status}, by {evt.actor})"
        )
    print()


async def print_inbox(session: Any, user_id: uuid.UUID, who: str) -> None:
    """Print the notifications delivered to one user so far."""
    if _notifier is not None:
        await _notifier.join()
    notifications = await NotificationRepository(session).get_by_user(user_id)
    print(f"  📬 {who} inbox:")
    for n in notifications:
        print(f"    - [{n.type}] {n.message}")
    if not notifications:
        print("    (empty)")


# ===========================================================================
# Scenario A: File a dispute
# ===========================================================================
async def scenario_a_file() -> None:
    """Student disputes a Running contract."""
    banner("SCENARIO A: Student files a dispute")

    session = await get_session()
    async with session:
        student, company, _ = await seed_actors(session, "a")

        section("Step 1: Company issues a contract")
        contract_id = await company.issue_contract(session, student.email, "Backend Internship")

        section("Step 2: Student files a dispute")
        dispute = await student.file_dispute(session, contract_id, "Late payment")
        dispute_id = dispute.id
        await print_state(session, dispute_id, contract_id)

        await print_inbox(session, company.user_id, "Company")
        await print_audit_trail(session, company, dispute_id)


# ===========================================================================
# Scenario B: Resolve
# ===========================================================================
async def scenario_b_resolve() -> None:
    """Company reviews then resolves the dispute."""
    banner("SCENARIO B: Company resolves a dispute")

    session = await get_session()
    async with session:
        student, company, _ = await seed_actors(session, "b")
        contract_id = await company.issue_contract(session, student.email, "Data Internship")
        dispute_id = (await student.file_dispute(session, contract_id, "Late payment")).id

        section("Step 1: Company marks the dispute under review")
        await company.mark_under_review(session, dispute_id)

        section("Step 2: Company resolves and keeps the contract Running")
        await company.resolve(session, dispute_id, "Payment issued", "Running")
        await print_state(session, dispute_id, contract_id)

        await print_inbox(session, student.user_id, "Student")
        await print_audit_trail(session, company, dispute_id)


# ===========================================================================
# Scenario C: Reject
# ===========================================================================
async def scenario_c_reject() -> None:
    """Company rejects the dispute; the contract is restored."""
    banner("SCENARIO C: Company rejects a dispute")

    session = await get_session()
    async with session:
        student, company, _ = await seed_actors(session, "c")
        contract_id = await company.issue_contract(session, student.email, "Design Internship")
        dispute_id = (await student.file_dispute(session, contract_id, "Unpaid overtime")).id

        section("Step 1: Company rejects the dispute")
        await company.reject(session, dispute_id, "Insufficient evidence")
        await print_state(session, dispute_id, contract_id)

        await print_inbox(session, student.user_id, "Student")
        await print_audit_trail(session, company, dispute_id)


# ===========================================================================
# Scenario D: Double resolve
# ===========================================================================
async def scenario_d_double_resolve() -> None:
    """A closed dispute cannot be resolved again."""
    banner("SCENARIO D: Resolving an already resolved dispute")

    session = await get_session()
    async with session:
        student, company, _ = await seed_actors(session, "d")
        contract_id = await company.issue_contract(session, student.email, "QA Internship")
        dispute_id = (await student.file_dispute(session, contract_id, "Late payment")).id
        await company.resolve(session, dispute_id, "Payment issued", "Running")

        section("Step 1: Company resolves again, this time cancelling the contract")
        try:
            await company.resolve(session, dispute_id, "Changed my mind", "Cancelled")
            print("  ⚠️  Second resolve succeeded. This should not happen!")
        except ConflictError as exc:
            print(f"  🛡️  Rejected with {exc.code}: {exc.message}")

        section("Final Status")
        await print_state(session, dispute_id, contract_id)
        await print_audit_trail(session, company, dispute_id)


# ===========================================================================
# Scenario E: Foreign company
# ===========================================================================
async def scenario_e_foreign_company() -> None:
    """A company cannot see or touch another company's dispute."""
    banner("SCENARIO E: Foreign company is denied")

    session = await get_session()
    async with session:
        student, company, rival = await seed_actors(session, "e")
        contract_id = await company.issue_contract(session, student.email, "Ops Internship")
        dispute_id = (await student.file_dispute(session, contract_id, "Late payment")).id

        section("Step 1: Rival company tries to read the dispute")
        try:
            await rival.view(session, dispute_id)
            print("  ⚠️  Rival read the dispute. This should not happen!")
        except ForbiddenError as exc:
            print(f"  🛡️  {exc.code}: {exc.message}")

        section("Step 2: Rival company tries to resolve the dispute")
        try:
            await rival.resolve(session, dispute_id, "Not yours", "Cancelled")
            print("  ⚠️  Rival resolved the dispute. This should not happen!")
        except ForbiddenError as exc:
            print(f"  🛡️  {exc.code}: {exc.message}")

        section("Final Status")
        await print_state(session, dispute_id, contract_id)


# ===========================================================================
# Main
# ===========================================================================
SCENARIOS = {
    "A": scenario_a_file,
    "B": scenario_b_resolve,
    "C": scenario_c_reject,
    "D": scenario_d_double_resolve,
    "E": scenario_e_foreign_company,
}


async def run_all(use_postgres: bool = False) -> None:
    """Run all scenarios sequentially."""
    await init_database(use_postgres=use_postgres)
    try:
        print("\n" + "🚀" * 35)
        print("  INTERNHUB DISPUTES - SIMULATION")
        db_type = "PostgreSQL" if use_postgres else "SQLite (temporary file)"
        print(f"  Database: {db_type}")
        print("🚀" * 35 + "\n")

        for scenario in SCENARIOS.values():
            await scenario()

        print("\n" + "=" * 70)
        print("  ✅ ALL SCENARIOS COMPLETED SUCCESSFULLY")
        print("=" * 70 + "\n")
    finally:
        await shutdown_database()


async def run_scenario(name: str, use_postgres: bool = False) -> None:
    """Run a specific scenario."""
    await init_database(use_postgres=use_postgres)
    try:
        if name not in SCENARIOS:
            print(f"Unknown scenario {name}. Available: {', '.join(SCENARIOS)}")
            return
        await SCENARIOS[name]()
    finally:
        await shutdown_database()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="InternHub Disputes Simulation")
    parser.add_argument(
        "--scenario",
        type=str.upper,
        default="",
        help="Run a specific scenario (A-E). Default: run all.",
    )
    parser.add_argument(
        "--postgres",
        action="store_true",
        help="Use DATABASE_URL from the environment instead of a temporary SQLite file.",
    )
    args = parser.parse_args()

    if not args.scenario:
        asyncio.run(run_all(use_postgres=args.postgres))
    else:
        asyncio.run(run_scenario(args.scenario, use_postgres=args.postgres))

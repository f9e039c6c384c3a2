"""Tests for DisputeService against a real (SQLite) database.

These tests verify that:
    1. Filing, review, resolve and reject move dispute and contract together.
    2. A contract never has two active disputes, whichever check catches it.
    3. Closed disputes are immutable.
    4. A failure mid-transaction leaves no partial state behind.
    5. Notifications are only handed off after a successful commit.
"""

from __future__ import annotations

import uuid
from types import SimpleNamespace

import pytest
import pytest_asyncio

from internhub.domain.exceptions import (
    ActiveDisputeExistsError,
    ContractNotFoundError,
    DisputeAlreadyClosedError,
    DisputeNotFoundError,
    ForbiddenError,
    InvalidStateTransitionError,
    ValidationError,
)
from internhub.infrastructure.database.orm_models import Contract, Dispute
from internhub.infrastructure.database.repositories import (
    ContractRepository,
    DisputeRepository,
    ProfileRepository,
)
from internhub.services.dispute_service import DisputeService
from internhub.services.unit_of_work import PageQuery


@pytest_asyncio.fixture
async def actors(session, seed) -> SimpleNamespace:
    repo = ProfileRepository(session)
    return SimpleNamespace(
        student=await repo.get_student_by_user(seed.student_user_id),
        other_student=await repo.get_student_by_user(seed.other_student_user_id),
        company=await repo.get_company_by_user(seed.company_user_id),
        other_company=await repo.get_company_by_user(seed.other_company_user_id),
    )


@pytest.fixture
def svc(session, sink) -> DisputeService:
    return DisputeService(session, sink)


# ---------------------------------------------------------------------------
# File
# ---------------------------------------------------------------------------


class TestFileDispute:
    @pytest.mark.asyncio
    async def test_file_opens_dispute_and_disputes_contract(
        self, svc, actors, seed, sink, fetch_row, check_invariant
    ) -> None:
        dispute = await svc.file_dispute(
            actors.student, seed.contract_id, "  Late payment  ", note="   "
        )

        assert dispute.status == "Open"
        assert dispute.reason == "Late payment"
        assert dispute.note is None
        assert dispute.previous_contract_status == "Running"
        assert dispute.company_id == seed.company_id
        assert dispute.student_id == seed.student_id

        contract = await fetch_row(Contract, seed.contract_id)
        assert contract.status == "Disputed"
        await check_invariant()

        [message] = sink.of_type("CONTRACT_DISPUTE")
        assert message.user_id == seed.company_user_id
        assert message.title == "Contract Dispute Filed"
        assert message.message == (
            'Ada Student has filed a dispute for contract "Backend Internship" '
            "(IC-001). Reason: Late payment"
        )
        assert message.metadata["disputeId"] == str(dispute.id)

    @pytest.mark.asyncio
    async def test_file_records_audit_event(self, svc, actors, seed, session) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        events = await svc.get_events(actors.company, dispute.id)
        assert [e.event_type for e in events] == ["DISPUTE_FILED"]
        assert events[0].old_status is None
        assert events[0].new_status == "Open"
        assert events[0].contract_status == "Disputed"
        assert events[0].actor == str(seed.student_user_id)

    @pytest.mark.asyncio
    async def test_blank_reason_rejected(self, svc, actors, seed, sink) -> None:
        with pytest.raises(ValidationError, match="Dispute reason is required"):
            await svc.file_dispute(actors.student, seed.contract_id, "   ")
        assert sink.messages == []

    @pytest.mark.asyncio
    async def test_unknown_contract(self, svc, actors) -> None:
        with pytest.raises(ContractNotFoundError):
            await svc.file_dispute(actors.student, uuid.uuid4(), "Late payment")

    @pytest.mark.asyncio
    async def test_foreign_contract_forbidden(self, svc, actors, seed, fetch_row) -> None:
        with pytest.raises(ForbiddenError, match="does not belong to you"):
            await svc.file_dispute(actors.other_student, seed.contract_id, "Late payment")

        contract = await fetch_row(Contract, seed.contract_id)
        assert contract.status == "Running"

    @pytest.mark.asyncio
    async def test_second_active_dispute_conflicts(
        self, svc, actors, seed, sink, check_invariant
    ) -> None:
        await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        with pytest.raises(ActiveDisputeExistsError):
            await svc.file_dispute(actors.student, seed.contract_id, "Still late")

        assert len(sink.of_type("CONTRACT_DISPUTE")) == 1
        await check_invariant()

    @pytest.mark.asyncio
    async def test_unique_index_catches_race_loser(
        self, svc, actors, seed, sink, monkeypatch, database, check_invariant
    ) -> None:
        """Even if the in-transaction check misses, the partial index refuses."""
        first_id = (
            await svc.file_dispute(actors.student, seed.contract_id, "Late payment")
        ).id

        async def _sees_nothing(self, contract_id):  # noqa: ANN001, ANN202
            return None

        monkeypatch.setattr(DisputeRepository, "get_active_for_contract", _sees_nothing)

        with pytest.raises(ActiveDisputeExistsError):
            await svc.file_dispute(actors.student, seed.contract_id, "Racing request")

        async with database.session_factory() as fresh:
            disputes, total = await DisputeRepository(fresh).list_for_student(
                seed.student_id, 0, 10
            )
        assert total == 1
        assert disputes[0].id == first_id
        assert len(sink.of_type("CONTRACT_DISPUTE")) == 1
        await check_invariant()

    @pytest.mark.asyncio
    async def test_can_refile_after_rejection(self, svc, actors, seed, check_invariant) -> None:
        first = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")
        await svc.reject_dispute(actors.company, first.id, "Paid on time")

        second = await svc.file_dispute(actors.student, seed.contract_id, "Late again")

        assert second.id != first.id
        assert second.status == "Open"
        await check_invariant()

    @pytest.mark.asyncio
    async def test_failure_mid_filing_leaves_nothing_behind(
        self, svc, actors, seed, sink, monkeypatch, database, fetch_row, check_invariant
    ) -> None:
        async def _explode(self, contract, new_status):  # noqa: ANN001, ANN202
            raise RuntimeError("database went away")

        monkeypatch.setattr(ContractRepository, "update_status", _explode)

        with pytest.raises(RuntimeError):
            await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        async with database.session_factory() as fresh:
            _, total = await DisputeRepository(fresh).list_for_student(seed.student_id, 0, 10)
        contract = await fetch_row(Contract, seed.contract_id)
        assert total == 0
        assert contract.status == "Running"
        assert sink.messages == []
        await check_invariant()


# ---------------------------------------------------------------------------
# Review status
# ---------------------------------------------------------------------------


class TestUpdateStatus:
    @pytest.mark.asyncio
    async def test_mark_under_review_keeps_contract_disputed(
        self, svc, actors, seed, sink, fetch_row, check_invariant
    ) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        updated = await svc.update_status(actors.company, dispute.id, "UnderReview")

        assert updated.status == "UnderReview"
        contract = await fetch_row(Contract, seed.contract_id)
        assert contract.status == "Disputed"
        await check_invariant()

        [message] = sink.of_type("DISPUTE_UPDATE")
        assert message.user_id == seed.student_user_id
        assert message.message == (
            'Your dispute for contract "Backend Internship" has been marked as UnderReview'
        )

    @pytest.mark.asyncio
    async def test_back_to_open_and_same_status(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")
        await svc.update_status(actors.company, dispute.id, "UnderReview")

        reopened = await svc.update_status(actors.company, dispute.id, "Open")
        assert reopened.status == "Open"

        again = await svc.update_status(actors.company, dispute.id, "Open")
        assert again.status == "Open"

        events = await svc.get_events(actors.company, dispute.id)
        assert [(e.old_status, e.new_status) for e in events] == [
            (None, "Open"),
            ("Open", "UnderReview"),
            ("UnderReview", "Open"),
            ("Open", "Open"),
        ]

    @pytest.mark.asyncio
    async def test_closing_status_not_allowed_here(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        with pytest.raises(ValidationError, match="Open, UnderReview"):
            await svc.update_status(actors.company, dispute.id, "Resolved")

    @pytest.mark.asyncio
    async def test_terminal_dispute_is_immutable(self, svc, actors, seed, fetch_row) -> None:
        dispute_id = (await svc.file_dispute(actors.student, seed.contract_id, "Late payment")).id
        await svc.resolve_dispute(actors.company, dispute_id, "Paid", "Running")

        with pytest.raises(DisputeAlreadyClosedError):
            await svc.update_status(actors.company, dispute_id, "UnderReview")

        stored = await fetch_row(Dispute, dispute_id)
        assert stored.status == "Resolved"

    @pytest.mark.asyncio
    async def test_other_company_forbidden(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        with pytest.raises(ForbiddenError):
            await svc.update_status(actors.other_company, dispute.id, "UnderReview")

    @pytest.mark.asyncio
    async def test_unknown_dispute(self, svc, actors) -> None:
        with pytest.raises(DisputeNotFoundError):
            await svc.update_status(actors.company, uuid.uuid4(), "UnderReview")

    @pytest.mark.asyncio
    async def test_unknown_transition_is_invalid(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        with pytest.raises(InvalidStateTransitionError):
            svc._fire_transition(dispute, "archive")
        assert svc._fire_transition(dispute, "start_review") == "UnderReview"


# ---------------------------------------------------------------------------
# Resolve
# ---------------------------------------------------------------------------


class TestResolve:
    @pytest.mark.asyncio
    async def test_resolve_releases_contract(
        self, svc, actors, seed, sink, fetch_row, check_invariant
    ) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        resolved = await svc.resolve_dispute(
            actors.company, dispute.id, "  Payment issued ", "Completed"
        )

        assert resolved.status == "Resolved"
        assert resolved.resolution == "Payment issued"
        assert resolved.resolved_by == seed.company_user_id
        assert resolved.resolved_at is not None

        contract = await fetch_row(Contract, seed.contract_id)
        assert contract.status == "Completed"
        await check_invariant()

        [message] = sink.of_type("DISPUTE_RESOLVED")
        assert message.user_id == seed.student_user_id
        assert "Payment issued" in message.message
        assert "Acme Corp" in message.message
        assert message.metadata["newContractStatus"] == "Completed"

    @pytest.mark.asyncio
    async def test_resolve_from_under_review(self, svc, actors, seed, fetch_row) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")
        await svc.update_status(actors.company, dispute.id, "UnderReview")

        await svc.resolve_dispute(actors.company, dispute.id, "Paid", "Running")

        contract = await fetch_row(Contract, seed.contract_id)
        assert contract.status == "Running"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["Disputed", "Draft", "bogus"])
    async def test_invalid_contract_status(self, svc, actors, seed, status) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        with pytest.raises(ValidationError, match="Running, Completed, Cancelled"):
            await svc.resolve_dispute(actors.company, dispute.id, "Paid", status)

    @pytest.mark.asyncio
    async def test_blank_resolution(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        with pytest.raises(ValidationError, match="Resolution message is required"):
            await svc.resolve_dispute(actors.company, dispute.id, " ", "Running")

    @pytest.mark.asyncio
    async def test_repeat_resolve_conflicts_without_changes(
        self, svc, actors, seed, sink, fetch_row
    ) -> None:
        dispute_id = (await svc.file_dispute(actors.student, seed.contract_id, "Late payment")).id
        await svc.resolve_dispute(actors.company, dispute_id, "Payment issued", "Running")
        before = await fetch_row(Dispute, dispute_id)

        with pytest.raises(DisputeAlreadyClosedError):
            await svc.resolve_dispute(actors.company, dispute_id, "Changed my mind", "Cancelled")

        after = await fetch_row(Dispute, dispute_id)
        contract = await fetch_row(Contract, seed.contract_id)
        assert after.status == "Resolved"
        assert after.resolution == before.resolution == "Payment issued"
        assert after.resolved_at == before.resolved_at
        assert contract.status == "Running"
        assert len(sink.of_type("DISPUTE_RESOLVED")) == 1

    @pytest.mark.asyncio
    async def test_reject_after_resolve_conflicts(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")
        await svc.resolve_dispute(actors.company, dispute.id, "Paid", "Running")

        with pytest.raises(DisputeAlreadyClosedError):
            await svc.reject_dispute(actors.company, dispute.id, "No")

    @pytest.mark.asyncio
    async def test_failure_mid_transaction_rolls_back(
        self, svc, actors, seed, sink, monkeypatch, fetch_row, check_invariant
    ) -> None:
        dispute_id = (await svc.file_dispute(actors.student, seed.contract_id, "Late payment")).id

        async def _explode(self, contract, new_status):  # noqa: ANN001, ANN202
            raise RuntimeError("database went away")

        monkeypatch.setattr(ContractRepository, "update_status", _explode)

        with pytest.raises(RuntimeError):
            await svc.resolve_dispute(actors.company, dispute_id, "Paid", "Completed")

        stored = await fetch_row(Dispute, dispute_id)
        contract = await fetch_row(Contract, seed.contract_id)
        assert stored.status == "Open"
        assert stored.resolution is None
        assert stored.resolved_at is None
        assert contract.status == "Disputed"
        assert sink.of_type("DISPUTE_RESOLVED") == []
        await check_invariant()


# ---------------------------------------------------------------------------
# Reject
# ---------------------------------------------------------------------------


class TestReject:
    @pytest.mark.asyncio
    async def test_reject_restores_running(
        self, svc, actors, seed, sink, fetch_row, check_invariant
    ) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        rejected = await svc.reject_dispute(actors.company, dispute.id, "Insufficient evidence")

        assert rejected.status == "Rejected"
        assert rejected.resolution == "Insufficient evidence"
        assert rejected.resolved_by == seed.company_user_id
        contract = await fetch_row(Contract, seed.contract_id)
        assert contract.status == "Running"
        await check_invariant()

        [message] = sink.of_type("DISPUTE_REJECTED")
        assert message.title == "Dispute Rejected"
        assert "Insufficient evidence" in message.message

    @pytest.mark.asyncio
    async def test_reject_restores_previous_status(
        self, session, sink, actors, seed, add_contract, fetch_row
    ) -> None:
        contract_id = await add_contract(
            seed.company_id, seed.student_id, status="Active", number="IC-010"
        )
        svc = DisputeService(session, sink)
        dispute = await svc.file_dispute(actors.student, contract_id, "Hours changed")
        assert dispute.previous_contract_status == "Active"

        await svc.reject_dispute(actors.company, dispute.id, "Within agreed terms")

        contract = await fetch_row(Contract, contract_id)
        assert contract.status == "Active"

    @pytest.mark.asyncio
    async def test_reject_without_snapshot_falls_back_to_running(
        self, svc, actors, seed, session, fetch_row
    ) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")
        dispute.previous_contract_status = None
        await session.commit()

        await svc.reject_dispute(actors.company, dispute.id, "No evidence")

        contract = await fetch_row(Contract, seed.contract_id)
        assert contract.status == "Running"

    @pytest.mark.asyncio
    async def test_reject_leaves_non_disputed_contract_alone(
        self, svc, actors, seed, session, fetch_row
    ) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")
        contract = await ContractRepository(session).get_by_id(seed.contract_id)
        contract.status = "Completed"
        await session.commit()

        await svc.reject_dispute(actors.company, dispute.id, "No evidence")

        stored = await fetch_row(Contract, seed.contract_id)
        assert stored.status == "Completed"

    @pytest.mark.asyncio
    async def test_blank_rejection_reason(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        with pytest.raises(ValidationError, match="Rejection reason is required"):
            await svc.reject_dispute(actors.company, dispute.id, "")

    @pytest.mark.asyncio
    async def test_failure_mid_transaction_rolls_back(
        self, svc, actors, seed, sink, monkeypatch, fetch_row, check_invariant
    ) -> None:
        dispute_id = (await svc.file_dispute(actors.student, seed.contract_id, "Late payment")).id

        async def _explode(self, contract, new_status):  # noqa: ANN001, ANN202
            raise RuntimeError("database went away")

        monkeypatch.setattr(ContractRepository, "update_status", _explode)

        with pytest.raises(RuntimeError):
            await svc.reject_dispute(actors.company, dispute_id, "Insufficient evidence")

        stored = await fetch_row(Dispute, dispute_id)
        contract = await fetch_row(Contract, seed.contract_id)
        assert stored.status == "Open"
        assert stored.resolution is None
        assert stored.resolved_by is None
        assert contract.status == "Disputed"
        assert sink.of_type("DISPUTE_REJECTED") == []
        await check_invariant()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestReads:
    @pytest.mark.asyncio
    async def test_student_cannot_read_foreign_dispute(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        assert (await svc.get_for_student(actors.student, dispute.id)).id == dispute.id
        with pytest.raises(ForbiddenError, match="This dispute does not belong to you"):
            await svc.get_for_student(actors.other_student, dispute.id)

    @pytest.mark.asyncio
    async def test_lists_are_scoped(self, svc, actors, seed) -> None:
        await svc.file_dispute(actors.student, seed.contract_id, "Late payment")
        await svc.file_dispute(actors.other_student, seed.other_contract_id, "No equipment")

        mine, total = await svc.list_for_company(actors.company, PageQuery())
        assert total == 1
        assert mine[0].contract_id == seed.contract_id

        theirs, total = await svc.list_for_student(actors.other_student, PageQuery())
        assert total == 1
        assert theirs[0].contract_id == seed.other_contract_id

    @pytest.mark.asyncio
    async def test_list_status_filter_and_paging(
        self, svc, actors, seed, add_contract
    ) -> None:
        ids = []
        for n in range(3):
            contract_id = await add_contract(
                seed.company_id, seed.student_id, number=f"IC-1{n}"
            )
            ids.append(
                (await svc.file_dispute(actors.student, contract_id, f"Reason {n}")).id
            )
        await svc.resolve_dispute(actors.company, ids[0], "Paid", "Running")

        open_items, open_total = await svc.list_for_company(
            actors.company, PageQuery(), status="Open"
        )
        assert open_total == 2
        assert {d.id for d in open_items} == set(ids[1:])

        page, total = await svc.list_for_company(actors.company, PageQuery(page=2, page_size=2))
        assert total == 3
        assert len(page) == 1

    @pytest.mark.asyncio
    async def test_stats(self, svc, actors, seed, add_contract) -> None:
        ids = []
        for n in range(4):
            contract_id = await add_contract(
                seed.company_id, seed.student_id, number=f"IC-2{n}"
            )
            ids.append(
                (await svc.file_dispute(actors.student, contract_id, f"Reason {n}")).id
            )
        await svc.update_status(actors.company, ids[1], "UnderReview")
        await svc.resolve_dispute(actors.company, ids[2], "Paid", "Running")
        await svc.reject_dispute(actors.company, ids[3], "No")

        stats = await svc.get_stats(actors.company)

        assert stats == {
            "total": 4,
            "open": 1,
            "under_review": 1,
            "resolved": 1,
            "rejected": 1,
            "pending": 2,
        }

    @pytest.mark.asyncio
    async def test_stats_empty(self, svc, actors) -> None:
        stats = await svc.get_stats(actors.other_company)
        assert stats["total"] == 0
        assert stats["pending"] == 0

    @pytest.mark.asyncio
    async def test_events_forbidden_for_other_company(self, svc, actors, seed) -> None:
        dispute = await svc.file_dispute(actors.student, seed.contract_id, "Late payment")

        with pytest.raises(ForbiddenError):
            await svc.get_events(actors.other_company, dispute.id)

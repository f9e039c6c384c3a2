"""Tests for domain enumerations."""

from __future__ import annotations

from internhub.domain.enums import (
    ACTIVE_DISPUTE_STATUSES,
    RESOLUTION_CONTRACT_STATUSES,
    REVIEW_STATUSES,
    TERMINAL_DISPUTE_STATUSES,
    ContractStatus,
    DisputeEventType,
    DisputeStatus,
    NotificationType,
    UserRole,
)


class TestDisputeStatus:
    def test_all_statuses_exist(self) -> None:
        assert {s.value for s in DisputeStatus} == {"Open", "UnderReview", "Resolved", "Rejected"}

    def test_status_is_str_enum(self) -> None:
        assert isinstance(DisputeStatus.OPEN, str)
        assert DisputeStatus.UNDER_REVIEW == "UnderReview"

    def test_active_and_terminal_partition(self) -> None:
        assert ACTIVE_DISPUTE_STATUSES.isdisjoint(TERMINAL_DISPUTE_STATUSES)
        assert ACTIVE_DISPUTE_STATUSES | TERMINAL_DISPUTE_STATUSES == set(DisputeStatus)

    def test_review_statuses_are_active(self) -> None:
        assert set(REVIEW_STATUSES) == ACTIVE_DISPUTE_STATUSES


class TestContractStatus:
    def test_core_vocabulary(self) -> None:
        for value in ("Running", "Completed", "Cancelled", "Disputed"):
            assert ContractStatus(value) == value

    def test_resolution_targets_exclude_disputed(self) -> None:
        assert ContractStatus.DISPUTED not in RESOLUTION_CONTRACT_STATUSES
        assert [s.value for s in RESOLUTION_CONTRACT_STATUSES] == [
            "Running",
            "Completed",
            "Cancelled",
        ]


class TestTags:
    def test_notification_types(self) -> None:
        assert NotificationType.CONTRACT_DISPUTE == "CONTRACT_DISPUTE"
        assert len(NotificationType) == 6

    def test_event_types(self) -> None:
        assert len(DisputeEventType) == 4

    def test_roles(self) -> None:
        assert {r.value for r in UserRole} == {"STUDENT", "COMPANY"}

"""Dispute State Machine Guard.

Uses python-statemachine to enforce legal dispute transitions at the domain
level. No matter what the API layer does, an illegal transition (e.g.
Resolved -> Open) raises TransitionNotAllowed.

The state machine is instantiated per-dispute and validates transitions before
the ORM model's status field is updated.

Transition table:
    Open         -> UnderReview   (start_review)
    UnderReview  -> UnderReview   (start_review, no-op)
    UnderReview  -> Open          (reopen)
    Open         -> Open          (reopen, no-op)
    Open         -> Resolved      (resolve)
    UnderReview  -> Resolved      (resolve)
    Open         -> Rejected      (reject)
    UnderReview  -> Rejected      (reject)

Resolved and Rejected are final.
"""

from __future__ import annotations

from statemachine import State, StateMachine

from internhub.domain.enums import DisputeStatus


class DisputeStateMachine(StateMachine):
    """State machine that guards dispute lifecycle transitions.

    Usage:
        sm = DisputeStateMachine(current_status="Open")
        sm.start_review()  # transitions to UnderReview
        sm.status          # 'UnderReview'
    """

    # --- States ---
    OPEN = State("Open", value=DisputeStatus.OPEN.value, initial=True)
    UNDER_REVIEW = State("UnderReview", value=DisputeStatus.UNDER_REVIEW.value)
    RESOLVED = State("Resolved", value=DisputeStatus.RESOLVED.value, final=True)
    REJECTED = State("Rejected", value=DisputeStatus.REJECTED.value, final=True)

    # --- Events / Transitions ---

    # Review
    start_review = OPEN.to(UNDER_REVIEW) | UNDER_REVIEW.to.itself()
    reopen = UNDER_REVIEW.to(OPEN) | OPEN.to.itself()

    # Closing
    resolve = OPEN.to(RESOLVED) | UNDER_REVIEW.to(RESOLVED)
    reject = OPEN.to(REJECTED) | UNDER_REVIEW.to(REJECTED)

    def __init__(self, current_status: str = DisputeStatus.OPEN.value) -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: The current DisputeStatus value (e.g., "UnderReview").
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=str(current_status))

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches DisputeStatus)."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [event.name for event in self.allowed_events]


# Event fired when a company sets a dispute to one of the review statuses.
REVIEW_EVENTS: dict[DisputeStatus, str] = {
    DisputeStatus.OPEN: "reopen",
    DisputeStatus.UNDER_REVIEW: "start_review",
}


def validate_transition(current_status: str, event_name: str) -> str:
    """Validate a dispute transition and return the new status.

    Args:
        current_status: Current DisputeStatus value.
        event_name: The event to fire (e.g., "resolve").

    Returns:
        The new status string after the transition.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is invalid.
    """
    sm = DisputeStateMachine(current_status=current_status)

    event_method = getattr(sm, event_name, None)
    if event_method is None or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    event_method()
    return sm.status

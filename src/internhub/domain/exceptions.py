"""Domain exceptions for InternHub.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.

Families map onto the HTTP error taxonomy:
    ValidationError       -> 400
    UnauthenticatedError  -> 401
    ForbiddenError        -> 403
    NotFoundError         -> 404
    ConflictError         -> 409
"""


class InternHubError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "INTERNHUB_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationError(InternHubError):
    """Raised when input is missing or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="VALIDATION_ERROR")


# --- Identity Errors ---


class UnauthenticatedError(InternHubError):
    """Raised when the bearer token is missing, malformed or expired."""

    def __init__(self, message: str = "Authorization header missing or invalid") -> None:
        super().__init__(message=message, code="UNAUTHENTICATED")


class ForbiddenError(InternHubError):
    """Raised when an authenticated caller does not own the resource."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message=message, code="FORBIDDEN")


# --- Not Found Errors ---


class NotFoundError(InternHubError):
    """Base for missing resources."""

    def __init__(self, message: str, code: str = "NOT_FOUND") -> None:
        super().__init__(message=message, code=code)


class ContractNotFoundError(NotFoundError):
    """Raised when a contract ID does not exist."""

    def __init__(self, contract_id: str) -> None:
        super().__init__(
            message=f"Contract not found: {contract_id}",
            code="CONTRACT_NOT_FOUND",
        )
        self.contract_id = contract_id


class DisputeNotFoundError(NotFoundError):
    """Raised when a dispute ID does not exist."""

    def __init__(self, dispute_id: str) -> None:
        super().__init__(
            message=f"Dispute not found: {dispute_id}",
            code="DISPUTE_NOT_FOUND",
        )
        self.dispute_id = dispute_id


class ProfileNotFoundError(NotFoundError):
    """Raised when the caller has the right role but no student/company profile."""

    def __init__(self, role: str) -> None:
        super().__init__(
            message=f"{role.capitalize()} profile not found",
            code="PROFILE_NOT_FOUND",
        )


class StudentNotFoundError(NotFoundError):
    """Raised when a contract is issued to an email with no student profile."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message=f"Student not found: {email}",
            code="STUDENT_NOT_FOUND",
        )


# --- Conflict Errors ---


class ConflictError(InternHubError):
    """Base for requests that would violate a state invariant."""

    def __init__(self, message: str, code: str = "CONFLICT") -> None:
        super().__init__(message=message, code=code)


class ActiveDisputeExistsError(ConflictError):
    """Raised when a contract already has an Open or UnderReview dispute."""

    def __init__(self, contract_id: str) -> None:
        super().__init__(
            message=f"There is already an open dispute for contract: {contract_id}",
            code="ACTIVE_DISPUTE_EXISTS",
        )
        self.contract_id = contract_id


class DisputeAlreadyClosedError(ConflictError):
    """Raised when mutating a dispute that is already Resolved or Rejected."""

    def __init__(self, dispute_id: str, status: str) -> None:
        super().__init__(
            message=f"Dispute {dispute_id} has already been closed ({status})",
            code="DISPUTE_ALREADY_CLOSED",
        )
        self.dispute_id = dispute_id
        self.status = status


class InvalidStateTransitionError(ConflictError):
    """Raised when an attempted dispute transition is not allowed."""

    def __init__(self, current_state: str, attempted_state: str) -> None:
        super().__init__(
            message=f"Invalid state transition: {current_state} -> {attempted_state}",
            code="INVALID_STATE_TRANSITION",
        )
        self.current_state = current_state
        self.attempted_state = attempted_state


class ContractUnderDisputeError(ConflictError):
    """Raised when a company edits the status of a contract that is Disputed."""

    def __init__(self, contract_id: str) -> None:
        super().__init__(
            message=(
                f"Contract {contract_id} has an active dispute; "
                "resolve or reject the dispute to change its status"
            ),
            code="CONTRACT_UNDER_DISPUTE",
        )
        self.contract_id = contract_id

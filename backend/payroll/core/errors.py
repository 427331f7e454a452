"""Typed domain errors raised by the claim workflow services.

Services raise these instead of `HTTPException` so the workflow can run (and be
tested) without a request. `install_error_handling` maps them onto HTTP
responses using the `status_code`, `code`, and `retryable` class attributes.
"""

from __future__ import annotations

from fastapi import status


class PayrollError(Exception):
    """Base class for expected, caller-visible workflow failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "payroll_error"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ClaimValidationError(PayrollError):
    """Claim input lies outside absolute bounds; nothing was persisted."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"


class ClaimNotFoundError(PayrollError):
    """Referenced claim does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, claim_id: object) -> None:
        super().__init__(f"Claim {claim_id} not found.")
        self.claim_id = claim_id


class UnauthorizedActionError(PayrollError):
    """Actor role does not permit the requested operation."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "unauthorized"


class ClaimStateError(PayrollError):
    """Claim is not in a state that accepts the requested transition."""

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"


class PersistenceFailure(PayrollError):
    """Write failed and was rolled back, or committed but could not be reloaded.

    Only the rolled-back case is `retryable`.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "persistence_failure"
    retryable = True

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable

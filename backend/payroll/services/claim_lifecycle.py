"""Claim status state machine and submission-time side effects."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING

from payroll.core.errors import ClaimStateError
from payroll.core.time import utcnow
from payroll.models.claims import MonthlyClaim
from payroll.models.enums import ClaimStatus

if TYPE_CHECKING:
    from decimal import Decimal
    from uuid import UUID

    from payroll.services.policy import VerificationResult

AUTO_VERIFICATION_PREFIX = "AUTO-VERIFICATION: "
AUTO_VERIFICATION_PASSED = f"{AUTO_VERIFICATION_PREFIX}Passed all policy checks"

# Policy violations annotate a claim; they never pick its initial status.
INITIAL_STATUS = ClaimStatus.SUBMITTED

# Only review decisions move a claim; every other state is terminal here.
TRANSITIONS: dict[ClaimStatus, frozenset[ClaimStatus]] = {
    ClaimStatus.DRAFT: frozenset(),
    ClaimStatus.SUBMITTED: frozenset({ClaimStatus.APPROVED, ClaimStatus.REJECTED}),
    ClaimStatus.UNDER_REVIEW: frozenset(),
    ClaimStatus.APPROVED: frozenset(),
    ClaimStatus.REJECTED: frozenset(),
    ClaimStatus.COMPLETED: frozenset(),
}


def can_transition(current: ClaimStatus, target: ClaimStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def is_decidable(status: ClaimStatus) -> bool:
    """Whether a review decision may be recorded against this status."""
    return bool(TRANSITIONS.get(status))


def decision_status(current: ClaimStatus, *, is_approved: bool) -> ClaimStatus:
    """Return the status a review decision moves the claim to.

    Raises:
        ClaimStateError: If the claim is not awaiting a decision.
    """
    target = ClaimStatus.APPROVED if is_approved else ClaimStatus.REJECTED
    if not can_transition(current, target):
        msg = (
            f"Cannot move claim from {current.value} to {target.value}; "
            f"only {ClaimStatus.SUBMITTED.value} claims accept review decisions."
        )
        raise ClaimStateError(msg)
    return target


def recompute_total(claim: MonthlyClaim) -> Decimal:
    """Re-derive `total_amount` from hours and rate, discarding any stale value."""
    claim.total_amount = claim.hours_worked * claim.hourly_rate
    return claim.total_amount


def apply_auto_verification(
    claim: MonthlyClaim,
    result: VerificationResult,
    *,
    now: datetime | None = None,
) -> None:
    """Stamp the automated screening outcome onto a claim, exactly once."""
    if claim.auto_verified_at is not None:
        msg = f"Claim {claim.id} was already auto-verified."
        raise ClaimStateError(msg)
    claim.auto_verified_at = now or utcnow()
    if result.is_approved:
        claim.is_auto_flagged = False
        claim.auto_verification_notes = AUTO_VERIFICATION_PASSED
    else:
        claim.is_auto_flagged = True
        claim.auto_verification_notes = f"{AUTO_VERIFICATION_PREFIX}{result.summary}"


def first_of_month(value: date) -> date:
    return date(value.year, value.month, 1)


def build_submitted_claim(
    *,
    lecturer_id: UUID,
    claim_month: date,
    description: str | None,
    result: VerificationResult,
) -> MonthlyClaim:
    """Create a new claim in its initial state with screening applied."""
    now = utcnow()
    claim = MonthlyClaim(
        lecturer_id=lecturer_id,
        claim_month=first_of_month(claim_month),
        hours_worked=result.hours_worked,
        hourly_rate=result.hourly_rate,
        description=description,
        status=INITIAL_STATUS,
        submitted_at=now,
        updated_at=now,
    )
    apply_auto_verification(claim, result, now=now)
    recompute_total(claim)
    return claim

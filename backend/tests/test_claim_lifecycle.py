# ruff: noqa: INP001
"""Claim status transitions and submission-time stamping."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll.core.errors import ClaimStateError
from payroll.models.claims import MonthlyClaim
from payroll.models.enums import ClaimStatus
from payroll.services.claim_lifecycle import (
    AUTO_VERIFICATION_PASSED,
    apply_auto_verification,
    build_submitted_claim,
    can_transition,
    decision_status,
    is_decidable,
    recompute_total,
)
from payroll.services.policy import evaluate


def test_only_submitted_claims_are_decidable() -> None:
    decidable = {status for status in ClaimStatus if is_decidable(status)}

    assert decidable == {ClaimStatus.SUBMITTED}


@pytest.mark.parametrize("is_approved", [True, False])
def test_decision_status_from_submitted(is_approved: bool) -> None:
    expected = ClaimStatus.APPROVED if is_approved else ClaimStatus.REJECTED

    assert decision_status(ClaimStatus.SUBMITTED, is_approved=is_approved) == expected


@pytest.mark.parametrize(
    "current",
    [ClaimStatus.APPROVED, ClaimStatus.REJECTED, ClaimStatus.DRAFT, ClaimStatus.COMPLETED],
)
def test_decision_on_non_submitted_claim_is_rejected(current: ClaimStatus) -> None:
    with pytest.raises(ClaimStateError, match="only Submitted claims"):
        decision_status(current, is_approved=True)


def test_terminal_states_have_no_exits() -> None:
    for target in ClaimStatus:
        assert not can_transition(ClaimStatus.APPROVED, target)
        assert not can_transition(ClaimStatus.REJECTED, target)


def test_compliant_submission_is_stamped_as_passed() -> None:
    claim = build_submitted_claim(
        lecturer_id=uuid4(),
        claim_month=date(2026, 3, 17),
        description="March teaching",
        result=evaluate(Decimal("120"), Decimal("50")),
    )

    assert claim.status == ClaimStatus.SUBMITTED
    assert claim.claim_month == date(2026, 3, 1)
    assert claim.total_amount == Decimal("6000")
    assert claim.is_auto_flagged is False
    assert claim.auto_verification_notes == AUTO_VERIFICATION_PASSED
    assert claim.auto_verified_at is not None
    assert claim.submitted_at == claim.auto_verified_at


def test_flagged_submission_keeps_submitted_status() -> None:
    claim = build_submitted_claim(
        lecturer_id=uuid4(),
        claim_month=date(2026, 3, 1),
        description=None,
        result=evaluate(Decimal("170"), Decimal("10")),
    )

    assert claim.status == ClaimStatus.SUBMITTED
    assert claim.is_auto_flagged is True
    assert claim.auto_verification_notes == (
        "AUTO-VERIFICATION: HOURS_EXCEEDED: 170 hours (Max: 160) | "
        "RATE_OUT_OF_RANGE: $10 (Allowed: $15-$200)"
    )


def test_auto_verification_is_applied_once() -> None:
    claim = MonthlyClaim(
        lecturer_id=uuid4(),
        claim_month=date(2026, 3, 1),
        hours_worked=Decimal("100"),
        hourly_rate=Decimal("20"),
    )
    result = evaluate(claim.hours_worked, claim.hourly_rate)
    apply_auto_verification(claim, result, now=datetime(2026, 3, 2))

    with pytest.raises(ClaimStateError):
        apply_auto_verification(claim, result)
    assert claim.auto_verified_at == datetime(2026, 3, 2)


def test_recompute_total_ignores_stale_value() -> None:
    claim = MonthlyClaim(
        lecturer_id=uuid4(),
        claim_month=date(2026, 3, 1),
        hours_worked=Decimal("10.5"),
        hourly_rate=Decimal("20"),
        total_amount=Decimal("999"),
    )

    assert recompute_total(claim) == Decimal("210.0")
    assert claim.total_amount == Decimal("210")

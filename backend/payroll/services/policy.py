"""Automated policy screening for lecturer pay claims.

Two independent policies are checked, in order, and every violation is
collected:

1. Hours limit: more than 160 hours in a month is a violation; more than 140
   (up to and including 160) is a soft warning that never blocks.
2. Rate range: an hourly rate below $15 or above $200 is a violation.

`evaluate` is pure. It only rejects inputs that cannot describe a claim at all
(non-numeric, non-positive); everything else becomes a violation so reviewers
can still see and override it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING

from payroll.core.errors import ClaimValidationError

if TYPE_CHECKING:
    from payroll.models.claims import MonthlyClaim

MAX_MONTHLY_HOURS = Decimal("160")
WARNING_MONTHLY_HOURS = Decimal("140")
MIN_HOURLY_RATE = Decimal("15")
MAX_HOURLY_RATE = Decimal("200")
AMOUNT_QUANTUM = Decimal("0.01")
ISSUE_SEPARATOR = " | "
NO_ISSUES_SUMMARY = "No issues found"


class PolicyViolation(str, Enum):
    """Hard policy violations; every member counts as an error."""

    HOURS_EXCEEDED = "HOURS_EXCEEDED"
    RATE_OUT_OF_RANGE = "RATE_OUT_OF_RANGE"


ERROR_VIOLATIONS = frozenset({PolicyViolation.HOURS_EXCEEDED, PolicyViolation.RATE_OUT_OF_RANGE})


class HoursPolicyStatus(str, Enum):
    """Classification of monthly hours against the hours-limit policy."""

    WITHIN_LIMIT = "WITHIN_LIMIT"
    WARNING = "WARNING"
    EXCEEDS_LIMIT = "EXCEEDS_LIMIT"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of screening one (hours, rate) pair."""

    hours_worked: Decimal
    hourly_rate: Decimal
    hours_status: HoursPolicyStatus
    violations: tuple[PolicyViolation, ...]
    issues: tuple[str, ...]
    warnings: tuple[str, ...]

    @property
    def is_approved(self) -> bool:
        return not self.violations

    @property
    def has_errors(self) -> bool:
        return any(v in ERROR_VIOLATIONS for v in self.violations)

    @property
    def has_warnings(self) -> bool:
        return self.hours_status == HoursPolicyStatus.WARNING

    @property
    def exceeds_hours_limit(self) -> bool:
        return PolicyViolation.HOURS_EXCEEDED in self.violations

    @property
    def summary(self) -> str:
        return ISSUE_SEPARATOR.join(self.issues) if self.issues else NO_ISSUES_SUMMARY


def format_decimal(value: Decimal) -> str:
    """Render a decimal without trailing zeros or exponent (170.00 -> 170)."""
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal(1)))
    return format(normalized, "f")


def coerce_positive_decimal(value: object, *, field: str) -> Decimal:
    """Convert user input to a finite, positive Decimal or raise."""
    if isinstance(value, bool):
        msg = f"{field} must be a number."
        raise ClaimValidationError(msg)
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        msg = f"{field} must be a number."
        raise ClaimValidationError(msg) from exc
    if not number.is_finite():
        msg = f"{field} must be a finite number."
        raise ClaimValidationError(msg)
    if number <= 0:
        msg = f"{field} must be greater than 0."
        raise ClaimValidationError(msg)
    try:
        quantized = number.quantize(AMOUNT_QUANTUM)
    except InvalidOperation as exc:
        msg = f"{field} is too large."
        raise ClaimValidationError(msg) from exc
    if quantized != number:
        msg = f"{field} must have at most 2 decimal places."
        raise ClaimValidationError(msg)
    return quantized


def classify_hours(hours_worked: Decimal) -> HoursPolicyStatus:
    if hours_worked > MAX_MONTHLY_HOURS:
        return HoursPolicyStatus.EXCEEDS_LIMIT
    if hours_worked > WARNING_MONTHLY_HOURS:
        return HoursPolicyStatus.WARNING
    return HoursPolicyStatus.WITHIN_LIMIT


def evaluate(hours_worked: object, hourly_rate: object) -> VerificationResult:
    """Screen hours and rate against the hours-limit and rate-range policies."""
    hours = coerce_positive_decimal(hours_worked, field="hours_worked")
    rate = coerce_positive_decimal(hourly_rate, field="hourly_rate")

    violations: list[PolicyViolation] = []
    issues: list[str] = []
    warnings: list[str] = []

    hours_status = classify_hours(hours)
    if hours_status == HoursPolicyStatus.EXCEEDS_LIMIT:
        violations.append(PolicyViolation.HOURS_EXCEEDED)
        issues.append(
            f"{PolicyViolation.HOURS_EXCEEDED.value}: {format_decimal(hours)} hours "
            f"(Max: {format_decimal(MAX_MONTHLY_HOURS)})",
        )
    elif hours_status == HoursPolicyStatus.WARNING:
        warnings.append(
            f"{format_decimal(hours)} hours is above the "
            f"{format_decimal(WARNING_MONTHLY_HOURS)}-hour review threshold",
        )

    if rate < MIN_HOURLY_RATE or rate > MAX_HOURLY_RATE:
        violations.append(PolicyViolation.RATE_OUT_OF_RANGE)
        issues.append(
            f"{PolicyViolation.RATE_OUT_OF_RANGE.value}: ${format_decimal(rate)} "
            f"(Allowed: ${format_decimal(MIN_HOURLY_RATE)}-${format_decimal(MAX_HOURLY_RATE)})",
        )

    return VerificationResult(
        hours_worked=hours,
        hourly_rate=rate,
        hours_status=hours_status,
        violations=tuple(violations),
        issues=tuple(issues),
        warnings=tuple(warnings),
    )


def evaluate_claim(claim: MonthlyClaim) -> VerificationResult:
    """Screen a claim's current hours and rate."""
    return evaluate(claim.hours_worked, claim.hourly_rate)

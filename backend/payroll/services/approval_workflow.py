"""Role-gated review decisions on submitted claims.

A Coordinator or a Manager may decide a `Submitted` claim. Either decision on
its own moves the claim to `Approved` or `Rejected`; the two roles are
independent review paths, not a two-of-two gate. Every decision re-screens the
claim's current hours and rate, annotates the reviewer's comments when it
overrides or confirms a policy flag, and is written together with its
`Approval` record in one transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from payroll.core.config import settings
from payroll.core.errors import PersistenceFailure, UnauthorizedActionError
from payroll.core.logging import get_logger
from payroll.core.time import utcnow
from payroll.models.approvals import Approval
from payroll.models.enums import UserRole
from payroll.services.claim_lifecycle import decision_status
from payroll.services.policy import MAX_MONTHLY_HOURS, evaluate_claim, format_decimal

if TYPE_CHECKING:
    from uuid import UUID

    from payroll.core.auth import ActorContext
    from payroll.db.repository import ClaimRepository
    from payroll.models.claims import MonthlyClaim
    from payroll.models.enums import ClaimStatus
    from payroll.services.policy import VerificationResult

logger = get_logger(__name__)

# Every role must appear here; `None` means the role never decides claims.
REVIEW_STAGE_BY_ROLE: dict[UserRole, str | None] = {
    UserRole.LECTURER: None,
    UserRole.COORDINATOR: "coordinator_review",
    UserRole.MANAGER: "manager_review",
    UserRole.HR: None,
}


class DecisionKind(str, Enum):
    """How a decision relates to the automated policy screening."""

    APPROVED = "approved"
    OVERRIDE_APPROVED = "override_approved"
    WARNED_APPROVED = "warned_approved"
    REJECTED = "rejected"
    POLICY_REJECTED = "policy_rejected"


@dataclass(frozen=True)
class DecisionOutcome:
    """Result of a recorded decision."""

    claim: MonthlyClaim
    approval: Approval
    kind: DecisionKind
    message: str
    verification: VerificationResult

    @property
    def status(self) -> ClaimStatus:
        return self.claim.status


def authorize_reviewer(actor: ActorContext) -> str:
    """Return the review stage for the actor's role or raise."""
    stage = REVIEW_STAGE_BY_ROLE[actor.role]
    if stage is None:
        msg = f"Role {actor.role.value} is not authorized to decide claims."
        raise UnauthorizedActionError(msg)
    return stage


def annotate_comments(
    comments: str,
    *,
    is_approved: bool,
    verification: VerificationResult,
) -> tuple[str, DecisionKind]:
    """Append policy annotations to reviewer comments and classify the decision."""
    limit = format_decimal(MAX_MONTHLY_HOURS)
    annotation = ""
    if is_approved:
        if verification.exceeds_hours_limit:
            hours = format_decimal(verification.hours_worked)
            annotation = f" [POLICY OVERRIDE: Claim exceeds {limit}-hour limit ({hours} hours)]"
            kind = DecisionKind.OVERRIDE_APPROVED
        elif verification.has_warnings:
            annotation = f" [Reviewed with warnings: {', '.join(verification.warnings)}]"
            kind = DecisionKind.WARNED_APPROVED
        else:
            kind = DecisionKind.APPROVED
    elif verification.exceeds_hours_limit:
        annotation = f" [Rejected: Exceeds {limit}-hour policy limit]"
        kind = DecisionKind.POLICY_REJECTED
    else:
        kind = DecisionKind.REJECTED
    if not comments:
        return annotation.lstrip(), kind
    return f"{comments}{annotation}", kind


def decision_message(claim_id: UUID, kind: DecisionKind, verification: VerificationResult) -> str:
    limit = format_decimal(MAX_MONTHLY_HOURS)
    if kind == DecisionKind.OVERRIDE_APPROVED:
        hours = format_decimal(verification.hours_worked)
        return (
            f"Claim #{claim_id} approved with policy override - "
            f"{hours} hours exceeds {limit}-hour limit."
        )
    if kind == DecisionKind.WARNED_APPROVED:
        return f"Claim #{claim_id} approved with warnings."
    if kind == DecisionKind.APPROVED:
        return f"Claim #{claim_id} approved successfully."
    if kind == DecisionKind.POLICY_REJECTED:
        return (
            f"Claim #{claim_id} has been rejected. "
            f"Policy violation noted: exceeds {limit}-hour limit."
        )
    return f"Claim #{claim_id} has been rejected."


async def decide(
    repo: ClaimRepository,
    *,
    claim_id: UUID,
    actor: ActorContext,
    is_approved: bool,
    comments: str = "",
    max_attempts: int | None = None,
) -> DecisionOutcome:
    """Record a reviewer decision and move the claim to its resulting status.

    Raises:
        ClaimNotFoundError: The claim does not exist.
        UnauthorizedActionError: The actor's role cannot decide claims.
        ClaimStateError: The claim is not awaiting a decision.
        PersistenceFailure: The write failed or kept losing concurrent races.
    """
    attempts = max_attempts or settings.decision_max_attempts
    for attempt in range(1, attempts + 1):
        claim = await repo.get_claim(claim_id, reload=attempt > 1)
        stage = authorize_reviewer(actor)
        target = decision_status(claim.status, is_approved=is_approved)
        verification = evaluate_claim(claim)
        annotated, kind = annotate_comments(
            comments,
            is_approved=is_approved,
            verification=verification,
        )
        approval = Approval(
            claim_id=claim.id,
            approver_id=actor.actor_id,
            approver_role=actor.role,
            is_approved=is_approved,
            comments=annotated,
            decided_at=utcnow(),
        )
        saved = await repo.save_decision(
            claim,
            read_version=claim.version,
            new_status=target,
            approval=approval,
        )
        if saved:
            logger.info(
                "claim.decision.recorded claim_id=%s stage=%s approver_id=%s kind=%s status=%s",
                claim_id,
                stage,
                actor.actor_id,
                kind.value,
                target.value,
            )
            return DecisionOutcome(
                claim=claim,
                approval=approval,
                kind=kind,
                message=decision_message(claim_id, kind, verification),
                verification=verification,
            )
        logger.warning(
            "claim.decision.conflict claim_id=%s attempt=%s max_attempts=%s",
            claim_id,
            attempt,
            attempts,
        )

    msg = f"Claim {claim_id} kept changing while the decision was saved; retry the decision."
    raise PersistenceFailure(msg)

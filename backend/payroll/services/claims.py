"""Claim submission: screen, stamp, and persist a lecturer's monthly claim."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from payroll.core.errors import UnauthorizedActionError
from payroll.core.logging import get_logger
from payroll.models.enums import UserRole
from payroll.services.claim_lifecycle import build_submitted_claim
from payroll.services.documents import accepted_documents
from payroll.services.policy import MAX_MONTHLY_HOURS, evaluate, format_decimal

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from payroll.core.auth import ActorContext
    from payroll.db.repository import ClaimRepository
    from payroll.models.claims import MonthlyClaim
    from payroll.models.documents import Document
    from payroll.schemas.documents import DocumentCreate
    from payroll.services.policy import VerificationResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubmissionOutcome:
    """Persisted claim plus the screening result and user-facing notice."""

    claim: MonthlyClaim
    verification: VerificationResult
    message: str
    documents: list[Document] = field(default_factory=list)

    @property
    def is_warning(self) -> bool:
        return self.claim.is_auto_flagged or self.verification.has_warnings


def submission_message(verification: VerificationResult, *, document_count: int = 0) -> str:
    """Notice shown after a successful submission; flagged claims still succeed."""
    if verification.exceeds_hours_limit:
        message = (
            "Claim submitted but flagged for review: "
            f"{format_decimal(verification.hours_worked)} hours exceeds "
            f"{format_decimal(MAX_MONTHLY_HOURS)}-hour limit."
        )
    elif not verification.is_approved:
        message = f"Claim submitted but flagged for review: {verification.summary}"
    elif verification.has_warnings:
        message = "Claim submitted but has warnings that require review."
    else:
        message = "Claim submitted successfully and passed all policy checks!"
    if document_count > 0:
        message += f" {document_count} document(s) uploaded."
    return message


async def submit_claim(
    repo: ClaimRepository,
    *,
    actor: ActorContext,
    claim_month: date,
    hours_worked: object,
    hourly_rate: object,
    description: str | None = None,
    documents: Sequence[DocumentCreate] = (),
) -> SubmissionOutcome:
    """Create a claim for the acting lecturer.

    Policy violations never block submission: they flag the claim and annotate
    it for reviewers. Only invalid input, a non-lecturer actor, or a storage
    failure stop the operation, and in those cases nothing is persisted.
    """
    if actor.role != UserRole.LECTURER:
        msg = f"Role {actor.role.value} cannot submit claims."
        raise UnauthorizedActionError(msg)

    verification = evaluate(hours_worked, hourly_rate)
    claim = build_submitted_claim(
        lecturer_id=actor.actor_id,
        claim_month=claim_month,
        description=description,
        result=verification,
    )
    records = accepted_documents(documents, claim_id=claim.id, uploaded_by_id=actor.actor_id)
    claim = await repo.add_claim(claim, records)
    document_count = await repo.count_documents(claim.id)

    if claim.is_auto_flagged:
        logger.warning(
            "claim.submit.flagged claim_id=%s lecturer_id=%s issues=%s",
            claim.id,
            claim.lecturer_id,
            verification.summary,
        )
    else:
        logger.info("claim.submit.accepted claim_id=%s lecturer_id=%s", claim.id, claim.lecturer_id)

    return SubmissionOutcome(
        claim=claim,
        verification=verification,
        message=submission_message(verification, document_count=document_count),
        documents=records,
    )

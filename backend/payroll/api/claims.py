"""Claim submission, screening preview, and review endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, status

from payroll.api.deps import ACTOR_DEP, REPOSITORY_DEP, SESSION_DEP
from payroll.core.auth import ActorContext
from payroll.core.errors import UnauthorizedActionError
from payroll.db.pagination import paginate
from payroll.db.repository import (
    ClaimRepository,
    claims_by_status_statement,
    claims_for_lecturer_statement,
)
from payroll.models.enums import ClaimStatus, UserRole
from payroll.schemas.claims import (
    ApprovalRead,
    ClaimDetailRead,
    ClaimRead,
    ClaimSubmit,
    ClaimSubmitResponse,
    DecisionPayload,
    DecisionResponse,
    VerificationRead,
    VerificationRequest,
)
from payroll.schemas.documents import DocumentCreate, DocumentRead
from payroll.schemas.pagination import DefaultLimitOffsetPage
from payroll.services.approval_workflow import decide
from payroll.services.claim_lifecycle import is_decidable
from payroll.services.claims import submit_claim
from payroll.services.documents import attach_document
from payroll.services.policy import evaluate

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from payroll.services.policy import VerificationResult

router = APIRouter(prefix="/claims", tags=["claims"])


def _verification_to_read(result: VerificationResult) -> VerificationRead:
    return VerificationRead(
        is_approved=result.is_approved,
        has_errors=result.has_errors,
        has_warnings=result.has_warnings,
        hours_status=result.hours_status,
        violations=list(result.violations),
        issues=list(result.issues),
        warnings=list(result.warnings),
        summary=result.summary,
    )


@router.post("/verify", response_model=VerificationRead, dependencies=[ACTOR_DEP])
async def verify_claim(payload: VerificationRequest) -> VerificationRead:
    """Screen hours and rate against claim policy without saving anything."""
    return _verification_to_read(evaluate(payload.hours_worked, payload.hourly_rate))


@router.post("", response_model=ClaimSubmitResponse, status_code=status.HTTP_201_CREATED)
async def create_claim(
    payload: ClaimSubmit,
    repo: ClaimRepository = REPOSITORY_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> ClaimSubmitResponse:
    """Submit a monthly claim for the acting lecturer."""
    outcome = await submit_claim(
        repo,
        actor=actor,
        claim_month=payload.claim_month,
        hours_worked=payload.hours_worked,
        hourly_rate=payload.hourly_rate,
        description=payload.description,
        documents=payload.documents,
    )
    return ClaimSubmitResponse(
        claim=ClaimRead.model_validate(outcome.claim, from_attributes=True),
        verification=_verification_to_read(outcome.verification),
        message=outcome.message,
        is_warning=outcome.is_warning,
        document_count=len(outcome.documents),
    )


@router.get("", response_model=DefaultLimitOffsetPage[ClaimRead])
async def list_claims(
    session: AsyncSession = SESSION_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> LimitOffsetPage[ClaimRead]:
    """List the caller's own claims, or the review queue for reviewers."""
    if actor.role == UserRole.LECTURER:
        statement = claims_for_lecturer_statement(actor.actor_id)
    else:
        statement = claims_by_status_statement(ClaimStatus.SUBMITTED)

    def _transform(items: Sequence[Any]) -> Sequence[Any]:
        return [ClaimRead.model_validate(item, from_attributes=True) for item in items]

    return await paginate(session, statement, transformer=_transform)


@router.get("/{claim_id}", response_model=ClaimDetailRead)
async def get_claim(
    claim_id: UUID,
    repo: ClaimRepository = REPOSITORY_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> ClaimDetailRead:
    """Read a claim with its approvals and documents."""
    claim = await repo.get_claim(claim_id)
    if actor.role == UserRole.LECTURER and claim.lecturer_id != actor.actor_id:
        msg = "Lecturers may only view their own claims."
        raise UnauthorizedActionError(msg)
    approvals = await repo.list_approvals(claim.id)
    documents = await repo.list_documents(claim.id)
    return ClaimDetailRead(
        claim=ClaimRead.model_validate(claim, from_attributes=True),
        approvals=[ApprovalRead.model_validate(a, from_attributes=True) for a in approvals],
        documents=[DocumentRead.model_validate(d, from_attributes=True) for d in documents],
        is_decidable=is_decidable(claim.status),
    )


@router.post("/{claim_id}/decision", response_model=DecisionResponse)
async def decide_claim(
    claim_id: UUID,
    payload: DecisionPayload,
    repo: ClaimRepository = REPOSITORY_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> DecisionResponse:
    """Approve or reject a submitted claim as a Coordinator or Manager."""
    outcome = await decide(
        repo,
        claim_id=claim_id,
        actor=actor,
        is_approved=payload.is_approved,
        comments=payload.comments,
    )
    return DecisionResponse(
        status=outcome.status,
        kind=outcome.kind,
        message=outcome.message,
        approval=ApprovalRead.model_validate(outcome.approval, from_attributes=True),
    )


@router.post(
    "/{claim_id}/documents",
    response_model=DocumentRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_claim_document(
    claim_id: UUID,
    payload: DocumentCreate,
    repo: ClaimRepository = REPOSITORY_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> DocumentRead:
    """Attach supporting-document metadata to the caller's claim."""
    document = await attach_document(repo, actor=actor, claim_id=claim_id, payload=payload)
    return DocumentRead.model_validate(document, from_attributes=True)

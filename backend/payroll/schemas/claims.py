"""Schemas for claim submission, screening, and review payloads."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

from payroll.models.enums import ClaimStatus, UserRole
from payroll.schemas.documents import DocumentCreate, DocumentRead
from payroll.services.approval_workflow import DecisionKind
from payroll.services.policy import HoursPolicyStatus, PolicyViolation

RUNTIME_ANNOTATION_TYPES = (
    date,
    datetime,
    Decimal,
    UUID,
    ClaimStatus,
    UserRole,
    DecisionKind,
    HoursPolicyStatus,
    PolicyViolation,
    DocumentCreate,
    DocumentRead,
)


class VerificationRequest(SQLModel):
    """Hours and rate to screen without creating a claim."""

    hours_worked: Decimal = Field(gt=0, max_digits=8, decimal_places=2)
    hourly_rate: Decimal = Field(gt=0, max_digits=8, decimal_places=2)


class VerificationRead(SQLModel):
    """Automated policy screening result."""

    is_approved: bool
    has_errors: bool
    has_warnings: bool
    hours_status: HoursPolicyStatus
    violations: list[PolicyViolation] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    summary: str


class ClaimSubmit(SQLModel):
    """Payload a lecturer sends to submit a monthly claim."""

    claim_month: date
    hours_worked: Decimal = Field(gt=0, max_digits=8, decimal_places=2)
    hourly_rate: Decimal = Field(gt=0, max_digits=8, decimal_places=2)
    description: str | None = Field(default=None, max_length=500)
    documents: list[DocumentCreate] = Field(default_factory=list)


class ClaimRead(SQLModel):
    """Claim payload returned by read endpoints."""

    id: UUID
    lecturer_id: UUID
    claim_month: date
    hours_worked: Decimal
    hourly_rate: Decimal
    total_amount: Decimal
    description: str | None = None
    status: ClaimStatus
    is_auto_flagged: bool
    auto_verification_notes: str | None = None
    auto_verified_at: datetime | None = None
    submitted_at: datetime
    updated_at: datetime


class ApprovalRead(SQLModel):
    """Approval record returned by read endpoints."""

    id: UUID
    claim_id: UUID
    approver_id: UUID
    approver_role: UserRole
    is_approved: bool
    comments: str
    decided_at: datetime


class ClaimDetailRead(SQLModel):
    """Claim with its review history and supporting documents."""

    claim: ClaimRead
    approvals: list[ApprovalRead] = Field(default_factory=list)
    documents: list[DocumentRead] = Field(default_factory=list)
    is_decidable: bool = False


class ClaimSubmitResponse(SQLModel):
    """Result of a submission: the stored claim, its screening, and a notice."""

    claim: ClaimRead
    verification: VerificationRead
    message: str
    is_warning: bool = False
    document_count: int = 0


class DecisionPayload(SQLModel):
    """Reviewer decision on a submitted claim."""

    is_approved: bool
    comments: str = Field(default="", max_length=2000)


class DecisionResponse(SQLModel):
    """Outcome of a recorded decision."""

    status: ClaimStatus
    kind: DecisionKind
    message: str
    approval: ApprovalRead

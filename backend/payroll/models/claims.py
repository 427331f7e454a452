"""Monthly pay claim submitted by a lecturer."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlmodel import Field

from payroll.core.time import utcnow
from payroll.models.base import QueryModel
from payroll.models.enums import ClaimStatus

RUNTIME_ANNOTATION_TYPES = (date, datetime, Decimal, ClaimStatus)


class MonthlyClaim(QueryModel, table=True):
    """Lecturer pay claim for one calendar month.

    `total_amount` is always re-derived from hours and rate before the row is
    written; `version` guards status updates against concurrent decisions.
    """

    __tablename__ = "monthly_claims"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    lecturer_id: UUID = Field(foreign_key="users.id", index=True)
    claim_month: date = Field(index=True)
    hours_worked: Decimal = Field(max_digits=8, decimal_places=2)
    hourly_rate: Decimal = Field(max_digits=8, decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=4)
    description: str | None = None
    status: ClaimStatus = Field(default=ClaimStatus.SUBMITTED, index=True)
    is_auto_flagged: bool = Field(default=False, index=True)
    auto_verification_notes: str | None = None
    auto_verified_at: datetime | None = None
    version: int = Field(default=1)
    submitted_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

"""Append-only approval decisions recorded against claims."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import event
from sqlmodel import Field

from payroll.core.time import utcnow
from payroll.models.base import QueryModel
from payroll.models.enums import UserRole

RUNTIME_ANNOTATION_TYPES = (datetime, UserRole)


class Approval(QueryModel, table=True):
    """Immutable record of one reviewer decision on a claim."""

    __tablename__ = "approvals"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    claim_id: UUID = Field(foreign_key="monthly_claims.id", index=True)
    approver_id: UUID = Field(foreign_key="users.id", index=True)
    # Role at decision time; the approver's current role may differ later.
    approver_role: UserRole
    is_approved: bool
    comments: str = Field(default="")
    decided_at: datetime = Field(default_factory=utcnow, index=True)


@event.listens_for(Approval, "before_update")
def _reject_approval_update(_mapper: object, _connection: object, target: Approval) -> None:
    msg = f"Approval {target.id} is append-only and cannot be updated."
    raise RuntimeError(msg)


@event.listens_for(Approval, "before_delete")
def _reject_approval_delete(_mapper: object, _connection: object, target: Approval) -> None:
    msg = f"Approval {target.id} is append-only and cannot be deleted."
    raise RuntimeError(msg)

"""User model for portal actors (lecturers and reviewers)."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from payroll.core.time import utcnow
from payroll.models.base import QueryModel
from payroll.models.enums import UserRole

RUNTIME_ANNOTATION_TYPES = (datetime, UserRole)


class User(QueryModel, table=True):
    """Portal user; `role` decides which workflow operations are available."""

    __tablename__ = "users"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(index=True, unique=True)
    first_name: str
    last_name: str
    email: str = Field(default="")
    role: UserRole = Field(index=True)
    department: str | None = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

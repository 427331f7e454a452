"""Supporting document metadata attached to a claim."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from payroll.core.time import utcnow
from payroll.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Document(QueryModel, table=True):
    """Metadata for one uploaded file; bytes live in external storage."""

    __tablename__ = "documents"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    claim_id: UUID = Field(foreign_key="monthly_claims.id", index=True)
    uploaded_by_id: UUID = Field(foreign_key="users.id", index=True)
    file_name: str
    description: str | None = None
    file_path: str = Field(default="")
    file_type: str = Field(default="")
    file_size: int = Field(default=0)
    uploaded_at: datetime = Field(default_factory=utcnow)

"""Schemas for supporting-document metadata."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class DocumentCreate(SQLModel):
    """Metadata for a file already placed in document storage."""

    file_name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=200)
    file_path: str = ""
    file_size: int = Field(ge=0)


class DocumentRead(SQLModel):
    """Document metadata returned by read endpoints."""

    id: UUID
    claim_id: UUID
    uploaded_by_id: UUID
    file_name: str
    description: str | None = None
    file_path: str
    file_type: str
    file_size: int
    uploaded_at: datetime

"""Supporting-document metadata validation and attachment."""

from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING

from payroll.core.config import settings
from payroll.core.errors import ClaimValidationError, UnauthorizedActionError
from payroll.core.logging import get_logger
from payroll.core.time import utcnow
from payroll.models.documents import Document
from payroll.models.enums import UserRole

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from payroll.core.auth import ActorContext
    from payroll.db.repository import ClaimRepository
    from payroll.schemas.documents import DocumentCreate

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = frozenset({".pdf", ".doc", ".docx", ".jpg", ".jpeg", ".png", ".txt"})


def document_extension(file_name: str) -> str:
    return PurePath(file_name).suffix.lower()


def validate_document(payload: DocumentCreate, *, max_bytes: int | None = None) -> str:
    """Check size and type; return the normalized file extension."""
    limit = settings.max_document_bytes if max_bytes is None else max_bytes
    if payload.file_size <= 0:
        msg = f"Document '{payload.file_name}' is empty."
        raise ClaimValidationError(msg)
    if payload.file_size > limit:
        msg = f"Document '{payload.file_name}' exceeds the {limit // (1024 * 1024)}MB limit."
        raise ClaimValidationError(msg)
    extension = document_extension(payload.file_name)
    if extension not in ALLOWED_EXTENSIONS:
        msg = "Only PDF, Word, Image, and Text files are allowed."
        raise ClaimValidationError(msg)
    return extension


def build_document(
    payload: DocumentCreate,
    *,
    claim_id: UUID,
    uploaded_by_id: UUID,
    file_type: str,
) -> Document:
    return Document(
        claim_id=claim_id,
        uploaded_by_id=uploaded_by_id,
        file_name=PurePath(payload.file_name).name,
        description=payload.description,
        file_path=payload.file_path,
        file_type=file_type,
        file_size=payload.file_size,
        uploaded_at=utcnow(),
    )


def accepted_documents(
    payloads: Iterable[DocumentCreate],
    *,
    claim_id: UUID,
    uploaded_by_id: UUID,
) -> list[Document]:
    """Build records for valid payloads, skipping (and logging) invalid ones."""
    documents: list[Document] = []
    for payload in payloads:
        try:
            file_type = validate_document(payload)
        except ClaimValidationError as exc:
            logger.warning("document.skipped file_name=%s reason=%s", payload.file_name, exc.message)
            continue
        documents.append(
            build_document(
                payload,
                claim_id=claim_id,
                uploaded_by_id=uploaded_by_id,
                file_type=file_type,
            ),
        )
    return documents


async def attach_document(
    repo: ClaimRepository,
    *,
    actor: ActorContext,
    claim_id: UUID,
    payload: DocumentCreate,
) -> Document:
    """Attach document metadata to a claim owned by the acting lecturer."""
    claim = await repo.get_claim(claim_id)
    if actor.role != UserRole.LECTURER or claim.lecturer_id != actor.actor_id:
        msg = "Only the lecturer who submitted the claim can attach documents."
        raise UnauthorizedActionError(msg)
    file_type = validate_document(payload)
    document = build_document(
        payload,
        claim_id=claim.id,
        uploaded_by_id=actor.actor_id,
        file_type=file_type,
    )
    document = await repo.add_document(document)
    logger.info("document.attached claim_id=%s document_id=%s", claim.id, document.id)
    return document

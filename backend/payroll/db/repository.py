"""Claim persistence: the only place the workflow touches the database.

Each public write commits exactly once. `save_decision` couples the claim
status update and the approval insert in one transaction, and guards the
update with the claim's `version` so concurrent decisions cannot overwrite
each other unnoticed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from payroll.core.errors import ClaimNotFoundError, PersistenceFailure
from payroll.core.logging import get_logger
from payroll.core.time import utcnow
from payroll.models.approvals import Approval
from payroll.models.claims import MonthlyClaim
from payroll.models.documents import Document
from payroll.models.users import User

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from payroll.models.enums import ClaimStatus

logger = get_logger(__name__)


class ClaimRepository:
    """Session-backed store for claims, approvals, and document metadata."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_claim(self, claim_id: UUID, *, reload: bool = False) -> MonthlyClaim:
        """Load a claim or raise `ClaimNotFoundError`."""
        statement = MonthlyClaim.objects.by_id(claim_id).statement
        if reload:
            statement = statement.execution_options(populate_existing=True)
        claim = (await self.session.exec(statement)).first()
        if claim is None:
            raise ClaimNotFoundError(claim_id)
        return claim

    async def get_user(self, user_id: UUID) -> User | None:
        """Load a user by id; `None` when no such user exists."""
        return await User.objects.by_id(user_id).first(self.session)

    async def add_claim(
        self,
        claim: MonthlyClaim,
        documents: Sequence[Document] = (),
    ) -> MonthlyClaim:
        """Insert a new claim together with its document records."""
        try:
            self.session.add(claim)
            for document in documents:
                self.session.add(document)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("claim.persist.failed claim_id=%s", claim.id)
            msg = "Claim could not be saved; nothing was recorded."
            raise PersistenceFailure(msg) from exc
        await self._reload(claim, subject="Claim")
        return claim

    async def add_document(self, document: Document) -> Document:
        try:
            self.session.add(document)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("document.persist.failed claim_id=%s", document.claim_id)
            msg = "Document could not be saved."
            raise PersistenceFailure(msg) from exc
        await self._reload(document, subject="Document")
        return document

    async def save_decision(
        self,
        claim: MonthlyClaim,
        *,
        read_version: int,
        new_status: ClaimStatus,
        approval: Approval,
    ) -> bool:
        """Apply a status change and append its approval atomically.

        Returns `False` (with nothing written) when the claim changed since
        `read_version` was read; the caller decides whether to retry.

        Raises:
            PersistenceFailure: If the write fails; the transaction is rolled back.
        """
        claim_id = claim.id
        statement = (
            update(MonthlyClaim)
            .where(col(MonthlyClaim.id) == claim_id)
            .where(col(MonthlyClaim.version) == read_version)
            .values(status=new_status, version=read_version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result: Any = await self.session.execute(statement)
            if result.rowcount != 1:
                await self.session.rollback()
                return False
            self.session.add(approval)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("claim.decision.persist_failed claim_id=%s", claim_id)
            msg = "Decision could not be saved; the claim is unchanged."
            raise PersistenceFailure(msg) from exc
        await self._reload(claim, approval, subject="Decision")
        return True

    async def _reload(self, *instances: object, subject: str) -> None:
        try:
            for instance in instances:
                await self.session.refresh(instance)
        except SQLAlchemyError as exc:
            logger.exception("persist.reload_failed subject=%s", subject.lower())
            msg = f"{subject} was saved but could not be reloaded; do not resubmit it."
            raise PersistenceFailure(msg, retryable=False) from exc

    async def count_documents(self, claim_id: UUID) -> int:
        statement = select(func.count()).select_from(Document).where(
            col(Document.claim_id) == claim_id,
        )
        return int((await self.session.exec(statement)).one())

    async def list_documents(self, claim_id: UUID) -> list[Document]:
        return await (
            Document.objects.filter_by(claim_id=claim_id)
            .order_by(col(Document.uploaded_at).asc())
            .all(self.session)
        )

    async def list_approvals(self, claim_id: UUID) -> list[Approval]:
        """Approvals for a claim in decision order."""
        return await (
            Approval.objects.filter_by(claim_id=claim_id)
            .order_by(col(Approval.decided_at).asc(), col(Approval.id).asc())
            .all(self.session)
        )

    async def list_claims_for_lecturer(self, lecturer_id: UUID) -> list[MonthlyClaim]:
        return list(await self.session.exec(claims_for_lecturer_statement(lecturer_id)))

    async def list_claims_by_status(self, status: ClaimStatus) -> list[MonthlyClaim]:
        return list(await self.session.exec(claims_by_status_statement(status)))


def claims_for_lecturer_statement(lecturer_id: UUID) -> Any:
    """Lecturer's own claims, newest submission first."""
    return (
        MonthlyClaim.objects.filter_by(lecturer_id=lecturer_id)
        .order_by(col(MonthlyClaim.submitted_at).desc())
        .statement
    )


def claims_by_status_statement(status: ClaimStatus) -> Any:
    """Claims in one status, newest submission first (the review queue)."""
    return (
        MonthlyClaim.objects.filter_by(status=status)
        .order_by(col(MonthlyClaim.submitted_at).desc())
        .statement
    )

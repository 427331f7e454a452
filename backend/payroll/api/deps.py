"""Reusable FastAPI dependencies for sessions, actors, and repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends

from payroll.core.auth import ActorContext, get_actor_context
from payroll.db.repository import ClaimRepository
from payroll.db.session import get_session

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

SESSION_DEP = Depends(get_session)
ACTOR_DEP = Depends(get_actor_context)


def get_claim_repository(session: AsyncSession = SESSION_DEP) -> ClaimRepository:
    """Bind a claim repository to the request-scoped session."""
    return ClaimRepository(session)


REPOSITORY_DEP = Depends(get_claim_repository)

__all__ = [
    "ACTOR_DEP",
    "REPOSITORY_DEP",
    "SESSION_DEP",
    "ActorContext",
    "get_claim_repository",
]

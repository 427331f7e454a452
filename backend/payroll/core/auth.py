"""Actor resolution for portal requests.

Callers authenticate with the shared portal token (`Authorization: Bearer
<token>`) and name the acting user with `X-Actor-Id: <uuid>`. The user's
stored role is authoritative; services receive it as an explicit
`ActorContext` and never read request state themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from payroll.core.config import settings
from payroll.core.logging import get_logger
from payroll.db.repository import ClaimRepository
from payroll.db.session import get_session

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from payroll.models.enums import UserRole

logger = get_logger(__name__)
SESSION_DEP = Depends(get_session)


@dataclass(frozen=True)
class ActorContext:
    """Authenticated actor identity and role for one workflow operation."""

    actor_id: UUID
    role: UserRole


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value:
        return None
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", 1)[1].strip()
    return token or None


def _parse_actor_id(raw: str | None) -> UUID | None:
    if not raw:
        return None
    try:
        return UUID(raw.strip())
    except ValueError:
        return None


async def get_actor_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
    actor_id: str | None = Header(default=None, alias="X-Actor-Id"),
    session: AsyncSession = SESSION_DEP,
) -> ActorContext:
    """Resolve the acting user from the portal token and actor header."""
    token = _extract_bearer_token(authorization)
    expected = settings.local_auth_token.strip()
    if token is None or not expected or not compare_digest(token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)

    parsed_id = _parse_actor_id(actor_id)
    if parsed_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id header must be a user id",
        )
    user = await ClaimRepository(session).get_user(parsed_id)
    if user is None or not user.is_active:
        logger.info("auth.actor.rejected actor_id=%s", parsed_id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return ActorContext(actor_id=user.id, role=user.role)

# ruff: noqa: INP001
"""Review decisions on submitted claims against an in-memory database."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from payroll.core.auth import ActorContext
from payroll.core.errors import (
    ClaimNotFoundError,
    ClaimStateError,
    PersistenceFailure,
    UnauthorizedActionError,
)
from payroll.db.repository import ClaimRepository
from payroll.models.approvals import Approval
from payroll.models.claims import MonthlyClaim
from payroll.models.enums import ClaimStatus, UserRole
from payroll.models.users import User
from payroll.services.approval_workflow import (
    REVIEW_STAGE_BY_ROLE,
    DecisionKind,
    annotate_comments,
    decide,
)
from payroll.services.claims import submit_claim
from payroll.services.policy import evaluate


async def _actor(session, role: UserRole) -> ActorContext:
    user = User(
        username=f"{role.value.lower()}-{uuid4().hex[:8]}",
        first_name="Test",
        last_name=role.value,
        role=role,
    )
    session.add(user)
    await session.commit()
    return ActorContext(actor_id=user.id, role=role)


async def _submitted_claim(session, hours: str, rate: str = "50") -> MonthlyClaim:
    lecturer = await _actor(session, UserRole.LECTURER)
    outcome = await submit_claim(
        ClaimRepository(session),
        actor=lecturer,
        claim_month=date(2026, 3, 1),
        hours_worked=Decimal(hours),
        hourly_rate=Decimal(rate),
    )
    return outcome.claim


async def _approvals(session, claim_id) -> list[Approval]:
    return list(
        await session.exec(select(Approval).where(col(Approval.claim_id) == claim_id)),
    )


@pytest.mark.asyncio
async def test_coordinator_approves_compliant_claim(session) -> None:
    claim = await _submitted_claim(session, "120")
    coordinator = await _actor(session, UserRole.COORDINATOR)

    outcome = await decide(
        ClaimRepository(session),
        claim_id=claim.id,
        actor=coordinator,
        is_approved=True,
        comments="Looks good",
    )

    assert outcome.status == ClaimStatus.APPROVED
    assert outcome.kind == DecisionKind.APPROVED
    assert outcome.message == f"Claim #{claim.id} approved successfully."
    assert outcome.approval.comments == "Looks good"
    assert outcome.approval.approver_role == UserRole.COORDINATOR
    assert outcome.claim.version == 2
    approvals = await _approvals(session, claim.id)
    assert len(approvals) == 1
    assert approvals[0].is_approved is True


@pytest.mark.asyncio
async def test_manager_override_approves_flagged_claim(session) -> None:
    claim = await _submitted_claim(session, "170")
    assert claim.is_auto_flagged
    manager = await _actor(session, UserRole.MANAGER)

    outcome = await decide(
        ClaimRepository(session),
        claim_id=claim.id,
        actor=manager,
        is_approved=True,
        comments="Exam marking",
    )

    assert outcome.status == ClaimStatus.APPROVED
    assert outcome.kind == DecisionKind.OVERRIDE_APPROVED
    assert outcome.approval.comments == (
        "Exam marking [POLICY OVERRIDE: Claim exceeds 160-hour limit (170 hours)]"
    )
    assert outcome.message == (
        f"Claim #{claim.id} approved with policy override - 170 hours exceeds 160-hour limit."
    )


@pytest.mark.asyncio
async def test_rejecting_flagged_claim_notes_policy_violation(session) -> None:
    claim = await _submitted_claim(session, "170")
    coordinator = await _actor(session, UserRole.COORDINATOR)

    outcome = await decide(
        ClaimRepository(session),
        claim_id=claim.id,
        actor=coordinator,
        is_approved=False,
    )

    assert outcome.status == ClaimStatus.REJECTED
    assert outcome.kind == DecisionKind.POLICY_REJECTED
    assert outcome.approval.comments == "[Rejected: Exceeds 160-hour policy limit]"
    assert outcome.message == (
        f"Claim #{claim.id} has been rejected. Policy violation noted: exceeds 160-hour limit."
    )


@pytest.mark.asyncio
async def test_warning_band_approval_is_annotated(session) -> None:
    claim = await _submitted_claim(session, "150")
    manager = await _actor(session, UserRole.MANAGER)

    outcome = await decide(
        ClaimRepository(session),
        claim_id=claim.id,
        actor=manager,
        is_approved=True,
        comments="ok",
    )

    assert outcome.kind == DecisionKind.WARNED_APPROVED
    assert outcome.approval.comments == (
        "ok [Reviewed with warnings: 150 hours is above the 140-hour review threshold]"
    )
    assert outcome.message == f"Claim #{claim.id} approved with warnings."


@pytest.mark.asyncio
async def test_plain_rejection(session) -> None:
    claim = await _submitted_claim(session, "100")
    coordinator = await _actor(session, UserRole.COORDINATOR)

    outcome = await decide(
        ClaimRepository(session),
        claim_id=claim.id,
        actor=coordinator,
        is_approved=False,
        comments="  Missing timesheet  ",
    )

    assert outcome.kind == DecisionKind.REJECTED
    assert outcome.approval.comments == "  Missing timesheet  "
    assert outcome.message == f"Claim #{claim.id} has been rejected."


@pytest.mark.asyncio
async def test_lecturer_cannot_decide_and_nothing_changes(session) -> None:
    claim = await _submitted_claim(session, "120")
    lecturer = await _actor(session, UserRole.LECTURER)

    with pytest.raises(UnauthorizedActionError):
        await decide(
            ClaimRepository(session),
            claim_id=claim.id,
            actor=lecturer,
            is_approved=True,
        )

    stored = await ClaimRepository(session).get_claim(claim.id, reload=True)
    assert stored.status == ClaimStatus.SUBMITTED
    assert await _approvals(session, claim.id) == []


@pytest.mark.asyncio
async def test_hr_cannot_decide(session) -> None:
    claim = await _submitted_claim(session, "120")
    hr = await _actor(session, UserRole.HR)

    with pytest.raises(UnauthorizedActionError):
        await decide(ClaimRepository(session), claim_id=claim.id, actor=hr, is_approved=False)


@pytest.mark.asyncio
async def test_unknown_claim_raises_not_found(session) -> None:
    coordinator = await _actor(session, UserRole.COORDINATOR)
    missing_id = uuid4()

    with pytest.raises(ClaimNotFoundError, match=str(missing_id)):
        await decide(
            ClaimRepository(session),
            claim_id=missing_id,
            actor=coordinator,
            is_approved=True,
        )


@pytest.mark.asyncio
async def test_second_decision_on_decided_claim_is_rejected(session) -> None:
    claim = await _submitted_claim(session, "120")
    coordinator = await _actor(session, UserRole.COORDINATOR)
    manager = await _actor(session, UserRole.MANAGER)
    repo = ClaimRepository(session)
    await decide(repo, claim_id=claim.id, actor=coordinator, is_approved=True)

    with pytest.raises(ClaimStateError):
        await decide(repo, claim_id=claim.id, actor=manager, is_approved=False)

    assert len(await _approvals(session, claim.id)) == 1


@pytest.mark.asyncio
async def test_storage_failure_leaves_claim_unchanged(session, monkeypatch) -> None:
    claim = await _submitted_claim(session, "120")
    claim_id = claim.id
    coordinator = await _actor(session, UserRole.COORDINATOR)

    async def _failing_commit() -> None:
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", _failing_commit)

    with pytest.raises(PersistenceFailure) as exc_info:
        await decide(
            ClaimRepository(session),
            claim_id=claim_id,
            actor=coordinator,
            is_approved=True,
        )
    assert exc_info.value.retryable is True

    monkeypatch.undo()
    stored = await ClaimRepository(session).get_claim(claim_id, reload=True)
    assert stored.status == ClaimStatus.SUBMITTED
    assert stored.version == 1
    assert await _approvals(session, claim_id) == []


@pytest.mark.asyncio
async def test_concurrent_decision_is_detected(tmp_path) -> None:
    # Separate connections per session so both readers see committed state.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'claims.db'}")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_maker() as setup:
        claim = await _submitted_claim(setup, "120")
        coordinator = await _actor(setup, UserRole.COORDINATOR)
        manager = await _actor(setup, UserRole.MANAGER)

    async with session_maker() as first, session_maker() as second:
        first_repo = ClaimRepository(first)
        second_repo = ClaimRepository(second)
        stale = await second_repo.get_claim(claim.id)
        assert stale.version == 1

        await decide(first_repo, claim_id=claim.id, actor=coordinator, is_approved=True)

        # The second session still holds the stale snapshot; the retry reloads it.
        with pytest.raises(ClaimStateError):
            await decide(second_repo, claim_id=claim.id, actor=manager, is_approved=False)

        assert len(await _approvals(second, claim.id)) == 1
    await engine.dispose()


@pytest.mark.asyncio
async def test_version_conflict_exhausts_attempts(session, monkeypatch) -> None:
    claim = await _submitted_claim(session, "120")
    manager = await _actor(session, UserRole.MANAGER)
    repo = ClaimRepository(session)
    calls: list[int] = []

    async def _always_conflicts(*_args: object, read_version: int, **_kwargs: object) -> bool:
        calls.append(read_version)
        return False

    monkeypatch.setattr(repo, "save_decision", _always_conflicts)

    with pytest.raises(PersistenceFailure):
        await decide(repo, claim_id=claim.id, actor=manager, is_approved=True, max_attempts=2)
    assert calls == [1, 1]


@pytest.mark.asyncio
async def test_approval_records_are_append_only(session) -> None:
    claim = await _submitted_claim(session, "120")
    coordinator = await _actor(session, UserRole.COORDINATOR)
    outcome = await decide(
        ClaimRepository(session),
        claim_id=claim.id,
        actor=coordinator,
        is_approved=True,
    )

    outcome.approval.comments = "edited"
    with pytest.raises(RuntimeError, match="append-only"):
        await session.commit()
    await session.rollback()

    await session.delete(outcome.approval)
    with pytest.raises(RuntimeError, match="append-only"):
        await session.commit()


def test_every_role_has_a_review_stage_entry() -> None:
    assert set(REVIEW_STAGE_BY_ROLE) == set(UserRole)


def test_rate_only_violation_gets_no_approval_annotation() -> None:
    comments, kind = annotate_comments(
        "fine",
        is_approved=True,
        verification=evaluate(Decimal("100"), Decimal("250")),
    )

    assert comments == "fine"
    assert kind == DecisionKind.APPROVED


def test_reviewer_comment_is_kept_as_written_before_annotation() -> None:
    comments, kind = annotate_comments(
        "Exam period \n",
        is_approved=True,
        verification=evaluate(Decimal("170"), Decimal("50")),
    )

    assert comments == (
        "Exam period \n [POLICY OVERRIDE: Claim exceeds 160-hour limit (170 hours)]"
    )
    assert kind == DecisionKind.OVERRIDE_APPROVED


def test_annotation_alone_has_no_leading_space() -> None:
    comments, kind = annotate_comments(
        "",
        is_approved=False,
        verification=evaluate(Decimal("170"), Decimal("50")),
    )

    assert comments == "[Rejected: Exceeds 160-hour policy limit]"
    assert kind == DecisionKind.POLICY_REJECTED


@pytest.mark.asyncio
async def test_reload_failure_after_commit_is_a_persistence_failure(session, monkeypatch) -> None:
    claim = await _submitted_claim(session, "120")
    claim_id = claim.id
    manager = await _actor(session, UserRole.MANAGER)

    async def _failing_refresh(*_args, **_kwargs) -> None:
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "refresh", _failing_refresh)

    with pytest.raises(PersistenceFailure) as exc_info:
        await decide(
            ClaimRepository(session),
            claim_id=claim_id,
            actor=manager,
            is_approved=True,
        )
    assert exc_info.value.retryable is False
    assert "was saved" in exc_info.value.message

    monkeypatch.undo()
    stored = await ClaimRepository(session).get_claim(claim_id, reload=True)
    assert stored.status == ClaimStatus.APPROVED
    assert len(await _approvals(session, claim_id)) == 1


@pytest.mark.asyncio
async def test_repository_loads_stored_user(session) -> None:
    repo = ClaimRepository(session)
    coordinator = await _actor(session, UserRole.COORDINATOR)

    user = await repo.get_user(coordinator.actor_id)

    assert user is not None
    assert user.role == UserRole.COORDINATOR
    assert await repo.get_user(uuid4()) is None

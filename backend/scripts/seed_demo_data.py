"""CLI script to seed demo users (and optionally sample claims) for local runs."""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

DEMO_USERS = (
    ("lecturer1", "Thandi", "Mokoena", "Lecturer", "Computer Science"),
    ("lecturer2", "Pieter", "van Wyk", "Lecturer", "Mathematics"),
    ("coordinator", "Ayesha", "Khan", "Coordinator", "Academic Programmes"),
    ("manager", "Sipho", "Dlamini", "Manager", "Faculty Administration"),
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Seed demo lecturers and reviewers into the claims database.",
    )
    parser.add_argument(
        "--with-claims",
        action="store_true",
        help="Also submit one compliant and one flagged claim for the first lecturer",
    )
    return parser.parse_args()


async def _run() -> int:
    from payroll.core.auth import ActorContext
    from payroll.db.repository import ClaimRepository
    from payroll.db.session import async_session_maker, init_db
    from payroll.models.enums import UserRole
    from payroll.models.users import User
    from payroll.services.claims import submit_claim

    args = _parse_args()
    await init_db()

    async with async_session_maker() as session:
        users: dict[str, User] = {}
        for username, first_name, last_name, role, department in DEMO_USERS:
            user = await User.objects.filter_by(username=username).first(session)
            if user is None:
                user = User(
                    username=username,
                    first_name=first_name,
                    last_name=last_name,
                    email=f"{username}@example.edu",
                    role=UserRole(role),
                    department=department,
                )
                session.add(user)
            users[username] = user
        await session.commit()

        for username, user in users.items():
            await session.refresh(user)
            sys.stdout.write(f"{user.role.value:<12} {username:<12} id={user.id}\n")

        if args.with_claims:
            lecturer = users["lecturer1"]
            actor = ActorContext(actor_id=lecturer.id, role=lecturer.role)
            repo = ClaimRepository(session)
            for hours, rate in ((Decimal("120"), Decimal("50")), (Decimal("170"), Decimal("50"))):
                outcome = await submit_claim(
                    repo,
                    actor=actor,
                    claim_month=date.today().replace(day=1),
                    hours_worked=hours,
                    hourly_rate=rate,
                    description="Demo claim",
                )
                sys.stdout.write(f"claim_id={outcome.claim.id} message={outcome.message}\n")
    return 0


def main() -> None:
    """Run the async CLI workflow and exit with its return code."""
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()

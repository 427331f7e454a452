"""Closed enumerations shared by models, schemas, and services."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Portal roles; an actor holds exactly one."""

    LECTURER = "Lecturer"
    COORDINATOR = "Coordinator"
    MANAGER = "Manager"
    HR = "HR"


class ClaimStatus(str, Enum):
    """Lifecycle states of a monthly claim."""

    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    UNDER_REVIEW = "UnderReview"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    COMPLETED = "Completed"

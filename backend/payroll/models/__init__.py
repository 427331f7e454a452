"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from payroll.models.approvals import Approval
from payroll.models.claims import MonthlyClaim
from payroll.models.documents import Document
from payroll.models.enums import ClaimStatus, UserRole
from payroll.models.users import User

__all__ = [
    "Approval",
    "ClaimStatus",
    "Document",
    "MonthlyClaim",
    "User",
    "UserRole",
]

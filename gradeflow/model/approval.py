import datetime
import enum

from .base import WithCtime
from .id import ApprovalID, GradeID, UserID


class ApprovalStatus(enum.Enum):
    Pending = "pending"
    Approved = "approved"
    Rejected = "rejected"

    @property
    def terminal(self) -> bool:
        return self is not ApprovalStatus.Pending


class GradeOverwriteApproval(WithCtime):
    approval_id: ApprovalID
    grade_id: GradeID
    requested_by: UserID
    old_value: float | None = None
    new_value: float | None = None
    reason: str

    status: ApprovalStatus = ApprovalStatus.Pending
    approved_by: UserID | None = None
    approved_at: datetime.datetime | None = None
    admin_notes: str | None = None

import datetime
import enum
import typing as t

from .base import BaseModel
from .id import AuditEntryID, UserID


class AuditAction(enum.Enum):
    Insert = "INSERT"
    Update = "UPDATE"
    Delete = "DELETE"


class AuditRecordType(enum.Enum):
    DetailedGrade = "detailed_grade"
    OverwriteApproval = "overwrite_approval"
    GradeSubmission = "grade_submission"


class AuditLogEntry(BaseModel):
    audit_entry_id: AuditEntryID
    record_id: str
    record_type: AuditRecordType
    version: int
    action: AuditAction
    user_id: UserID
    old_values: dict[str, t.Any] | None = None
    new_values: dict[str, t.Any] | None = None
    changes_summary: str
    created_at: datetime.datetime

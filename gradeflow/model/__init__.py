__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "AcademicYearID",
    "ApprovalID",
    "AuditEntryID",
    "ClassID",
    "GradeID",
    "PeriodID",
    "SemesterID",
    "StudentID",
    "SubjectID",
    "SubmissionID",
    "UserID",
    # Actors
    "Actor",
    "Role",
    # Periods
    "GradeReportingPeriod",
    "PeriodStatus",
    "PeriodType",
    # Grades
    "ComponentType",
    "BulkAccepted",
    "BulkGradeImport",
    "BulkRejected",
    "BulkResult",
    "DetailedGrade",
    "GradeRow",
    "GradeType",
    "StudentGradeEntry",
    "GradeScope",
    "MAX_GRADE",
    "MIN_GRADE",
    # Submissions
    "GradePeriodSubmission",
    "SubmissionStatus",
    # Approvals
    "ApprovalStatus",
    "GradeOverwriteApproval",
    # Audit
    "AuditAction",
    "AuditLogEntry",
    "AuditRecordType",
]

from .actor import Actor, Role
from .approval import ApprovalStatus, GradeOverwriteApproval
from .audit import AuditAction, AuditLogEntry, AuditRecordType
from .base import BaseModel, WithCtime, WithMtime, WithTimestamps
from .enum import DeploymentEnvironment
from .grade import BulkAccepted, BulkGradeImport, BulkRejected, BulkResult, ComponentType, DetailedGrade, \
    GradeRow, GradeScope, GradeType, MAX_GRADE, MIN_GRADE, StudentGradeEntry
from .id import AcademicYearID, ApprovalID, AuditEntryID, ClassID, GradeID, PeriodID, SemesterID, StudentID, \
    SubjectID, SubmissionID, UserID
from .period import GradeReportingPeriod, PeriodStatus, PeriodType
from .submission import GradePeriodSubmission, SubmissionStatus

"""View models for the grade lifecycle API"""

__all__ = [
    # Common
    "ErrorResponse",
    # Period views
    "PeriodCreateRequest",
    "PeriodListResponse",
    "PeriodResponse",
    "PeriodStatusRequest",
    # Grade views
    "BulkResultResponse",
    "GradeListResponse",
    "GradeResponse",
    "GradeSetRequest",
    # Submission views
    "SubmissionAdvanceRequest",
    "SubmissionListResponse",
    "SubmissionRequest",
    "SubmissionResetRequest",
    "SubmissionResponse",
    # Overwrite views
    "OverwriteDecisionRequest",
    "OverwriteListResponse",
    "OverwriteRequest",
    "OverwriteResponse",
    # Audit views
    "AuditEntryResponse",
    "AuditHistoryResponse",
]

from .audit import AuditEntryResponse, AuditHistoryResponse
from .common import ErrorResponse
from .grade import BulkResultResponse, GradeListResponse, GradeResponse, GradeSetRequest
from .overwrite import OverwriteDecisionRequest, OverwriteListResponse, OverwriteRequest, OverwriteResponse
from .period import PeriodCreateRequest, PeriodListResponse, PeriodResponse, PeriodStatusRequest
from .submission import SubmissionAdvanceRequest, SubmissionListResponse, SubmissionRequest, \
    SubmissionResetRequest, SubmissionResponse

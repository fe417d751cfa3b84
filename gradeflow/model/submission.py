import datetime
import enum

from .base import BaseModel
from .id import ClassID, PeriodID, SubjectID, SubmissionID, UserID


class SubmissionStatus(enum.Enum):
    Draft = "draft"
    Submitted = "submitted"
    SentToTeacher = "sent_to_teacher"
    SentToParent = "sent_to_parent"


class GradePeriodSubmission(BaseModel):
    submission_id: SubmissionID
    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    teacher_id: UserID

    status: SubmissionStatus
    submission_count: int
    last_reason: str | None = None
    submitted_at: datetime.datetime | None = None

import datetime
import enum

from .base import WithTimestamps
from .id import AcademicYearID, PeriodID, SemesterID, UserID


class PeriodType(enum.Enum):
    Midterm1 = "midterm_1"
    Final1 = "final_1"
    Semester1Summary = "semester_1_summary"
    Midterm2 = "midterm_2"
    Final2 = "final_2"
    Semester2Summary = "semester_2_summary"
    YearlySummary = "yearly_summary"


class PeriodStatus(enum.Enum):
    Open = "open"
    Closed = "closed"
    Reopened = "reopened"

    @property
    def editable(self) -> bool:
        return self is not PeriodStatus.Closed


class GradeReportingPeriod(WithTimestamps):
    period_id: PeriodID
    name: str
    period_type: PeriodType
    academic_year_id: AcademicYearID
    semester_id: SemesterID
    start_date: datetime.date
    end_date: datetime.date
    import_deadline: datetime.date

    status: PeriodStatus = PeriodStatus.Open
    status_reason: str | None = None
    status_changed_by: UserID | None = None
    status_changed_at: datetime.datetime | None = None
    created_by: UserID

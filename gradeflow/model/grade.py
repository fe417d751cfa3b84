import datetime
import enum
import typing as t

from .base import BaseModel
from .id import ClassID, GradeID, PeriodID, StudentID, SubjectID, UserID

MIN_GRADE: t.Final[float] = 0.0
MAX_GRADE: t.Final[float] = 10.0


class ComponentType(enum.Enum):
    Regular1 = "regular_1"
    Regular2 = "regular_2"
    Regular3 = "regular_3"
    Regular4 = "regular_4"
    Midterm = "midterm"
    Final = "final"
    Semester1 = "semester_1"
    Semester2 = "semester_2"
    Yearly = "yearly"
    Summary = "summary"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class DetailedGrade(BaseModel):
    grade_id: GradeID
    period_id: PeriodID
    student_id: StudentID
    subject_id: SubjectID
    class_id: ClassID
    component_type: ComponentType
    grade_value: float | None = None

    created_by: UserID
    updated_by: UserID
    created_at: datetime.datetime
    updated_at: datetime.datetime


class GradeScope(t.NamedTuple):
    """The rows covered by one submission"""

    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID


class GradeType(enum.Enum):
    """Shape of a bulk import: per-semester components or yearly summaries"""

    Semester = "semester"
    Yearly = "yearly"


class StudentGradeEntry(BaseModel):
    """One student's line in a bulk import; absent or null grades are not provided"""

    student_id: StudentID
    regular_grades: list[float | None] = []
    midterm_grade: float | None = None
    final_grade: float | None = None
    semester_1_grade: float | None = None
    semester_2_grade: float | None = None
    yearly_grade: float | None = None


class BulkGradeImport(BaseModel):
    period_id: PeriodID
    class_id: ClassID
    subject_id: SubjectID
    grade_type: GradeType
    grades: list[StudentGradeEntry]


class GradeRow(BaseModel):
    """A single grade write, as fed to bulk operations

    `component_type` stays a string until the write is attempted so that an
    unrecognized component is reported against its row.
    """

    period_id: PeriodID
    student_id: StudentID
    subject_id: SubjectID
    class_id: ClassID
    component_type: str
    value: float | None = None


class BulkAccepted(BaseModel):
    index: int
    grade: DetailedGrade


class BulkRejected(BaseModel):
    index: int
    student_id: str
    component_type: str
    kind: str
    code: str
    detail: str


class BulkResult(BaseModel):
    accepted: list[BulkAccepted] = []
    rejected: list[BulkRejected] = []

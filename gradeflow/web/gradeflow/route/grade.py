"""Grade entry routes"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gradeflow.auth import AuthContext, get_current_actor
from gradeflow.core import di
from gradeflow.engine import atomically
from gradeflow.engine import grade as grade_engine
from gradeflow.model import BulkGradeImport, GradeID, PeriodID

from ..view.grade import BulkResultResponse, GradeListResponse, GradeResponse, GradeSetRequest

router = APIRouter(prefix="/api/grades", tags=["grades"])


@router.post("", operation_id="set_grade")
@di.inject
def set_grade(
    request: GradeSetRequest,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> GradeResponse:
    """Enter, change or clear one grade while its period is open."""
    grade = atomically(
        grade_engine.set_grade,
        request.period_id,
        request.student_id,
        request.subject_id,
        request.class_id,
        request.component_type,
        request.grade_value,
        auth.actor,
        session=session,
        attempts=attempts,
    )
    return GradeResponse.model_validate(grade)


@router.post("/bulk", operation_id="bulk_set_grades")
@di.inject
def bulk_set_grades(
    request: BulkGradeImport,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> BulkResultResponse:
    """Apply an imported grade sheet.

    Every provided grade is reported as accepted or rejected; accepted
    grades are committed together.
    """
    rows = grade_engine.expand_import(request)
    result = atomically(grade_engine.bulk_set_grades, rows, auth.actor, session=session, attempts=attempts)
    return BulkResultResponse.model_validate(result)


@router.get("", operation_id="list_grades")
@di.inject
def list_grades(
    period_id: PeriodID | None = None,
    class_id: str | None = None,
    subject_id: str | None = None,
    student_id: str | None = None,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeListResponse:
    with session.begin():
        grades = grade_engine.find(
            auth.actor,
            period_id=period_id,
            class_id=class_id,
            subject_id=subject_id,
            student_id=student_id,
            session=session,
        )
    return GradeListResponse(grades=[GradeResponse.model_validate(g) for g in grades], total=len(grades))


@router.get("/{grade_id}", operation_id="get_grade")
@di.inject
def get_grade(
    grade_id: GradeID,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeResponse:
    with session.begin():
        grade = grade_engine.get(grade_id, auth.actor, session=session)
    return GradeResponse.model_validate(grade)

from __future__ import annotations

import datetime
import typing as t

from sqlalchemy import select

from gradeflow.core import di
from gradeflow.model import ComponentType, DetailedGrade, GradeID, PeriodID

from . import LockMode, Session
from .table import detailed_grades


def get(
    key: GradeID,
    *,
    lock: LockMode | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> DetailedGrade | None:
    stmt = select(detailed_grades.__table__).where(detailed_grades.grade_id == key)
    if lock is not None:
        stmt = stmt.with_for_update(read=(lock == "share"))
    row = session.execute(stmt).mappings().one_or_none()
    return DetailedGrade(**row) if row else None


def lookup(
    period_id: PeriodID,
    student_id: str,
    subject_id: str,
    component_type: ComponentType,
    *,
    lock: LockMode | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> DetailedGrade | None:
    """Fetch the grade occupying a (period, student, subject, component) slot"""
    stmt = select(detailed_grades.__table__).where(
        detailed_grades.period_id == period_id,
        detailed_grades.student_id == student_id,
        detailed_grades.subject_id == subject_id,
        detailed_grades.component_type == component_type,
    )
    if lock is not None:
        stmt = stmt.with_for_update(read=(lock == "share"))
    row = session.execute(stmt).mappings().one_or_none()
    return DetailedGrade(**row) if row else None


def find(
    *,
    period_id: PeriodID | None = None,
    class_id: str | None = None,
    subject_id: str | None = None,
    student_id: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[DetailedGrade, ...]:
    stmt = select(detailed_grades.__table__).order_by(
        detailed_grades.student_id, detailed_grades.subject_id, detailed_grades.component_type
    )
    if period_id is not None:
        stmt = stmt.where(detailed_grades.period_id == period_id)
    if class_id is not None:
        stmt = stmt.where(detailed_grades.class_id == class_id)
    if subject_id is not None:
        stmt = stmt.where(detailed_grades.subject_id == subject_id)
    if student_id is not None:
        stmt = stmt.where(detailed_grades.student_id == student_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(DetailedGrade(**row) for row in rows)


def create(params: GradeCreateParams, session: Session = di.Provide["storage.persistent.session"]) -> DetailedGrade:
    grade = detailed_grades(
        grade_id=GradeID(),
        period_id=params["period_id"],
        student_id=params["student_id"],
        subject_id=params["subject_id"],
        class_id=params["class_id"],
        component_type=params["component_type"],
        grade_value=params["grade_value"],
        created_by=params["created_by"],
        updated_by=params["created_by"],
        created_at=params["created_at"],
        updated_at=params["created_at"],
    )
    session.add(grade)
    session.flush()
    return get(grade.grade_id, session=session)  # type: ignore


def update(
    key: GradeID,
    params: GradeUpdateParams,
    session: Session = di.Provide["storage.persistent.session"],
) -> DetailedGrade | None:
    stmt = select(detailed_grades).where(detailed_grades.grade_id == key)
    grade = session.execute(stmt).scalar_one_or_none()
    if grade is None:
        return None
    for field, value in params.items():
        setattr(grade, field, value)
    session.flush()
    return get(key, session=session)


class GradeCreateParams(t.TypedDict):
    period_id: PeriodID
    student_id: str
    subject_id: str
    class_id: str
    component_type: ComponentType
    grade_value: float | None
    created_by: str
    created_at: datetime.datetime


class GradeUpdateParams(t.TypedDict):
    grade_value: float | None
    updated_by: str
    updated_at: datetime.datetime

from __future__ import annotations

import datetime
import typing as t

from sqlalchemy import select

from gradeflow.core import di
from gradeflow.model import GradeReportingPeriod, PeriodID, PeriodStatus, PeriodType

from . import LockMode, Session
from .table import grade_reporting_periods


def get(
    key: PeriodID,
    *,
    lock: LockMode | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeReportingPeriod | None:
    stmt = select(grade_reporting_periods.__table__).where(grade_reporting_periods.period_id == key)
    if lock is not None:
        stmt = stmt.with_for_update(read=(lock == "share"))
    row = session.execute(stmt).mappings().one_or_none()
    return GradeReportingPeriod(**row) if row else None


def find(
    *,
    academic_year_id: str | None = None,
    semester_id: str | None = None,
    status: PeriodStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeReportingPeriod, ...]:
    stmt = select(grade_reporting_periods.__table__).order_by(
        grade_reporting_periods.start_date, grade_reporting_periods.name
    )
    if academic_year_id is not None:
        stmt = stmt.where(grade_reporting_periods.academic_year_id == academic_year_id)
    if semester_id is not None:
        stmt = stmt.where(grade_reporting_periods.semester_id == semester_id)
    if status is not None:
        stmt = stmt.where(grade_reporting_periods.status == status)
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeReportingPeriod(**row) for row in rows)


def create(
    params: PeriodCreateParams, session: Session = di.Provide["storage.persistent.session"]
) -> GradeReportingPeriod:
    period = grade_reporting_periods(
        period_id=PeriodID(),
        name=params["name"],
        period_type=params["period_type"],
        academic_year_id=params["academic_year_id"],
        semester_id=params["semester_id"],
        start_date=params["start_date"],
        end_date=params["end_date"],
        import_deadline=params["import_deadline"],
        created_by=params["created_by"],
        create_time=params["create_time"],
        update_time=params["create_time"],
    )
    session.add(period)
    session.flush()
    return get(period.period_id, session=session)  # type: ignore


def update(
    key: PeriodID,
    params: PeriodUpdateParams,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeReportingPeriod | None:
    stmt = select(grade_reporting_periods).where(grade_reporting_periods.period_id == key)
    period = session.execute(stmt).scalar_one_or_none()
    if period is None:
        return None
    for field, value in params.items():
        setattr(period, field, value)
    session.flush()
    return get(key, session=session)


class PeriodCreateParams(t.TypedDict):
    name: str
    period_type: PeriodType
    academic_year_id: str
    semester_id: str
    start_date: datetime.date
    end_date: datetime.date
    import_deadline: datetime.date
    created_by: str
    create_time: datetime.datetime


class PeriodUpdateParams(t.TypedDict, total=False):
    status: PeriodStatus
    status_reason: str | None
    status_changed_by: str
    status_changed_at: datetime.datetime
    update_time: datetime.datetime

from __future__ import annotations

import datetime
import typing as t

from sqlalchemy import select

from gradeflow.core import di
from gradeflow.model import GradePeriodSubmission, GradeScope, PeriodID, SubmissionID, SubmissionStatus

from . import LockMode, Session
from .table import grade_period_submissions


def get(
    key: SubmissionID,
    *,
    lock: LockMode | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradePeriodSubmission | None:
    stmt = select(grade_period_submissions.__table__).where(grade_period_submissions.submission_id == key)
    if lock is not None:
        stmt = stmt.with_for_update(read=(lock == "share"))
    row = session.execute(stmt).mappings().one_or_none()
    return GradePeriodSubmission(**row) if row else None


def lookup(
    scope: GradeScope,
    teacher_id: str,
    *,
    lock: LockMode | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradePeriodSubmission | None:
    stmt = select(grade_period_submissions.__table__).where(
        grade_period_submissions.period_id == scope.period_id,
        grade_period_submissions.class_id == scope.class_id,
        grade_period_submissions.subject_id == scope.subject_id,
        grade_period_submissions.teacher_id == teacher_id,
    )
    if lock is not None:
        stmt = stmt.with_for_update(read=(lock == "share"))
    row = session.execute(stmt).mappings().one_or_none()
    return GradePeriodSubmission(**row) if row else None


def find(
    *,
    period_id: PeriodID | None = None,
    class_id: str | None = None,
    subject_id: str | None = None,
    teacher_id: str | None = None,
    status: SubmissionStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradePeriodSubmission, ...]:
    stmt = select(grade_period_submissions.__table__).order_by(
        grade_period_submissions.class_id, grade_period_submissions.subject_id, grade_period_submissions.teacher_id
    )
    if period_id is not None:
        stmt = stmt.where(grade_period_submissions.period_id == period_id)
    if class_id is not None:
        stmt = stmt.where(grade_period_submissions.class_id == class_id)
    if subject_id is not None:
        stmt = stmt.where(grade_period_submissions.subject_id == subject_id)
    if teacher_id is not None:
        stmt = stmt.where(grade_period_submissions.teacher_id == teacher_id)
    if status is not None:
        stmt = stmt.where(grade_period_submissions.status == status)
    rows = session.execute(stmt).mappings().all()
    return tuple(GradePeriodSubmission(**row) for row in rows)


def create(
    params: SubmissionCreateParams, session: Session = di.Provide["storage.persistent.session"]
) -> GradePeriodSubmission:
    scope = params["scope"]
    submission = grade_period_submissions(
        submission_id=SubmissionID(),
        period_id=scope.period_id,
        class_id=scope.class_id,
        subject_id=scope.subject_id,
        teacher_id=params["teacher_id"],
        status=params["status"],
        submission_count=1,
        last_reason=params.get("last_reason"),
        submitted_at=params["submitted_at"],
    )
    session.add(submission)
    session.flush()
    return get(submission.submission_id, session=session)  # type: ignore


def update(
    key: SubmissionID,
    params: SubmissionUpdateParams,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradePeriodSubmission | None:
    stmt = select(grade_period_submissions).where(grade_period_submissions.submission_id == key)
    submission = session.execute(stmt).scalar_one_or_none()
    if submission is None:
        return None
    for field, value in params.items():
        setattr(submission, field, value)
    session.flush()
    return get(key, session=session)


class SubmissionCreateParams(t.TypedDict, total=False):
    scope: t.Required[GradeScope]
    teacher_id: t.Required[str]
    status: t.Required[SubmissionStatus]
    submitted_at: t.Required[datetime.datetime]
    last_reason: str | None


class SubmissionUpdateParams(t.TypedDict, total=False):
    status: SubmissionStatus
    submission_count: int
    last_reason: str | None
    submitted_at: datetime.datetime

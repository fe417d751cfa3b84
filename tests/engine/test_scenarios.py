"""End-to-end walkthrough of one reporting period's grade lifecycle."""

from __future__ import annotations

import pytest
from sqlalchemy.orm import Session

from gradeflow.engine import approval as approval_engine
from gradeflow.engine import atomically
from gradeflow.engine import audit as audit_engine
from gradeflow.engine import grade as grade_engine
from gradeflow.engine import period as period_engine
from gradeflow.engine import submission as submission_engine
from gradeflow.engine.errors import AlreadyDecided, PeriodLocked, ReasonRequired
from gradeflow.model import Actor, ApprovalStatus, AuditAction, GradeReportingPeriod, PeriodStatus, \
    SubmissionStatus


def test_grade_lifecycle(db_session: Session, admin: Actor, teacher: Actor, period: GradeReportingPeriod) -> None:
    p1 = period.period_id

    # a grade entered while the period is open
    grade = atomically(grade_engine.set_grade, p1, "S1", "Math", "C1", "midterm", 8.5, teacher, session=db_session)
    with db_session.begin():
        entries = audit_engine.history(grade.grade_id, teacher, session=db_session)
        rows = grade_engine.find(teacher, period_id=p1, session=db_session)
    assert len(rows) == 1
    assert [(e.action, e.new_values) for e in entries] == [(AuditAction.Insert, {"grade_value": 8.5})]

    # closing the period locks it
    closed = atomically(period_engine.transition, p1, PeriodStatus.Closed, admin, "End of term", session=db_session)
    assert closed.status is PeriodStatus.Closed
    with pytest.raises(PeriodLocked):
        atomically(grade_engine.set_grade, p1, "S1", "Math", "C1", "midterm", 9.0, teacher, session=db_session)

    # an approved overwrite changes it anyway, exactly once
    approval = atomically(approval_engine.request, grade.grade_id, 9.0, "data entry error", teacher, session=db_session)
    assert approval.status is ApprovalStatus.Pending
    atomically(approval_engine.decide, approval.approval_id, "approved", admin, session=db_session)
    with db_session.begin():
        updated = grade_engine.get(grade.grade_id, teacher, session=db_session)
        entries = audit_engine.history(grade.grade_id, teacher, session=db_session)
    assert updated.grade_value == 9.0
    assert [e.action for e in entries] == [AuditAction.Insert, AuditAction.Update]
    with pytest.raises(AlreadyDecided):
        atomically(approval_engine.decide, approval.approval_id, "approved", admin, session=db_session)


def test_submission_lifecycle(db_session: Session, teacher: Actor, period: GradeReportingPeriod) -> None:
    def submit(reason: str | None = None):
        return atomically(
            submission_engine.submit, period.period_id, "C1", "Math", teacher.user_id, teacher, reason,
            session=db_session,
        )

    first = submit()
    assert (first.submission_count, first.status) == (1, SubmissionStatus.Submitted)

    with pytest.raises(ReasonRequired):
        submit()

    second = submit("fixed typo")
    assert second.submission_count == 2
    assert second.last_reason == "fixed typo"

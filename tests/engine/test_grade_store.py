"""Tests for gradeflow.engine.grade: single and bulk grade writes."""

from __future__ import annotations

import typing as t

import pytest
from sqlalchemy.orm import Session

from gradeflow.engine import audit as audit_engine
from gradeflow.engine import grade as grade_engine
from gradeflow.engine import period as period_engine
from gradeflow.engine import submission as submission_engine
from gradeflow.engine.errors import NotFoundError, OutOfRange, PeriodLocked, SubmissionLocked, UnknownComponentType
from gradeflow.model import Actor, AuditAction, BulkGradeImport, ComponentType, DetailedGrade, GradeReportingPeriod, \
    GradeRow, GradeType, PeriodID, PeriodStatus, StudentGradeEntry, SubmissionStatus

GradeFactory = t.Callable[..., DetailedGrade]


def _history(session: Session, actor: Actor, grade: DetailedGrade):
    with session.begin():
        return audit_engine.history(grade.grade_id, actor, session=session)


class TestSetGrade(object):
    def test_insert_creates_row_and_audit_entry(
        self, db_session: Session, teacher: Actor, grade_factory: GradeFactory
    ) -> None:
        grade = grade_factory(8.5)

        assert grade.grade_value == 8.5
        assert grade.created_by == teacher.user_id
        entries = _history(db_session, teacher, grade)
        assert len(entries) == 1
        assert entries[0].action is AuditAction.Insert
        assert entries[0].old_values is None
        assert entries[0].new_values == {"grade_value": 8.5}
        assert entries[0].changes_summary == "Created midterm grade: 8.5"

    def test_update_appends_entry(self, db_session: Session, teacher: Actor, grade_factory: GradeFactory) -> None:
        first = grade_factory(8.5)
        second = grade_factory(9.0)

        assert second.grade_id == first.grade_id
        assert second.grade_value == 9.0
        entries = _history(db_session, teacher, second)
        assert [e.action for e in entries] == [AuditAction.Insert, AuditAction.Update]
        assert entries[1].old_values == {"grade_value": 8.5}
        assert entries[1].new_values == {"grade_value": 9.0}
        assert entries[1].changes_summary == "Updated midterm grade: 8.5 → 9.0"

    def test_same_value_is_noop(self, db_session: Session, teacher: Actor, grade_factory: GradeFactory) -> None:
        grade_factory(7.25)
        again = grade_factory(7.25)

        assert len(_history(db_session, teacher, again)) == 1

    def test_clear_is_soft_delete(self, db_session: Session, teacher: Actor, grade_factory: GradeFactory) -> None:
        grade_factory(6.0)
        cleared = grade_factory(None)

        assert cleared.grade_value is None
        entries = _history(db_session, teacher, cleared)
        assert entries[-1].action is AuditAction.Delete
        assert entries[-1].new_values == {"grade_value": None}

        with db_session.begin():
            assert grade_engine.get(cleared.grade_id, teacher, session=db_session).grade_value is None

    @pytest.mark.parametrize("value", [0, 10, 0.0, 10.0, 5.5])
    def test_bounds_inclusive(self, grade_factory: GradeFactory, value: float) -> None:
        assert grade_factory(value).grade_value == value

    @pytest.mark.parametrize("value", [-0.1, 10.01, 11, float("nan"), float("inf")])
    def test_out_of_range_rejected(self, db_session: Session, grade_factory: GradeFactory, value: float) -> None:
        with pytest.raises(OutOfRange):
            grade_factory(value)

    def test_unknown_component_rejected(self, grade_factory: GradeFactory) -> None:
        with pytest.raises(UnknownComponentType):
            grade_factory(5.0, component_type="regular_5")

    def test_missing_period(self, grade_factory: GradeFactory) -> None:
        with pytest.raises(NotFoundError):
            grade_factory(5.0, period_id=PeriodID())

    def test_closed_period_refuses_writes(
        self,
        db_session: Session,
        teacher: Actor,
        period: GradeReportingPeriod,
        grade_factory: GradeFactory,
        close_period: t.Callable[[GradeReportingPeriod], GradeReportingPeriod],
    ) -> None:
        grade = grade_factory(8.5)
        close_period(period)

        with pytest.raises(PeriodLocked):
            grade_factory(9.0)

        entries = _history(db_session, teacher, grade)
        assert len(entries) == 1
        with db_session.begin():
            assert grade_engine.get(grade.grade_id, teacher, session=db_session).grade_value == 8.5

    def test_reopened_period_accepts_writes(
        self,
        db_session: Session,
        admin: Actor,
        period: GradeReportingPeriod,
        grade_factory: GradeFactory,
        close_period: t.Callable[[GradeReportingPeriod], GradeReportingPeriod],
    ) -> None:
        grade_factory(8.5)
        close_period(period)
        with db_session.begin():
            period_engine.transition(period.period_id, PeriodStatus.Reopened, admin, "correction", session=db_session)

        assert grade_factory(9.0).grade_value == 9.0

    def test_sent_to_parent_refuses_writes(
        self,
        db_session: Session,
        admin: Actor,
        grade_factory: GradeFactory,
        submission_factory: t.Callable[..., t.Any],
    ) -> None:
        grade_factory(8.5)
        submission = submission_factory()
        with db_session.begin():
            for status in (SubmissionStatus.SentToTeacher, SubmissionStatus.SentToParent):
                submission_engine.advance(submission.submission_id, status, admin, session=db_session)

        with pytest.raises(SubmissionLocked):
            grade_factory(9.0)

        # other subjects in the same class are unaffected
        assert grade_factory(4.0, subject_id="physics").grade_value == 4.0


class TestBulkSetGrades(object):
    def test_rows_succeed_or_fail_individually(
        self, db_session: Session, teacher: Actor, period: GradeReportingPeriod
    ) -> None:
        rows = [
            GradeRow(period_id=period.period_id, student_id="s1", subject_id="math", class_id="10A",
                     component_type="midterm", value=7.0),
            GradeRow(period_id=period.period_id, student_id="s2", subject_id="math", class_id="10A",
                     component_type="midterm", value=12.0),
            GradeRow(period_id=period.period_id, student_id="s3", subject_id="math", class_id="10A",
                     component_type="regular_9", value=5.0),
            GradeRow(period_id=period.period_id, student_id="s4", subject_id="math", class_id="10A",
                     component_type="final", value=6.5),
        ]

        with db_session.begin():
            result = grade_engine.bulk_set_grades(rows, teacher, session=db_session)

        assert [a.index for a in result.accepted] == [0, 3]
        assert [(r.index, r.code) for r in result.rejected] == [(1, "OutOfRange"), (2, "UnknownComponentType")]
        assert all(r.kind == "ValidationError" for r in result.rejected)

        with db_session.begin():
            stored = grade_engine.find(teacher, period_id=period.period_id, session=db_session)
        assert {g.student_id for g in stored} == {"s1", "s4"}

    def test_rejected_rows_leave_no_audit(
        self,
        db_session: Session,
        teacher: Actor,
        period: GradeReportingPeriod,
        close_period: t.Callable[[GradeReportingPeriod], GradeReportingPeriod],
    ) -> None:
        close_period(period)
        rows = [
            GradeRow(period_id=period.period_id, student_id="s1", subject_id="math", class_id="10A",
                     component_type="midterm", value=7.0),
        ]

        with db_session.begin():
            result = grade_engine.bulk_set_grades(rows, teacher, session=db_session)
            entries = audit_engine.find(teacher, user_id=teacher.user_id, session=db_session)

        assert result.accepted == []
        assert result.rejected[0].code == "PeriodLocked"
        assert entries == ()


class TestExpandImport(object):
    def test_semester_import(self, period: GradeReportingPeriod) -> None:
        payload = BulkGradeImport(
            period_id=period.period_id,
            class_id="10A",
            subject_id="math",
            grade_type=GradeType.Semester,
            grades=[
                StudentGradeEntry(
                    student_id="s1", regular_grades=[8.0, None, 7.5], midterm_grade=9.0, final_grade=None
                ),
            ],
        )

        rows = grade_engine.expand_import(payload)

        assert [(r.component_type, r.value) for r in rows] == [
            ("regular_1", 8.0),
            ("regular_3", 7.5),
            ("midterm", 9.0),
        ]

    def test_yearly_import(self, period: GradeReportingPeriod) -> None:
        payload = BulkGradeImport(
            period_id=period.period_id,
            class_id="10A",
            subject_id="math",
            grade_type=GradeType.Yearly,
            grades=[StudentGradeEntry(student_id="s1", semester_1_grade=7.0, semester_2_grade=8.0, yearly_grade=7.7)],
        )

        rows = grade_engine.expand_import(payload)

        assert [(r.component_type, r.value) for r in rows] == [
            (ComponentType.Semester1.value, 7.0),
            (ComponentType.Semester2.value, 8.0),
            (ComponentType.Yearly.value, 7.7),
        ]

    def test_fifth_regular_grade_is_rejected_on_apply(
        self, db_session: Session, teacher: Actor, period: GradeReportingPeriod
    ) -> None:
        payload = BulkGradeImport(
            period_id=period.period_id,
            class_id="10A",
            subject_id="math",
            grade_type=GradeType.Semester,
            grades=[StudentGradeEntry(student_id="s1", regular_grades=[5.0, 6.0, 7.0, 8.0, 9.0])],
        )

        with db_session.begin():
            result = grade_engine.bulk_set_grades(grade_engine.expand_import(payload), teacher, session=db_session)

        assert len(result.accepted) == 4
        assert [(r.component_type, r.code) for r in result.rejected] == [("regular_5", "UnknownComponentType")]

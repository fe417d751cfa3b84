"""Tests for gradeflow.engine.period: the reporting period state machine."""

from __future__ import annotations

import datetime
import logging
import typing as t

import pytest
from sqlalchemy.orm import Session

from gradeflow.engine import period as period_engine
from gradeflow.engine.errors import Forbidden, InvalidTransition, NotFoundError, ReasonRequired
from gradeflow.model import Actor, GradeReportingPeriod, PeriodID, PeriodStatus, PeriodType

PeriodFactory = t.Callable[..., GradeReportingPeriod]


class TestCreate(object):
    def test_new_period_is_open(self, db_session: Session, admin: Actor) -> None:
        with db_session.begin():
            period = period_engine.create(
                "Final 2",
                PeriodType.Final2,
                "2025-2026",
                "S2",
                datetime.date(2026, 2, 1),
                datetime.date(2026, 5, 31),
                datetime.date(2026, 6, 10),
                admin,
                session=db_session,
            )

        assert period.status is PeriodStatus.Open
        assert period.created_by == admin.user_id
        assert period.status_changed_by is None
        assert period.status_changed_at is None

    def test_creation_is_logged(self, db_session: Session, admin: Actor, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="gradeflow.engine.period"):
            with db_session.begin():
                period = period_engine.create(
                    "Semester 1 summary",
                    PeriodType.Semester1Summary,
                    "2025-2026",
                    "S1",
                    datetime.date(2025, 9, 1),
                    datetime.date(2026, 1, 31),
                    datetime.date(2026, 2, 7),
                    admin,
                    session=db_session,
                )

        (record,) = [r for r in caplog.records if r.getMessage() == "reporting period created"]
        assert record.__dict__["period_id"] == period.period_id
        assert record.__dict__["period_name"] == "Semester 1 summary"

    def test_teacher_cannot_create(self, db_session: Session, teacher: Actor) -> None:
        with pytest.raises(Forbidden):
            with db_session.begin():
                period_engine.create(
                    "Midterm 1",
                    PeriodType.Midterm1,
                    "2025-2026",
                    "S1",
                    datetime.date(2025, 9, 1),
                    datetime.date(2025, 11, 1),
                    datetime.date(2025, 11, 10),
                    teacher,
                    session=db_session,
                )


class TestTransition(object):
    def test_close_records_who_and_why(self, db_session: Session, admin: Actor, period: GradeReportingPeriod) -> None:
        with db_session.begin():
            closed = period_engine.transition(period.period_id, "closed", admin, "End of term", session=db_session)

        assert closed.status is PeriodStatus.Closed
        assert closed.status_reason == "End of term"
        assert closed.status_changed_by == admin.user_id
        assert closed.status_changed_at is not None

    def test_reopen_requires_reason(self, db_session: Session, admin: Actor, period_factory: PeriodFactory) -> None:
        period = period_factory(status=PeriodStatus.Closed)

        for reason in (None, "", "   "):
            with pytest.raises(ReasonRequired):
                with db_session.begin():
                    period_engine.transition(period.period_id, PeriodStatus.Reopened, admin, reason, session=db_session)

        with db_session.begin():
            current = period_engine.get(period.period_id, admin, session=db_session)
        assert current.status is PeriodStatus.Closed

    def test_reopen_with_reason(self, db_session: Session, admin: Actor, period_factory: PeriodFactory) -> None:
        period = period_factory(status=PeriodStatus.Closed)

        with db_session.begin():
            reopened = period_engine.transition(
                period.period_id, PeriodStatus.Reopened, admin, "grading error in 10A", session=db_session
            )

        assert reopened.status is PeriodStatus.Reopened
        assert reopened.status_reason == "grading error in 10A"

    def test_reopened_can_close_again(self, db_session: Session, admin: Actor, period_factory: PeriodFactory) -> None:
        period = period_factory(status=PeriodStatus.Reopened)

        with db_session.begin():
            closed = period_engine.transition(period.period_id, PeriodStatus.Closed, admin, session=db_session)

        assert closed.status is PeriodStatus.Closed

    def test_same_status_is_noop(self, db_session: Session, admin: Actor, period_factory: PeriodFactory) -> None:
        period = period_factory(status=PeriodStatus.Closed)

        with db_session.begin():
            again = period_engine.transition(period.period_id, PeriodStatus.Closed, admin, "again", session=db_session)

        assert again.status is PeriodStatus.Closed
        assert again.status_changed_at == period.status_changed_at
        assert again.status_reason == period.status_reason

    def test_reopen_straight_from_open(self, db_session: Session, admin: Actor, period: GradeReportingPeriod) -> None:
        with db_session.begin():
            reopened = period_engine.transition(
                period.period_id, PeriodStatus.Reopened, admin, "extended for 10A", session=db_session
            )

        assert reopened.status is PeriodStatus.Reopened
        assert reopened.status_reason == "extended for 10A"
        assert reopened.status_changed_by == admin.user_id

    @pytest.mark.parametrize(
        "start, target",
        [
            (PeriodStatus.Closed, PeriodStatus.Open),
            (PeriodStatus.Reopened, PeriodStatus.Open),
        ],
    )
    def test_any_status_is_reachable(
        self,
        db_session: Session,
        admin: Actor,
        period_factory: PeriodFactory,
        start: PeriodStatus,
        target: PeriodStatus,
    ) -> None:
        period = period_factory(status=start)

        with db_session.begin():
            moved = period_engine.transition(period.period_id, target, admin, session=db_session)

        assert moved.status is target
        assert moved.status_reason is None

    def test_unknown_status_rejected(self, db_session: Session, admin: Actor, period: GradeReportingPeriod) -> None:
        with pytest.raises(InvalidTransition):
            with db_session.begin():
                period_engine.transition(period.period_id, "archived", admin, session=db_session)

    def test_teacher_cannot_transition(
        self, db_session: Session, teacher: Actor, period: GradeReportingPeriod
    ) -> None:
        with pytest.raises(Forbidden):
            with db_session.begin():
                period_engine.transition(period.period_id, PeriodStatus.Closed, teacher, session=db_session)

    def test_missing_period(self, db_session: Session, admin: Actor) -> None:
        with pytest.raises(NotFoundError):
            with db_session.begin():
                period_engine.transition(PeriodID(), PeriodStatus.Closed, admin, session=db_session)


class TestFind(object):
    def test_teacher_can_read(
        self, db_session: Session, teacher: Actor, period_factory: PeriodFactory
    ) -> None:
        period = period_factory(semester_id="S9")

        with db_session.begin():
            found = period_engine.find(teacher, semester_id="S9", session=db_session)

        assert [p.period_id for p in found] == [period.period_id]

"""Tests for gradeflow.engine.transaction.atomically."""

from __future__ import annotations

import sqlite3
import typing as t

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from gradeflow.engine import atomically
from gradeflow.engine import grade as grade_engine
from gradeflow.engine.errors import ConcurrencyError, OutOfRange
from gradeflow.engine.transaction import is_conflict
from gradeflow.model import Actor, GradeReportingPeriod


class FakePGError(Exception):
    def __init__(self, sqlstate: str):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def locked() -> OperationalError:
    return OperationalError("UPDATE ...", {}, sqlite3.OperationalError("database is locked"))


class Flaky(object):
    """Fails with `error` the first `failures` times it is called"""

    def __init__(self, failures: int, error: t.Callable[[], Exception]):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self, *, session: Session) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error()
        return "done"


class TestIsConflict(object):
    @pytest.mark.parametrize("sqlstate", ["40001", "40P01", "55P03", "23505"])
    def test_postgresql_conflicts(self, sqlstate: str) -> None:
        assert is_conflict(OperationalError("SELECT 1", {}, FakePGError(sqlstate)))

    def test_postgresql_other_errors(self) -> None:
        assert not is_conflict(IntegrityError("INSERT ...", {}, FakePGError("23514")))

    def test_sqlite_conflicts(self) -> None:
        assert is_conflict(locked())
        assert is_conflict(IntegrityError("INSERT ...", {}, sqlite3.IntegrityError("UNIQUE constraint failed: x.y")))
        assert not is_conflict(IntegrityError("INSERT ...", {}, sqlite3.IntegrityError("CHECK constraint failed")))


class TestAtomically(object):
    def test_retries_until_success(self, db_session: Session) -> None:
        fn = Flaky(1, locked)

        assert atomically(fn, session=db_session, attempts=3) == "done"
        assert fn.calls == 2

    def test_gives_up_after_attempts(self, db_session: Session) -> None:
        fn = Flaky(5, locked)

        with pytest.raises(ConcurrencyError):
            atomically(fn, session=db_session, attempts=3)
        assert fn.calls == 3

    def test_other_errors_propagate_without_retry(self, db_session: Session) -> None:
        fn = Flaky(1, lambda: OutOfRange("nope"))

        with pytest.raises(OutOfRange):
            atomically(fn, session=db_session, attempts=3)
        assert fn.calls == 1

    def test_commits_engine_operation(
        self, db_session: Session, teacher: Actor, period: GradeReportingPeriod
    ) -> None:
        grade = atomically(
            grade_engine.set_grade,
            period.period_id,
            "s1",
            "math",
            "10A",
            "midterm",
            8.5,
            teacher,
            session=db_session,
        )

        with db_session.begin():
            assert grade_engine.get(grade.grade_id, teacher, session=db_session).grade_value == 8.5

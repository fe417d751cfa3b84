"""Tests for gradeflow.engine.audit."""

from __future__ import annotations

import datetime
import typing as t

from sqlalchemy.orm import Session

from gradeflow.engine import audit as audit_engine
from gradeflow.model import Actor, AuditRecordType, DetailedGrade

GradeFactory = t.Callable[..., DetailedGrade]


def test_history_is_gap_free(db_session: Session, teacher: Actor, grade_factory: GradeFactory) -> None:
    for value in (5.0, 6.0, None, 7.0):
        grade = grade_factory(value)

    with db_session.begin():
        entries = audit_engine.history(grade.grade_id, teacher, session=db_session)

    assert [e.version for e in entries] == [1, 2, 3, 4]
    assert [e.created_at for e in entries] == sorted(e.created_at for e in entries)
    # each entry starts where the previous one left off
    for previous, current in zip(entries, entries[1:]):
        assert current.old_values == previous.new_values


def test_history_of_unknown_record_is_empty(db_session: Session, teacher: Actor) -> None:
    with db_session.begin():
        assert audit_engine.history("grad$nothing-here", teacher, session=db_session) == ()


def test_find_filters(db_session: Session, teacher: Actor, other_teacher: Actor, grade_factory: GradeFactory) -> None:
    before = datetime.datetime.now(datetime.UTC)
    mine = grade_factory(5.0, student_id="s1")
    theirs = grade_factory(6.0, student_id="s2", actor=other_teacher)

    with db_session.begin():
        by_user = audit_engine.find(teacher, user_id=other_teacher.user_id, session=db_session)
        by_type = audit_engine.find(
            teacher, record_type=AuditRecordType.DetailedGrade, since=before, session=db_session
        )

    assert [e.record_id for e in by_user] == [str(theirs.grade_id)]
    assert {e.record_id for e in by_type} == {str(mine.grade_id), str(theirs.grade_id)}

"""Grade store

All grade writes go through `set_grade`. A write is refused while the
period is closed or once the scope's grades have been sent to parents; the
overwrite approval workflow lifts both gates by passing the approval it is
applying. Each accepted change appends one audit entry in the same
transaction.
"""

from __future__ import annotations

import collections
import logging
import math
import typing as t

import gradeflow.storage.grade as grade_storage
import gradeflow.storage.submission as submission_storage
from gradeflow.core import di
from gradeflow.core.provider import TimestampProvider
from gradeflow.model import Actor, AuditAction, AuditRecordType, BulkAccepted, BulkGradeImport, BulkRejected, \
    BulkResult, ComponentType, DetailedGrade, GradeID, GradeOverwriteApproval, GradeRow, GradeScope, GradeType, \
    MAX_GRADE, MIN_GRADE, PeriodID, SubmissionStatus
from gradeflow.storage import Session

from . import audit
from .errors import GradeflowError, NotFoundError, OutOfRange, PeriodLocked, SubmissionLocked, UnknownComponentType
from .period import load as load_period
from .policy import ensure_role, Staff

logger = logging.getLogger(__name__)

# components a yearly import may carry, keyed by payload field
YearlyComponents: t.Final[dict[str, ComponentType]] = {
    "semester_1_grade": ComponentType.Semester1,
    "semester_2_grade": ComponentType.Semester2,
    "yearly_grade": ComponentType.Yearly,
}
SemesterComponents: t.Final[dict[str, ComponentType]] = {
    "midterm_grade": ComponentType.Midterm,
    "final_grade": ComponentType.Final,
}


def coerce_component(component_type: ComponentType | str) -> ComponentType:
    try:
        return ComponentType(component_type)
    except ValueError:
        raise UnknownComponentType(f"{component_type!r} is not a grade component") from None


def validate_value(value: float | None) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise OutOfRange(f"grade {value!r} is not a number")
    if not math.isfinite(value) or not MIN_GRADE <= value <= MAX_GRADE:
        raise OutOfRange(f"grade {value!r} is outside [{MIN_GRADE:g}, {MAX_GRADE:g}]")
    return float(value)


def format_value(value: float | None) -> str:
    return "none" if value is None else repr(value)


def describe(action: AuditAction, component: ComponentType, old: float | None, new: float | None) -> str:
    match action:
        case AuditAction.Insert:
            return f"Created {component.label} grade: {format_value(new)}"
        case AuditAction.Update:
            return f"Updated {component.label} grade: {format_value(old)} → {format_value(new)}"
        case AuditAction.Delete:
            return f"Cleared {component.label} grade: {format_value(old)} → {format_value(new)}"


def is_sent_to_parents(scope: GradeScope, *, session: Session) -> bool:
    sent = submission_storage.find(
        period_id=scope.period_id,
        class_id=scope.class_id,
        subject_id=scope.subject_id,
        status=SubmissionStatus.SentToParent,
        session=session,
    )
    return bool(sent)


@di.inject
def set_grade(
    period_id: PeriodID,
    student_id: str,
    subject_id: str,
    class_id: str,
    component_type: ComponentType | str,
    value: float | None,
    actor: Actor,
    *,
    approval: GradeOverwriteApproval | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> DetailedGrade:
    """Write one grade value, creating the row on first entry

    Writing the stored value again changes nothing and records nothing.
    Setting a value to None clears it; rows are never removed.

    Args:
        approval: the approved overwrite being applied, which bypasses the
            period and submission gates; only the approval workflow passes it

    Raises:
        UnknownComponentType, OutOfRange: invalid input
        NotFoundError: no such period
        PeriodLocked: the period is closed
        SubmissionLocked: the scope's grades were already sent to parents
    """
    ensure_role(actor, *Staff)
    component = coerce_component(component_type)
    value = validate_value(value)

    # shared lock: a concurrent close waits for this write, or this write sees the close
    period = load_period(period_id, lock="share", session=session)
    if approval is None and not period.status.editable:
        raise PeriodLocked(f"period {period_id} is {period.status.value}", period_id=period_id)

    existing = grade_storage.lookup(period_id, student_id, subject_id, component, lock="update", session=session)
    scope = GradeScope(period_id, existing.class_id if existing else class_id, subject_id)
    if approval is None and is_sent_to_parents(scope, session=session):
        raise SubmissionLocked(
            f"grades for class {scope.class_id} in {subject_id} have been sent to parents", period_id=period_id
        )

    if existing is not None and existing.grade_value == value:
        logger.debug("grade unchanged", extra={"grade_id": existing.grade_id, "value": value})
        return existing

    now = utcnow()
    if existing is None:
        action, old = AuditAction.Insert, None
        grade = grade_storage.create(
            {
                "period_id": period_id,
                "student_id": student_id,
                "subject_id": subject_id,
                "class_id": class_id,
                "component_type": component,
                "grade_value": value,
                "created_by": actor.user_id,
                "created_at": now,
            },
            session=session,
        )
    else:
        old = existing.grade_value
        action = AuditAction.Delete if value is None else AuditAction.Update
        updated = grade_storage.update(
            existing.grade_id, {"grade_value": value, "updated_by": actor.user_id, "updated_at": now}, session=session
        )
        assert updated is not None
        grade = updated

    summary = describe(action, component, old, value)
    if approval is not None:
        summary += f" (overwrite {approval.approval_id} requested by {approval.requested_by}: {approval.reason})"
    audit.record(
        grade.grade_id,
        AuditRecordType.DetailedGrade,
        action,
        actor.user_id,
        None if action is AuditAction.Insert else {"grade_value": old},
        {"grade_value": value},
        summary,
        session=session,
    )
    logger.info(
        "grade written",
        extra={
            "grade_id": grade.grade_id,
            "action": action.value,
            "period_id": period_id,
            "student_id": student_id,
            "subject_id": subject_id,
            "component_type": component.value,
            "old": old,
            "new": value,
            "by": actor.user_id,
            "approval_id": approval.approval_id if approval else None,
        },
    )
    return grade


@di.inject
def bulk_set_grades(
    rows: t.Sequence[GradeRow],
    actor: Actor,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> BulkResult:
    """Apply many grade writes, reporting each row's outcome

    Each row runs in its own savepoint: a rejected row leaves nothing
    behind, while the accepted rows commit together with the caller's
    transaction. Database conflicts are not caught here; they abort the
    whole call so that it can be retried from the start.
    """
    ensure_role(actor, *Staff)
    result = BulkResult()
    tally: collections.Counter[tuple[GradeScope, bool]] = collections.Counter()

    for index, row in enumerate(rows):
        scope = GradeScope(row.period_id, row.class_id, row.subject_id)
        try:
            with session.begin_nested():
                grade = set_grade(
                    row.period_id,
                    row.student_id,
                    row.subject_id,
                    row.class_id,
                    row.component_type,
                    row.value,
                    actor,
                    session=session,
                )
        except GradeflowError as ex:
            result.rejected.append(
                BulkRejected(
                    index=index,
                    student_id=row.student_id,
                    component_type=row.component_type,
                    kind=ex.kind,
                    code=ex.code,
                    detail=ex.detail,
                )
            )
            tally[scope, False] += 1
            logger.debug(
                "bulk row rejected",
                extra={"index": index, "student_id": row.student_id, "code": ex.code, "detail": ex.detail},
            )
        else:
            result.accepted.append(BulkAccepted(index=index, grade=grade))
            tally[scope, True] += 1

    for scope in dict.fromkeys(s for s, _ in tally):
        logger.info(
            "bulk grades applied",
            extra={
                "period_id": scope.period_id,
                "class_id": scope.class_id,
                "subject_id": scope.subject_id,
                "accepted": tally[scope, True],
                "rejected": tally[scope, False],
                "by": actor.user_id,
            },
        )
    return result


def expand_import(payload: BulkGradeImport) -> list[GradeRow]:
    """Flatten a bulk import into one row per provided grade

    Regular grades map to `regular_1` onwards in order; a fifth or later
    regular grade yields a row whose component is rejected when applied.
    """
    rows: list[GradeRow] = []

    def add(student_id: str, component: str, value: float | None) -> None:
        if value is None:
            return
        rows.append(
            GradeRow(
                period_id=payload.period_id,
                student_id=student_id,
                subject_id=payload.subject_id,
                class_id=payload.class_id,
                component_type=component,
                value=value,
            )
        )

    for entry in payload.grades:
        if payload.grade_type is GradeType.Yearly:
            for field, component in YearlyComponents.items():
                add(entry.student_id, component.value, getattr(entry, field))
        else:
            for i, value in enumerate(entry.regular_grades, start=1):
                add(entry.student_id, f"regular_{i}", value)
            for field, component in SemesterComponents.items():
                add(entry.student_id, component.value, getattr(entry, field))
    return rows


@di.inject
def get(
    grade_id: GradeID, actor: Actor, *, session: Session = di.Provide["storage.persistent.session"]
) -> DetailedGrade:
    ensure_role(actor, *Staff)
    grade = grade_storage.get(grade_id, session=session)
    if grade is None:
        raise NotFoundError(f"no grade {grade_id}", grade_id=grade_id)
    return grade


@di.inject
def find(
    actor: Actor,
    *,
    period_id: PeriodID | None = None,
    class_id: str | None = None,
    subject_id: str | None = None,
    student_id: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[DetailedGrade, ...]:
    ensure_role(actor, *Staff)
    return grade_storage.find(
        period_id=period_id, class_id=class_id, subject_id=subject_id, student_id=student_id, session=session
    )

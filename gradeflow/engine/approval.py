"""Overwrite approval workflow

Once a period is closed, a grade can only change through an approved
overwrite request. The request snapshots the grade's value; approval
re-checks that snapshot against the current value under a row lock and
refuses with `StaleApproval` if anything else wrote to the grade since.

    pending ─► approved
            └► rejected
"""

from __future__ import annotations

import logging
import typing as t

import gradeflow.storage.approval as approval_storage
import gradeflow.storage.grade as grade_storage
from gradeflow.core import di
from gradeflow.core.provider import TimestampProvider
from gradeflow.lib.util import is_blank
from gradeflow.model import Actor, ApprovalID, ApprovalStatus, AuditAction, AuditRecordType, GradeID, \
    GradeOverwriteApproval, Role
from gradeflow.storage import Session

from . import audit
from .errors import AlreadyDecided, ApprovalNotRequired, InvalidDecision, NotFoundError, ReasonRequired, \
    StaleApproval, UnchangedValue
from .grade import format_value, set_grade, validate_value
from .period import load as load_period
from .policy import ensure_role, Staff

logger = logging.getLogger(__name__)

Decisions = frozenset({ApprovalStatus.Approved, ApprovalStatus.Rejected})


def snapshot(approval: GradeOverwriteApproval) -> dict[str, t.Any]:
    return {
        "grade_id": str(approval.grade_id),
        "status": approval.status.value,
        "old_value": approval.old_value,
        "new_value": approval.new_value,
        "reason": approval.reason,
        "approved_by": approval.approved_by,
        "admin_notes": approval.admin_notes,
    }


@di.inject
def request(
    grade_id: GradeID,
    new_value: float | None,
    reason: str,
    actor: Actor,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> GradeOverwriteApproval:
    """File a request to change a grade in a closed period

    Raises:
        ReasonRequired: blank reason
        OutOfRange: invalid `new_value`
        NotFoundError: no such grade
        ApprovalNotRequired: the period is open or reopened; write directly
        UnchangedValue: `new_value` is the current value
    """
    ensure_role(actor, *Staff)
    if is_blank(reason):
        raise ReasonRequired("an overwrite request requires a reason", grade_id=grade_id)
    new_value = validate_value(new_value)

    grade = grade_storage.get(grade_id, lock="share", session=session)
    if grade is None:
        raise NotFoundError(f"no grade {grade_id}", grade_id=grade_id)
    period = load_period(grade.period_id, lock="share", session=session)
    if period.status.editable:
        raise ApprovalNotRequired(
            f"period {period.period_id} is {period.status.value}; edit the grade directly", grade_id=grade_id
        )
    if new_value == grade.grade_value:
        raise UnchangedValue(f"grade {grade_id} is already {format_value(new_value)}", grade_id=grade_id)

    approval = approval_storage.create(
        {
            "grade_id": grade_id,
            "requested_by": actor.user_id,
            "old_value": grade.grade_value,
            "new_value": new_value,
            "reason": reason,
            "create_time": utcnow(),
        },
        session=session,
    )
    audit.record(
        approval.approval_id,
        AuditRecordType.OverwriteApproval,
        AuditAction.Insert,
        actor.user_id,
        None,
        snapshot(approval),
        f"Requested {grade.component_type.label} grade overwrite: "
        f"{format_value(grade.grade_value)} → {format_value(new_value)} ({reason})",
        session=session,
    )
    logger.info(
        "overwrite requested",
        extra={
            "approval_id": approval.approval_id,
            "grade_id": grade_id,
            "old": grade.grade_value,
            "new": new_value,
            "by": actor.user_id,
        },
    )
    return approval


@di.inject
def decide(
    approval_id: ApprovalID,
    status: ApprovalStatus | str,
    actor: Actor,
    admin_notes: str | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> GradeOverwriteApproval:
    """Approve or reject a pending request

    On approval the new value is written through the grade store in the
    same transaction. If that fails nothing is kept and the request stays
    pending.

    Raises:
        InvalidDecision: `status` is neither approved nor rejected
        NotFoundError: no such request
        AlreadyDecided: the request was decided before
        StaleApproval: the grade changed since the request was filed
    """
    ensure_role(actor, Role.Admin)
    try:
        decision = ApprovalStatus(status)
    except ValueError:
        decision = None
    if decision not in Decisions:
        raise InvalidDecision(f"{status!r} is not a decision; use approved or rejected", approval_id=approval_id)
    assert decision is not None

    approval = approval_storage.get(approval_id, lock="update", session=session)
    if approval is None:
        raise NotFoundError(f"no overwrite request {approval_id}", approval_id=approval_id)
    if approval.status.terminal:
        raise AlreadyDecided(
            f"overwrite request {approval_id} was already {approval.status.value}", approval_id=approval_id
        )

    if decision is ApprovalStatus.Approved:
        grade = grade_storage.get(approval.grade_id, lock="update", session=session)
        if grade is None:
            raise NotFoundError(f"no grade {approval.grade_id}", grade_id=approval.grade_id)
        if grade.grade_value != approval.old_value:
            raise StaleApproval(
                f"grade {grade.grade_id} is now {format_value(grade.grade_value)}, "
                f"not {format_value(approval.old_value)} as when requested",
                approval_id=approval_id,
            )
        set_grade(
            grade.period_id,
            grade.student_id,
            grade.subject_id,
            grade.class_id,
            grade.component_type,
            approval.new_value,
            actor,
            approval=approval,
            session=session,
        )

    decided = approval_storage.update(
        approval_id,
        {
            "status": decision,
            "approved_by": actor.user_id,
            "approved_at": utcnow(),
            "admin_notes": None if is_blank(admin_notes) else admin_notes,
        },
        session=session,
    )
    assert decided is not None
    summary = f"{decision.value.capitalize()} grade overwrite: {format_value(approval.old_value)} → " \
        f"{format_value(approval.new_value)}"
    audit.record(
        approval_id,
        AuditRecordType.OverwriteApproval,
        AuditAction.Update,
        actor.user_id,
        snapshot(approval),
        snapshot(decided),
        summary,
        session=session,
    )
    logger.info(
        "overwrite decided",
        extra={"approval_id": approval_id, "decision": decision.value, "by": actor.user_id},
    )
    return decided


@di.inject
def get(
    approval_id: ApprovalID, actor: Actor, *, session: Session = di.Provide["storage.persistent.session"]
) -> GradeOverwriteApproval:
    ensure_role(actor, *Staff)
    approval = approval_storage.get(approval_id, session=session)
    if approval is None:
        raise NotFoundError(f"no overwrite request {approval_id}", approval_id=approval_id)
    return approval


@di.inject
def find(
    actor: Actor,
    *,
    status: ApprovalStatus | None = None,
    requested_by: str | None = None,
    grade_id: GradeID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeOverwriteApproval, ...]:
    ensure_role(actor, *Staff)
    return approval_storage.find(status=status, requested_by=requested_by, grade_id=grade_id, session=session)

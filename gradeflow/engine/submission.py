"""Submission workflow

One record per (period, class, subject, teacher). The first `submit`
creates it; each later `submit` is a resubmission that needs a reason and
bumps `submission_count` under a row lock, so concurrent resubmissions are
counted once each. Administrators move submissions forward one step at a
time and may reset them to draft.

    draft ─► submitted ─► sent_to_teacher ─► sent_to_parent
"""

from __future__ import annotations

import logging

import gradeflow.storage.submission as submission_storage
from gradeflow.core import di
from gradeflow.core.provider import TimestampProvider
from gradeflow.lib.util import is_blank
from gradeflow.model import Actor, AuditAction, AuditRecordType, GradePeriodSubmission, GradeScope, PeriodID, Role, \
    SubmissionID, SubmissionStatus
from gradeflow.storage import Session

from . import audit
from .errors import InvalidTransition, NotFoundError, PeriodLocked, ReasonRequired, SubmissionLocked
from .period import load as load_period
from .policy import ensure_acting_for, ensure_role, Staff

logger = logging.getLogger(__name__)

Progression: dict[SubmissionStatus, SubmissionStatus] = {
    SubmissionStatus.Submitted: SubmissionStatus.SentToTeacher,
    SubmissionStatus.SentToTeacher: SubmissionStatus.SentToParent,
}


def snapshot(submission: GradePeriodSubmission) -> dict[str, object]:
    return {
        "status": submission.status.value,
        "submission_count": submission.submission_count,
        "last_reason": submission.last_reason,
    }


def load(submission_id: SubmissionID, *, session: Session) -> GradePeriodSubmission:
    submission = submission_storage.get(submission_id, lock="update", session=session)
    if submission is None:
        raise NotFoundError(f"no submission {submission_id}", submission_id=submission_id)
    return submission


@di.inject
def submit(
    period_id: PeriodID,
    class_id: str,
    subject_id: str,
    teacher_id: str,
    actor: Actor,
    reason: str | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> GradePeriodSubmission:
    """Submit a scope's grades, or resubmit them

    Raises:
        Forbidden: a teacher submitting for someone else
        NotFoundError: no such period
        PeriodLocked: the period is closed
        SubmissionLocked: resubmitting after the grades went to parents
        ReasonRequired: resubmitting without a reason
    """
    ensure_role(actor, *Staff)
    ensure_acting_for(actor, teacher_id)

    period = load_period(period_id, lock="share", session=session)
    if not period.status.editable:
        raise PeriodLocked(f"period {period_id} is {period.status.value}", period_id=period_id)

    scope = GradeScope(period_id, class_id, subject_id)
    existing = submission_storage.lookup(scope, teacher_id, lock="update", session=session)
    now = utcnow()

    if existing is None:
        submission = submission_storage.create(
            {
                "scope": scope,
                "teacher_id": teacher_id,
                "status": SubmissionStatus.Submitted,
                "submitted_at": now,
                "last_reason": None if is_blank(reason) else reason,
            },
            session=session,
        )
        audit.record(
            submission.submission_id,
            AuditRecordType.GradeSubmission,
            AuditAction.Insert,
            actor.user_id,
            None,
            snapshot(submission),
            f"Submitted grades for class {class_id} in {subject_id}",
            session=session,
        )
        logger.info(
            "grades submitted",
            extra={"submission_id": submission.submission_id, "period_id": period_id, "teacher_id": teacher_id},
        )
        return submission

    if existing.status is SubmissionStatus.SentToParent:
        raise SubmissionLocked(
            f"submission {existing.submission_id} was already sent to parents",
            submission_id=existing.submission_id,
        )
    if is_blank(reason):
        raise ReasonRequired("resubmitting grades requires a reason", submission_id=existing.submission_id)

    count = existing.submission_count + 1
    submission = submission_storage.update(
        existing.submission_id,
        {
            "status": SubmissionStatus.Submitted,
            "submission_count": count,
            "last_reason": reason,
            "submitted_at": now,
        },
        session=session,
    )
    assert submission is not None
    audit.record(
        submission.submission_id,
        AuditRecordType.GradeSubmission,
        AuditAction.Update,
        actor.user_id,
        snapshot(existing),
        snapshot(submission),
        f"Resubmitted grades for class {class_id} in {subject_id} (submission {count}): {reason}",
        session=session,
    )
    logger.info(
        "grades resubmitted",
        extra={
            "submission_id": submission.submission_id,
            "submission_count": count,
            "from": existing.status.value,
            "reason": reason,
        },
    )
    return submission


@di.inject
def advance(
    submission_id: SubmissionID,
    target_status: SubmissionStatus | str,
    actor: Actor,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradePeriodSubmission:
    """Move a submission one step along its progression

    Moving to the current status is a no-op. Backward moves are refused;
    use `reset_to_draft` instead.
    """
    ensure_role(actor, Role.Admin)
    try:
        target = SubmissionStatus(target_status)
    except ValueError:
        raise InvalidTransition(f"{target_status!r} is not a submission status") from None

    submission = load(submission_id, session=session)
    if target is submission.status:
        return submission
    if Progression.get(submission.status) is not target:
        raise InvalidTransition(
            f"submission {submission_id} cannot move from {submission.status.value} to {target.value}",
            submission_id=submission_id,
        )

    updated = submission_storage.update(submission_id, {"status": target}, session=session)
    assert updated is not None
    audit.record(
        submission_id,
        AuditRecordType.GradeSubmission,
        AuditAction.Update,
        actor.user_id,
        snapshot(submission),
        snapshot(updated),
        f"Advanced submission: {submission.status.value} → {target.value}",
        session=session,
    )
    logger.info(
        "submission advanced",
        extra={"submission_id": submission_id, "from": submission.status.value, "to": target.value},
    )
    return updated


@di.inject
def reset_to_draft(
    submission_id: SubmissionID,
    actor: Actor,
    reason: str | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradePeriodSubmission:
    """Return a submission to draft, reopening it for resubmission"""
    ensure_role(actor, Role.Admin)
    submission = load(submission_id, session=session)
    if submission.status is SubmissionStatus.Draft:
        return submission

    updated = submission_storage.update(submission_id, {"status": SubmissionStatus.Draft}, session=session)
    assert updated is not None
    summary = f"Reset submission to draft from {submission.status.value}"
    if not is_blank(reason):
        summary += f": {reason}"
    audit.record(
        submission_id,
        AuditRecordType.GradeSubmission,
        AuditAction.Update,
        actor.user_id,
        snapshot(submission),
        snapshot(updated),
        summary,
        session=session,
    )
    logger.info(
        "submission reset to draft",
        extra={"submission_id": submission_id, "from": submission.status.value, "reason": reason},
    )
    return updated


@di.inject
def get(
    submission_id: SubmissionID, actor: Actor, *, session: Session = di.Provide["storage.persistent.session"]
) -> GradePeriodSubmission:
    ensure_role(actor, *Staff)
    submission = submission_storage.get(submission_id, session=session)
    if submission is None:
        raise NotFoundError(f"no submission {submission_id}", submission_id=submission_id)
    return submission


@di.inject
def find(
    actor: Actor,
    *,
    period_id: PeriodID | None = None,
    class_id: str | None = None,
    subject_id: str | None = None,
    teacher_id: str | None = None,
    status: SubmissionStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradePeriodSubmission, ...]:
    ensure_role(actor, *Staff)
    return submission_storage.find(
        period_id=period_id,
        class_id=class_id,
        subject_id=subject_id,
        teacher_id=teacher_id,
        status=status,
        session=session,
    )

"""Reporting period lifecycle

A period starts open and an administrator may move it to any of open,
closed or reopened. Closing stops direct grade edits; reopening (which
needs a reason) allows them again. Moving to the current status succeeds
without change. Grade writes check the status when they happen, so a
transition never touches grade rows.
"""

from __future__ import annotations

import datetime
import logging

import gradeflow.storage.period as period_storage
from gradeflow.core import di
from gradeflow.core.provider import TimestampProvider
from gradeflow.lib.util import is_blank
from gradeflow.model import Actor, GradeReportingPeriod, PeriodID, PeriodStatus, PeriodType, Role
from gradeflow.storage import LockMode, Session

from .errors import InvalidTransition, NotFoundError, ReasonRequired
from .policy import ensure_role, Staff

logger = logging.getLogger(__name__)


def coerce_status(status: PeriodStatus | str) -> PeriodStatus:
    try:
        return PeriodStatus(status)
    except ValueError:
        raise InvalidTransition(f"{status!r} is not a period status") from None


def load(period_id: PeriodID, *, lock: LockMode | None = None, session: Session) -> GradeReportingPeriod:
    period = period_storage.get(period_id, lock=lock, session=session)
    if period is None:
        raise NotFoundError(f"no reporting period {period_id}", period_id=period_id)
    return period


@di.inject
def create(
    name: str,
    period_type: PeriodType,
    academic_year_id: str,
    semester_id: str,
    start_date: datetime.date,
    end_date: datetime.date,
    import_deadline: datetime.date,
    actor: Actor,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> GradeReportingPeriod:
    ensure_role(actor, Role.Admin)
    period = period_storage.create(
        {
            "name": name,
            "period_type": period_type,
            "academic_year_id": academic_year_id,
            "semester_id": semester_id,
            "start_date": start_date,
            "end_date": end_date,
            "import_deadline": import_deadline,
            "created_by": actor.user_id,
            "create_time": utcnow(),
        },
        session=session,
    )
    logger.info(
        "reporting period created",
        extra={
            "period_id": period.period_id,
            "period_name": name,
            "period_type": period_type.value,
            "by": actor.user_id,
        },
    )
    return period


@di.inject
def get(
    period_id: PeriodID, actor: Actor, *, session: Session = di.Provide["storage.persistent.session"]
) -> GradeReportingPeriod:
    ensure_role(actor, *Staff)
    return load(period_id, session=session)


@di.inject
def find(
    actor: Actor,
    *,
    academic_year_id: str | None = None,
    semester_id: str | None = None,
    status: PeriodStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeReportingPeriod, ...]:
    ensure_role(actor, *Staff)
    return period_storage.find(
        academic_year_id=academic_year_id, semester_id=semester_id, status=status, session=session
    )


@di.inject
def transition(
    period_id: PeriodID,
    target_status: PeriodStatus | str,
    actor: Actor,
    reason: str | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> GradeReportingPeriod:
    """Move a period to `target_status`

    The period row stays locked until the caller's transaction ends, so a
    concurrent grade write either sees the old status or waits for the new.

    Raises:
        InvalidTransition: unknown status
        ReasonRequired: reopening without a reason
        NotFoundError: no such period
    """
    ensure_role(actor, Role.Admin)
    target = coerce_status(target_status)
    if target is PeriodStatus.Reopened and is_blank(reason):
        raise ReasonRequired("reopening a period requires a reason", period_id=period_id)

    period = load(period_id, lock="update", session=session)
    if target is period.status:
        logger.debug("period already in target status", extra={"period_id": period_id, "status": target.value})
        return period

    now = utcnow()
    updated = period_storage.update(
        period_id,
        {
            "status": target,
            "status_reason": None if is_blank(reason) else reason,
            "status_changed_by": actor.user_id,
            "status_changed_at": now,
            "update_time": now,
        },
        session=session,
    )
    assert updated is not None
    logger.info(
        "reporting period status changed",
        extra={
            "period_id": period_id,
            "from": period.status.value,
            "to": target.value,
            "by": actor.user_id,
            "reason": updated.status_reason,
        },
    )
    return updated

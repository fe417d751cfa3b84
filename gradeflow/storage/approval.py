from __future__ import annotations

import datetime
import typing as t

from sqlalchemy import select

from gradeflow.core import di
from gradeflow.model import ApprovalID, ApprovalStatus, GradeID, GradeOverwriteApproval

from . import LockMode, Session
from .table import grade_overwrite_approvals


def get(
    key: ApprovalID,
    *,
    lock: LockMode | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeOverwriteApproval | None:
    stmt = select(grade_overwrite_approvals.__table__).where(grade_overwrite_approvals.approval_id == key)
    if lock is not None:
        stmt = stmt.with_for_update(read=(lock == "share"))
    row = session.execute(stmt).mappings().one_or_none()
    return GradeOverwriteApproval(**row) if row else None


def find(
    *,
    status: ApprovalStatus | None = None,
    requested_by: str | None = None,
    grade_id: GradeID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeOverwriteApproval, ...]:
    stmt = select(grade_overwrite_approvals.__table__).order_by(grade_overwrite_approvals.create_time)
    if status is not None:
        stmt = stmt.where(grade_overwrite_approvals.status == status)
    if requested_by is not None:
        stmt = stmt.where(grade_overwrite_approvals.requested_by == requested_by)
    if grade_id is not None:
        stmt = stmt.where(grade_overwrite_approvals.grade_id == grade_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeOverwriteApproval(**row) for row in rows)


def create(
    params: ApprovalCreateParams, session: Session = di.Provide["storage.persistent.session"]
) -> GradeOverwriteApproval:
    approval = grade_overwrite_approvals(
        approval_id=ApprovalID(),
        grade_id=params["grade_id"],
        requested_by=params["requested_by"],
        old_value=params["old_value"],
        new_value=params["new_value"],
        reason=params["reason"],
        create_time=params["create_time"],
    )
    session.add(approval)
    session.flush()
    return get(approval.approval_id, session=session)  # type: ignore


def update(
    key: ApprovalID,
    params: ApprovalUpdateParams,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeOverwriteApproval | None:
    stmt = select(grade_overwrite_approvals).where(grade_overwrite_approvals.approval_id == key)
    approval = session.execute(stmt).scalar_one_or_none()
    if approval is None:
        return None
    for field, value in params.items():
        setattr(approval, field, value)
    session.flush()
    return get(key, session=session)


class ApprovalCreateParams(t.TypedDict):
    grade_id: GradeID
    requested_by: str
    old_value: float | None
    new_value: float | None
    reason: str
    create_time: datetime.datetime


class ApprovalUpdateParams(t.TypedDict, total=False):
    status: ApprovalStatus
    approved_by: str
    approved_at: datetime.datetime
    admin_notes: str | None

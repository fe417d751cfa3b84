"""Overwrite request routes"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gradeflow.auth import AuthContext, get_current_actor, require_admin
from gradeflow.core import di
from gradeflow.engine import approval as approval_engine
from gradeflow.engine import atomically
from gradeflow.engine.errors import Forbidden
from gradeflow.model import ApprovalID, ApprovalStatus, GradeID

from ..view.overwrite import OverwriteDecisionRequest, OverwriteListResponse, OverwriteRequest, OverwriteResponse

router = APIRouter(prefix="/api/overwrite-requests", tags=["overwrite-requests"])


@router.post("", operation_id="request_overwrite", status_code=status.HTTP_201_CREATED)
@di.inject
def request_overwrite(
    request: OverwriteRequest,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> OverwriteResponse:
    """Ask an administrator to change a grade in a closed period."""
    approval = atomically(
        approval_engine.request,
        request.grade_id,
        request.new_value,
        request.reason,
        auth.actor,
        session=session,
        attempts=attempts,
    )
    return OverwriteResponse.model_validate(approval)


@router.post("/{approval_id}/decision", operation_id="decide_overwrite")
@di.inject
def decide_overwrite(
    approval_id: ApprovalID,
    request: OverwriteDecisionRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> OverwriteResponse:
    """Approve or reject a pending request; approval applies the new value."""
    if request.approver_id is not None and request.approver_id != auth.actor.user_id:
        raise Forbidden(f"{auth.actor.user_id!r} may not record a decision as {request.approver_id!r}")
    approval = atomically(
        approval_engine.decide,
        approval_id,
        request.status,
        auth.actor,
        request.admin_notes,
        session=session,
        attempts=attempts,
    )
    return OverwriteResponse.model_validate(approval)


@router.get("", operation_id="list_overwrite_requests")
@di.inject
def list_overwrite_requests(
    status_filter: ApprovalStatus | None = Query(None, alias="status"),
    requested_by: str | None = None,
    grade_id: GradeID | None = None,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> OverwriteListResponse:
    with session.begin():
        approvals = approval_engine.find(
            auth.actor, status=status_filter, requested_by=requested_by, grade_id=grade_id, session=session
        )
    return OverwriteListResponse(
        requests=[OverwriteResponse.model_validate(a) for a in approvals], total=len(approvals)
    )


@router.get("/{approval_id}", operation_id="get_overwrite_request")
@di.inject
def get_overwrite_request(
    approval_id: ApprovalID,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> OverwriteResponse:
    with session.begin():
        approval = approval_engine.get(approval_id, auth.actor, session=session)
    return OverwriteResponse.model_validate(approval)

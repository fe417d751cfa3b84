"""Audit trail routes"""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gradeflow.auth import AuthContext, get_current_actor
from gradeflow.core import di
from gradeflow.engine import audit as audit_engine
from gradeflow.model import AuditRecordType

from ..view.audit import AuditEntryResponse, AuditHistoryResponse

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("", operation_id="find_audit_entries")
@di.inject
def find_audit_entries(
    record_type: AuditRecordType | None = None,
    user_id: str | None = None,
    since: datetime.datetime | None = None,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AuditHistoryResponse:
    with session.begin():
        entries = audit_engine.find(auth.actor, record_type=record_type, user_id=user_id, since=since, session=session)
    return AuditHistoryResponse(entries=[AuditEntryResponse.model_validate(e) for e in entries], total=len(entries))


@router.get("/{record_id}", operation_id="get_audit_history")
@di.inject
def get_audit_history(
    record_id: str,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AuditHistoryResponse:
    """The complete, ordered history of one grade, request or submission."""
    with session.begin():
        entries = audit_engine.history(record_id, auth.actor, session=session)
    return AuditHistoryResponse(entries=[AuditEntryResponse.model_validate(e) for e in entries], total=len(entries))

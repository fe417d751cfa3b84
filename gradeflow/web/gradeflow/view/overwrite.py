"""View models for overwrite requests"""

from __future__ import annotations

import datetime

import pydantic as p

from gradeflow.model import ApprovalID, ApprovalStatus, GradeID

from .common import ResponseModel


class OverwriteRequest(p.BaseModel):
    grade_id: GradeID
    new_value: float | None
    reason: str


class OverwriteDecisionRequest(p.BaseModel):
    status: str
    approver_id: str | None = None
    admin_notes: str | None = None


class OverwriteResponse(ResponseModel):
    approval_id: ApprovalID
    grade_id: GradeID
    requested_by: str
    old_value: float | None
    new_value: float | None
    reason: str
    status: ApprovalStatus
    approved_by: str | None
    approved_at: datetime.datetime | None
    admin_notes: str | None
    create_time: datetime.datetime


class OverwriteListResponse(p.BaseModel):
    requests: list[OverwriteResponse]
    total: int

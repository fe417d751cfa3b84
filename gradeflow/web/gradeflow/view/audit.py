from __future__ import annotations

import datetime
import typing as t

import pydantic as p

from gradeflow.model import AuditAction, AuditEntryID, AuditRecordType

from .common import ResponseModel


class AuditEntryResponse(ResponseModel):
    audit_entry_id: AuditEntryID
    record_id: str
    record_type: AuditRecordType
    version: int
    action: AuditAction
    user_id: str
    old_values: dict[str, t.Any] | None
    new_values: dict[str, t.Any] | None
    changes_summary: str
    created_at: datetime.datetime


class AuditHistoryResponse(p.BaseModel):
    entries: list[AuditEntryResponse]
    total: int

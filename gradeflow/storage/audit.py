"""Append-only storage for the audit trail

Entries are never updated or deleted. Versions are assigned per
record inside the caller's transaction; two writers racing for the same
version collide on the (record_id, version) unique constraint.
"""

from __future__ import annotations

import datetime
import typing as t

from sqlalchemy import func, select

from gradeflow.core import di
from gradeflow.model import AuditAction, AuditEntryID, AuditLogEntry, AuditRecordType

from . import Session
from .table import audit_log_entries


def get(key: AuditEntryID, session: Session = di.Provide["storage.persistent.session"]) -> AuditLogEntry | None:
    stmt = select(audit_log_entries.__table__).where(audit_log_entries.audit_entry_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    return AuditLogEntry(**row) if row else None


def history(record_id: str, session: Session = di.Provide["storage.persistent.session"]) -> tuple[AuditLogEntry, ...]:
    stmt = (
        select(audit_log_entries.__table__)
        .where(audit_log_entries.record_id == record_id)
        .order_by(audit_log_entries.version)
    )
    rows = session.execute(stmt).mappings().all()
    return tuple(AuditLogEntry(**row) for row in rows)


def find(
    *,
    record_type: AuditRecordType | None = None,
    user_id: str | None = None,
    since: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[AuditLogEntry, ...]:
    stmt = select(audit_log_entries.__table__).order_by(
        audit_log_entries.created_at, audit_log_entries.record_id, audit_log_entries.version
    )
    if record_type is not None:
        stmt = stmt.where(audit_log_entries.record_type == record_type)
    if user_id is not None:
        stmt = stmt.where(audit_log_entries.user_id == user_id)
    if since is not None:
        stmt = stmt.where(audit_log_entries.created_at >= since)
    rows = session.execute(stmt).mappings().all()
    return tuple(AuditLogEntry(**row) for row in rows)


def latest_version(record_id: str, session: Session = di.Provide["storage.persistent.session"]) -> int:
    stmt = select(func.max(audit_log_entries.version)).where(audit_log_entries.record_id == record_id)
    return session.execute(stmt).scalar_one_or_none() or 0


def append(params: AuditAppendParams, session: Session = di.Provide["storage.persistent.session"]) -> AuditLogEntry:
    record_id = params["record_id"]
    entry = audit_log_entries(
        audit_entry_id=AuditEntryID(),
        record_id=record_id,
        record_type=params["record_type"],
        version=latest_version(record_id, session=session) + 1,
        action=params["action"],
        user_id=params["user_id"],
        changes_summary=params["changes_summary"],
        created_at=params["created_at"],
        old_values=params.get("old_values"),
        new_values=params.get("new_values"),
    )
    session.add(entry)
    session.flush()
    return get(entry.audit_entry_id, session=session)  # type: ignore


class AuditAppendParams(t.TypedDict, total=False):
    record_id: t.Required[str]
    record_type: t.Required[AuditRecordType]
    action: t.Required[AuditAction]
    user_id: t.Required[str]
    changes_summary: t.Required[str]
    created_at: t.Required[datetime.datetime]
    old_values: dict[str, t.Any] | None
    new_values: dict[str, t.Any] | None

"""Audit trail

Every accepted mutation of a grade, an overwrite approval or a submission
appends exactly one entry here, in the same transaction as the mutation, so
the two commit or roll back together. A record's entries are numbered from
1 without gaps; `history` returns them in that order.
"""

from __future__ import annotations

import datetime
import logging
import typing as t

import gradeflow.storage.audit as audit_storage
from gradeflow.core import di
from gradeflow.core.provider import TimestampProvider
from gradeflow.model import Actor, AuditAction, AuditLogEntry, AuditRecordType
from gradeflow.storage import Session

from .policy import ensure_role, Staff

logger = logging.getLogger(__name__)


@di.inject
def record(
    record_id: str,
    record_type: AuditRecordType,
    action: AuditAction,
    user_id: str,
    old_values: dict[str, t.Any] | None,
    new_values: dict[str, t.Any] | None,
    changes_summary: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> AuditLogEntry:
    entry = audit_storage.append(
        {
            "record_id": str(record_id),
            "record_type": record_type,
            "action": action,
            "user_id": user_id,
            "old_values": old_values,
            "new_values": new_values,
            "changes_summary": changes_summary,
            "created_at": utcnow(),
        },
        session=session,
    )
    logger.debug(
        "audit entry recorded",
        extra={"record_id": entry.record_id, "version": entry.version, "action": entry.action.value},
    )
    return entry


@di.inject
def history(
    record_id: str, actor: Actor, *, session: Session = di.Provide["storage.persistent.session"]
) -> tuple[AuditLogEntry, ...]:
    ensure_role(actor, *Staff)
    return audit_storage.history(str(record_id), session=session)


@di.inject
def find(
    actor: Actor,
    *,
    record_type: AuditRecordType | None = None,
    user_id: str | None = None,
    since: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[AuditLogEntry, ...]:
    ensure_role(actor, *Staff)
    return audit_storage.find(record_type=record_type, user_id=user_id, since=since, session=session)

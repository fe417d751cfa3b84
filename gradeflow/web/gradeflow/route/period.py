"""Reporting period routes"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gradeflow.auth import AuthContext, get_current_actor, require_admin
from gradeflow.core import di
from gradeflow.engine import atomically
from gradeflow.engine import period as period_engine
from gradeflow.model import PeriodID, PeriodStatus

from ..view.period import PeriodCreateRequest, PeriodListResponse, PeriodResponse, PeriodStatusRequest

router = APIRouter(prefix="/api/periods", tags=["periods"])


@router.post("", operation_id="create_period", status_code=status.HTTP_201_CREATED)
@di.inject
def create_period(
    request: PeriodCreateRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> PeriodResponse:
    """Open a new reporting period. Administrators only."""
    period = atomically(
        period_engine.create,
        request.name,
        request.period_type,
        request.academic_year_id,
        request.semester_id,
        request.start_date,
        request.end_date,
        request.import_deadline,
        auth.actor,
        session=session,
        attempts=attempts,
    )
    return PeriodResponse.model_validate(period)


@router.get("", operation_id="list_periods")
@di.inject
def list_periods(
    academic_year_id: str | None = None,
    semester_id: str | None = None,
    status_filter: PeriodStatus | None = Query(None, alias="status"),
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> PeriodListResponse:
    with session.begin():
        periods = period_engine.find(
            auth.actor,
            academic_year_id=academic_year_id,
            semester_id=semester_id,
            status=status_filter,
            session=session,
        )
    return PeriodListResponse(periods=[PeriodResponse.model_validate(p) for p in periods], total=len(periods))


@router.get("/{period_id}", operation_id="get_period")
@di.inject
def get_period(
    period_id: PeriodID,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> PeriodResponse:
    with session.begin():
        period = period_engine.get(period_id, auth.actor, session=session)
    return PeriodResponse.model_validate(period)


@router.post("/{period_id}/status", operation_id="transition_period")
@di.inject
def transition_period(
    period_id: PeriodID,
    request: PeriodStatusRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> PeriodResponse:
    """Close, reopen or re-close a period.

    Reopening requires a reason. Requesting the current status succeeds
    without change.
    """
    period = atomically(
        period_engine.transition,
        period_id,
        request.status,
        auth.actor,
        request.reason,
        session=session,
        attempts=attempts,
    )
    return PeriodResponse.model_validate(period)

"""View models for reporting periods"""

from __future__ import annotations

import datetime

import pydantic as p

from gradeflow.model import PeriodID, PeriodStatus, PeriodType

from .common import ResponseModel


class PeriodCreateRequest(p.BaseModel):
    name: str = p.Field(min_length=1)
    period_type: PeriodType
    academic_year_id: str = p.Field(min_length=1)
    semester_id: str = p.Field(min_length=1)
    start_date: datetime.date
    end_date: datetime.date
    import_deadline: datetime.date


class PeriodStatusRequest(p.BaseModel):
    # left as a string so unknown statuses are reported as invalid transitions
    status: str
    reason: str | None = None


class PeriodResponse(ResponseModel):
    period_id: PeriodID
    name: str
    period_type: PeriodType
    academic_year_id: str
    semester_id: str
    start_date: datetime.date
    end_date: datetime.date
    import_deadline: datetime.date
    status: PeriodStatus
    status_reason: str | None
    status_changed_by: str | None
    status_changed_at: datetime.datetime | None
    created_by: str
    create_time: datetime.datetime
    update_time: datetime.datetime


class PeriodListResponse(p.BaseModel):
    periods: list[PeriodResponse]
    total: int

"""View models for grade submissions"""

from __future__ import annotations

import datetime

import pydantic as p

from gradeflow.model import PeriodID, SubmissionID, SubmissionStatus

from .common import ResponseModel


class SubmissionRequest(p.BaseModel):
    period_id: PeriodID
    class_id: str = p.Field(min_length=1)
    subject_id: str = p.Field(min_length=1)
    teacher_id: str | None = None
    reason: str | None = None


class SubmissionAdvanceRequest(p.BaseModel):
    status: str


class SubmissionResetRequest(p.BaseModel):
    reason: str | None = None


class SubmissionResponse(ResponseModel):
    submission_id: SubmissionID
    period_id: PeriodID
    class_id: str
    subject_id: str
    teacher_id: str
    status: SubmissionStatus
    submission_count: int
    last_reason: str | None
    submitted_at: datetime.datetime | None


class SubmissionListResponse(p.BaseModel):
    submissions: list[SubmissionResponse]
    total: int

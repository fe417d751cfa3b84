"""View models for grades and bulk imports"""

from __future__ import annotations

import datetime

import pydantic as p

from gradeflow.model import ComponentType, GradeID, PeriodID

from .common import ResponseModel


class GradeSetRequest(p.BaseModel):
    period_id: PeriodID
    student_id: str = p.Field(min_length=1)
    subject_id: str = p.Field(min_length=1)
    class_id: str = p.Field(min_length=1)
    component_type: str
    grade_value: float | None = None


class GradeResponse(ResponseModel):
    grade_id: GradeID
    period_id: PeriodID
    student_id: str
    subject_id: str
    class_id: str
    component_type: ComponentType
    grade_value: float | None
    created_by: str
    updated_by: str
    created_at: datetime.datetime
    updated_at: datetime.datetime


class GradeListResponse(p.BaseModel):
    grades: list[GradeResponse]
    total: int


class BulkAcceptedResponse(ResponseModel):
    index: int
    grade: GradeResponse


class BulkRejectedResponse(ResponseModel):
    index: int
    student_id: str
    component_type: str
    kind: str
    code: str
    detail: str


class BulkResultResponse(ResponseModel):
    accepted: list[BulkAcceptedResponse]
    rejected: list[BulkRejectedResponse]

import datetime
import typing as t

from sqlalchemy import CheckConstraint, ForeignKey, MetaData, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import JSON, String

from gradeflow.lib.sql import EnumValuesType
from gradeflow.model import ApprovalID, ApprovalStatus, AuditAction, AuditEntryID, AuditRecordType, ComponentType, \
    GradeID, PeriodID, PeriodStatus, PeriodType, SubmissionID, SubmissionStatus

from .type import ShortUUIDKeyType, UTCDateTime

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

StructuredValues = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        PeriodID: ShortUUIDKeyType(PeriodID),
        GradeID: ShortUUIDKeyType(GradeID),
        SubmissionID: ShortUUIDKeyType(SubmissionID),
        ApprovalID: ShortUUIDKeyType(ApprovalID),
        AuditEntryID: ShortUUIDKeyType(AuditEntryID),
        PeriodType: EnumValuesType(PeriodType, name="period_type"),
        PeriodStatus: EnumValuesType(PeriodStatus, name="period_status"),
        ComponentType: EnumValuesType(ComponentType, name="component_type"),
        SubmissionStatus: EnumValuesType(SubmissionStatus, name="submission_status"),
        ApprovalStatus: EnumValuesType(ApprovalStatus, name="approval_status"),
        AuditAction: EnumValuesType(AuditAction, name="audit_action"),
        AuditRecordType: EnumValuesType(AuditRecordType, name="audit_record_type"),
        datetime.datetime: UTCDateTime(),
        dict[str, t.Any]: StructuredValues,
    }


class grade_reporting_periods(base):
    __tablename__ = "grade_reporting_periods"

    period_id: Mapped[PeriodID] = mapped_column(primary_key=True)
    name: Mapped[str]
    period_type: Mapped[PeriodType]
    academic_year_id: Mapped[str] = mapped_column(index=True)
    semester_id: Mapped[str]
    start_date: Mapped[datetime.date]
    end_date: Mapped[datetime.date]
    import_deadline: Mapped[datetime.date]
    created_by: Mapped[str]
    create_time: Mapped[datetime.datetime]
    update_time: Mapped[datetime.datetime]

    status: Mapped[PeriodStatus] = mapped_column(default=PeriodStatus.Open)
    status_reason: Mapped[str | None] = mapped_column(default=None)
    status_changed_by: Mapped[str | None] = mapped_column(default=None)
    status_changed_at: Mapped[datetime.datetime | None] = mapped_column(default=None)


class detailed_grades(base):
    __tablename__ = "detailed_grades"
    __table_args__ = (
        UniqueConstraint("period_id", "student_id", "subject_id", "component_type"),
        CheckConstraint("grade_value IS NULL OR (grade_value >= 0 AND grade_value <= 10)", name="grade_value_range"),
    )

    grade_id: Mapped[GradeID] = mapped_column(primary_key=True)
    period_id: Mapped[PeriodID] = mapped_column(ForeignKey("grade_reporting_periods.period_id"))
    student_id: Mapped[str]
    subject_id: Mapped[str]
    class_id: Mapped[str]
    component_type: Mapped[ComponentType]
    created_by: Mapped[str]
    updated_by: Mapped[str]
    created_at: Mapped[datetime.datetime]
    updated_at: Mapped[datetime.datetime]

    grade_value: Mapped[float | None] = mapped_column(default=None)


class grade_period_submissions(base):
    __tablename__ = "grade_period_submissions"
    __table_args__ = (
        UniqueConstraint("period_id", "class_id", "subject_id", "teacher_id"),
        CheckConstraint("submission_count >= 1", name="submission_count_positive"),
        CheckConstraint("submission_count = 1 OR last_reason IS NOT NULL", name="resubmission_reason"),
    )

    submission_id: Mapped[SubmissionID] = mapped_column(primary_key=True)
    period_id: Mapped[PeriodID] = mapped_column(ForeignKey("grade_reporting_periods.period_id"))
    class_id: Mapped[str]
    subject_id: Mapped[str]
    teacher_id: Mapped[str]
    status: Mapped[SubmissionStatus]

    submission_count: Mapped[int] = mapped_column(default=1)
    last_reason: Mapped[str | None] = mapped_column(default=None)
    submitted_at: Mapped[datetime.datetime | None] = mapped_column(default=None)


class grade_overwrite_approvals(base):
    __tablename__ = "grade_overwrite_approvals"
    __table_args__ = (
        CheckConstraint("old_value IS NULL OR (old_value >= 0 AND old_value <= 10)", name="old_value_range"),
        CheckConstraint("new_value IS NULL OR (new_value >= 0 AND new_value <= 10)", name="new_value_range"),
    )

    approval_id: Mapped[ApprovalID] = mapped_column(primary_key=True)
    grade_id: Mapped[GradeID] = mapped_column(ForeignKey("detailed_grades.grade_id"), index=True)
    requested_by: Mapped[str]
    reason: Mapped[str]
    create_time: Mapped[datetime.datetime]

    old_value: Mapped[float | None] = mapped_column(default=None)
    new_value: Mapped[float | None] = mapped_column(default=None)
    status: Mapped[ApprovalStatus] = mapped_column(default=ApprovalStatus.Pending)
    approved_by: Mapped[str | None] = mapped_column(default=None)
    approved_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    admin_notes: Mapped[str | None] = mapped_column(default=None)


class audit_log_entries(base):
    __tablename__ = "audit_log_entries"
    __table_args__ = (UniqueConstraint("record_id", "version"),)

    audit_entry_id: Mapped[AuditEntryID] = mapped_column(primary_key=True)
    record_id: Mapped[str] = mapped_column(String(32))
    record_type: Mapped[AuditRecordType]
    version: Mapped[int]
    action: Mapped[AuditAction]
    user_id: Mapped[str]
    changes_summary: Mapped[str]
    created_at: Mapped[datetime.datetime] = mapped_column(index=True)

    old_values: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)
    new_values: Mapped[dict[str, t.Any] | None] = mapped_column(default=None)

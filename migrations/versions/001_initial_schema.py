"""Initial schema for the grade lifecycle engine

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

import typing as t

from alembic import op
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.schema import CheckConstraint, Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Date, DateTime, Float, Integer, String, Text

from gradeflow.lib.sql import ExtendedOperations

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None

EnumTypes: dict[str, list[str]] = {
    "period_type": [
        "midterm_1",
        "final_1",
        "semester_1_summary",
        "midterm_2",
        "final_2",
        "semester_2_summary",
        "yearly_summary",
    ],
    "period_status": ["open", "closed", "reopened"],
    "component_type": [
        "regular_1",
        "regular_2",
        "regular_3",
        "regular_4",
        "midterm",
        "final",
        "semester_1",
        "semester_2",
        "yearly",
        "summary",
    ],
    "submission_status": ["draft", "submitted", "sent_to_teacher", "sent_to_parent"],
    "approval_status": ["pending", "approved", "rejected"],
    "audit_action": ["INSERT", "UPDATE", "DELETE"],
    "audit_record_type": ["detailed_grade", "overwrite_approval", "grade_submission"],
}


def upgrade() -> None:
    global op
    op = t.cast(ExtendedOperations, op)

    enums = {name: op.create_enum_type(name, values) for name, values in EnumTypes.items()}

    # Reporting periods
    op.create_table(
        "grade_reporting_periods",
        Column("period_id", String(22), primary_key=True),
        Column("name", String, nullable=False),
        Column("period_type", enums["period_type"], nullable=False),
        Column("academic_year_id", String, nullable=False),
        Column("semester_id", String, nullable=False),
        Column("start_date", Date, nullable=False),
        Column("end_date", Date, nullable=False),
        Column("import_deadline", Date, nullable=False),
        Column("status", enums["period_status"], server_default="open", nullable=False),
        Column("status_reason", Text, nullable=True),
        Column("status_changed_by", String, nullable=True),
        Column("status_changed_at", DateTime(timezone=True), nullable=True),
        Column("created_by", String, nullable=False),
        Column("create_time", DateTime(timezone=True), nullable=False),
        Column("update_time", DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_grade_reporting_periods_academic_year_id", "grade_reporting_periods", ["academic_year_id"]
    )

    # Grades
    op.create_table(
        "detailed_grades",
        Column("grade_id", String(22), primary_key=True),
        Column("period_id", String(22), ForeignKey("grade_reporting_periods.period_id"), nullable=False),
        Column("student_id", String, nullable=False),
        Column("subject_id", String, nullable=False),
        Column("class_id", String, nullable=False),
        Column("component_type", enums["component_type"], nullable=False),
        Column("grade_value", Float, nullable=True),
        Column("created_by", String, nullable=False),
        Column("updated_by", String, nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
        UniqueConstraint(
            "period_id", "student_id", "subject_id", "component_type", name="uq_detailed_grades_period_id"
        ),
        CheckConstraint(
            "grade_value IS NULL OR (grade_value >= 0 AND grade_value <= 10)",
            name="ck_detailed_grades_grade_value_range",
        ),
    )

    # Submissions
    op.create_table(
        "grade_period_submissions",
        Column("submission_id", String(22), primary_key=True),
        Column("period_id", String(22), ForeignKey("grade_reporting_periods.period_id"), nullable=False),
        Column("class_id", String, nullable=False),
        Column("subject_id", String, nullable=False),
        Column("teacher_id", String, nullable=False),
        Column("status", enums["submission_status"], nullable=False),
        Column("submission_count", Integer, server_default="1", nullable=False),
        Column("last_reason", Text, nullable=True),
        Column("submitted_at", DateTime(timezone=True), nullable=True),
        UniqueConstraint(
            "period_id", "class_id", "subject_id", "teacher_id", name="uq_grade_period_submissions_period_id"
        ),
        CheckConstraint("submission_count >= 1", name="ck_grade_period_submissions_submission_count_positive"),
        CheckConstraint(
            "submission_count = 1 OR last_reason IS NOT NULL",
            name="ck_grade_period_submissions_resubmission_reason",
        ),
    )

    # Overwrite approvals
    op.create_table(
        "grade_overwrite_approvals",
        Column("approval_id", String(22), primary_key=True),
        Column("grade_id", String(22), ForeignKey("detailed_grades.grade_id"), nullable=False),
        Column("requested_by", String, nullable=False),
        Column("old_value", Float, nullable=True),
        Column("new_value", Float, nullable=True),
        Column("reason", Text, nullable=False),
        Column("status", enums["approval_status"], server_default="pending", nullable=False),
        Column("approved_by", String, nullable=True),
        Column("approved_at", DateTime(timezone=True), nullable=True),
        Column("admin_notes", Text, nullable=True),
        Column("create_time", DateTime(timezone=True), nullable=False),
        CheckConstraint(
            "old_value IS NULL OR (old_value >= 0 AND old_value <= 10)",
            name="ck_grade_overwrite_approvals_old_value_range",
        ),
        CheckConstraint(
            "new_value IS NULL OR (new_value >= 0 AND new_value <= 10)",
            name="ck_grade_overwrite_approvals_new_value_range",
        ),
    )
    op.create_index("ix_grade_overwrite_approvals_grade_id", "grade_overwrite_approvals", ["grade_id"])

    # Audit trail
    op.create_table(
        "audit_log_entries",
        Column("audit_entry_id", String(22), primary_key=True),
        Column("record_id", String(32), nullable=False),
        Column("record_type", enums["audit_record_type"], nullable=False),
        Column("version", Integer, nullable=False),
        Column("action", enums["audit_action"], nullable=False),
        Column("user_id", String, nullable=False),
        Column("old_values", JSONB, nullable=True),
        Column("new_values", JSONB, nullable=True),
        Column("changes_summary", Text, nullable=False),
        Column("created_at", DateTime(timezone=True), nullable=False),
        UniqueConstraint("record_id", "version", name="uq_audit_log_entries_record_id"),
    )
    op.create_index("ix_audit_log_entries_created_at", "audit_log_entries", ["created_at"])


def downgrade() -> None:
    global op
    op = t.cast(ExtendedOperations, op)

    op.drop_index("ix_audit_log_entries_created_at")
    op.drop_index("ix_grade_overwrite_approvals_grade_id")
    op.drop_index("ix_grade_reporting_periods_academic_year_id")

    op.drop_table("audit_log_entries")
    op.drop_table("grade_overwrite_approvals")
    op.drop_table("grade_period_submissions")
    op.drop_table("detailed_grades")
    op.drop_table("grade_reporting_periods")

    for name, values in reversed(EnumTypes.items()):
        op.drop_enum_type(name, values)

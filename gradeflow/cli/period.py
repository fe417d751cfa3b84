"""CLI commands for administering reporting periods."""

from __future__ import annotations

import datetime

from sqlalchemy.orm import Session

import gradeflow.lib.cli as click
from gradeflow.core import di
from gradeflow.engine import atomically
from gradeflow.engine import period as period_engine
from gradeflow.model import Actor, GradeReportingPeriod, PeriodID, PeriodStatus, PeriodType, Role


def _show(period: GradeReportingPeriod) -> None:
    click.echo(
        f"{period.period_id}  {period.status.value:<8}  {period.period_type.value:<18}  "
        f"{period.academic_year_id}/{period.semester_id}  {period.name}"
    )


def _admin(user_id: str) -> Actor:
    return Actor(user_id=user_id, role=Role.Admin)


@click.group("period")
def period():
    """Manage grade reporting periods."""
    ...


@period.command("create")
@click.argument("name")
@click.option("--type", "period_type", type=click.EnumType(PeriodType), required=True)
@click.option("--year", "academic_year_id", required=True, help="Academic year identifier")
@click.option("--semester", "semester_id", required=True, help="Semester identifier")
@click.option("--start", "start_date", type=click.DateTime(["%Y-%m-%d"]), required=True)
@click.option("--end", "end_date", type=click.DateTime(["%Y-%m-%d"]), required=True)
@click.option("--deadline", "import_deadline", type=click.DateTime(["%Y-%m-%d"]), required=True)
@click.option("--as", "user_id", required=True, help="Administrator performing the change")
@di.inject
def period_create(
    name: str,
    period_type: PeriodType,
    academic_year_id: str,
    semester_id: str,
    start_date: datetime.datetime,
    end_date: datetime.datetime,
    import_deadline: datetime.datetime,
    user_id: str,
    session: Session = di.Provide["storage.persistent.session"],
    attempts: int = di.Provide["config.engine.retry.attempts"],
) -> None:
    """Open a new reporting period NAME."""
    created = atomically(
        period_engine.create,
        name,
        period_type,
        academic_year_id,
        semester_id,
        start_date.date(),
        end_date.date(),
        import_deadline.date(),
        _admin(user_id),
        session=session,
        attempts=attempts,
    )
    _show(created)


@period.command("list")
@click.option("--year", "academic_year_id", default=None)
@click.option("--semester", "semester_id", default=None)
@click.option("--status", "status", type=click.EnumType(PeriodStatus), default=None)
@click.option("--as", "user_id", default="cli", help="Administrator performing the lookup")
@di.inject
def period_list(
    academic_year_id: str | None,
    semester_id: str | None,
    status: PeriodStatus | None,
    user_id: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """List reporting periods in order of start date."""
    with session.begin():
        periods = period_engine.find(
            _admin(user_id), academic_year_id=academic_year_id, semester_id=semester_id, status=status, session=session
        )
    for p in periods:
        _show(p)


@period.command("close")
@click.argument("period_id", type=PeriodID)
@click.option("--as", "user_id", required=True, help="Administrator performing the change")
@click.option("--reason", "-r", default=None)
@di.inject
def period_close(
    period_id: PeriodID,
    user_id: str,
    reason: str | None,
    session: Session = di.Provide["storage.persistent.session"],
    attempts: int = di.Provide["config.engine.retry.attempts"],
) -> None:
    """Close PERIOD_ID to direct grade edits."""
    closed = atomically(
        period_engine.transition,
        period_id,
        PeriodStatus.Closed,
        _admin(user_id),
        reason,
        session=session,
        attempts=attempts,
    )
    _show(closed)


@period.command("reopen")
@click.argument("period_id", type=PeriodID)
@click.option("--as", "user_id", required=True, help="Administrator performing the change")
@click.option("--reason", "-r", required=True)
@di.inject
def period_reopen(
    period_id: PeriodID,
    user_id: str,
    reason: str,
    session: Session = di.Provide["storage.persistent.session"],
    attempts: int = di.Provide["config.engine.retry.attempts"],
) -> None:
    """Reopen PERIOD_ID for grade edits; a reason is required."""
    reopened = atomically(
        period_engine.transition,
        period_id,
        PeriodStatus.Reopened,
        _admin(user_id),
        reason,
        session=session,
        attempts=attempts,
    )
    _show(reopened)

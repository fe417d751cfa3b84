"""Pytest fixtures for Gradeflow tests.

The container is booted once per session against the `test` environment,
which stores data in a SQLite file under a temporary directory. The schema
is created from table metadata. Each test runs inside a transaction that is
rolled back afterwards; engine code calling `session.begin()` gets a
savepoint instead.

Usage:
    def test_close_period(db_session: Session, admin: Actor, period_factory):
        period = period_factory()
        with db_session.begin():
            closed = period_engine.transition(period.period_id, "closed", admin, session=db_session)
        assert closed.status is PeriodStatus.Closed
"""

from __future__ import annotations

import datetime
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import gradeflow
from gradeflow.auth import JWTManager
from gradeflow.core import GradeflowContainer, TimestampProvider
from gradeflow.engine import grade as grade_engine
from gradeflow.engine import period as period_engine
from gradeflow.engine import submission as submission_engine
from gradeflow.model import Actor, ComponentType, DeploymentEnvironment, DetailedGrade, GradePeriodSubmission, \
    GradeReportingPeriod, PeriodStatus, PeriodType, Role
from gradeflow.storage.table import metadata

TEST_JWT_SECRET = "test-jwt-secret-for-integration-tests"


@pytest.fixture(scope="session")
def container(tmp_path_factory: pytest.TempPathFactory) -> t.Generator[GradeflowContainer]:
    """Boot the DI container for the test session.

    Uses the Test environment with its SQLite database placed in a
    temporary directory, and creates the schema once.
    """
    ct = GradeflowContainer()
    root = Path(os.path.dirname(gradeflow.__file__)).parent
    database = tmp_path_factory.mktemp("db") / "gradeflow.sqlite3"

    GradeflowContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(f"storage.persistent.sqlite.path={database}",),
    )
    ct.secrets.override({"auth": {"jwt": p.Secret(TEST_JWT_SECRET)}})

    engine = ct.storage().persistent().engine()
    metadata.create_all(engine)

    yield ct

    ct.shutdown_resources()


@pytest.fixture(scope="session")
def app(container: GradeflowContainer) -> FastAPI:
    """Create the FastAPI application from the booted container."""
    from gradeflow.core.config.web import GradeflowWebSettings
    from gradeflow.web.gradeflow.main import _create_app  # pyright: ignore[reportPrivateUsage]

    container.wire(modules=["gradeflow.web.gradeflow.main", "gradeflow.auth.middleware"])
    return _create_app(config=GradeflowWebSettings(**container.config.web.gradeflow()), env=DeploymentEnvironment.Test)


@pytest.fixture
def db_session(container: GradeflowContainer) -> t.Generator[Session]:
    """Provide a database session wrapped in a transaction.

    `join_transaction_mode="create_savepoint"` turns the `session.begin()`
    calls made by production code into savepoints, so everything a test
    writes is discarded when the outer transaction rolls back.
    """
    engine = container.storage().persistent().engine()

    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection, autobegin=False, expire_on_commit=False, join_transaction_mode="create_savepoint"
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def client(app: FastAPI, container: GradeflowContainer, db_session: Session) -> t.Generator[TestClient]:
    """Provide a TestClient whose requests share the test's session."""
    container.storage().persistent().session.override(db_session)

    with TestClient(app) as test_client:
        yield test_client

    container.storage().persistent().session.reset_override()


@pytest.fixture
def utcnow() -> TimestampProvider:
    return lambda: datetime.datetime.now(datetime.UTC)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", role=Role.Admin)


@pytest.fixture
def teacher() -> Actor:
    return Actor(user_id="teacher-1", role=Role.Teacher)


@pytest.fixture
def other_teacher() -> Actor:
    return Actor(user_id="teacher-2", role=Role.Teacher)


@pytest.fixture
def jwt_manager(app: FastAPI) -> JWTManager:
    """A token minter sharing the application's signing key."""
    return JWTManager(p.Secret(TEST_JWT_SECRET), algorithm="HS256")


@pytest.fixture
def auth_headers(jwt_manager: JWTManager) -> t.Callable[[Actor], dict[str, str]]:
    def headers(actor: Actor) -> dict[str, str]:
        return {"Authorization": f"Bearer {jwt_manager.create_access_token(actor)}"}

    return headers


@pytest.fixture
def period_factory(db_session: Session, admin: Actor) -> t.Callable[..., GradeReportingPeriod]:
    """Factory fixture for reporting periods, optionally moved to a status.

    Usage:
        def test_something(period_factory):
            closed = period_factory(status=PeriodStatus.Closed)
    """

    def create_period(
        name: str = "Midterm 1",
        period_type: PeriodType = PeriodType.Midterm1,
        academic_year_id: str = "2025-2026",
        semester_id: str = "S1",
        status: PeriodStatus = PeriodStatus.Open,
    ) -> GradeReportingPeriod:
        with db_session.begin():
            period = period_engine.create(
                name,
                period_type,
                academic_year_id,
                semester_id,
                datetime.date(2025, 9, 1),
                datetime.date(2025, 11, 15),
                datetime.date(2025, 11, 30),
                admin,
                session=db_session,
            )
            if status is not PeriodStatus.Open:
                period = period_engine.transition(period.period_id, PeriodStatus.Closed, admin, session=db_session)
            if status is PeriodStatus.Reopened:
                period = period_engine.transition(
                    period.period_id, PeriodStatus.Reopened, admin, "late corrections", session=db_session
                )
        return period

    return create_period


@pytest.fixture
def period(period_factory: t.Callable[..., GradeReportingPeriod]) -> GradeReportingPeriod:
    return period_factory()


@pytest.fixture
def grade_factory(
    db_session: Session, teacher: Actor, period: GradeReportingPeriod
) -> t.Callable[..., DetailedGrade]:
    """Factory fixture writing a grade through the grade store.

    Defaults to the `period` fixture, class `10A` and subject `math`.
    """

    def create_grade(
        value: float | None = 8.5,
        student_id: str = "student-1",
        component_type: ComponentType = ComponentType.Midterm,
        period_id: t.Any = None,
        class_id: str = "10A",
        subject_id: str = "math",
        actor: Actor | None = None,
    ) -> DetailedGrade:
        with db_session.begin():
            return grade_engine.set_grade(
                period_id or period.period_id,
                student_id,
                subject_id,
                class_id,
                component_type,
                value,
                actor or teacher,
                session=db_session,
            )

    return create_grade


@pytest.fixture
def submission_factory(
    db_session: Session, teacher: Actor, period: GradeReportingPeriod
) -> t.Callable[..., GradePeriodSubmission]:
    def create_submission(
        class_id: str = "10A",
        subject_id: str = "math",
        actor: Actor | None = None,
        reason: str | None = None,
    ) -> GradePeriodSubmission:
        actor = actor or teacher
        with db_session.begin():
            return submission_engine.submit(
                period.period_id, class_id, subject_id, actor.user_id, actor, reason, session=db_session
            )

    return create_submission


@pytest.fixture
def close_period(db_session: Session, admin: Actor) -> t.Callable[[GradeReportingPeriod], GradeReportingPeriod]:
    def close(period: GradeReportingPeriod) -> GradeReportingPeriod:
        with db_session.begin():
            return period_engine.transition(period.period_id, PeriodStatus.Closed, admin, session=db_session)

    return close

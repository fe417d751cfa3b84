"""Tests for grade entry API endpoints."""

from __future__ import annotations

import typing as t

from fastapi import FastAPI
from fastapi.testclient import TestClient

from gradeflow.model import Actor, DetailedGrade, GradeID, GradeReportingPeriod, PeriodStatus

Headers = t.Callable[[Actor], dict[str, str]]


def grade_body(period: GradeReportingPeriod, **overrides: t.Any) -> dict[str, t.Any]:
    body = {
        "period_id": str(period.period_id),
        "student_id": "student-1",
        "subject_id": "math",
        "class_id": "10A",
        "component_type": "midterm",
        "grade_value": 8.5,
    }
    body.update(overrides)
    return body


class TestSetGrade:
    """Tests for POST /api/grades."""

    def test_teacher_enters_grade(
        self, client: TestClient, teacher: Actor, auth_headers: Headers, period: GradeReportingPeriod
    ) -> None:
        response = client.post("/api/grades", json=grade_body(period), headers=auth_headers(teacher))

        assert response.status_code == 200
        data = response.json()
        assert data["grade_value"] == 8.5
        assert data["component_type"] == "midterm"
        assert data["created_by"] == data["updated_by"] == teacher.user_id

    def test_retry_bound_is_not_a_request_parameter(
        self,
        app: FastAPI,
        client: TestClient,
        teacher: Actor,
        auth_headers: Headers,
        period: GradeReportingPeriod,
    ) -> None:
        """The retry bound comes from configuration and cannot be set by clients."""
        parameters = app.openapi()["paths"]["/api/grades"]["post"].get("parameters", [])
        response = client.post(
            "/api/grades", params={"attempts": "many"}, json=grade_body(period), headers=auth_headers(teacher)
        )

        assert "attempts" not in [p["name"] for p in parameters]
        assert response.status_code == 200

    def test_requires_authentication(self, client: TestClient, period: GradeReportingPeriod) -> None:
        response = client.post("/api/grades", json=grade_body(period))

        assert response.status_code == 401

    def test_out_of_range_is_422(
        self, client: TestClient, teacher: Actor, auth_headers: Headers, period: GradeReportingPeriod
    ) -> None:
        response = client.post("/api/grades", json=grade_body(period, grade_value=10.5), headers=auth_headers(teacher))

        assert response.status_code == 422
        data = response.json()
        assert (data["kind"], data["code"]) == ("ValidationError", "OutOfRange")

    def test_unknown_component_is_422(
        self, client: TestClient, teacher: Actor, auth_headers: Headers, period: GradeReportingPeriod
    ) -> None:
        response = client.post(
            "/api/grades", json=grade_body(period, component_type="regular_5"), headers=auth_headers(teacher)
        )

        assert response.status_code == 422
        assert response.json()["code"] == "UnknownComponentType"

    def test_closed_period_is_409(
        self,
        client: TestClient,
        teacher: Actor,
        auth_headers: Headers,
        period_factory: t.Callable[..., GradeReportingPeriod],
    ) -> None:
        closed = period_factory(status=PeriodStatus.Closed)

        response = client.post("/api/grades", json=grade_body(closed), headers=auth_headers(teacher))

        assert response.status_code == 409
        assert response.json()["code"] == "PeriodLocked"


class TestReadGrades:
    """Tests for GET /api/grades and GET /api/grades/{grade_id}."""

    def test_list_filters_by_student(
        self,
        client: TestClient,
        teacher: Actor,
        auth_headers: Headers,
        period: GradeReportingPeriod,
        grade_factory: t.Callable[..., DetailedGrade],
    ) -> None:
        mine = grade_factory(student_id="student-7")
        grade_factory(student_id="student-8")

        response = client.get(
            "/api/grades",
            params={"period_id": str(period.period_id), "student_id": "student-7"},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["grades"][0]["grade_id"] == str(mine.grade_id)

    def test_get_grade(
        self,
        client: TestClient,
        teacher: Actor,
        auth_headers: Headers,
        grade_factory: t.Callable[..., DetailedGrade],
    ) -> None:
        grade = grade_factory(value=6.0)

        response = client.get(f"/api/grades/{grade.grade_id}", headers=auth_headers(teacher))

        assert response.status_code == 200
        assert response.json()["grade_value"] == 6.0

    def test_unknown_grade_is_404(self, client: TestClient, teacher: Actor, auth_headers: Headers) -> None:
        response = client.get(f"/api/grades/{GradeID()}", headers=auth_headers(teacher))

        assert response.status_code == 404
        assert response.json()["kind"] == "NotFoundError"


class TestBulkImport:
    """Tests for POST /api/grades/bulk."""

    def test_reports_each_row(
        self, client: TestClient, teacher: Actor, auth_headers: Headers, period: GradeReportingPeriod
    ) -> None:
        body = {
            "period_id": str(period.period_id),
            "class_id": "10A",
            "subject_id": "math",
            "grade_type": "semester",
            "grades": [
                {"student_id": "student-1", "regular_grades": [7.0, 8.0], "midterm_grade": 9.0},
                {"student_id": "student-2", "regular_grades": [11.0], "final_grade": 6.5},
            ],
        }

        response = client.post("/api/grades/bulk", json=body, headers=auth_headers(teacher))

        assert response.status_code == 200
        data = response.json()
        assert [a["index"] for a in data["accepted"]] == [0, 1, 2, 4]
        assert len(data["rejected"]) == 1
        rejected = data["rejected"][0]
        assert rejected["index"] == 3
        assert rejected["student_id"] == "student-2"
        assert rejected["component_type"] == "regular_1"
        assert rejected["code"] == "OutOfRange"

        listed = client.get(
            "/api/grades", params={"period_id": str(period.period_id)}, headers=auth_headers(teacher)
        ).json()
        assert listed["total"] == 4

"""Tests for grade submission API endpoints."""

from __future__ import annotations

import typing as t

from fastapi.testclient import TestClient

from gradeflow.model import Actor, GradePeriodSubmission, GradeReportingPeriod, SubmissionID

Headers = t.Callable[[Actor], dict[str, str]]


def submit_body(period: GradeReportingPeriod, **overrides: t.Any) -> dict[str, t.Any]:
    body: dict[str, t.Any] = {"period_id": str(period.period_id), "class_id": "10A", "subject_id": "math"}
    body.update(overrides)
    return body


class TestSubmitGrades:
    """Tests for POST /api/submissions."""

    def test_first_submission(
        self, client: TestClient, teacher: Actor, auth_headers: Headers, period: GradeReportingPeriod
    ) -> None:
        response = client.post("/api/submissions", json=submit_body(period), headers=auth_headers(teacher))

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "submitted"
        assert data["submission_count"] == 1
        assert data["teacher_id"] == teacher.user_id

    def test_resubmission_needs_reason(
        self, client: TestClient, teacher: Actor, auth_headers: Headers, period: GradeReportingPeriod
    ) -> None:
        headers = auth_headers(teacher)
        client.post("/api/submissions", json=submit_body(period), headers=headers)

        refused = client.post("/api/submissions", json=submit_body(period), headers=headers)
        accepted = client.post("/api/submissions", json=submit_body(period, reason="fixed typo"), headers=headers)

        assert refused.status_code == 422
        assert refused.json()["code"] == "ReasonRequired"
        assert accepted.status_code == 200
        assert accepted.json()["submission_count"] == 2
        assert accepted.json()["last_reason"] == "fixed typo"

    def test_teacher_cannot_submit_for_colleague(
        self,
        client: TestClient,
        teacher: Actor,
        other_teacher: Actor,
        auth_headers: Headers,
        period: GradeReportingPeriod,
    ) -> None:
        response = client.post(
            "/api/submissions",
            json=submit_body(period, teacher_id=other_teacher.user_id),
            headers=auth_headers(teacher),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "Forbidden"

    def test_admin_submits_for_teacher(
        self, client: TestClient, admin: Actor, teacher: Actor, auth_headers: Headers, period: GradeReportingPeriod
    ) -> None:
        response = client.post(
            "/api/submissions", json=submit_body(period, teacher_id=teacher.user_id), headers=auth_headers(admin)
        )

        assert response.status_code == 200
        assert response.json()["teacher_id"] == teacher.user_id


class TestSubmissionProgress:
    """Tests for advancing, resetting and reading submissions."""

    def test_advance_to_parents_locks_resubmission(
        self,
        client: TestClient,
        admin: Actor,
        teacher: Actor,
        auth_headers: Headers,
        period: GradeReportingPeriod,
        submission_factory: t.Callable[..., GradePeriodSubmission],
    ) -> None:
        submission = submission_factory()
        url = f"/api/submissions/{submission.submission_id}/advance"

        client.post(url, json={"status": "sent_to_teacher"}, headers=auth_headers(admin))
        sent = client.post(url, json={"status": "sent_to_parent"}, headers=auth_headers(admin))
        resubmit = client.post(
            "/api/submissions", json=submit_body(period, reason="one more fix"), headers=auth_headers(teacher)
        )

        assert sent.status_code == 200
        assert sent.json()["status"] == "sent_to_parent"
        assert resubmit.status_code == 409
        assert resubmit.json()["code"] == "SubmissionLocked"

    def test_backward_advance_is_409(
        self,
        client: TestClient,
        admin: Actor,
        auth_headers: Headers,
        submission_factory: t.Callable[..., GradePeriodSubmission],
    ) -> None:
        submission = submission_factory()

        response = client.post(
            f"/api/submissions/{submission.submission_id}/advance",
            json={"status": "draft"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 409

    def test_teacher_cannot_advance(
        self,
        client: TestClient,
        teacher: Actor,
        auth_headers: Headers,
        submission_factory: t.Callable[..., GradePeriodSubmission],
    ) -> None:
        submission = submission_factory()

        response = client.post(
            f"/api/submissions/{submission.submission_id}/advance",
            json={"status": "sent_to_teacher"},
            headers=auth_headers(teacher),
        )

        assert response.status_code == 403

    def test_reset_to_draft(
        self,
        client: TestClient,
        admin: Actor,
        auth_headers: Headers,
        submission_factory: t.Callable[..., GradePeriodSubmission],
    ) -> None:
        submission = submission_factory()

        response = client.post(
            f"/api/submissions/{submission.submission_id}/reset",
            json={"reason": "parents portal outage"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "draft"

    def test_list_and_get(
        self,
        client: TestClient,
        teacher: Actor,
        auth_headers: Headers,
        period: GradeReportingPeriod,
        submission_factory: t.Callable[..., GradePeriodSubmission],
    ) -> None:
        submission = submission_factory(subject_id="history")

        listed = client.get(
            "/api/submissions",
            params={"period_id": str(period.period_id), "subject_id": "history", "status": "submitted"},
            headers=auth_headers(teacher),
        )
        fetched = client.get(f"/api/submissions/{submission.submission_id}", headers=auth_headers(teacher))
        missing = client.get(f"/api/submissions/{SubmissionID()}", headers=auth_headers(teacher))

        assert listed.json()["total"] == 1
        assert fetched.json()["submission_id"] == str(submission.submission_id)
        assert missing.status_code == 404

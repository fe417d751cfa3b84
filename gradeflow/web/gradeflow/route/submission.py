"""Grade submission routes"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gradeflow.auth import AuthContext, get_current_actor, require_admin
from gradeflow.core import di
from gradeflow.engine import atomically
from gradeflow.engine import submission as submission_engine
from gradeflow.model import PeriodID, SubmissionID, SubmissionStatus

from ..view.submission import SubmissionAdvanceRequest, SubmissionListResponse, SubmissionRequest, \
    SubmissionResetRequest, SubmissionResponse

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post("", operation_id="submit_grades")
@di.inject
def submit_grades(
    request: SubmissionRequest,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> SubmissionResponse:
    """Submit a class's grades for a subject, or resubmit them with a reason.

    `teacher_id` defaults to the caller; only administrators may submit for
    another teacher.
    """
    submission = atomically(
        submission_engine.submit,
        request.period_id,
        request.class_id,
        request.subject_id,
        request.teacher_id or auth.actor.user_id,
        auth.actor,
        request.reason,
        session=session,
        attempts=attempts,
    )
    return SubmissionResponse.model_validate(submission)


@router.get("", operation_id="list_submissions")
@di.inject
def list_submissions(
    period_id: PeriodID | None = None,
    class_id: str | None = None,
    subject_id: str | None = None,
    teacher_id: str | None = None,
    status_filter: SubmissionStatus | None = Query(None, alias="status"),
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> SubmissionListResponse:
    with session.begin():
        submissions = submission_engine.find(
            auth.actor,
            period_id=period_id,
            class_id=class_id,
            subject_id=subject_id,
            teacher_id=teacher_id,
            status=status_filter,
            session=session,
        )
    return SubmissionListResponse(
        submissions=[SubmissionResponse.model_validate(s) for s in submissions], total=len(submissions)
    )


@router.get("/{submission_id}", operation_id="get_submission")
@di.inject
def get_submission(
    submission_id: SubmissionID,
    auth: AuthContext = Depends(get_current_actor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> SubmissionResponse:
    with session.begin():
        submission = submission_engine.get(submission_id, auth.actor, session=session)
    return SubmissionResponse.model_validate(submission)


@router.post("/{submission_id}/advance", operation_id="advance_submission")
@di.inject
def advance_submission(
    submission_id: SubmissionID,
    request: SubmissionAdvanceRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> SubmissionResponse:
    submission = atomically(
        submission_engine.advance, submission_id, request.status, auth.actor, session=session, attempts=attempts
    )
    return SubmissionResponse.model_validate(submission)


@router.post("/{submission_id}/reset", operation_id="reset_submission")
@di.inject
def reset_submission(
    submission_id: SubmissionID,
    request: SubmissionResetRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    attempts: int = Depends(di.Provide["config.engine.retry.attempts"]),
) -> SubmissionResponse:
    submission = atomically(
        submission_engine.reset_to_draft,
        submission_id,
        auth.actor,
        request.reason,
        session=session,
        attempts=attempts,
    )
    return SubmissionResponse.model_validate(submission)

"""Route aggregation for the grade lifecycle API"""

from fastapi import APIRouter

from . import audit, grade, overwrite, period, submission

router = APIRouter()
router.include_router(period.router)
router.include_router(grade.router)
router.include_router(submission.router)
router.include_router(overwrite.router)
router.include_router(audit.router)

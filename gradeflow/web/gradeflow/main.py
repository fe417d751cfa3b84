"""Main entry point for the Gradeflow web application."""

import logging
import os

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

import gradeflow
from gradeflow.core import BootConfiguration, di, GradeflowContainer
from gradeflow.core.config.web import GradeflowWebSettings
from gradeflow.engine.errors import GradeflowError
from gradeflow.lib.json import FastAPIJSONResponse
from gradeflow.model import DeploymentEnvironment

from .route import router

logger = logging.getLogger(__name__)

ErrorStatus: dict[str, int] = {
    "ValidationError": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "StateError": status.HTTP_409_CONFLICT,
    "NotFoundError": status.HTTP_404_NOT_FOUND,
    "AuthorizationError": status.HTTP_403_FORBIDDEN,
    "ConcurrencyError": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def handle_gradeflow_error(request: Request, ex: Exception) -> JSONResponse:
    assert isinstance(ex, GradeflowError)
    status_code = ErrorStatus.get(ex.kind, status.HTTP_400_BAD_REQUEST)
    logger.info(
        "request refused",
        extra={"path": request.url.path, "method": request.method, "status": status_code, **ex.as_dict()},
    )
    return FastAPIJSONResponse(ex.as_dict(), status_code=status_code)


@di.inject
def _create_app(
    config: GradeflowWebSettings = di.Provide["config.web.gradeflow", di.as_(GradeflowWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
) -> FastAPI:
    app = FastAPI(
        title="Gradeflow",
        description="Grade lifecycle and audit engine",
        version=gradeflow.__version__,
        default_response_class=FastAPIJSONResponse,
        debug=env is DeploymentEnvironment.Local,
    )
    app.add_exception_handler(GradeflowError, handle_gradeflow_error)
    app.include_router(router)
    logger.debug("application created", extra={"env": env.value, "backend": str(config.backend.host)})
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv("__Gradeflow_BOOT")
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = GradeflowContainer()
        GradeflowContainer.boot(ct, **dict(boot_cf))
        ct.wire(modules=["gradeflow.web.gradeflow.main", "gradeflow.auth.middleware"])
        return _create_app(config=GradeflowWebSettings(**ct.config.web.gradeflow()), env=boot_cf.env)
    return _create_app()

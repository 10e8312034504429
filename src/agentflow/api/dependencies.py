"""FastAPI dependencies and domain error translation."""

from fastapi import HTTPException, Request, status

from agentflow.application.factory import Orchestrator
from agentflow.core.domain.exceptions import (
    ExecutionInProgressError,
    NotFoundError,
    OrchestrationError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ExecutionInProgressError, status.HTTP_409_CONFLICT),
)


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


def to_http_exception(error: OrchestrationError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))

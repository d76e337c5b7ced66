"""RFC 7807 *Problem Details* support for FastAPI."""
from __future__ import annotations

from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from kafka_admin.core.exceptions import (
    AdminError,
    AdminUnavailableError,
    ControlPlaneRejectedError,
    ConvergenceTimeoutError,
    InterruptedWaitError,
    PreconditionError,
    RequestTimeoutError,
    TopicNotFoundError,
)


class ProblemDetail(BaseModel):
    """Data model that serialises to RFC 7807 JSON.

    Attributes
    ----------
    type : str
        A URI reference that identifies the problem type.
    title : str
        A short human-readable summary of the problem type.
    status : int
        The HTTP status code.
    detail : str | None
        A human-readable explanation specific to this occurrence.
    instance : str
        A URI reference that identifies the specific occurrence.
    operation : str | None
        Admin operation that failed.
    target : str | None
        Topic, resource or group the operation was about.
    """

    type: str = "about:blank"
    title: str
    status: int = Field(..., ge=400, le=599)
    detail: Optional[str] = None
    instance: str = Field(default_factory=lambda: f"urn:uuid:{uuid4()}")
    operation: Optional[str] = None
    target: Optional[str] = None


# Most specific first; the first isinstance match wins.
_STATUS_BY_ERROR: list[tuple[type[AdminError], int, str]] = [
    (PreconditionError, status.HTTP_400_BAD_REQUEST, "Bad Request"),
    (TopicNotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
    (ControlPlaneRejectedError, status.HTTP_409_CONFLICT, "Rejected By Cluster"),
    (InterruptedWaitError, status.HTTP_409_CONFLICT, "Wait Interrupted"),
    (AdminUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE, "Administration Unavailable"),
    (ConvergenceTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "Convergence Timeout"),
    (RequestTimeoutError, status.HTTP_504_GATEWAY_TIMEOUT, "Request Timeout"),
]


def problem_for(exc: AdminError) -> ProblemDetail:
    """Map *exc* onto a ProblemDetail with the matching HTTP status."""
    for err_type, code, title in _STATUS_BY_ERROR:
        if isinstance(exc, err_type):
            break
    else:
        code, title = status.HTTP_500_INTERNAL_SERVER_ERROR, "Admin Operation Failed"
    return ProblemDetail(
        type=f"/errors/{type(exc).__name__}",
        title=title,
        status=code,
        detail=str(exc),
        operation=exc.operation,
        target=exc.target,
    )


# --------------------------------------------------------------------------- #
# FastAPI integration                                                         #
# --------------------------------------------------------------------------- #
def install_exception_handlers(app: FastAPI) -> None:
    """Register a global exception handler for AdminError."""

    @app.exception_handler(AdminError)
    async def _handler(_: Request, exc: AdminError) -> JSONResponse:
        problem = problem_for(exc)
        return JSONResponse(
            content=problem.model_dump(mode="json"),
            status_code=problem.status,
            media_type="application/problem+json",
        )

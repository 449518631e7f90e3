"""Shared dependencies for API routes."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from catalog_export.pipeline.errors import (
    ExportError,
    InvalidOrderingError,
    InvalidTransitionError,
    JobNotFoundError,
    PreconditionError,
    SuspensionNotFoundError,
    SuspensionTokenError,
)
from catalog_export.pipeline.orchestrator import ExportOrchestrator
from catalog_export.pipeline.registry import JobRegistry


def get_registry(request: Request) -> JobRegistry:
    """The process-wide job registry created in the application lifespan."""
    return request.app.state.registry


def get_orchestrator(job_id: str, registry: JobRegistry = Depends(get_registry)) -> ExportOrchestrator:
    """Resolve ``{job_id}`` path parameters to a live orchestrator."""
    try:
        return registry.get(job_id)
    except JobNotFoundError as exc:
        raise http_error(exc) from exc


def http_error(exc: ExportError) -> HTTPException:
    """Translate a pipeline exception into the matching HTTP error."""
    if isinstance(exc, (JobNotFoundError, SuspensionNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (InvalidTransitionError, SuspensionTokenError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, (InvalidOrderingError, PreconditionError)):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(
        status_code=code,
        detail={
            "error": type(exc).__name__,
            "message": str(exc),
            "reason": exc.reason,
            "details": exc.details,
        },
    )

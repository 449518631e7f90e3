"""
Domain-specific exception hierarchy for the export pipeline.

All pipeline exceptions inherit from ExportError so callers can catch
broadly or narrowly as needed.  Each exception carries structured
context (job ID, reason code, details) for logging and API responses.

Lower components raise these; only the orchestrator decides whether an
error is fatal to the job or fatal to a single record.
"""

from __future__ import annotations

from catalog_export.core.constants import FailureReason


class ExportError(Exception):
    """Base exception for all export pipeline errors."""

    default_reason: str | None = None

    def __init__(
        self,
        message: str,
        *,
        job_id: str | None = None,
        reason: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.job_id = job_id
        self.reason = reason or self.default_reason
        self.details = details or {}
        super().__init__(message)


# ─── Precondition errors (abort the whole job) ─────────


class PreconditionError(ExportError):
    """A failure that aborts the job before any rendering starts."""


class InvalidInputError(PreconditionError):
    """Raw input could not be turned into an identifier set."""

    default_reason = FailureReason.INVALID_INPUT


class NoIdentifierColumnError(InvalidInputError):
    """The uploaded table has no column matching the identifier token."""

    default_reason = FailureReason.NO_IDENTIFIER_COLUMN


class EmptyIdentifierSetError(InvalidInputError):
    """Input parsed successfully but yielded no identifiers."""

    default_reason = FailureReason.EMPTY_IDENTIFIER_SET


class LookupFailedError(PreconditionError):
    """A lookup chunk failed; partial results are discarded."""

    default_reason = FailureReason.LOOKUP_FAILED

    def __init__(
        self,
        message: str,
        *,
        chunk_index: int | None = None,
        status_code: int | None = None,
        **kwargs,
    ) -> None:
        self.chunk_index = chunk_index
        self.status_code = status_code
        super().__init__(message, **kwargs)


class NoMatchingRecordsError(PreconditionError):
    """Every lookup succeeded but nothing matched."""

    default_reason = FailureReason.NO_MATCHING_RECORDS


class PolicyFetchError(PreconditionError):
    """The category policy table could not be fetched."""

    default_reason = FailureReason.POLICY_FETCH_FAILED

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs) -> None:
        self.status_code = status_code
        super().__init__(message, **kwargs)


# ─── Per-record errors (isolated, never abort) ─────────


class RenderError(ExportError):
    """Rendering one record's artifact failed."""

    def __init__(self, message: str, *, record_id: str | None = None, **kwargs) -> None:
        self.record_id = record_id
        super().__init__(message, **kwargs)


# ─── Caller / protocol errors ──────────────────────────


class InvalidOrderingError(ExportError):
    """An edited image ordering adds, drops or duplicates entries."""


class SuspensionTokenError(ExportError):
    """No open suspension matches the supplied token."""


class InvalidTransitionError(ExportError):
    """An operation was invoked in a state that does not allow it."""


class ArchiveError(ExportError):
    """The archive sink was used after it was finalized or discarded."""


class JobNotFoundError(ExportError):
    """No job with the given ID is registered."""


class SuspensionNotFoundError(ExportError):
    """The job has no open suspension to show."""

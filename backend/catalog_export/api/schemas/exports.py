"""Export job request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from catalog_export.core.constants import ExportKind, JobState


class CreateExportRequest(BaseModel):
    """Request payload for creating an export job."""

    kind: ExportKind


class TextInputRequest(BaseModel):
    """Pasted identifiers, separated by commas, spaces or newlines."""

    text: str = Field(..., max_length=1_000_000)


class ResolveSuspensionRequest(BaseModel):
    """Reviewer decision for the open suspension."""

    token: str
    ordering: list[str] | None = None
    cancel: bool = False


class SwapImagesRequest(BaseModel):
    token: str
    first: int = Field(..., ge=0)
    second: int = Field(..., ge=0)


class MoveImageRequest(BaseModel):
    token: str
    source: int = Field(..., ge=0)
    target: int = Field(..., ge=0)


class ProgressResponse(BaseModel):
    """Progress snapshot of one export job."""

    job_id: str
    kind: ExportKind
    state: JobState
    current_index: int
    total: int
    succeeded: int
    failed: int
    skipped: int
    current_record: str | None = None
    unresolved: int = 0
    failure_reason: str | None = None
    failure_message: str | None = None


class SuspensionResponse(BaseModel):
    """The record parked for review and the reviewer's draft ordering."""

    token: str
    cursor_index: int
    record_id: str
    display_code: str
    category_id: str
    original_ordering: list[str]
    draft_ordering: list[str]


class DraftOrderingResponse(BaseModel):
    draft_ordering: list[str]


class FailureResponse(BaseModel):
    record_id: str
    display_code: str
    reason: str


class SummaryResponse(BaseModel):
    """End-of-job counts, failures in cursor order and unmatched identifiers."""

    job_id: str
    state: JobState
    succeeded: int
    skipped: int
    failed: int
    failures: list[FailureResponse] = []
    unresolved: list[str] = []
    archive_filename: str | None = None

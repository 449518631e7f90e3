"""
Export job endpoints — create, feed, drive, review and download.

Jobs live in the in-memory JobRegistry.  The generate loop runs as a
background task so long batches do not hold the request open; clients
poll ``GET /exports/{job_id}`` for progress.
"""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response, UploadFile, status

from catalog_export.api.deps import get_orchestrator, get_registry, http_error
from catalog_export.api.schemas.exports import (
    CreateExportRequest,
    DraftOrderingResponse,
    MoveImageRequest,
    ProgressResponse,
    ResolveSuspensionRequest,
    SummaryResponse,
    SuspensionResponse,
    SwapImagesRequest,
    TextInputRequest,
)
from catalog_export.core.constants import JobState
from catalog_export.core.logging import get_logger
from catalog_export.pipeline.collaborators import DownloadHandle
from catalog_export.pipeline.context import ProgressSnapshot
from catalog_export.pipeline.errors import ExportError, SuspensionNotFoundError
from catalog_export.pipeline.orchestrator import ExportOrchestrator
from catalog_export.pipeline.registry import JobRegistry

logger = get_logger(__name__)

router = APIRouter(prefix="/exports", tags=["Exports"])


def _progress(snapshot: ProgressSnapshot) -> ProgressResponse:
    if snapshot.state == JobState.FAILED_PRECONDITION:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "PreconditionFailed",
                "message": snapshot.failure_message,
                "reason": snapshot.failure_reason,
                "job": snapshot.to_dict(),
            },
        )
    return ProgressResponse(**snapshot.to_dict())


def _download(handle: DownloadHandle) -> Response:
    return Response(
        content=handle.content,
        media_type=handle.media_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(handle.filename)}",
        },
    )


async def _run_generate(orchestrator: ExportOrchestrator) -> None:
    try:
        await orchestrator.start_generate()
    except ExportError as exc:
        logger.error("Background generate aborted", job_id=orchestrator.job_id, error=str(exc))


# ─── Create / inspect / drop ──────────────────────────────
@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProgressResponse)
async def create_export(
    body: CreateExportRequest,
    registry: JobRegistry = Depends(get_registry),
):
    """Create an idle export job of the requested kind."""
    orchestrator = registry.create(body.kind)
    return ProgressResponse(**orchestrator.snapshot().to_dict())


@router.get("/{job_id}", response_model=ProgressResponse)
async def get_export(orchestrator: ExportOrchestrator = Depends(get_orchestrator)):
    """Current progress snapshot (failed jobs included)."""
    return ProgressResponse(**orchestrator.snapshot().to_dict())


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_export(job_id: str, registry: JobRegistry = Depends(get_registry)):
    """Cancel (if still active) and forget a job."""
    try:
        registry.remove(job_id)
    except ExportError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── Input ────────────────────────────────────────────────
@router.post("/{job_id}/input", response_model=ProgressResponse)
async def submit_text_input(
    body: TextInputRequest,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """Submit pasted identifiers."""
    try:
        snapshot = orchestrator.submit_input(body.text)
    except ExportError as exc:
        raise http_error(exc) from exc
    return _progress(snapshot)


@router.post("/{job_id}/input/file", response_model=ProgressResponse)
async def submit_file_input(
    file: UploadFile,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """Submit an uploaded .xlsx / .xls / .csv table with an identifier column."""
    content = await file.read()
    try:
        snapshot = orchestrator.submit_file(file.filename or "", content)
    except ExportError as exc:
        raise http_error(exc) from exc
    return _progress(snapshot)


# ─── Resolve / generate ───────────────────────────────────
@router.post("/{job_id}/resolve", response_model=ProgressResponse)
async def resolve_export(orchestrator: ExportOrchestrator = Depends(get_orchestrator)):
    """Resolve identifiers against the catalog (and fetch policies for document jobs)."""
    try:
        snapshot = await orchestrator.start_resolve()
    except ExportError as exc:
        raise http_error(exc) from exc
    return _progress(snapshot)


@router.post("/{job_id}/generate", status_code=status.HTTP_202_ACCEPTED, response_model=ProgressResponse)
async def generate_export(
    background_tasks: BackgroundTasks,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """Start the generate loop in the background."""
    try:
        orchestrator.check_can_generate()
    except ExportError as exc:
        raise http_error(exc) from exc
    background_tasks.add_task(_run_generate, orchestrator)
    return ProgressResponse(**orchestrator.snapshot().to_dict())


@router.post("/{job_id}/cancel", response_model=ProgressResponse)
async def cancel_export(orchestrator: ExportOrchestrator = Depends(get_orchestrator)):
    """Cancel now, or at the next record boundary while the loop runs."""
    try:
        snapshot = orchestrator.cancel_job()
    except ExportError as exc:
        raise http_error(exc) from exc
    return ProgressResponse(**snapshot.to_dict())


@router.post("/{job_id}/reset", response_model=ProgressResponse)
async def reset_export(orchestrator: ExportOrchestrator = Depends(get_orchestrator)):
    """Discard all job data and return to IDLE."""
    try:
        snapshot = orchestrator.reset()
    except ExportError as exc:
        raise http_error(exc) from exc
    return ProgressResponse(**snapshot.to_dict())


# ─── Suspension ───────────────────────────────────────────
@router.get("/{job_id}/suspension", response_model=SuspensionResponse)
async def get_suspension(orchestrator: ExportOrchestrator = Depends(get_orchestrator)):
    """The record waiting for review, with the current draft ordering."""
    suspension = orchestrator.suspension
    if suspension is None:
        raise http_error(SuspensionNotFoundError("No suspension is open", job_id=orchestrator.job_id))
    return SuspensionResponse(**suspension.to_dict())


@router.post("/{job_id}/suspension/swap", response_model=DraftOrderingResponse)
async def swap_draft_images(
    body: SwapImagesRequest,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    try:
        draft = orchestrator.swap_images(body.token, body.first, body.second)
    except ExportError as exc:
        raise http_error(exc) from exc
    return DraftOrderingResponse(draft_ordering=draft)


@router.post("/{job_id}/suspension/move", response_model=DraftOrderingResponse)
async def move_draft_image(
    body: MoveImageRequest,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    try:
        draft = orchestrator.move_image(body.token, body.source, body.target)
    except ExportError as exc:
        raise http_error(exc) from exc
    return DraftOrderingResponse(draft_ordering=draft)


@router.post("/{job_id}/suspension", response_model=ProgressResponse)
async def resolve_suspension(
    body: ResolveSuspensionRequest,
    background_tasks: BackgroundTasks,
    orchestrator: ExportOrchestrator = Depends(get_orchestrator),
):
    """
    Confirm the ordering (draft or explicit) or cancel the job.

    On confirmation the reviewed record is rendered and the loop continues
    in the background.
    """
    try:
        snapshot = orchestrator.review(body.token, body.ordering, cancel=body.cancel)
    except ExportError as exc:
        raise http_error(exc) from exc
    if snapshot.state == JobState.GENERATING:
        background_tasks.add_task(_run_generate, orchestrator)
    return ProgressResponse(**snapshot.to_dict())


# ─── Outputs ──────────────────────────────────────────────
@router.get("/{job_id}/summary", response_model=SummaryResponse)
async def get_summary(orchestrator: ExportOrchestrator = Depends(get_orchestrator)):
    return SummaryResponse(**orchestrator.summary().to_dict())


@router.get("/{job_id}/archive")
async def download_archive(orchestrator: ExportOrchestrator = Depends(get_orchestrator)):
    """ZIP of every rendered artifact (completed document jobs only)."""
    try:
        handle = orchestrator.archive()
    except ExportError as exc:
        raise http_error(exc) from exc
    return _download(handle)


@router.post("/{job_id}/report")
async def download_report(orchestrator: ExportOrchestrator = Depends(get_orchestrator)):
    """Build the logistics workbook, complete the job and return the .xlsx."""
    try:
        handle = orchestrator.finalize_report()
    except ExportError as exc:
        raise http_error(exc) from exc
    return _download(handle)

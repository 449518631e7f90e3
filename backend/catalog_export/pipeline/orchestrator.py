"""
ExportOrchestrator — owns one export job from raw input to finished output.

Responsibilities:
    - Walk the job state machine and reject operations the state forbids
    - Parse input, resolve identifiers in chunks, snapshot category policies
    - Drive the generate loop record by record, isolating render failures
    - Park REQUIRES_REVIEW records behind the SuspensionGate
    - Honour cancellation at record boundaries and discard partial archives
    - Publish a ProgressSnapshot after every transition

State machine::

    Idle ─submit─▶ InputCollected ─resolve─▶ Resolving ─▶ LogisticsReady ─report─▶ Completed
                                                  │
                                                  └─▶ Generating ⇄ Suspended
                                                          │
                                                          └─▶ Completed
    any precondition failure ─▶ FailedPrecondition
    cancel (while not terminal) ─▶ Cancelled

Usage::

    orchestrator = ExportOrchestrator(
        kind=ExportKind.DOCUMENT_BATCH,
        resolver=BatchResolver(client),
        policy_source=client,
        renderer=PdfArtifactRenderer(),
        sink_factory=ZipArchiveSink,
    )
    orchestrator.submit_input("SKU-1, SKU-2")
    await orchestrator.start_resolve()
    snapshot = await orchestrator.start_generate()
    if snapshot.state == JobState.SUSPENDED:
        token = orchestrator.suspension.token
        await orchestrator.resolve_suspension(token)
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from typing import Any

from catalog_export.core.constants import TERMINAL_STATES, Decision, ExportKind, JobState
from catalog_export.core.logging import get_logger
from catalog_export.pipeline.classifier import classify
from catalog_export.pipeline.collaborators import (
    ArchiveHandle,
    ArchiveSink,
    ArtifactRenderer,
    DownloadHandle,
    PolicySource,
    ReportBuilder,
)
from catalog_export.pipeline.context import (
    ExportArtifact,
    FailureRecord,
    JobCursor,
    JobSummary,
    ProgressSnapshot,
    SuspensionState,
)
from catalog_export.pipeline.errors import (
    ExportError,
    InvalidTransitionError,
    PolicyFetchError,
    PreconditionError,
    RenderError,
)
from catalog_export.pipeline.gate import GateResolution, SuspensionGate
from catalog_export.pipeline.identifiers import IdentifierParser, IdentifierSet
from catalog_export.pipeline.models import CategoryPolicy, CategoryPolicyTable, ResolvedRecord
from catalog_export.pipeline.resolver import BatchResolver

logger = get_logger(__name__)

ProgressCallback = Callable[[ProgressSnapshot], Any]


class ExportOrchestrator:
    """
    One job, one orchestrator.  ``job_id`` and ``kind`` never change.

    Precondition failures (bad input, lookup errors, no matches, policy
    fetch errors) move the job to FAILED_PRECONDITION and are reported on
    the returned snapshot.  Calling an operation in the wrong state, or
    resolving a suspension with a stale token, raises instead.
    """

    def __init__(
        self,
        *,
        kind: ExportKind,
        resolver: BatchResolver,
        policy_source: PolicySource | None = None,
        renderer: ArtifactRenderer | None = None,
        sink_factory: Callable[[], ArchiveSink] | None = None,
        report_builder: ReportBuilder | None = None,
        parser: IdentifierParser | None = None,
        artifact_suffix: str = ".pdf",
        job_id: str | None = None,
    ) -> None:
        if kind == ExportKind.DOCUMENT_BATCH and (
            policy_source is None or renderer is None or sink_factory is None
        ):
            raise ValueError("document batches need a policy source, a renderer and a sink factory")
        if kind == ExportKind.LOGISTICS_REPORT and report_builder is None:
            raise ValueError("logistics reports need a report builder")

        self.job_id = job_id or str(uuid.uuid4())
        self.kind = ExportKind(kind)
        self.parser = parser or IdentifierParser()
        self.resolver = resolver
        self.policy_source = policy_source
        self.renderer = renderer
        self.sink_factory = sink_factory
        self.report_builder = report_builder
        self.artifact_suffix = artifact_suffix

        self.logger = logger.bind(job_id=self.job_id, kind=str(self.kind))
        self._subscribers: list[ProgressCallback] = []
        self.gate = SuspensionGate()
        self.cursor = JobCursor()
        # bumped whenever an in-flight resolve must not land
        self._resolve_run = 0
        self._clear_job_data()
        self.state = JobState.IDLE

    def _clear_job_data(self) -> None:
        self.identifiers: IdentifierSet | None = None
        self.records: tuple[ResolvedRecord, ...] = ()
        self.unresolved: tuple[str, ...] = ()
        self.policies = CategoryPolicyTable()
        self.failures: list[FailureRecord] = []
        self.failure: ExportError | None = None
        self.sink: ArchiveSink | None = None
        self.archive_handle: ArchiveHandle | None = None
        self.report_handle: DownloadHandle | None = None
        self._reviewed: GateResolution | None = None
        self._running = False
        self._cancel_requested = False
        self.cursor.reset()
        self.gate.clear()

    # ═══════════════════════════════════════════════════════════
    #  Observation
    # ═══════════════════════════════════════════════════════════

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register a progress observer; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> ProgressSnapshot:
        current = None
        if self.state in (JobState.GENERATING, JobState.SUSPENDED) and not self.cursor.at_end:
            current = self.records[self.cursor.index].code
        return ProgressSnapshot(
            job_id=self.job_id,
            kind=self.kind,
            state=self.state,
            current_index=self.cursor.index,
            total=self.cursor.total,
            succeeded=self.cursor.succeeded,
            failed=self.cursor.failed,
            skipped=self.cursor.skipped,
            current_record=current,
            unresolved=len(self.unresolved),
            failure_reason=self.failure.reason if self.failure else None,
            failure_message=str(self.failure) if self.failure else None,
        )

    @property
    def suspension(self) -> SuspensionState | None:
        return self.gate.current

    @property
    def is_running(self) -> bool:
        return self._running

    def summary(self) -> JobSummary:
        return JobSummary(
            job_id=self.job_id,
            state=self.state,
            succeeded=self.cursor.succeeded,
            skipped=self.cursor.skipped,
            failed=self.cursor.failed,
            failures=tuple(self.failures),
            unresolved=self.unresolved,
            archive_filename=self.archive_handle.filename if self.archive_handle else None,
        )

    def _publish(self) -> ProgressSnapshot:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                self.logger.exception("Progress subscriber raised", state=str(snapshot.state))
        return snapshot

    def _transition(self, target: JobState) -> None:
        self.logger.info("Job state changed", from_state=str(self.state), to_state=str(target))
        self.state = target

    def _require_state(self, operation: str, *allowed: JobState) -> None:
        if self.state not in allowed:
            raise InvalidTransitionError(
                f"Cannot {operation} while job is {self.state}",
                job_id=self.job_id,
                details={"state": str(self.state), "allowed": [str(s) for s in allowed]},
            )

    def _fail_precondition(self, exc: PreconditionError) -> ProgressSnapshot:
        if self.state == JobState.CANCELLED:
            return self.snapshot()
        exc.job_id = self.job_id
        self.failure = exc
        self.logger.warning(
            "Job failed precondition",
            reason=exc.reason,
            error=str(exc),
            details=exc.details,
        )
        self._transition(JobState.FAILED_PRECONDITION)
        return self._publish()

    def _resolve_abandoned(self, run: int) -> bool:
        """True once the job was cancelled or reset under an awaited resolve."""
        return self.state != JobState.RESOLVING or self._resolve_run != run

    def _resolve_failed(self, exc: PreconditionError, run: int) -> ProgressSnapshot:
        if self._resolve_abandoned(run):
            self.logger.info("Stale resolve failure ignored", reason=exc.reason, state=str(self.state))
            return self.snapshot()
        return self._fail_precondition(exc)

    # ═══════════════════════════════════════════════════════════
    #  Input and resolution
    # ═══════════════════════════════════════════════════════════

    def submit_input(self, raw: str | Sequence[Any]) -> ProgressSnapshot:
        """Parse pasted text or table rows into the job's IdentifierSet."""
        self._require_state("submit input", JobState.IDLE)
        try:
            identifiers = self.parser.parse(raw)
        except PreconditionError as exc:
            return self._fail_precondition(exc)

        self.identifiers = identifiers
        self.logger.info("Input collected", identifiers=len(identifiers))
        self._transition(JobState.INPUT_COLLECTED)
        return self._publish()

    def submit_file(self, filename: str, content: bytes) -> ProgressSnapshot:
        """Read an uploaded spreadsheet and submit its rows as table input."""
        self._require_state("submit input", JobState.IDLE)
        from catalog_export.processing.extractors import extractor_for

        try:
            rows = extractor_for(filename).extract(content)
        except PreconditionError as exc:
            return self._fail_precondition(exc)
        self.logger.info("Upload read", filename=filename, rows=len(rows))
        return self.submit_input(rows)

    async def start_resolve(self) -> ProgressSnapshot:
        """
        Resolve identifiers into records.

        Logistics jobs stop at LOGISTICS_READY.  Document jobs fetch the
        policy snapshot and move to GENERATING with the cursor at zero.
        """
        self._require_state("resolve", JobState.INPUT_COLLECTED)
        self._resolve_run += 1
        run = self._resolve_run
        self._transition(JobState.RESOLVING)
        self._publish()

        try:
            result = await self.resolver.resolve(self.identifiers, job_id=self.job_id)
        except PreconditionError as exc:
            return self._resolve_failed(exc, run)
        if self._resolve_abandoned(run):
            return self.snapshot()

        self.records = result.records
        self.unresolved = result.unresolved

        if self.kind == ExportKind.LOGISTICS_REPORT:
            self._transition(JobState.LOGISTICS_READY)
            return self._publish()

        try:
            policies = await self.policy_source.get_policies()
        except PolicyFetchError as exc:
            return self._resolve_failed(exc, run)
        except Exception as exc:
            return self._resolve_failed(PolicyFetchError(f"Policy fetch failed: {exc}"), run)
        if self._resolve_abandoned(run):
            return self.snapshot()

        self.policies = CategoryPolicyTable(policies)
        self.cursor.reset(total=len(self.records))
        self.sink = self.sink_factory()
        self.logger.info(
            "Generate prepared",
            records=len(self.records),
            unresolved=len(self.unresolved),
            policies=len(self.policies),
        )
        self._transition(JobState.GENERATING)
        return self._publish()

    # ═══════════════════════════════════════════════════════════
    #  Generate loop
    # ═══════════════════════════════════════════════════════════

    def check_can_generate(self) -> None:
        """Raise InvalidTransitionError unless ``start_generate()`` may run now."""
        self._require_state("generate", JobState.GENERATING)
        if self._running:
            raise InvalidTransitionError("Generate loop is already running", job_id=self.job_id)

    async def start_generate(self) -> ProgressSnapshot:
        """
        Run the generate loop until it suspends, completes or is cancelled.

        Also continues a job whose suspension was confirmed with ``review()``.
        """
        self.check_can_generate()
        self._running = True
        try:
            if self._reviewed is not None:
                reviewed, self._reviewed = self._reviewed, None
                if not self._cancel_requested:
                    await self._render_record(reviewed.record, reviewed.policy)
            await self._drive()
        finally:
            self._running = False
        return self.snapshot()

    async def _drive(self) -> None:
        while True:
            if self._cancel_requested:
                self._cancel()
                return
            if self.cursor.at_end:
                self._complete()
                return

            record = self.records[self.cursor.index]
            decision = classify(record, self.policies)

            if decision == Decision.NO_CATEGORY:
                self.logger.warning(
                    "Record has no category, skipping",
                    record_id=record.id,
                    display_code=record.code,
                    category_id=record.category_id,
                    cursor_index=self.cursor.index,
                )
                self.cursor.advance(skipped=True)
                self._publish()
                continue

            policy = self.policies.get(record.category_id)
            if decision == Decision.REQUIRES_REVIEW:
                self.gate.open(record, policy, self.cursor.index, job_id=self.job_id)
                self._transition(JobState.SUSPENDED)
                self._publish()
                return

            await self._render_record(record, policy)

    async def _render_record(self, record: ResolvedRecord, policy: CategoryPolicy) -> None:
        """Render one record and advance the cursor; failures stay with the record."""
        log = self.logger.bind(record_id=record.id, display_code=record.code, cursor_index=self.cursor.index)
        try:
            content = await self.renderer.render(record, policy)
        except RenderError as exc:
            self._record_failure(record, str(exc))
            log.error("Render failed", error=str(exc), details=exc.details)
        except Exception as exc:
            self._record_failure(record, f"Unexpected error: {exc}")
            log.exception("Render raised unexpectedly", error_type=type(exc).__name__)
        else:
            artifact = ExportArtifact(
                record_id=record.id,
                name=f"{record.code}{self.artifact_suffix}",
                content=content,
            )
            entry = self.sink.append(artifact.name, artifact.content)
            self.cursor.advance(succeeded=True)
            log.info("Artifact rendered", entry=entry, size=artifact.size)
        self._publish()

    def _record_failure(self, record: ResolvedRecord, reason: str) -> None:
        self.failures.append(
            FailureRecord(record_id=record.id, display_code=record.code, reason=reason)
        )
        self.cursor.advance(failed=True)

    def _complete(self) -> None:
        self.archive_handle = self.sink.finalize()
        self.logger.info(
            "Generate completed",
            succeeded=self.cursor.succeeded,
            failed=self.cursor.failed,
            skipped=self.cursor.skipped,
            archive=self.archive_handle.filename,
        )
        self._transition(JobState.COMPLETED)
        self._publish()

    def _cancel(self) -> None:
        self._resolve_run += 1
        if self.sink is not None:
            self.sink.discard()
        self.gate.clear()
        self._reviewed = None
        self._cancel_requested = False
        self.logger.info(
            "Job cancelled",
            cursor_index=self.cursor.index,
            succeeded=self.cursor.succeeded,
        )
        self._transition(JobState.CANCELLED)
        self._publish()

    # ═══════════════════════════════════════════════════════════
    #  Suspension
    # ═══════════════════════════════════════════════════════════

    def swap_images(self, token: str, first: int, second: int) -> list[str]:
        self._require_state("edit ordering", JobState.SUSPENDED)
        return self.gate.swap(token, first, second)

    def move_image(self, token: str, source: int, target: int) -> list[str]:
        self._require_state("edit ordering", JobState.SUSPENDED)
        return self.gate.move(token, source, target)

    def review(
        self,
        token: str,
        ordering: Sequence[str] | None = None,
        *,
        cancel: bool = False,
    ) -> ProgressSnapshot:
        """
        Consume the open suspension without continuing the loop.

        Confirming moves the job back to GENERATING with the reviewed record
        queued for the next ``start_generate()``.  Cancelling aborts the whole
        job and discards everything rendered so far.
        """
        self._require_state("resolve suspension", JobState.SUSPENDED)
        resolution = self.gate.resolve(token, ordering, cancel=cancel)
        if resolution.cancelled:
            self._cancel()
            return self.snapshot()

        self._reviewed = resolution
        self._transition(JobState.GENERATING)
        return self._publish()

    async def resolve_suspension(
        self,
        token: str,
        ordering: Sequence[str] | None = None,
        *,
        cancel: bool = False,
    ) -> ProgressSnapshot:
        """Confirm (or cancel) the parked record and continue the loop."""
        snapshot = self.review(token, ordering, cancel=cancel)
        if snapshot.state != JobState.GENERATING:
            return snapshot
        return await self.start_generate()

    # ═══════════════════════════════════════════════════════════
    #  Cancellation, reset, outputs
    # ═══════════════════════════════════════════════════════════

    def cancel_job(self) -> ProgressSnapshot:
        """
        Cancel the job.

        A running loop notices the request at the next record boundary; in
        every other non-terminal state the cancellation is immediate.
        """
        if self.state == JobState.CANCELLED:
            return self.snapshot()
        if self.state in TERMINAL_STATES:
            raise InvalidTransitionError(
                f"Cannot cancel a job that is {self.state}",
                job_id=self.job_id,
            )
        if self._running:
            self.logger.info("Cancellation requested", cursor_index=self.cursor.index)
            self._cancel_requested = True
            return self.snapshot()
        if self.state == JobState.SUSPENDED:
            self.gate.resolve(self.gate.current.token, cancel=True)
        self._cancel()
        return self.snapshot()

    def reset(self) -> ProgressSnapshot:
        """Discard everything and return to IDLE with the same job ID."""
        if self._running:
            raise InvalidTransitionError("Cannot reset while the generate loop runs", job_id=self.job_id)
        if self.state == JobState.RESOLVING:
            raise InvalidTransitionError("Cannot reset while records are being resolved", job_id=self.job_id)
        self._resolve_run += 1
        if self.sink is not None and self.archive_handle is None:
            self.sink.discard()
        self._clear_job_data()
        self._transition(JobState.IDLE)
        return self._publish()

    def archive(self) -> ArchiveHandle:
        if self.archive_handle is None:
            raise InvalidTransitionError(
                f"No archive is available while job is {self.state}",
                job_id=self.job_id,
            )
        return self.archive_handle

    def finalize_report(self) -> DownloadHandle:
        """Build the logistics workbook from the resolved records and complete."""
        if self.report_handle is not None:
            return self.report_handle
        self._require_state("build report", JobState.LOGISTICS_READY)
        self.report_handle = self.report_builder.build(self.records)
        self.logger.info(
            "Logistics report built",
            records=len(self.records),
            filename=self.report_handle.filename,
        )
        self._transition(JobState.COMPLETED)
        self._publish()
        return self.report_handle

"""In-memory registry of live export jobs, keyed by job ID."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from catalog_export.core.constants import TERMINAL_STATES, ExportKind
from catalog_export.core.logging import get_logger
from catalog_export.pipeline.errors import JobNotFoundError
from catalog_export.pipeline.orchestrator import ExportOrchestrator

logger = get_logger(__name__)

OrchestratorFactory = Callable[[ExportKind], ExportOrchestrator]


class JobRegistry:
    """
    Creates orchestrators through ``factory`` and keeps them until removed.

    Jobs are process-local; nothing survives a restart.
    """

    def __init__(self, factory: OrchestratorFactory) -> None:
        self.factory = factory
        self._jobs: dict[str, ExportOrchestrator] = {}

    def create(self, kind: ExportKind) -> ExportOrchestrator:
        orchestrator = self.factory(ExportKind(kind))
        self._jobs[orchestrator.job_id] = orchestrator
        logger.info("Job registered", job_id=orchestrator.job_id, kind=str(orchestrator.kind))
        return orchestrator

    def get(self, job_id: str) -> ExportOrchestrator:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise JobNotFoundError(f"Export job {job_id} not found", job_id=job_id) from None

    def remove(self, job_id: str) -> ExportOrchestrator:
        orchestrator = self.get(job_id)
        if orchestrator.state not in TERMINAL_STATES:
            orchestrator.cancel_job()
        del self._jobs[job_id]
        logger.info("Job removed", job_id=job_id, state=str(orchestrator.state))
        return orchestrator

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[ExportOrchestrator]:
        return iter(list(self._jobs.values()))

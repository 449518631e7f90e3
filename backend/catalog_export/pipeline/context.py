"""
Job state objects owned by one ExportOrchestrator.

JobCursor is the single source of truth for how far a job has got.
Only the orchestrator mutates it; everything handed to callers
(ProgressSnapshot, JobSummary) is an immutable copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from catalog_export.core.constants import ExportKind, JobState
from catalog_export.pipeline.models import CategoryPolicy, ResolvedRecord


# ═══════════════════════════════════════════════════════════
#  Per-record outcomes
# ═══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FailureRecord:
    """A record whose artifact could not be produced."""

    record_id: str
    display_code: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "display_code": self.display_code,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ExportArtifact:
    """A finished, named byte blob for one record."""

    record_id: str
    name: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


# ═══════════════════════════════════════════════════════════
#  JobCursor
# ═══════════════════════════════════════════════════════════

@dataclass
class JobCursor:
    """
    Position of the generate loop within the resolved record list.

    Invariant: succeeded + failed + skipped <= index <= total.
    ``index`` only moves forward; ``reset()`` is the single exception.
    """

    total: int = 0
    index: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def at_end(self) -> bool:
        return self.index >= self.total

    @property
    def pending(self) -> int:
        return self.total - self.index

    def advance(self, *, succeeded: bool = False, failed: bool = False, skipped: bool = False) -> None:
        """Move past the current record, counting at most one outcome."""
        if self.at_end:
            raise IndexError("cursor already at end of record list")
        if succeeded + failed + skipped > 1:
            raise ValueError("a record has exactly one outcome")
        self.succeeded += int(succeeded)
        self.failed += int(failed)
        self.skipped += int(skipped)
        self.index += 1

    def reset(self, total: int = 0) -> None:
        self.total = total
        self.index = 0
        self.succeeded = 0
        self.failed = 0
        self.skipped = 0


# ═══════════════════════════════════════════════════════════
#  SuspensionState
# ═══════════════════════════════════════════════════════════

@dataclass
class SuspensionState:
    """
    An open review gate.

    ``draft`` is the reviewer's working copy of the record's image order.
    Entries may be permuted but never added or removed.
    """

    token: str
    record: ResolvedRecord
    policy: CategoryPolicy
    cursor_index: int
    draft: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "cursor_index": self.cursor_index,
            "record_id": self.record.id,
            "display_code": self.record.code,
            "category_id": self.policy.id,
            "original_ordering": list(self.record.images),
            "draft_ordering": list(self.draft),
        }


# ═══════════════════════════════════════════════════════════
#  Snapshots handed to callers
# ═══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProgressSnapshot:
    """Read-only progress view published after every transition."""

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

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "kind": self.kind,
            "state": self.state,
            "current_index": self.current_index,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "current_record": self.current_record,
            "unresolved": self.unresolved,
            "failure_reason": self.failure_reason,
            "failure_message": self.failure_message,
        }


@dataclass(frozen=True)
class JobSummary:
    """End-of-job report: counts, ordered failures and unmatched identifiers."""

    job_id: str
    state: JobState
    succeeded: int
    skipped: int
    failed: int
    failures: tuple[FailureRecord, ...] = ()
    unresolved: tuple[str, ...] = ()
    archive_filename: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "state": self.state,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "failures": [f.to_dict() for f in self.failures],
            "unresolved": list(self.unresolved),
            "archive_filename": self.archive_filename,
        }

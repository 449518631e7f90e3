"""
Interfaces of the external collaborators the pipeline drives.

Concrete implementations live in ``clients/``, ``rendering/`` and
``archive/``; tests substitute in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from catalog_export.pipeline.models import CategoryPolicy, ResolvedRecord


@runtime_checkable
class RecordLookup(Protocol):
    """Resolves identifiers to records; omitted identifiers simply do not appear."""

    async def lookup(self, identifiers: Sequence[str], page_size: int) -> list[ResolvedRecord]:
        ...


@runtime_checkable
class PolicySource(Protocol):
    """Supplies every category policy in one call."""

    async def get_policies(self) -> list[CategoryPolicy]:
        ...


@runtime_checkable
class ArtifactRenderer(Protocol):
    """Produces one artifact per record or raises RenderError."""

    async def render(self, record: ResolvedRecord, policy: CategoryPolicy) -> bytes:
        ...


@dataclass(frozen=True)
class DownloadHandle:
    """A finished file ready to be offered for download."""

    filename: str
    content: bytes
    media_type: str = "application/octet-stream"


@dataclass(frozen=True)
class ArchiveHandle(DownloadHandle):
    """A finalized archive and the entry names it contains."""

    media_type: str = "application/zip"
    entries: tuple[str, ...] = ()


@runtime_checkable
class ArchiveSink(Protocol):
    """Accumulates named blobs and finalizes them into one container."""

    def append(self, name: str, content: bytes) -> str:
        """Store ``content``; returns the entry name actually used."""
        ...

    def finalize(self) -> ArchiveHandle:
        ...

    def discard(self) -> None:
        ...


@runtime_checkable
class ReportBuilder(Protocol):
    """Builds the logistics report for a resolved record list."""

    def build(self, records: Sequence[ResolvedRecord]) -> DownloadHandle:
        ...

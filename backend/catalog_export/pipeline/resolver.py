"""
BatchResolver — resolves an IdentifierSet into records in bounded chunks.

Chunks are looked up one after another, never concurrently, and the
results are concatenated in chunk order.  Any chunk failure aborts the
whole resolve: half-resolved record lists are never returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

from catalog_export.core.logging import get_logger
from catalog_export.pipeline.collaborators import RecordLookup
from catalog_export.pipeline.errors import (
    LookupFailedError,
    NoMatchingRecordsError,
)
from catalog_export.pipeline.identifiers import IdentifierSet
from catalog_export.pipeline.models import ResolvedRecord

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 200


@dataclass(frozen=True)
class ResolveResult:
    """Resolved records in chunk order plus the identifiers nothing matched."""

    records: tuple[ResolvedRecord, ...]
    unresolved: tuple[str, ...]
    chunks: int


def chunked(items: Sequence[str], size: int) -> Iterator[list[str]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


class BatchResolver:
    """
    Issues ``ceil(N / chunk_size)`` sequential lookups for N identifiers.

    Usage::

        resolver = BatchResolver(CatalogClient(...), chunk_size=200)
        result = await resolver.resolve(identifiers)
    """

    def __init__(self, lookup: RecordLookup, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk size must be positive, got {chunk_size}")
        self.lookup = lookup
        self.chunk_size = chunk_size

    async def resolve(self, identifiers: IdentifierSet, *, job_id: str | None = None) -> ResolveResult:
        log = logger.bind(job_id=job_id, identifiers=len(identifiers), chunk_size=self.chunk_size)
        records: list[ResolvedRecord] = []
        chunk_count = 0

        for chunk_index, chunk in enumerate(chunked(identifiers.members, self.chunk_size)):
            chunk_count += 1
            try:
                found = await self.lookup.lookup(chunk, self.chunk_size)
            except LookupFailedError as exc:
                exc.chunk_index = chunk_index
                exc.job_id = job_id
                log.error("Lookup chunk failed", chunk_index=chunk_index, error=str(exc))
                raise
            except Exception as exc:
                log.error("Lookup chunk failed", chunk_index=chunk_index, error=str(exc))
                raise LookupFailedError(
                    f"Lookup of chunk {chunk_index} failed: {exc}",
                    chunk_index=chunk_index,
                    job_id=job_id,
                ) from exc

            log.debug(
                "Chunk resolved",
                chunk_index=chunk_index,
                requested=len(chunk),
                matched=len(found),
            )
            records.extend(found)

        if not records:
            log.warning("No records matched")
            raise NoMatchingRecordsError(
                f"None of the {len(identifiers)} identifiers matched a record",
                job_id=job_id,
            )

        matched_keys = {record.id for record in records}
        matched_keys.update(r.display_code for r in records if r.display_code)
        unresolved = tuple(i for i in identifiers if i not in matched_keys)

        log.info(
            "Identifiers resolved",
            records=len(records),
            unresolved=len(unresolved),
            chunks=chunk_count,
        )
        return ResolveResult(records=tuple(records), unresolved=unresolved, chunks=chunk_count)

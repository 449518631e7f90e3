"""
Export pipeline — identifier parsing, chunked resolution, classification,
suspension review and the per-job orchestrator that drives them.
"""

from catalog_export.pipeline.context import JobCursor, JobSummary, ProgressSnapshot
from catalog_export.pipeline.identifiers import IdentifierParser, IdentifierSet
from catalog_export.pipeline.orchestrator import ExportOrchestrator
from catalog_export.pipeline.registry import JobRegistry
from catalog_export.pipeline.resolver import BatchResolver

__all__ = [
    "BatchResolver",
    "ExportOrchestrator",
    "IdentifierParser",
    "IdentifierSet",
    "JobCursor",
    "JobRegistry",
    "JobSummary",
    "ProgressSnapshot",
]

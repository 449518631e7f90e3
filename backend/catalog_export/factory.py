"""
Wires concrete collaborators into ExportOrchestrators.

Usage::

    client = CatalogClient.from_settings()
    renderer = PdfArtifactRenderer.from_settings()
    orchestrator = build_orchestrator(ExportKind.DOCUMENT_BATCH, client=client, renderer=renderer)

The caller owns ``client`` and ``renderer`` and closes them; one renderer
is shared by every job so image downloads reuse its connection pool.
"""

from __future__ import annotations

from catalog_export.archive import ZipArchiveSink
from catalog_export.clients import CatalogClient
from catalog_export.core.config import Settings, settings
from catalog_export.core.constants import ExportKind
from catalog_export.pipeline.collaborators import ArtifactRenderer
from catalog_export.pipeline.identifiers import IdentifierParser
from catalog_export.pipeline.orchestrator import ExportOrchestrator
from catalog_export.pipeline.resolver import BatchResolver
from catalog_export.reports import LogisticsReportBuilder


def build_orchestrator(
    kind: ExportKind,
    *,
    client: CatalogClient,
    renderer: ArtifactRenderer | None = None,
    config: Settings = settings,
) -> ExportOrchestrator:
    """
    Create a job of ``kind`` backed by ``client`` for lookups and policies.

    Document batches need ``renderer``.
    """
    kind = ExportKind(kind)
    common = {
        "kind": kind,
        "parser": IdentifierParser(column_token=config.IDENTIFIER_COLUMN_TOKEN),
        "resolver": BatchResolver(client, chunk_size=config.LOOKUP_CHUNK_SIZE),
    }
    if kind == ExportKind.LOGISTICS_REPORT:
        return ExportOrchestrator(
            **common,
            report_builder=LogisticsReportBuilder(declared_value=config.LOGISTICS_DECLARED_VALUE),
        )
    return ExportOrchestrator(
        **common,
        policy_source=client,
        renderer=renderer,
        sink_factory=lambda: ZipArchiveSink(config.ARCHIVE_NAME_PREFIX),
    )

"""Tabular reports built from resolved records."""

from catalog_export.reports.logistics import LogisticsReportBuilder

__all__ = ["LogisticsReportBuilder"]

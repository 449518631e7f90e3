"""Artifact renderers."""

from catalog_export.rendering.pdf_renderer import PdfArtifactRenderer

__all__ = ["PdfArtifactRenderer"]

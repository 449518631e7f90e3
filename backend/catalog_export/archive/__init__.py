"""Archive sinks for rendered artifacts."""

from catalog_export.archive.zip_sink import ZipArchiveSink

__all__ = ["ZipArchiveSink"]

"""
Tabular input readers, picked by file extension.

Usage::

    rows = extractor_for("codes.xlsx").extract(upload_bytes)
    identifiers = IdentifierParser().parse_table(rows)
"""

from __future__ import annotations

from pathlib import PurePath

from catalog_export.core.constants import InputFormat
from catalog_export.pipeline.errors import InvalidInputError
from catalog_export.processing.extractors.base import BaseExtractor
from catalog_export.processing.extractors.csv_extractor import CsvExtractor
from catalog_export.processing.extractors.xls_extractor import XlsExtractor
from catalog_export.processing.extractors.xlsx_extractor import XlsxExtractor

EXTRACTORS: dict[str, type[BaseExtractor]] = {
    InputFormat.XLSX: XlsxExtractor,
    InputFormat.XLS: XlsExtractor,
    InputFormat.CSV: CsvExtractor,
}


def detect_format(filename: str) -> InputFormat:
    """Map a filename's extension onto a supported InputFormat."""
    suffix = PurePath(filename or "").suffix.upper().lstrip(".")
    try:
        return InputFormat(suffix)
    except ValueError:
        raise InvalidInputError(
            f"Unsupported file type: {filename!r}",
            details={"supported": [f".{f.lower()}" for f in EXTRACTORS]},
        ) from None


def extractor_for(filename: str) -> BaseExtractor:
    return EXTRACTORS[detect_format(filename)]()


__all__ = [
    "BaseExtractor",
    "CsvExtractor",
    "XlsExtractor",
    "XlsxExtractor",
    "detect_format",
    "extractor_for",
]

"""Excel 2007+ (.xlsx) reader, first worksheet only."""

from __future__ import annotations

import io

from openpyxl import load_workbook

from catalog_export.core.constants import InputFormat
from catalog_export.pipeline.errors import InvalidInputError
from catalog_export.processing.extractors.base import BaseExtractor


class XlsxExtractor(BaseExtractor):
    format_type = InputFormat.XLSX

    def read_rows(self, content):
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as exc:
            raise InvalidInputError(f"Could not open workbook: {exc}") from exc
        try:
            sheet = workbook.worksheets[0]
            return [list(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()

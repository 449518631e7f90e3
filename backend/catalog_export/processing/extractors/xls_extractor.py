"""Legacy Excel (.xls) reader built on xlrd."""

from __future__ import annotations

import xlrd
import xlrd.compdoc

from catalog_export.core.constants import InputFormat
from catalog_export.pipeline.errors import InvalidInputError
from catalog_export.processing.extractors.base import BaseExtractor


class XlsExtractor(BaseExtractor):
    format_type = InputFormat.XLS

    def read_rows(self, content):
        try:
            book = xlrd.open_workbook(file_contents=content)
        except (xlrd.XLRDError, xlrd.compdoc.CompDocError) as exc:
            raise InvalidInputError(f"Could not open workbook: {exc}") from exc
        sheet = book.sheet_by_index(0)
        return [sheet.row_values(i) for i in range(sheet.nrows)]

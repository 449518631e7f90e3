"""CSV reader; UTF-8 with or without BOM, GB18030 as fallback."""

from __future__ import annotations

import csv
import io

from catalog_export.core.constants import InputFormat
from catalog_export.pipeline.errors import InvalidInputError
from catalog_export.processing.extractors.base import BaseExtractor

ENCODINGS = ("utf-8-sig", "gb18030")


class CsvExtractor(BaseExtractor):
    format_type = InputFormat.CSV

    def read_rows(self, content):
        for encoding in ENCODINGS:
            try:
                text = content.decode(encoding)
                break
            except UnicodeDecodeError:
                continue
        else:
            raise InvalidInputError("CSV file is not valid UTF-8 or GB18030 text")
        return list(csv.reader(io.StringIO(text)))

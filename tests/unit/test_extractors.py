"""Tests for the spreadsheet input readers."""

import io

import pytest
from openpyxl import Workbook

from catalog_export.core.constants import InputFormat
from catalog_export.pipeline.errors import InvalidInputError
from catalog_export.processing.extractors import (
    CsvExtractor,
    XlsExtractor,
    XlsxExtractor,
    detect_format,
    extractor_for,
)


def _xlsx(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestDispatch:
    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("orders.xlsx", XlsxExtractor),
            ("ORDERS.XLS", XlsExtractor),
            ("export.2024.csv", CsvExtractor),
        ],
    )
    def test_extension_selects_reader(self, filename, expected):
        assert isinstance(extractor_for(filename), expected)

    @pytest.mark.parametrize("filename", ["codes.txt", "noext", ""])
    def test_unsupported_extension(self, filename):
        with pytest.raises(InvalidInputError):
            detect_format(filename)

    def test_supports_format(self):
        assert XlsxExtractor().supports_format(InputFormat.XLSX)
        assert not CsvExtractor().supports_format(InputFormat.XLSX)


class TestXlsx:
    def test_first_non_empty_row_is_header(self):
        content = _xlsx([
            [None, None],
            ["Order", "SKU"],
            ["1", 10001],
            [None, None],
            ["2", "A-1, A-2"],
        ])

        rows = XlsxExtractor().extract(content)

        assert rows == [
            {"Order": "1", "SKU": 10001},
            {"Order": "2", "SKU": "A-1, A-2"},
        ]

    def test_integral_floats_become_strings(self):
        rows = XlsxExtractor().extract(_xlsx([["SKU"], [12345.0]]))

        assert rows == [{"SKU": "12345"}]

    def test_corrupt_workbook(self):
        with pytest.raises(InvalidInputError):
            XlsxExtractor().extract(b"definitely not a zip")


class TestCsv:
    def test_utf8_with_bom(self):
        content = "\ufeffSKU,名称\nX-1,挂历\n,\nX-2,海报\n".encode()

        rows = CsvExtractor().extract(content)

        assert rows == [{"SKU": "X-1", "名称": "挂历"}, {"SKU": "X-2", "名称": "海报"}]

    def test_gb18030_fallback(self):
        content = "SKU,名称\nX-1,台历\n".encode("gb18030")

        assert CsvExtractor().extract(content) == [{"SKU": "X-1", "名称": "台历"}]

    def test_short_rows_are_padded(self):
        rows = CsvExtractor().extract(b"SKU,Qty\nA\n")

        assert rows == [{"SKU": "A", "Qty": None}]


def test_corrupt_xls():
    with pytest.raises(InvalidInputError):
        XlsExtractor().extract(b"garbage bytes that are no BIFF stream")

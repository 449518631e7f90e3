"""Tests for IdentifierParser and IdentifierSet."""

import pytest

from catalog_export.core.constants import FailureReason
from catalog_export.pipeline.errors import (
    EmptyIdentifierSetError,
    InvalidInputError,
    NoIdentifierColumnError,
)
from catalog_export.pipeline.identifiers import (
    IdentifierParser,
    IdentifierSet,
    locate_identifier_column,
)


@pytest.fixture
def parser():
    return IdentifierParser()


class TestParseText:
    def test_exact_string_dedup_preserves_case(self, parser):
        """'A,A,b , B' yields three members in first-seen order."""
        result = parser.parse("A,A,b , B")

        assert result.members == ("A", "b", "B")
        assert len(result) == 3

    def test_splits_on_commas_spaces_tabs_and_newlines(self, parser):
        result = parser.parse("SKU-1\nSKU-2\tSKU-3,,SKU-4   SKU-5\r\n")

        assert list(result) == ["SKU-1", "SKU-2", "SKU-3", "SKU-4", "SKU-5"]

    @pytest.mark.parametrize("raw", ["", "   ", ",,,", "\n \t ,"])
    def test_blank_input_is_an_explicit_error(self, parser, raw):
        with pytest.raises(EmptyIdentifierSetError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.reason == FailureReason.EMPTY_IDENTIFIER_SET

    def test_no_empty_or_whitespace_members(self, parser):
        result = parser.parse(" a ,  , b,\t,a ")

        assert all(m and m == m.strip() for m in result)
        assert len(set(result)) == len(result)


class TestParseTable:
    def test_locates_column_by_substring_and_splits_cells(self, parser):
        rows = [
            {"Order": "1", "Seller SKU list": "X1, X2"},
            {"Order": "2", "Seller SKU list": "X3"},
            {"Order": "3", "Seller SKU list": "X2"},
        ]

        result = parser.parse(rows)

        assert result.members == ("X1", "X2", "X3")

    def test_exact_header_wins_over_substring(self):
        headers = ["SKU count", "sku", "Parent SKU"]

        assert locate_identifier_column(headers, "SKU") == "sku"

    def test_numeric_cells_lose_float_suffix(self, parser):
        rows = [{"SKU": 12345.0}, {"SKU": 678}, {"SKU": None}]

        assert parser.parse(rows).members == ("12345", "678")

    def test_missing_column_is_reported_not_empty(self, parser):
        rows = [{"Order": "1", "Name": "widget"}]

        with pytest.raises(NoIdentifierColumnError) as exc_info:
            parser.parse(rows)

        assert exc_info.value.reason == FailureReason.NO_IDENTIFIER_COLUMN
        assert exc_info.value.details["headers"] == ["Order", "Name"]

    def test_empty_table(self, parser):
        with pytest.raises(EmptyIdentifierSetError):
            parser.parse_table([])

    def test_column_without_values(self, parser):
        with pytest.raises(EmptyIdentifierSetError):
            parser.parse([{"SKU": ""}, {"SKU": " , "}])

    def test_custom_column_token(self):
        parser = IdentifierParser(column_token="货号")

        assert parser.parse([{"产品货号": "P-1"}]).members == ("P-1",)


def test_unsupported_input_type(parser):
    with pytest.raises(InvalidInputError):
        parser.parse(42)


def test_identifier_set_from_values():
    identifiers = IdentifierSet.from_values([" a", "b ", "a", ""])

    assert identifiers.members == ("a", "b")
    assert "a" in identifiers
    assert "c" not in identifiers

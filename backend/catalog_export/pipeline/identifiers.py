"""
IdentifierParser — turns typed text or an uploaded table into an IdentifierSet.

Text input is split on commas and any whitespace.  Table input locates
the identifier column by matching the header against a token (``SKU``
by default), then splits every cell on commas because one spreadsheet
cell may list several codes.

Dedup is exact-string: ``"b"`` and ``"B"`` are different identifiers.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from catalog_export.core.logging import get_logger
from catalog_export.pipeline.errors import (
    EmptyIdentifierSetError,
    InvalidInputError,
    NoIdentifierColumnError,
)

logger = get_logger(__name__)

TEXT_SEPARATORS = re.compile(r"[,\s]+")

Table = Sequence[Mapping[str, Any]]


@dataclass(frozen=True)
class IdentifierSet:
    """Deduplicated identifiers in first-seen order."""

    members: tuple[str, ...]

    @classmethod
    def from_values(cls, values: Iterable[str]) -> IdentifierSet:
        seen: dict[str, None] = {}
        for value in values:
            token = value.strip()
            if token:
                seen.setdefault(token, None)
        return cls(tuple(seen))

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self) -> Iterator[str]:
        return iter(self.members)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.members


def _cell_to_text(value: Any) -> str:
    """Stringify a spreadsheet cell; integral floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def locate_identifier_column(headers: Iterable[str], token: str) -> str | None:
    """
    Find the identifier column among ``headers``.

    An exact case-insensitive match wins over a substring match.
    """
    needle = token.strip().upper()
    candidates = [h for h in headers if isinstance(h, str)]
    for header in candidates:
        if header.strip().upper() == needle:
            return header
    for header in candidates:
        if needle in header.upper():
            return header
    return None


class IdentifierParser:
    """Normalises operator input into an IdentifierSet."""

    def __init__(self, column_token: str = "SKU") -> None:
        self.column_token = column_token

    def parse(self, raw: str | Table) -> IdentifierSet:
        """Dispatch on input shape: free text or a table of row mappings."""
        if isinstance(raw, str):
            return self.parse_text(raw)
        if isinstance(raw, Sequence) and all(isinstance(row, Mapping) for row in raw):
            return self.parse_table(raw)
        raise InvalidInputError(
            f"Unsupported input type: {type(raw).__name__}",
        )

    def parse_text(self, raw: str) -> IdentifierSet:
        identifiers = IdentifierSet.from_values(TEXT_SEPARATORS.split(raw))
        if not identifiers:
            raise EmptyIdentifierSetError("No identifiers found in text input")
        logger.info("Parsed text input", identifiers=len(identifiers))
        return identifiers

    def parse_table(self, rows: Table) -> IdentifierSet:
        if not rows:
            raise EmptyIdentifierSetError("Uploaded table has no rows")

        column = locate_identifier_column(rows[0].keys(), self.column_token)
        if column is None:
            raise NoIdentifierColumnError(
                f"No column matching '{self.column_token}' found",
                details={"headers": [str(h) for h in rows[0].keys()]},
            )

        def cells() -> Iterator[str]:
            for row in rows:
                text = _cell_to_text(row.get(column))
                if text:
                    yield from text.split(",")

        identifiers = IdentifierSet.from_values(cells())
        if not identifiers:
            raise EmptyIdentifierSetError(
                f"Column '{column}' contains no identifiers",
                details={"column": column},
            )

        logger.info(
            "Parsed table input",
            column=column,
            rows=len(rows),
            identifiers=len(identifiers),
        )
        return identifiers

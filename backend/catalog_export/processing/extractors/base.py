"""
Abstract base class for all tabular input readers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from catalog_export.core.constants import InputFormat


class BaseExtractor(ABC):
    """Turns an uploaded spreadsheet into rows keyed by header text."""

    format_type: InputFormat

    @abstractmethod
    def read_rows(self, content: bytes) -> Iterable[Iterable[Any]]:
        """Yield raw cell rows in sheet order."""
        ...

    def supports_format(self, format_type: str) -> bool:
        """Return True if this extractor handles the given format type."""
        return format_type == self.format_type

    def extract(self, content: bytes) -> list[dict[str, Any]]:
        """
        Convert ``content`` into a list of row mappings.

        The first row with any non-empty cell is the header.  Blank headers
        are named by column position; fully blank data rows are dropped.
        """
        header: list[str] | None = None
        rows: list[dict[str, Any]] = []
        for raw in self.read_rows(content):
            cells = [normalize_cell(c) for c in raw]
            if not any(c not in (None, "") for c in cells):
                continue
            if header is None:
                header = [
                    str(c).strip() if c not in (None, "") else f"column_{i + 1}"
                    for i, c in enumerate(cells)
                ]
                continue
            rows.append({
                name: cells[i] if i < len(cells) else None
                for i, name in enumerate(header)
            })
        return rows


def normalize_cell(value: Any) -> Any:
    """Strip strings and render integral floats (``12345.0``) as ``"12345"``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str):
        return value.strip()
    return value

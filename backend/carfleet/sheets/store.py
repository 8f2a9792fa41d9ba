"""Record store interface.

A record store is the source of truth: a spreadsheet with one sheet per
entity, some columns computed by formulas. There is no partial-column
update and no transaction across calls. Callers read, splice through the
codec and write whole rows back by row address.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from carfleet.sheets.config import SheetLayout
from carfleet.sheets.ranges import RangeSpec


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def trim_rows(rows: list[list[Any]]) -> list[list[Any]]:
    """Drop trailing blank cells and trailing blank rows (Sheets API shape)."""
    trimmed: list[list[Any]] = []
    for row in rows:
        row = list(row)
        while row and is_blank(row[-1]):
            row.pop()
        trimmed.append(row)
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


class RecordStore(ABC):
    """Range reads and full-row writes against a tabular store."""

    @property
    @abstractmethod
    def key(self) -> str:
        """Stable identity of the backing document (used to scope ID counters)."""

    def ensure_ready(self) -> None:
        """Prepare the backing document (create sheets, check access)."""

    def derived_columns(self, layout: SheetLayout) -> frozenset[int]:
        """Offsets recomputed by the store on write; callers must not set them."""
        return layout.derived_indexes

    @abstractmethod
    def read_range(self, spec: RangeSpec) -> list[list[Any]]:
        """Read a block of rows. Trailing blank rows and cells are omitted."""

    @abstractmethod
    def append_row(self, layout: SheetLayout, row: list[Any]) -> int:
        """Append a row after the last non-blank one. Returns its row number."""

    @abstractmethod
    def update_row(self, layout: SheetLayout, row_number: int, row: list[Any]) -> None:
        """Overwrite the non-derived cells of one row."""

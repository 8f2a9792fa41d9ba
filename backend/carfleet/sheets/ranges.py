"""Range planning for paged reads.

A page is one contiguous block of rows over the sheet's column span. The
total is learned from a separate scan of the ID column starting at the
first data row, so the header row is never counted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from carfleet.config import settings
from carfleet.sheets.config import DATA_START_ROW, SheetLayout


@dataclass(frozen=True)
class RangeSpec:
    """A rectangular block of a sheet. ``last_row`` None means open-ended."""

    sheet: str
    first_col: str
    last_col: str
    first_row: int
    last_row: int | None = None

    @property
    def a1(self) -> str:
        """A1 notation, e.g. ``'Cars'!A2:V11`` or ``'Cars'!A2:A``."""
        end_row = "" if self.last_row is None else str(self.last_row)
        return (
            f"'{self.sheet}'!{self.first_col}{self.first_row}"
            f":{self.last_col}{end_row}"
        )


@dataclass(frozen=True)
class PagePlan:
    page: int
    limit: int
    read_range: RangeSpec
    count_range: RangeSpec


def clamp_page(page: int | None) -> int:
    return max(1, page or 1)


def clamp_limit(limit: int | None, maximum: int | None = None) -> int:
    maximum = maximum or settings.MAX_PAGE_SIZE
    return min(max(1, limit or settings.DEFAULT_PAGE_SIZE), maximum)


def full_range(layout: SheetLayout, first_data_row: int = DATA_START_ROW) -> RangeSpec:
    """All data rows over the sheet's column span."""
    return RangeSpec(layout.sheet, layout.first_col, layout.last_col, first_data_row)


def id_column_range(layout: SheetLayout, first_data_row: int = DATA_START_ROW) -> RangeSpec:
    col = layout.id_column.letter
    return RangeSpec(layout.sheet, col, col, first_data_row)


def row_range(layout: SheetLayout, row_number: int) -> RangeSpec:
    """Exactly one row over the sheet's column span."""
    return RangeSpec(layout.sheet, layout.first_col, layout.last_col, row_number, row_number)


def plan_page(
    layout: SheetLayout,
    page: int,
    limit: int,
    first_data_row: int = DATA_START_ROW,
) -> PagePlan:
    """Compute the row block for a page and the ID-column count range."""
    page = clamp_page(page)
    limit = clamp_limit(limit)
    start = (page - 1) * limit + first_data_row
    end = start + limit - 1
    return PagePlan(
        page=page,
        limit=limit,
        read_range=RangeSpec(layout.sheet, layout.first_col, layout.last_col, start, end),
        count_range=id_column_range(layout, first_data_row),
    )


def total_pages(total_items: int, limit: int) -> int:
    return math.ceil(total_items / limit) if limit > 0 else 0

"""Local workbook record store with formula-column protection.

CRITICAL: never writes derived columns (see ``SheetLayout.derived_indexes``).
Creates a timestamped backup before every write when backups are enabled.

openpyxl does not evaluate formulas, so derived cells are left blank in the
file and recomputed from a snapshot of every sheet on each read
(``carfleet.sheets.formulas``), the way the hosted spreadsheet would.
"""

from __future__ import annotations

import datetime
import logging
import shutil
import threading
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from carfleet.errors import UpstreamError
from carfleet.sheets.codec import to_text
from carfleet.sheets.config import ALL_LAYOUTS, DATA_START_ROW, HEADER_ROW, SheetLayout
from carfleet.sheets.formulas import recompute
from carfleet.sheets.ranges import RangeSpec
from carfleet.sheets.store import RecordStore, is_blank, trim_rows

logger = logging.getLogger(__name__)


def _safe_write(ws: Any, layout: SheetLayout, row: int, index: int, value: Any) -> None:
    """Write one cell, RAISING if the column is derived.

    Args:
        ws: The openpyxl worksheet.
        layout: Layout of the sheet being written.
        row: Row number (1-indexed).
        index: Column offset (0-indexed).
        value: Value to write; blanks clear the cell.

    Raises:
        ValueError: If the column holds a formula-derived value.
    """
    if index in layout.derived_indexes:
        col_letter = get_column_letter(index + 1)
        raise ValueError(
            f"REFUSED: {layout.sheet} column {col_letter} is a derived column. "
            f"Writing to derived columns is forbidden."
        )
    ws.cell(row=row, column=index + 1, value=None if is_blank(value) else value)


def create_backup(file_path: Path, keep: int | None = None) -> Path:
    """Create a timestamped backup of the file before modification.

    With ``keep``, only the newest ``keep`` backups of this file are kept.
    Returns the backup file path.
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_dir = file_path.parent / "backups"
    backup_dir.mkdir(parents=True, exist_ok=True)
    backup_path = backup_dir / f"{file_path.stem}_{timestamp}{file_path.suffix}"
    shutil.copy2(str(file_path), str(backup_path))
    if keep is not None:
        prune_backups(backup_dir, file_path, keep)
    return backup_path


def prune_backups(backup_dir: Path, file_path: Path, keep: int) -> list[Path]:
    """Delete all but the newest ``keep`` backups of ``file_path``. Returns the deleted paths."""
    # Timestamps sort lexicographically
    backups = sorted(backup_dir.glob(f"{file_path.stem}_*{file_path.suffix}"))
    stale = backups[: max(len(backups) - max(keep, 1), 0)]
    for path in stale:
        path.unlink(missing_ok=True)
    if stale:
        logger.debug("Pruned %d old backups of %s", len(stale), file_path.name)
    return stale


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (datetime.date, datetime.datetime)):
        return to_text(value)
    return value


class WorkbookStore(RecordStore):
    """Record store backed by a single local ``.xlsx`` workbook."""

    def __init__(
        self,
        path: str | Path,
        today: Callable[[], datetime.date] | None = None,
        backup: bool = True,
        backup_keep: int | None = 20,
        layouts: tuple[SheetLayout, ...] = ALL_LAYOUTS,
    ) -> None:
        self.path = Path(path)
        self.backup = backup
        self.backup_keep = backup_keep
        self.layouts = layouts
        self._today = today or datetime.date.today
        self._lock = threading.RLock()

    @property
    def key(self) -> str:
        return f"workbook:{self.path.resolve()}"

    def ensure_ready(self) -> None:
        if not self.path.exists():
            self.create_workbook()

    def create_workbook(self, partners: list[str] | None = None) -> None:
        """Create a new workbook with one sheet per layout and header rows.

        ``partners`` seeds the Partners sheet (``P1``, ``P2``, ...).
        """
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            wb = openpyxl.Workbook()
            try:
                default_ws = wb.active
                for layout in self.layouts:
                    ws = wb.create_sheet(layout.sheet)
                    for col_idx, header in enumerate(layout.headers, 1):
                        ws.cell(row=HEADER_ROW, column=col_idx, value=header)
                wb.remove(default_ws)

                if partners:
                    ws = wb["Partners"]
                    for offset, name in enumerate(partners):
                        ws.cell(row=DATA_START_ROW + offset, column=1, value=f"P{offset + 1}")
                        ws.cell(row=DATA_START_ROW + offset, column=2, value=name)
                wb.save(str(self.path))
            finally:
                wb.close()
            logger.info("Created workbook %s", self.path)

    def _load(self) -> Any:
        try:
            return openpyxl.load_workbook(str(self.path))
        except (OSError, InvalidFileException, zipfile.BadZipFile) as e:
            raise UpstreamError(f"Cannot open workbook {self.path}: {e}") from e

    def _sheet(self, wb: Any, name: str) -> Any:
        if name not in wb.sheetnames:
            raise UpstreamError(f"Workbook {self.path.name} has no sheet {name!r}")
        return wb[name]

    def _snapshot(self, wb: Any) -> dict[str, list[list[Any]]]:
        snapshot: dict[str, list[list[Any]]] = {}
        for layout in self.layouts:
            if layout.sheet not in wb.sheetnames:
                snapshot[layout.sheet] = []
                continue
            ws = wb[layout.sheet]
            snapshot[layout.sheet] = [
                list(row)
                for row in ws.iter_rows(
                    min_row=DATA_START_ROW,
                    max_col=layout.width,
                    values_only=True,
                )
            ]
        return snapshot

    def read_range(self, spec: RangeSpec) -> list[list[Any]]:
        with self._lock:
            wb = self._load()
            try:
                headers = [
                    cell.value
                    for cell in self._sheet(wb, spec.sheet)[HEADER_ROW]
                ]
                snapshot = self._snapshot(wb)
            finally:
                wb.close()

        computed = recompute(snapshot, self._today())
        all_rows = [headers] + computed.get(spec.sheet, [])

        first = max(spec.first_row, 1) - 1
        last = len(all_rows) if spec.last_row is None else min(spec.last_row, len(all_rows))
        col_start = column_index_from_string(spec.first_col) - 1
        col_end = column_index_from_string(spec.last_col)

        block = [
            [_cell_value(v) for v in list(row)[col_start:col_end]]
            for row in all_rows[first:last]
        ]
        return trim_rows(block)

    def _last_used_row(self, ws: Any, layout: SheetLayout) -> int:
        for row in range(ws.max_row, DATA_START_ROW - 1, -1):
            for col in range(1, layout.width + 1):
                if not is_blank(ws.cell(row=row, column=col).value):
                    return row
        return HEADER_ROW

    def _write_row(self, ws: Any, layout: SheetLayout, row_number: int, row: list[Any]) -> None:
        derived = self.derived_columns(layout)
        for index in range(layout.width):
            if index in derived:
                continue
            value = row[index] if index < len(row) else None
            _safe_write(ws, layout, row_number, index, value)

    def append_row(self, layout: SheetLayout, row: list[Any]) -> int:
        with self._lock:
            if self.backup:
                create_backup(self.path, keep=self.backup_keep)
            wb = self._load()
            try:
                ws = self._sheet(wb, layout.sheet)
                target = self._last_used_row(ws, layout) + 1
                self._write_row(ws, layout, target, row)
                wb.save(str(self.path))
            except OSError as e:
                raise UpstreamError(f"Cannot save workbook {self.path}: {e}") from e
            finally:
                wb.close()
        logger.info("Appended %s row %d", layout.sheet, target)
        return target

    def update_row(self, layout: SheetLayout, row_number: int, row: list[Any]) -> None:
        if row_number < DATA_START_ROW:
            raise ValueError(f"Row {row_number} is not a data row")
        with self._lock:
            if self.backup:
                create_backup(self.path, keep=self.backup_keep)
            wb = self._load()
            try:
                ws = self._sheet(wb, layout.sheet)
                self._write_row(ws, layout, row_number, row)
                wb.save(str(self.path))
            except OSError as e:
                raise UpstreamError(f"Cannot save workbook {self.path}: {e}") from e
            finally:
                wb.close()
        logger.info("Updated %s row %d", layout.sheet, row_number)

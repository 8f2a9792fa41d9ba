"""
Tests for the local workbook record store.
"""

import datetime

import openpyxl
import pytest

from carfleet.errors import UpstreamError
from carfleet.sheets.config import CARS, PARTNERS, SALES
from carfleet.sheets.ranges import RangeSpec, full_range, id_column_range, row_range
from carfleet.sheets.workbook import WorkbookStore, _safe_write, prune_backups


def car_row(car_id, price=1000, split=""):
    row = [""] * CARS.width
    row[0] = car_id
    row[1] = "Make"
    row[6] = price
    row[19] = split
    return row


class TestCreateWorkbook:
    def test_headers_and_partners(self, store):
        wb = openpyxl.load_workbook(store.path)
        assert wb.sheetnames == ["Cars", "Repairs", "Sales", "Rentals", "Partners"]
        assert wb["Cars"]["A1"].value == "ID"
        assert wb["Cars"]["V1"].value == "Partner Returns"
        assert wb["Partners"]["A2"].value == "P1"
        assert wb["Partners"]["B4"].value == "Partner C"
        wb.close()

    def test_ensure_ready_creates_missing_file(self, tmp_path):
        workbook = WorkbookStore(tmp_path / "new" / "fleet.xlsx", backup=False)
        workbook.ensure_ready()
        assert workbook.path.exists()

    def test_key_identifies_the_file(self, tmp_path):
        assert WorkbookStore(tmp_path / "a.xlsx").key != WorkbookStore(tmp_path / "b.xlsx").key


class TestReadRange:
    def test_empty_sheet_reads_nothing(self, store):
        assert store.read_range(full_range(CARS)) == []

    def test_header_row(self, store):
        rows = store.read_range(RangeSpec("Sales", "A", "J", 1, 1))
        assert rows[0][0] == "ID"

    def test_trailing_blank_cells_and_rows_are_trimmed(self, store):
        store.append_row(PARTNERS, ["P4", "Extra", "", "", ""])
        rows = store.read_range(RangeSpec("Partners", "A", "D", 2, 50))
        assert len(rows) == 4
        assert rows[-1] == ["P4", "Extra"]

    def test_column_window(self, store):
        rows = store.read_range(id_column_range(PARTNERS))
        assert rows == [["P1"], ["P2"], ["P3"]]

    def test_dates_render_as_iso_strings(self, store):
        store.append_row(CARS, car_row("C1"))
        wb = openpyxl.load_workbook(store.path)
        wb["Cars"]["H2"].value = datetime.datetime(2024, 1, 2)
        wb.save(store.path)
        wb.close()
        rows = store.read_range(row_range(CARS, 2))
        assert rows[0][7] == "2024-01-02"

    def test_unreadable_file_is_upstream_error(self, tmp_path):
        broken = tmp_path / "broken.xlsx"
        broken.write_text("not a workbook")
        with pytest.raises(UpstreamError):
            WorkbookStore(broken).read_range(full_range(CARS))

    def test_missing_sheet_is_upstream_error(self, store):
        with pytest.raises(UpstreamError):
            store.read_range(RangeSpec("Nope", "A", "B", 2))


class TestWrites:
    def test_append_returns_row_number(self, store):
        assert store.append_row(CARS, car_row("C1")) == 2
        assert store.append_row(CARS, car_row("C2")) == 3

    def test_append_after_last_used_row(self, store):
        assert store.append_row(PARTNERS, ["P4", "Extra"]) == 5

    def test_derived_cells_are_never_written(self, store):
        row = car_row("C1")
        row[8] = "Sold"
        row[15] = 123
        store.append_row(CARS, row)
        wb = openpyxl.load_workbook(store.path)
        assert wb["Cars"]["I2"].value is None
        assert wb["Cars"]["P2"].value is None
        wb.close()

    def test_safe_write_refuses_derived_column(self, store):
        wb = openpyxl.load_workbook(store.path)
        with pytest.raises(ValueError, match="derived column"):
            _safe_write(wb["Sales"], SALES, 2, 6, 100)
        wb.close()

    def test_update_overwrites_one_row(self, store):
        store.append_row(CARS, car_row("C1", price=100))
        store.append_row(CARS, car_row("C2", price=200))
        store.update_row(CARS, 3, car_row("C2", price=250))
        rows = store.read_range(full_range(CARS))
        assert rows[0][6] == 100
        assert rows[1][6] == 250

    def test_update_header_row_is_refused(self, store):
        with pytest.raises(ValueError):
            store.update_row(CARS, 1, car_row("C1"))

    def test_backup_before_write(self, tmp_path):
        workbook = WorkbookStore(tmp_path / "fleet.xlsx", backup=True)
        workbook.create_workbook()
        workbook.append_row(CARS, car_row("C1"))
        backups = list((tmp_path / "backups").glob("fleet_*.xlsx"))
        assert len(backups) == 1

    def test_old_backups_are_pruned(self, tmp_path):
        workbook = WorkbookStore(tmp_path / "fleet.xlsx", backup=True, backup_keep=2)
        workbook.create_workbook()
        for n in range(1, 5):
            workbook.append_row(CARS, car_row(f"C{n}"))
        backups = sorted((tmp_path / "backups").glob("fleet_*.xlsx"))
        assert len(backups) == 2

        # The newest backup is the workbook as it was before the last append
        wb = openpyxl.load_workbook(backups[-1])
        assert wb["Cars"]["A4"].value == "C3"
        assert wb["Cars"]["A5"].value is None
        wb.close()

    def test_prune_backups_keeps_newest(self, tmp_path):
        backup_dir = tmp_path / "backups"
        backup_dir.mkdir()
        for stamp in ("20240101_000000_000001", "20240102_000000_000001", "20240103_000000_000001"):
            (backup_dir / f"fleet_{stamp}.xlsx").write_bytes(b"x")

        deleted = prune_backups(backup_dir, tmp_path / "fleet.xlsx", keep=1)

        assert [p.name for p in deleted] == [
            "fleet_20240101_000000_000001.xlsx",
            "fleet_20240102_000000_000001.xlsx",
        ]
        assert [p.name for p in backup_dir.iterdir()] == ["fleet_20240103_000000_000001.xlsx"]


class TestDerivedOnRead:
    """The workbook fills derived columns the way the spreadsheet formulas would."""

    def test_new_car_is_available_with_total_cost(self, store):
        row = car_row("C1", price=50000)
        row[12], row[13], row[14] = 500, 250, "100"
        store.append_row(CARS, row)
        rows = store.read_range(full_range(CARS))
        assert rows[0][8] == "Available"
        assert rows[0][15] == 50850

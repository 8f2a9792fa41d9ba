"""
Tests for the Google Sheets store with a mocked API client.
"""

import json
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError
from tenacity import wait_none

from carfleet.errors import UpstreamError
from carfleet.sheets.config import CARS, SALES
from carfleet.sheets.google import GoogleSheetsStore, as_text_cell, is_transient_error
from carfleet.sheets.ranges import full_range


def http_error(status):
    content = json.dumps({"error": {"code": status, "message": "test"}}).encode()
    return HttpError(httplib2.Response({"status": status}), content)


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def values(service):
    """The ``spreadsheets().values()`` resource of the mocked client."""
    return service.spreadsheets.return_value.values.return_value


@pytest.fixture
def sheets(service):
    return GoogleSheetsStore(
        "sheet-123",
        max_attempts=3,
        wait=wait_none(),
        service_factory=lambda: service,
    )


class TestRead:
    def test_reads_a1_range(self, sheets, values):
        values.get.return_value.execute.return_value = {"values": [["C1", "Toyota"]]}
        rows = sheets.read_range(full_range(CARS))
        assert rows == [["C1", "Toyota"]]
        kwargs = values.get.call_args.kwargs
        assert kwargs["spreadsheetId"] == "sheet-123"
        assert kwargs["range"] == "'Cars'!A2:V"

    def test_empty_range(self, sheets, values):
        values.get.return_value.execute.return_value = {}
        assert sheets.read_range(full_range(CARS)) == []

    def test_transient_error_is_retried(self, sheets, values):
        execute = values.get.return_value.execute
        execute.side_effect = [http_error(503), OSError("reset"), {"values": [["C1"]]}]
        assert sheets.read_range(full_range(CARS)) == [["C1"]]
        assert execute.call_count == 3

    def test_retries_are_bounded(self, sheets, values):
        execute = values.get.return_value.execute
        execute.side_effect = http_error(429)
        with pytest.raises(UpstreamError):
            sheets.read_range(full_range(CARS))
        assert execute.call_count == 3

    def test_client_errors_are_not_retried(self, sheets, values):
        execute = values.get.return_value.execute
        execute.side_effect = http_error(404)
        with pytest.raises(UpstreamError):
            sheets.read_range(full_range(CARS))
        assert execute.call_count == 1


class TestAppend:
    def test_returns_row_number(self, sheets, values):
        values.append.return_value.execute.return_value = {
            "updates": {"updatedRange": "'Cars'!A5:V5"}
        }
        row = ["C4"] + [""] * (CARS.width - 1)
        assert sheets.append_row(CARS, row) == 5

    def test_request_shape(self, sheets, values):
        values.append.return_value.execute.return_value = {
            "updates": {"updatedRange": "Sales!A12:J12"}
        }
        row = ["S1", "C1", "2024-01-03", 60000, "Bob", "555", "x", "Paid", "y", "z"]
        assert sheets.append_row(SALES, row) == 12

        kwargs = values.append.call_args.kwargs
        assert kwargs["range"] == "'Sales'!A:J"
        assert kwargs["valueInputOption"] == "USER_ENTERED"
        sent = kwargs["body"]["values"][0]
        assert sent[:5] == ["S1", "C1", "2024-01-03", 60000, "Bob"]
        assert sent[5] == "'555"
        assert sent[6] is None
        assert sent[7] == "Paid"
        assert sent[8] is None
        assert sent[9] is None

    def test_append_is_not_retried(self, sheets, values):
        execute = values.append.return_value.execute
        execute.side_effect = http_error(503)
        with pytest.raises(UpstreamError):
            sheets.append_row(CARS, ["C1"])
        assert execute.call_count == 1

    def test_unexpected_response(self, sheets, values):
        values.append.return_value.execute.return_value = {}
        with pytest.raises(UpstreamError):
            sheets.append_row(CARS, ["C1"])


class TestUpdate:
    def test_writes_one_row_with_derived_cells_null(self, sheets, values):
        values.update.return_value.execute.return_value = {}
        row = ["C2"] + ["v"] * (CARS.width - 1)
        sheets.update_row(CARS, 3, row)

        kwargs = values.update.call_args.kwargs
        assert kwargs["range"] == "'Cars'!A3:V3"
        sent = kwargs["body"]["values"][0]
        assert len(sent) == CARS.width
        for index in CARS.derived_indexes:
            assert sent[index] is None
        assert sent[0] == "C2"

    def test_update_is_retried(self, sheets, values):
        execute = values.update.return_value.execute
        execute.side_effect = [http_error(500), {}]
        sheets.update_row(CARS, 3, ["C2"])
        assert execute.call_count == 2


class TestTextCells:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("007", "'007"),
            ("0712345678", "'0712345678"),
            ("+254712345678", "'+254712345678"),
            ("1,500.50", "'1,500.50"),
            ("=SUM(A1)", "'=SUM(A1)"),
            ("2024-01-03", "2024-01-03"),
            ("KA-123", "KA-123"),
            ("0712 345 678", "0712 345 678"),
            ("", ""),
            (60000, 60000),
        ],
    )
    def test_as_text_cell(self, value, expected):
        assert as_text_cell(value) == expected

    def test_text_columns_keep_leading_zeros(self, sheets, values):
        values.update.return_value.execute.return_value = {}
        row = [""] * CARS.width
        row[0] = "C1"
        row[3] = 2018
        row[5] = "007"
        row[6] = 50000.0
        row[7] = "2024-01-01"
        row[11] = "0712345678"
        sheets.update_row(CARS, 2, row)

        sent = values.update.call_args.kwargs["body"]["values"][0]
        assert sent[5] == "'007"
        assert sent[11] == "'0712345678"
        assert sent[3] == 2018
        assert sent[6] == 50000.0
        assert sent[7] == "2024-01-01"


class TestClient:
    def test_service_built_once_per_thread(self, service, values):
        factory = MagicMock(return_value=service)
        store = GoogleSheetsStore("sheet-123", wait=wait_none(), service_factory=factory)
        values.get.return_value.execute.return_value = {}
        store.read_range(full_range(CARS))
        store.read_range(full_range(CARS))
        assert factory.call_count == 1

    def test_missing_spreadsheet_id(self):
        with pytest.raises(UpstreamError):
            GoogleSheetsStore("").ensure_ready()

    def test_key(self):
        assert GoogleSheetsStore("abc").key == "sheets:abc"

    def test_transient_classification(self):
        assert is_transient_error(http_error(503))
        assert is_transient_error(TimeoutError())
        assert not is_transient_error(http_error(400))
        assert not is_transient_error(ValueError())

"""Google Sheets record store.

Talks to the Sheets v4 API with a service account. Every request carries an
HTTP timeout. Reads and row updates (full-row overwrites, so idempotent)
are retried with exponential backoff on transient failures; appends are
sent once, since a retried append can duplicate a row.

Derived cells are sent as ``None``: the Sheets API skips null values, so
the formulas in those cells are left untouched.

Values go in as USER_ENTERED so dates stay dates. Text cells that Sheets
would read as a number or a formula ("007", "0712345678", "=x") get a
leading apostrophe, which Sheets stores as a text marker and never returns.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httplib2
from googleapiclient.errors import HttpError
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from carfleet.errors import UpstreamError
from carfleet.sheets.config import FieldKind, SheetLayout
from carfleet.sheets.ranges import RangeSpec, row_range
from carfleet.sheets.store import RecordStore

logger = logging.getLogger(__name__)

_TRANSIENT_STATUS = frozenset({429, 500, 502, 503, 504})
_UPDATED_ROW = re.compile(r"![A-Z]+(\d+)")
_NUMBER_LIKE = re.compile(r"^\s*[+-]?(\d[\d,]*(\.\d*)?|\.\d+)([eE][+-]?\d+)?%?\s*$")


def as_text_cell(value: Any) -> Any:
    """Mark a string as literal text if Sheets would otherwise parse it."""
    if isinstance(value, str) and (value.startswith("=") or _NUMBER_LIKE.match(value)):
        return f"'{value}"
    return value


def is_transient_error(exc: BaseException) -> bool:
    if isinstance(exc, HttpError):
        return exc.resp.status in _TRANSIENT_STATUS
    return isinstance(exc, (OSError, httplib2.HttpLib2Error))


class GoogleSheetsStore(RecordStore):
    """Google Sheets API client for the dealership spreadsheet."""

    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

    def __init__(
        self,
        spreadsheet_id: str,
        key_file: str | Path = "keys.json",
        timeout: float = 20.0,
        max_attempts: int = 3,
        wait: Any = None,
        service_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.key_file = Path(key_file)
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)
        self._service_factory = service_factory
        self._local = threading.local()

    @property
    def key(self) -> str:
        return f"sheets:{self.spreadsheet_id}"

    def _get_service(self) -> Any:
        """Get or create the Sheets API service for the current thread.

        httplib2 connections are not thread-safe, so each worker thread
        builds its own client.
        """
        service = getattr(self._local, "service", None)
        if service is not None:
            return service

        if self._service_factory is not None:
            service = self._service_factory()
        else:
            from google.oauth2 import service_account
            from google_auth_httplib2 import AuthorizedHttp
            from googleapiclient.discovery import build

            creds = service_account.Credentials.from_service_account_file(
                str(self.key_file), scopes=self.SCOPES
            )
            http = AuthorizedHttp(creds, http=httplib2.Http(timeout=self.timeout))
            service = build("sheets", "v4", http=http, cache_discovery=False)

        self._local.service = service
        return service

    def _execute(self, request: Any, retry: bool = True) -> dict:
        attempts = self.max_attempts if retry else 1
        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=self._wait,
            retry=retry_if_exception(is_transient_error),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return request.execute()
        except (HttpError, OSError, httplib2.HttpLib2Error) as e:
            logger.warning("Sheets request failed: %s", e)
            raise UpstreamError(f"Spreadsheet request failed: {e}") from e
        return {}

    def ensure_ready(self) -> None:
        if not self.spreadsheet_id:
            raise UpstreamError("SPREADSHEET_ID is not configured")

    def read_range(self, spec: RangeSpec) -> list[list[Any]]:
        service = self._get_service()
        result = self._execute(
            service.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=spec.a1,
                valueRenderOption="UNFORMATTED_VALUE",
                dateTimeRenderOption="FORMATTED_STRING",
            )
        )
        return result.get("values", [])

    def _writable(self, layout: SheetLayout, row: list[Any]) -> list[Any]:
        derived = self.derived_columns(layout)
        text = {c.index for c in layout.columns if c.kind is FieldKind.TEXT}
        padded = list(row) + [""] * (layout.width - len(row))
        cells: list[Any] = []
        for index, value in enumerate(padded[: layout.width]):
            if index in derived:
                cells.append(None)
            elif index in text:
                cells.append(as_text_cell(value))
            else:
                cells.append(value)
        return cells

    def append_row(self, layout: SheetLayout, row: list[Any]) -> int:
        service = self._get_service()
        result = self._execute(
            service.spreadsheets().values().append(
                spreadsheetId=self.spreadsheet_id,
                range=f"'{layout.sheet}'!A:{layout.last_col}",
                valueInputOption="USER_ENTERED",
                insertDataOption="INSERT_ROWS",
                body={"values": [self._writable(layout, row)]},
            ),
            retry=False,
        )

        # Format: 'Cars'!A5:V5
        updated_range = result.get("updates", {}).get("updatedRange", "")
        match = _UPDATED_ROW.search(updated_range)
        if match is None:
            raise UpstreamError(f"Unexpected append response for {layout.sheet}: {result}")
        row_number = int(match.group(1))
        logger.info("Appended %s row %d", layout.sheet, row_number)
        return row_number

    def update_row(self, layout: SheetLayout, row_number: int, row: list[Any]) -> None:
        service = self._get_service()
        self._execute(
            service.spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=row_range(layout, row_number).a1,
                valueInputOption="USER_ENTERED",
                body={"values": [self._writable(layout, row)]},
            )
        )
        logger.info("Updated %s row %d", layout.sheet, row_number)

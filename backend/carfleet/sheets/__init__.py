"""Spreadsheet record store.

Column layouts, the row codec, ID generation, range planning and the two
store backends (local workbook, Google Sheets).
"""

from carfleet.sheets.codec import RowCodec
from carfleet.sheets.config import ALL_LAYOUTS, CARS, PARTNERS, RENTALS, REPAIRS, SALES, get_layout
from carfleet.sheets.ids import next_id
from carfleet.sheets.ranges import PagePlan, RangeSpec, plan_page
from carfleet.sheets.store import RecordStore

__all__ = [
    "ALL_LAYOUTS",
    "CARS",
    "PARTNERS",
    "PagePlan",
    "RENTALS",
    "REPAIRS",
    "RangeSpec",
    "RecordStore",
    "RowCodec",
    "SALES",
    "create_store_from_config",
    "get_layout",
    "next_id",
    "plan_page",
]


def create_store_from_config(config) -> RecordStore:
    """Create the configured record store (``STORE_BACKEND``)."""
    if config.STORE_BACKEND == "google":
        from carfleet.sheets.google import GoogleSheetsStore

        return GoogleSheetsStore(
            spreadsheet_id=config.SPREADSHEET_ID,
            key_file=config.GOOGLE_KEY_FILE,
            timeout=config.STORE_TIMEOUT_SECONDS,
            max_attempts=config.STORE_MAX_RETRIES,
        )
    if config.STORE_BACKEND != "workbook":
        raise ValueError(f"Unknown STORE_BACKEND: {config.STORE_BACKEND}")

    from carfleet.sheets.workbook import WorkbookStore

    return WorkbookStore(
        config.WORKBOOK_PATH,
        backup=config.WORKBOOK_BACKUPS,
        backup_keep=config.WORKBOOK_BACKUP_KEEP,
    )

"""Row-level writes shared by the entity services.

Rows are addressed by position, and the position is only known by scanning
the ID column. Every update re-reads the ID cell at the target address just
before writing and relocates the record once if a concurrent insert moved
it. Appends and updates are recorded in the write log.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.errors import NotFoundError, UpstreamError
from carfleet.models.write_log import WriteAction
from carfleet.services import id_service, write_log_service
from carfleet.sheets.codec import RecordT, RowCodec, changed_fields, to_text
from carfleet.sheets.config import DATA_START_ROW, SheetLayout
from carfleet.sheets.ranges import RangeSpec, id_column_range, row_range
from carfleet.sheets.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class LoadedRow(Generic[RecordT]):
    row_number: int
    raw: list[Any]
    record: RecordT


async def find_row(store: RecordStore, layout: SheetLayout, record_id: str) -> int | None:
    """Row number holding ``record_id``, by scanning the ID column."""
    rows = await asyncio.to_thread(store.read_range, id_column_range(layout))
    for offset, row in enumerate(rows):
        if row and to_text(row[0]) == record_id:
            return DATA_START_ROW + offset
    return None


async def read_row(store: RecordStore, layout: SheetLayout, row_number: int) -> list[Any]:
    rows = await asyncio.to_thread(store.read_range, row_range(layout, row_number))
    return list(rows[0]) if rows else []


async def _id_at(store: RecordStore, layout: SheetLayout, row_number: int) -> str:
    col = layout.id_column.letter
    spec = RangeSpec(layout.sheet, col, col, row_number, row_number)
    rows = await asyncio.to_thread(store.read_range, spec)
    if not rows or not rows[0]:
        return ""
    return to_text(rows[0][0])


async def load(store: RecordStore, codec: RowCodec[RecordT], record_id: str) -> LoadedRow[RecordT]:
    """Locate and decode one record.

    Raises:
        NotFoundError: If no row carries ``record_id``.
    """
    layout = codec.layout
    row_number = await find_row(store, layout, record_id)
    if row_number is None:
        raise NotFoundError(f"{layout.sheet[:-1]} {record_id} not found")
    raw = await read_row(store, layout, row_number)
    return LoadedRow(row_number=row_number, raw=raw, record=codec.decode(raw))


async def get_record(store: RecordStore, codec: RowCodec[RecordT], record_id: str) -> RecordT:
    loaded = await load(store, codec, record_id)
    return loaded.record


async def append_record(
    db: AsyncSession,
    store: RecordStore,
    codec: RowCodec[RecordT],
    record: RecordT,
) -> RecordT:
    """Append ``record`` with its derived columns blank and return it as stored."""
    layout = codec.layout
    row = codec.encode(record)
    try:
        row_number = await asyncio.to_thread(store.append_row, layout, row)
    except UpstreamError as e:
        await write_log_service.record_write(
            db, store.key, layout.sheet, WriteAction.APPEND, record.id, None, error=str(e)
        )
        raise
    await write_log_service.record_write(
        db, store.key, layout.sheet, WriteAction.APPEND, record.id, row_number
    )
    logger.info("Created %s %s at row %d", layout.sheet, record.id, row_number)

    stored = await read_row(store, layout, row_number)
    return codec.decode(stored) if stored else record


async def create_record(
    db: AsyncSession,
    store: RecordStore,
    codec: RowCodec[RecordT],
    fields: dict[str, Any],
    precheck: Callable[[], Awaitable[None]] | None = None,
) -> RecordT:
    """Allocate an ID, build the record from ``fields`` and append it.

    ``precheck`` raises when a precondition does not hold. It runs before
    the ID is allocated and again right before the append, since another
    request may have written in between.
    """
    if precheck is not None:
        await precheck()
    record_id = await id_service.allocate_id(db, store, codec.layout)
    record = codec.model.model_validate({**fields, "id": record_id})
    if precheck is not None:
        await precheck()
    return await append_record(db, store, codec, record)


async def write_update(
    db: AsyncSession,
    store: RecordStore,
    codec: RowCodec[RecordT],
    loaded: LoadedRow[RecordT],
    merged: RecordT,
    changed: set[str] | None = None,
) -> RecordT:
    """Write ``merged`` over the row ``loaded`` came from.

    Only the ``changed`` fields are written; other cells keep their raw value.

    Raises:
        NotFoundError: If the record vanished from the sheet before the write.
    """
    layout = codec.layout
    record_id = loaded.record.id
    row_number = loaded.row_number
    raw = loaded.raw

    if await _id_at(store, layout, row_number) != record_id:
        moved_to = await find_row(store, layout, record_id)
        if moved_to is None:
            raise NotFoundError(f"{layout.sheet[:-1]} {record_id} not found")
        logger.info("%s %s moved from row %d to %d", layout.sheet, record_id, row_number, moved_to)
        row_number = moved_to
        raw = await read_row(store, layout, row_number)

    row = codec.encode(merged, previous=raw, changed=changed)
    try:
        await asyncio.to_thread(store.update_row, layout, row_number, row)
    except UpstreamError as e:
        await write_log_service.record_write(
            db, store.key, layout.sheet, WriteAction.UPDATE, record_id, row_number, error=str(e)
        )
        raise
    await write_log_service.record_write(
        db, store.key, layout.sheet, WriteAction.UPDATE, record_id, row_number
    )
    logger.info("Updated %s %s at row %d", layout.sheet, record_id, row_number)

    stored = await read_row(store, layout, row_number)
    return codec.decode(stored) if stored else merged


async def update_record(
    db: AsyncSession,
    store: RecordStore,
    codec: RowCodec[RecordT],
    record_id: str,
    body: BaseModel,
) -> RecordT:
    """Merge the fields set in ``body`` over the stored record and write it back."""
    loaded = await load(store, codec, record_id)
    patch = body.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    merged = codec.merge(loaded.record, patch)
    return await write_update(db, store, codec, loaded, merged, changed_fields(patch))

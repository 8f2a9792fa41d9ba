"""Record ID allocation.

Two requests computing ``next_id`` from the same snapshot would issue the
same ID. Allocation therefore goes through a monotonic counter per
(store, sheet) kept in SQLite, and the candidate is checked against a
fresh read of the ID column right before the caller appends. The counter
only covers this process's database; the re-read covers other writers.
"""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.config import settings
from carfleet.errors import ConflictError
from carfleet.models.id_sequence import IdSequence
from carfleet.sheets.codec import to_text
from carfleet.sheets.config import SheetLayout
from carfleet.sheets.ids import id_number, next_id
from carfleet.sheets.ranges import id_column_range
from carfleet.sheets.store import RecordStore, is_blank

logger = logging.getLogger(__name__)


async def read_ids(store: RecordStore, layout: SheetLayout) -> list[str]:
    """All IDs in the sheet's ID column, in row order."""
    rows = await asyncio.to_thread(store.read_range, id_column_range(layout))
    return [to_text(row[0]) for row in rows if row and not is_blank(row[0])]


async def reserve_number(db: AsyncSession, key: str, floor: int) -> int:
    """Issue ``max(floor, last issued + 1)`` for ``key`` and persist it."""
    now = datetime.now(timezone.utc)
    stmt = sqlite_insert(IdSequence).values(key=key, last_value=floor, updated_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=[IdSequence.key],
        set_={
            "last_value": func.max(stmt.excluded.last_value, IdSequence.last_value + 1),
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(IdSequence.last_value)
    result = await db.execute(stmt)
    number = result.scalar_one()
    await db.commit()
    return number


async def allocate_id(db: AsyncSession, store: RecordStore, layout: SheetLayout) -> str:
    """Allocate a fresh ID for a row about to be appended to ``layout.sheet``.

    Raises:
        ConflictError: If every candidate was taken by a concurrent writer.
    """
    prefix = layout.id_prefix
    key = f"{store.key}:{layout.sheet}"
    ids = await read_ids(store, layout)

    for attempt in range(1, settings.ID_ALLOCATION_RETRIES + 1):
        floor = id_number(prefix, next_id(prefix, ids))
        number = await reserve_number(db, key, floor)
        candidate = f"{prefix}{number}"

        ids = await read_ids(store, layout)
        if candidate not in ids:
            return candidate
        logger.info(
            "ID %s already taken in %s (attempt %d/%d)",
            candidate, layout.sheet, attempt, settings.ID_ALLOCATION_RETRIES,
        )

    raise ConflictError(f"Could not allocate a unique {layout.sheet} ID, please retry")

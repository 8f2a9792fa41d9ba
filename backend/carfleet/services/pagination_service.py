"""Paged reads over one sheet.

A page is one bounded range read; the total comes from a second read of
the ID column. Both reads run concurrently in worker threads.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from carfleet.schemas.common import Page
from carfleet.sheets.codec import RecordT, RowCodec
from carfleet.sheets.ranges import clamp_limit, clamp_page, full_range, plan_page, total_pages
from carfleet.sheets.store import RecordStore, is_blank


def _has_id(codec: RowCodec, row: list) -> bool:
    return bool(row) and not is_blank(codec.row_id(row))


async def get_page(
    store: RecordStore,
    codec: RowCodec[RecordT],
    page: int,
    limit: int,
) -> Page[RecordT]:
    """Return one page of records plus pagination metadata.

    A page past the end comes back with empty ``data`` and the real totals.
    """
    plan = plan_page(codec.layout, page, limit)
    rows, id_rows = await asyncio.gather(
        asyncio.to_thread(store.read_range, plan.read_range),
        asyncio.to_thread(store.read_range, plan.count_range),
    )
    # Interior blank rows still occupy a position in the read range.
    total_items = len(id_rows)
    data = [codec.decode(row) for row in rows]
    return Page[codec.model].build(
        data=data,
        page=plan.page,
        limit=plan.limit,
        total_items=total_items,
        total_pages=total_pages(total_items, plan.limit),
    )


async def read_all(store: RecordStore, codec: RowCodec[RecordT]) -> list[RecordT]:
    """Decode every row of the sheet that carries an ID."""
    rows = await asyncio.to_thread(store.read_range, full_range(codec.layout))
    return [codec.decode(row) for row in rows if _has_id(codec, row)]


async def get_filtered_page(
    store: RecordStore,
    codec: RowCodec[RecordT],
    predicate: Callable[[RecordT], bool],
    page: int,
    limit: int,
) -> Page[RecordT]:
    """Filter the whole sheet in memory, then page the matches."""
    page = clamp_page(page)
    limit = clamp_limit(limit)
    matches = [record for record in await read_all(store, codec) if predicate(record)]
    start = (page - 1) * limit
    return Page[codec.model].build(
        data=matches[start:start + limit],
        page=page,
        limit=limit,
        total_items=len(matches),
        total_pages=total_pages(len(matches), limit),
    )

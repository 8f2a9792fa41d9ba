import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.models.write_log import WriteAction, WriteLog, WriteStatus

logger = logging.getLogger(__name__)


async def record_write(
    db: AsyncSession,
    store_key: str,
    sheet: str,
    action: WriteAction,
    record_id: str,
    row_number: int | None,
    error: str | None = None,
) -> WriteLog:
    """Record one store write. Committed right away so failed writes stay logged."""
    entry = WriteLog(
        store_key=store_key,
        sheet=sheet,
        action=action,
        record_id=record_id,
        row_number=row_number,
        status=WriteStatus.FAILED if error else WriteStatus.SUCCESS,
        error_message=error[:1000] if error else None,
    )
    db.add(entry)
    await db.commit()
    return entry


async def get_write_log(
    db: AsyncSession,
    sheet: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[WriteLog], int]:
    """Newest entries first. Returns (entries, total_count)."""
    query = select(WriteLog)
    count_query = select(func.count(WriteLog.id))
    if sheet:
        query = query.where(WriteLog.sheet == sheet)
        count_query = count_query.where(WriteLog.sheet == sheet)

    total_result = await db.execute(count_query)
    total = total_result.scalar()

    query = query.order_by(WriteLog.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total

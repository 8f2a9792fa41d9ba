from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.database import get_db
from carfleet.schemas.common import Page
from carfleet.schemas.write_log import WriteLogResponse
from carfleet.services import write_log_service
from carfleet.sheets.ranges import clamp_limit, clamp_page, total_pages

router = APIRouter(prefix="/write-log", tags=["write-log"])


@router.get("")
async def get_write_log(
    sheet: str | None = Query(None),
    page: int = Query(1),
    limit: int = Query(50),
    db: AsyncSession = Depends(get_db),
) -> Page[WriteLogResponse]:
    page = clamp_page(page)
    limit = clamp_limit(limit)
    entries, total = await write_log_service.get_write_log(db, sheet, page, limit)
    return Page[WriteLogResponse].build(
        data=[WriteLogResponse.model_validate(e) for e in entries],
        page=page,
        limit=limit,
        total_items=total,
        total_pages=total_pages(total, limit),
    )

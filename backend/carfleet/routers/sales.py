from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.config import settings
from carfleet.database import get_db
from carfleet.dependencies import get_store
from carfleet.schemas.common import Page
from carfleet.schemas.sale import Sale, SaleCreate, SaleUpdate
from carfleet.services import sale_service
from carfleet.sheets.store import RecordStore

router = APIRouter(prefix="/sales", tags=["sales"])


@router.get("")
async def get_sales(
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    store: RecordStore = Depends(get_store),
) -> Page[Sale]:
    return await sale_service.list_sales(store, page, limit)


@router.post("", status_code=201)
async def create_sale(
    body: SaleCreate,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_store),
) -> Sale:
    return await sale_service.create_sale(db, store, body)


@router.put("/{sale_id}")
async def update_sale(
    sale_id: str,
    body: SaleUpdate,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_store),
) -> Sale:
    return await sale_service.update_sale(db, store, sale_id, body)

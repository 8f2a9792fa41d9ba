from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.config import settings
from carfleet.database import get_db
from carfleet.dependencies import get_store
from carfleet.schemas.common import Page
from carfleet.schemas.repair import Repair, RepairCreate, RepairUpdate
from carfleet.services import repair_service
from carfleet.sheets.store import RecordStore

router = APIRouter(prefix="/repairs", tags=["repairs"])


@router.get("")
async def get_repairs(
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    car_id: str | None = Query(None, alias="carId"),
    store: RecordStore = Depends(get_store),
) -> Page[Repair]:
    return await repair_service.list_repairs(store, page, limit, car_id=car_id)


@router.post("", status_code=201)
async def create_repair(
    body: RepairCreate,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_store),
) -> Repair:
    return await repair_service.create_repair(db, store, body)


@router.put("/{repair_id}")
async def update_repair(
    repair_id: str,
    body: RepairUpdate,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_store),
) -> Repair:
    return await repair_service.update_repair(db, store, repair_id, body)

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.config import settings
from carfleet.database import get_db
from carfleet.dependencies import get_store
from carfleet.schemas.common import Page
from carfleet.schemas.rental import Rental, RentalCreate, RentalUpdate
from carfleet.services import rental_service
from carfleet.sheets.store import RecordStore

router = APIRouter(prefix="/rentals", tags=["rentals"])


@router.get("")
async def get_rentals(
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    store: RecordStore = Depends(get_store),
) -> Page[Rental]:
    return await rental_service.list_rentals(store, page, limit)


@router.post("", status_code=201)
async def create_rental(
    body: RentalCreate,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_store),
) -> Rental:
    return await rental_service.create_rental(db, store, body)


@router.put("/{rental_id}")
async def update_rental(
    rental_id: str,
    body: RentalUpdate,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_store),
) -> Rental:
    return await rental_service.update_rental(db, store, rental_id, body)

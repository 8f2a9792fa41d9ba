import logging

from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.errors import ConflictError
from carfleet.schemas.common import Page
from carfleet.schemas.sale import Sale, SaleCreate, SaleUpdate
from carfleet.services import car_service, pagination_service, row_service
from carfleet.sheets.codec import RowCodec
from carfleet.sheets.config import SALES, CarStatus
from carfleet.sheets.store import RecordStore

logger = logging.getLogger(__name__)

SALE_CODEC = RowCodec(SALES, Sale)


async def list_sales(store: RecordStore, page: int, limit: int) -> Page[Sale]:
    return await pagination_service.get_page(store, SALE_CODEC, page, limit)


async def ensure_car_can_be_sold(store: RecordStore, car_id: str) -> None:
    """Re-read the car and the sales sheet; a car is sold at most once.

    Raises:
        NotFoundError: If the car does not exist.
        ConflictError: If the car is already sold.
    """
    car = await car_service.get_car(store, car_id)
    if car.current_status == CarStatus.SOLD.value:
        logger.info("Rejected sale of %s: car is already sold", car_id)
        raise ConflictError(f"Car {car_id} is already sold")

    # The status formula may lag behind a sale written moments ago.
    sales = await pagination_service.read_all(store, SALE_CODEC)
    if any(sale.car_id == car_id for sale in sales):
        logger.info("Rejected sale of %s: a sale row already exists", car_id)
        raise ConflictError(f"Car {car_id} is already sold")


async def create_sale(db: AsyncSession, store: RecordStore, data: SaleCreate) -> Sale:
    """Record a sale. The car's status turns Sold through the sheet's formula."""

    async def precheck() -> None:
        await ensure_car_can_be_sold(store, data.car_id)

    return await row_service.create_record(
        db, store, SALE_CODEC, data.model_dump(mode="json"), precheck=precheck
    )


async def update_sale(
    db: AsyncSession,
    store: RecordStore,
    sale_id: str,
    data: SaleUpdate,
) -> Sale:
    return await row_service.update_record(db, store, SALE_CODEC, sale_id, data)

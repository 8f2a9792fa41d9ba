import datetime
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.errors import ConflictError, ValidationError
from carfleet.schemas.common import Page
from carfleet.schemas.rental import Rental, RentalCreate, RentalUpdate
from carfleet.services import car_service, pagination_service, row_service
from carfleet.sheets.codec import RowCodec, changed_fields
from carfleet.sheets.config import RENTALS, CarStatus, RentalStatus
from carfleet.sheets.store import RecordStore
from carfleet.utils.date_helpers import intervals_overlap, parse_date

logger = logging.getLogger(__name__)

RENTAL_CODEC = RowCodec(RENTALS, Rental)


def _check_dates(start: datetime.date | None, end: datetime.date | None) -> None:
    if start is None or end is None:
        missing = [
            name
            for name, value in (("startDate", start), ("returnDate", end))
            if value is None
        ]
        raise ValidationError("Rental dates are missing or invalid", fields=missing)
    if start > end:
        raise ValidationError(
            "Start date must be on or before the return date",
            fields=["startDate", "returnDate"],
        )


async def list_rentals(store: RecordStore, page: int, limit: int) -> Page[Rental]:
    return await pagination_service.get_page(store, RENTAL_CODEC, page, limit)


async def ensure_car_can_be_rented(
    store: RecordStore,
    car_id: str,
    start: datetime.date,
    end: datetime.date,
    exclude_id: str | None = None,
) -> None:
    """A car can be rented unless it is sold or already out over those dates.

    Overlap is inclusive: a rental returning on the day another starts
    conflicts with it.

    Raises:
        NotFoundError: If the car does not exist.
        ConflictError: If the car is sold or the dates overlap an active rental.
    """
    car = await car_service.get_car(store, car_id)
    if car.current_status == CarStatus.SOLD.value:
        logger.info("Rejected rental of %s: car is sold", car_id)
        raise ConflictError(f"Car {car_id} is sold and cannot be rented")

    rentals = await pagination_service.read_all(store, RENTAL_CODEC)
    for rental in rentals:
        if rental.car_id != car_id or rental.id == exclude_id:
            continue
        if rental.rental_status != RentalStatus.ACTIVE.value:
            continue
        other_start = parse_date(rental.start_date)
        other_end = parse_date(rental.return_date)
        if other_start is None or other_end is None:
            continue
        if intervals_overlap(start, end, other_start, other_end):
            logger.info("Rejected rental of %s: overlaps %s", car_id, rental.id)
            raise ConflictError(
                f"Car {car_id} is already rented from {rental.start_date} "
                f"to {rental.return_date} ({rental.id})"
            )


async def create_rental(db: AsyncSession, store: RecordStore, data: RentalCreate) -> Rental:
    _check_dates(data.start_date, data.return_date)

    async def precheck() -> None:
        await ensure_car_can_be_rented(store, data.car_id, data.start_date, data.return_date)

    return await row_service.create_record(
        db, store, RENTAL_CODEC, data.model_dump(mode="json"), precheck=precheck
    )


async def update_rental(
    db: AsyncSession,
    store: RecordStore,
    rental_id: str,
    data: RentalUpdate,
) -> Rental:
    """Merge the given fields; new dates are re-checked against other rentals."""
    loaded = await row_service.load(store, RENTAL_CODEC, rental_id)
    patch = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    merged = RENTAL_CODEC.merge(loaded.record, patch)

    if "start_date" in patch or "return_date" in patch:
        start = parse_date(merged.start_date)
        end = parse_date(merged.return_date)
        _check_dates(start, end)
        await ensure_car_can_be_rented(store, merged.car_id, start, end, exclude_id=rental_id)

    return await row_service.write_update(
        db, store, RENTAL_CODEC, loaded, merged, changed_fields(patch)
    )

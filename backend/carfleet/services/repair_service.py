from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.schemas.common import Page
from carfleet.schemas.repair import Repair, RepairCreate, RepairUpdate
from carfleet.services import car_service, pagination_service, row_service
from carfleet.sheets.codec import RowCodec, changed_fields
from carfleet.sheets.config import REPAIRS
from carfleet.sheets.store import RecordStore

REPAIR_CODEC = RowCodec(REPAIRS, Repair)


async def list_repairs(
    store: RecordStore,
    page: int,
    limit: int,
    car_id: str | None = None,
) -> Page[Repair]:
    """Page through repairs, optionally only those of one car."""
    if car_id:
        return await pagination_service.get_filtered_page(
            store, REPAIR_CODEC, lambda r: r.car_id == car_id, page, limit
        )
    return await pagination_service.get_page(store, REPAIR_CODEC, page, limit)


async def create_repair(db: AsyncSession, store: RecordStore, data: RepairCreate) -> Repair:
    async def car_exists() -> None:
        await car_service.get_car(store, data.car_id)

    return await row_service.create_record(
        db, store, REPAIR_CODEC, data.model_dump(mode="json"), precheck=car_exists
    )


async def update_repair(
    db: AsyncSession,
    store: RecordStore,
    repair_id: str,
    data: RepairUpdate,
) -> Repair:
    loaded = await row_service.load(store, REPAIR_CODEC, repair_id)
    patch = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    merged = REPAIR_CODEC.merge(loaded.record, patch)
    if merged.car_id != loaded.record.car_id:
        await car_service.get_car(store, merged.car_id)
    return await row_service.write_update(
        db, store, REPAIR_CODEC, loaded, merged, changed_fields(patch)
    )

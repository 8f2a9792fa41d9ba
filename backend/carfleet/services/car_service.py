import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from carfleet.config import settings
from carfleet.errors import FleetError, ValidationError
from carfleet.schemas.car import Car, CarCreate, CarUpdate
from carfleet.schemas.common import Page
from carfleet.services import pagination_service, row_service
from carfleet.services.file_storage import (
    Attachment,
    FileStorage,
    StorageFolders,
    validate_attachment,
)
from carfleet.sheets.codec import RowCodec, changed_fields
from carfleet.sheets.config import CARS, CarStatus
from carfleet.sheets.store import RecordStore

logger = logging.getLogger(__name__)

CAR_CODEC = RowCodec(CARS, Car)


def validate_investment_split(split: list[float]) -> None:
    """A split is optional; when given it has one share per partner summing to 1."""
    if not split:
        return
    partners = len(settings.PARTNER_NAMES)
    if len(split) != partners:
        raise ValidationError(
            f"Investment split must have {partners} shares, got {len(split)}",
            fields=["investmentSplit"],
        )
    if any(share < 0 for share in split):
        raise ValidationError(
            "Investment split shares cannot be negative",
            fields=["investmentSplit"],
        )
    if abs(sum(split) - 1.0) > settings.SPLIT_TOLERANCE:
        raise ValidationError(
            f"Investment split must sum to 1.0 (or 100%), got {sum(split):g}",
            fields=["investmentSplit"],
        )


async def list_cars(store: RecordStore, page: int, limit: int) -> Page[Car]:
    return await pagination_service.get_page(store, CAR_CODEC, page, limit)


async def list_available_cars(store: RecordStore) -> list[Car]:
    """Every car not yet sold (cars on rent included)."""
    cars = await pagination_service.read_all(store, CAR_CODEC)
    return [car for car in cars if car.current_status != CarStatus.SOLD.value]


async def get_car(store: RecordStore, car_id: str) -> Car:
    return await row_service.get_record(store, CAR_CODEC, car_id)


async def _upload_attachments(
    file_storage: FileStorage,
    folders: StorageFolders,
    attachments: list[Attachment],
) -> dict[str, str]:
    """Upload each attachment to its folder. Returns {field: public_url}."""
    for attachment in attachments:
        validate_attachment(attachment, settings.MAX_UPLOAD_BYTES)

    urls: dict[str, str] = {}
    for attachment in attachments:
        folder_id = folders.photos if attachment.field == "photo" else folders.documents
        urls[attachment.field] = await asyncio.to_thread(
            file_storage.upload, attachment, folder_id
        )
    return urls


async def _discard_files(file_storage: FileStorage, urls: list[str]) -> None:
    """Delete stored files. Failures are logged, the files are left orphaned."""
    for url in urls:
        if not url:
            continue
        try:
            await asyncio.to_thread(file_storage.delete, url)
        except FleetError as e:
            logger.warning("Could not delete %s: %s", url, e.message)


async def create_car(
    db: AsyncSession,
    store: RecordStore,
    data: CarCreate,
    attachments: list[Attachment],
    file_storage: FileStorage,
    folders: StorageFolders,
) -> Car:
    """Upload attachments, then append the car with its derived columns blank."""
    validate_investment_split(data.investment_split)
    urls = await _upload_attachments(file_storage, folders, attachments)

    fields = data.model_dump(mode="json", exclude_none=True)
    fields.update(urls)
    try:
        return await row_service.create_record(db, store, CAR_CODEC, fields)
    except FleetError:
        await _discard_files(file_storage, list(urls.values()))
        raise


async def update_car(
    db: AsyncSession,
    store: RecordStore,
    car_id: str,
    data: CarUpdate,
    attachments: list[Attachment],
    file_storage: FileStorage,
    folders: StorageFolders,
) -> Car:
    """Merge the given fields over the stored car.

    A new document or photo replaces the old one, which is deleted from
    file storage once the row is written.
    """
    loaded = await row_service.load(store, CAR_CODEC, car_id)
    patch = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    merged = CAR_CODEC.merge(loaded.record, patch)
    if "investment_split" in patch:
        validate_investment_split(merged.investment_split)

    urls = await _upload_attachments(file_storage, folders, attachments)
    merged = merged.model_copy(update=urls)
    try:
        updated = await row_service.write_update(
            db, store, CAR_CODEC, loaded, merged, changed_fields(patch) | set(urls)
        )
    except FleetError:
        await _discard_files(file_storage, list(urls.values()))
        raise

    replaced = [getattr(loaded.record, field) for field in urls]
    await _discard_files(file_storage, replaced)
    return updated

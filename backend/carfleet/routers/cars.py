from typing import Any

import pydantic
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from carfleet.config import settings
from carfleet.database import get_db
from carfleet.dependencies import get_file_storage, get_folders, get_store
from carfleet.errors import ValidationError, fields_from_errors
from carfleet.schemas.car import Car, CarCreate, CarUpdate
from carfleet.schemas.common import Page
from carfleet.services import car_service
from carfleet.services.file_storage import Attachment, FileStorage, StorageFolders
from carfleet.sheets.store import RecordStore

router = APIRouter(prefix="/cars", tags=["cars"])

ATTACHMENT_FIELDS = ("documents", "photo")


async def _read_payload(request: Request) -> tuple[dict[str, Any], list[Attachment]]:
    """Read a car body sent as JSON or as a multipart form with attachments."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        data: dict[str, Any] = {}
        attachments: list[Attachment] = []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key in ATTACHMENT_FIELDS and value.filename:
                    attachments.append(
                        Attachment(
                            field=key,
                            filename=value.filename,
                            content_type=value.content_type or "",
                            data=await value.read(),
                        )
                    )
            elif value != "":
                data[key] = value
        return data, attachments

    try:
        body = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be JSON or multipart form data") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body, []


def _parse(model: type[pydantic.BaseModel], data: dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        fields = fields_from_errors(e.errors())
        raise ValidationError(
            f"Missing or invalid fields: {', '.join(fields)}", fields=fields
        ) from e


@router.get("")
async def get_cars(
    page: int = Query(1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE),
    store: RecordStore = Depends(get_store),
) -> Page[Car]:
    return await car_service.list_cars(store, page, limit)


@router.get("/available")
async def get_available_cars(
    store: RecordStore = Depends(get_store),
) -> list[Car]:
    return await car_service.list_available_cars(store)


@router.get("/{car_id}")
async def get_car(
    car_id: str,
    store: RecordStore = Depends(get_store),
) -> Car:
    return await car_service.get_car(store, car_id)


@router.post("", status_code=201)
async def create_car(
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_store),
    file_storage: FileStorage = Depends(get_file_storage),
    folders: StorageFolders = Depends(get_folders),
) -> Car:
    data, attachments = await _read_payload(request)
    body = _parse(CarCreate, data)
    return await car_service.create_car(db, store, body, attachments, file_storage, folders)


@router.put("/{car_id}")
async def update_car(
    car_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_store),
    file_storage: FileStorage = Depends(get_file_storage),
    folders: StorageFolders = Depends(get_folders),
) -> Car:
    data, attachments = await _read_payload(request)
    body = _parse(CarUpdate, data)
    return await car_service.update_car(
        db, store, car_id, body, attachments, file_storage, folders
    )

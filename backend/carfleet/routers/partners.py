from fastapi import APIRouter, Depends

from carfleet.dependencies import get_store
from carfleet.schemas.partner import Partner
from carfleet.services import partner_service
from carfleet.sheets.store import RecordStore

router = APIRouter(prefix="/partners", tags=["partners"])


@router.get("")
async def get_partners(
    store: RecordStore = Depends(get_store),
) -> list[Partner]:
    return await partner_service.list_partners(store)

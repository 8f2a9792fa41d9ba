from fastapi import APIRouter, Depends

from carfleet.dependencies import get_store
from carfleet.schemas.dashboard import Dashboard, RecentEntries
from carfleet.services import dashboard_service
from carfleet.sheets.store import RecordStore

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def get_dashboard(
    store: RecordStore = Depends(get_store),
) -> Dashboard:
    return await dashboard_service.get_dashboard(store)


@router.get("/recent-entries")
async def get_recent_entries(
    store: RecordStore = Depends(get_store),
) -> RecentEntries:
    return await dashboard_service.get_recent_entries(store)

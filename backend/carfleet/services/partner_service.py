import asyncio
import logging

from carfleet.schemas.partner import Partner
from carfleet.services import pagination_service
from carfleet.sheets.codec import RowCodec
from carfleet.sheets.config import PARTNERS
from carfleet.sheets.store import RecordStore

logger = logging.getLogger(__name__)

PARTNER_CODEC = RowCodec(PARTNERS, Partner)


async def list_partners(store: RecordStore) -> list[Partner]:
    """Partners in sheet order; the order matches the investment split shares."""
    return await pagination_service.read_all(store, PARTNER_CODEC)


async def seed_partners(store: RecordStore, names: list[str]) -> int:
    """Create the fixed partner set if the Partners sheet is empty."""
    existing = await list_partners(store)
    if existing:
        return 0
    for position, name in enumerate(names, 1):
        row = PARTNER_CODEC.encode(Partner(id=f"{PARTNERS.id_prefix}{position}", name=name))
        await asyncio.to_thread(store.append_row, PARTNERS, row)
    logger.info("Seeded %d partners", len(names))
    return len(names)

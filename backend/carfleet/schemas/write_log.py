from datetime import datetime

from carfleet.models.write_log import WriteAction, WriteStatus
from carfleet.schemas.common import CamelModel


class WriteLogResponse(CamelModel):
    id: int
    store_key: str
    sheet: str
    action: WriteAction
    record_id: str
    row_number: int | None
    status: WriteStatus
    error_message: str | None
    created_at: datetime

    model_config = {**CamelModel.model_config, "from_attributes": True}

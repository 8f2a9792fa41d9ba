import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from carfleet.models.base import Base


class WriteAction(str, enum.Enum):
    APPEND = "append"
    UPDATE = "update"


class WriteStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class WriteLog(Base):
    __tablename__ = "write_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_key: Mapped[str] = mapped_column(String(500), nullable=False)
    sheet: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[WriteAction] = mapped_column(Enum(WriteAction), nullable=False)
    record_id: Mapped[str] = mapped_column(String(50), nullable=False)
    row_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[WriteStatus] = mapped_column(Enum(WriteStatus), nullable=False)
    error_message: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

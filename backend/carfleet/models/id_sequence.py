from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from carfleet.models.base import Base


class IdSequence(Base):
    """Highest ID number issued per (store, sheet), e.g. key ``sheets:abc:Cars``."""

    __tablename__ = "id_sequences"

    key: Mapped[str] = mapped_column(String(500), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

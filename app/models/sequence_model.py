from datetime import datetime

from sqlalchemy import TIMESTAMP, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class IdentifierSequence(Base):
    """
    Per-scope counter behind the daily business identifiers.

    ``scope`` is the identifier prefix for one day, e.g. ``APT20241201``;
    ``last_value`` is the last sequence number handed out for it.
    """

    __tablename__ = "identifier_sequences"

    scope: Mapped[str] = mapped_column(String(32), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

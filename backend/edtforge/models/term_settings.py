from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from edtforge.db.base import Base


class TermSettings(Base):
    __tablename__ = "term_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    days: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    slots: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    coupled_slots: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    room_pools: Mapped[dict[str, dict[str, str]]] = mapped_column(JSON, nullable=False, default=dict)
    term: Mapped[str] = mapped_column(String(10), nullable=False, default="autumn")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

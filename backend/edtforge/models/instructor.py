import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from edtforge.db.base import Base


class Instructor(Base):
    __tablename__ = "instructors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), unique=True, index=True, nullable=False)
    wishes: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    supplementary: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    carried_over_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

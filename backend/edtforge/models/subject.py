import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from edtforge.db.base import Base


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), unique=True, index=True, nullable=False)
    curriculum: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    sections: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    tutorial_groups: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lab_groups: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lab_instructor_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # Credited hours per session kind, e.g. {"Lecture": 48, "Tutorial": 32}.
    hours: Mapped[dict[str, float]] = mapped_column(JSON, nullable=False, default=dict)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

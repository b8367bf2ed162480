from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Float, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from edtforge.db.base import Base
from edtforge.services.entities import SessionKind


class ScheduledSession(Base):
    __tablename__ = "scheduled_sessions"

    # Ids are handed out by the schedule roster, not by the database.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    subject: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    kind: Mapped[SessionKind] = mapped_column(SAEnum(SessionKind, name="session_kind"), nullable=False)
    curriculum: Mapped[str] = mapped_column(String(200), nullable=False)
    section: Mapped[str] = mapped_column(String(50), nullable=False)
    group_name: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    student_key: Mapped[str] = mapped_column(String(300), index=True, nullable=False)
    day: Mapped[str] = mapped_column(String(20), nullable=False)
    slot: Mapped[str] = mapped_column(String(5), nullable=False)
    room: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    instructors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    credited_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    continuation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

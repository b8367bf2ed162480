from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from edtforge.api.deps import get_db
from edtforge.models.scheduled_session import ScheduledSession
from edtforge.schemas.session import ScheduledSessionOut
from edtforge.services.storage import delete_scheduled_session

router = APIRouter()


@router.get("/", response_model=list[ScheduledSessionOut])
def list_sessions(
    subject: str | None = None,
    day: str | None = None,
    db: Session = Depends(get_db),
) -> list[ScheduledSessionOut]:
    query = select(ScheduledSession).order_by(ScheduledSession.id)
    if subject:
        query = query.where(ScheduledSession.subject == subject)
    if day:
        query = query.where(ScheduledSession.day == day)
    return list(db.execute(query).scalars())


@router.delete("/{session_id}")
def delete_session(session_id: int, db: Session = Depends(get_db)) -> dict:
    removed = delete_scheduled_session(db, session_id)
    db.commit()
    return {"success": True, "deleted": removed}

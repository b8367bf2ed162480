from pydantic import BaseModel

from edtforge.services.entities import SessionKind


class ScheduledSessionOut(BaseModel):
    id: int
    subject: str
    kind: SessionKind
    curriculum: str
    section: str
    group_name: str
    student_key: str
    day: str
    slot: str
    room: str
    instructors: list[str]
    credited_hours: float
    continuation: bool

    model_config = {"from_attributes": True}

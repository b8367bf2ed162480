from pydantic import BaseModel
from typing import Literal, List

class ConflictDetail(BaseModel):
    id: str
    conflict_type: Literal[
        "room_conflict",
        "instructor_conflict",
        "student_group_conflict",
        "section_conflict",
        "room_type",
    ]
    description: str
    severity: Literal["hard", "soft"]
    day: str
    slot: str
    affected_sessions: List[int]  # Session ids involved; 0 for a hypothetical candidate

class ResolutionAction(BaseModel):
    action_type: Literal["move_slot", "change_room", "change_instructor"]
    description: str
    target_session_id: int
    parameters: dict

class ConflictReport(BaseModel):
    conflicts: List[ConflictDetail]
    suggested_resolutions: List[ResolutionAction]

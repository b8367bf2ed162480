from __future__ import annotations

from pydantic import BaseModel, Field

from edtforge.schemas.session import ScheduledSessionOut


class GenerateRequest(BaseModel):
    assign_instructors: bool = True
    assign_rooms: bool = True
    respect_preferences: bool = True
    avoid_conflicts: bool = True
    # Restrict the run to these subjects; all subjects when omitted.
    subjects: list[str] | None = Field(default=None, max_length=500)


class GenerationStatsOut(BaseModel):
    total: int
    created: int
    failed: int
    skipped: int


class GenerateResponse(BaseModel):
    stats: GenerationStatsOut
    subjects: dict[str, GenerationStatsOut]
    warnings: list[str]
    created_sessions: list[ScheduledSessionOut]
    unassigned_instructors: int
    unassigned_rooms: int
    runtime_ms: int

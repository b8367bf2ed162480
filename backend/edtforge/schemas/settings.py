from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from edtforge.services.entities import SessionKind
from edtforge.services.time_grid import DEFAULT_COUPLED_SLOTS, DEFAULT_DAYS, DEFAULT_SLOTS, normalize_slot
from edtforge.services.workload import Term


class TimeGridIn(BaseModel):
    days: list[str] = Field(default_factory=lambda: list(DEFAULT_DAYS), min_length=1, max_length=7)
    slots: list[str] = Field(default_factory=lambda: list(DEFAULT_SLOTS), min_length=1, max_length=20)
    coupled_slots: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_COUPLED_SLOTS))

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, value: list[str]) -> list[str]:
        return [normalize_slot(item) for item in value]

    @field_validator("coupled_slots")
    @classmethod
    def validate_coupled_slots(cls, value: dict[str, str]) -> dict[str, str]:
        return {normalize_slot(first): normalize_slot(second) for first, second in value.items()}


class TimeGridOut(BaseModel):
    days: list[str]
    slots: list[str]
    coupled_slots: dict[str, str]


class RoomPoolsIn(BaseModel):
    # curriculum -> kind -> preferred room name
    pools: dict[str, dict[SessionKind, str]] = Field(default_factory=dict)


class RoomPoolsOut(RoomPoolsIn):
    pass


class TermIn(BaseModel):
    term: Term


class TermOut(TermIn):
    pass

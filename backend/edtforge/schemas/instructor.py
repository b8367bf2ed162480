from pydantic import BaseModel, Field, field_validator

from edtforge.services.entities import SessionKind


class WishIn(BaseModel):
    subject: str = Field(min_length=1, max_length=200)
    rank: int = Field(ge=1, le=3)
    # An explicit 0 for a kind means the instructor refuses that kind.
    hours: dict[SessionKind, float] = Field(default_factory=dict)


class SupplementaryIn(BaseModel):
    label: str = Field(min_length=1, max_length=200)
    hours: float = Field(ge=0)


class InstructorBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    wishes: list[WishIn] = Field(default_factory=list, max_length=3)
    supplementary: list[SupplementaryIn] = Field(default_factory=list, max_length=50)
    carried_over_hours: float = Field(default=0.0, ge=0)

    @field_validator("wishes")
    @classmethod
    def validate_unique_ranks(cls, value: list[WishIn]) -> list[WishIn]:
        ranks = [item.rank for item in value]
        if len(set(ranks)) != len(ranks):
            raise ValueError("Wish ranks must be unique")
        return value


class InstructorCreate(InstructorBase):
    pass


class InstructorUpdate(BaseModel):
    wishes: list[WishIn] | None = Field(default=None, max_length=3)
    supplementary: list[SupplementaryIn] | None = Field(default=None, max_length=50)
    carried_over_hours: float | None = Field(default=None, ge=0)


class InstructorOut(InstructorBase):
    id: str

    model_config = {"from_attributes": True}


class InstructorWorkloadOut(BaseModel):
    name: str
    teaching_hours: float
    supplementary_hours: float
    total_hours: float
    display_hours: int


class WorkloadReportOut(BaseModel):
    term: str
    reference_workload: float
    tolerance_ceiling: float
    instructors: list[InstructorWorkloadOut]

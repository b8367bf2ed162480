from pydantic import BaseModel, Field, field_validator

from edtforge.services.entities import SessionKind


class SubjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    curriculum: str = Field(min_length=1, max_length=200)
    sections: int = Field(default=1, ge=0, le=26)
    tutorial_groups: int = Field(default=0, ge=0, le=50)
    lab_groups: int = Field(default=0, ge=0, le=50)
    lab_instructor_count: int = Field(default=1, ge=1, le=10)
    hours: dict[SessionKind, float] = Field(default_factory=dict)

    @field_validator("name", "curriculum")
    @classmethod
    def strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Value cannot be blank")
        return stripped

    @field_validator("hours")
    @classmethod
    def validate_hours(cls, value: dict[SessionKind, float]) -> dict[SessionKind, float]:
        for kind, hours in value.items():
            if hours < 0:
                raise ValueError(f"{kind.value} hours cannot be negative")
        return value


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    curriculum: str | None = Field(default=None, min_length=1, max_length=200)
    sections: int | None = Field(default=None, ge=0, le=26)
    tutorial_groups: int | None = Field(default=None, ge=0, le=50)
    lab_groups: int | None = Field(default=None, ge=0, le=50)
    lab_instructor_count: int | None = Field(default=None, ge=1, le=10)
    hours: dict[SessionKind, float] | None = None


class SubjectOut(SubjectBase):
    id: str

    model_config = {"from_attributes": True}

from pydantic import BaseModel, Field

from edtforge.services.entities import RoomType


class RoomBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: RoomType = RoomType.standard


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    type: RoomType | None = None


class RoomOut(RoomBase):
    id: str

    model_config = {"from_attributes": True}

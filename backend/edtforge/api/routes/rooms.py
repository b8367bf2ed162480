from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from edtforge.api.deps import get_db
from edtforge.models.room import Room
from edtforge.schemas.room import RoomCreate, RoomOut, RoomUpdate

router = APIRouter()


def _get_room_or_404(db: Session, name: str) -> Room:
    room = db.execute(select(Room).where(Room.name == name)).scalar_one_or_none()
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@router.get("/", response_model=list[RoomOut])
def list_rooms(db: Session = Depends(get_db)) -> list[RoomOut]:
    return list(db.execute(select(Room).order_by(Room.name)).scalars())


@router.post("/", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(payload: RoomCreate, db: Session = Depends(get_db)) -> RoomOut:
    existing = db.execute(select(Room).where(Room.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room name already exists")
    room = Room(**payload.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@router.put("/{name}", response_model=RoomOut)
def update_room(name: str, payload: RoomUpdate, db: Session = Depends(get_db)) -> RoomOut:
    room = _get_room_or_404(db, name)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(room, key, value)
    db.commit()
    db.refresh(room)
    return room


@router.delete("/{name}")
def delete_room(name: str, db: Session = Depends(get_db)) -> dict:
    room = _get_room_or_404(db, name)
    db.delete(room)
    db.commit()
    return {"success": True}

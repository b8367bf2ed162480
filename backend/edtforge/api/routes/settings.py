from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from edtforge.api.deps import get_db
from edtforge.schemas.settings import RoomPoolsIn, RoomPoolsOut, TermIn, TermOut, TimeGridIn, TimeGridOut
from edtforge.services.storage import get_or_create_term_settings, load_room_pools, load_term, load_time_grid
from edtforge.services.time_grid import TimeGrid

router = APIRouter()


def _time_grid_out(grid: TimeGrid) -> TimeGridOut:
    return TimeGridOut(days=list(grid.days), slots=list(grid.slots), coupled_slots=dict(grid.coupled_slots))


@router.get("/settings/time-grid", response_model=TimeGridOut)
def get_time_grid(db: Session = Depends(get_db)) -> TimeGridOut:
    return _time_grid_out(load_time_grid(db))


@router.put("/settings/time-grid", response_model=TimeGridOut)
def update_time_grid(payload: TimeGridIn, db: Session = Depends(get_db)) -> TimeGridOut:
    # Raises SchedulerError (400) for an inconsistent grid before anything is stored.
    grid = TimeGrid.build(payload.days, payload.slots, payload.coupled_slots)
    record = get_or_create_term_settings(db)
    record.days = list(grid.days)
    record.slots = list(grid.slots)
    record.coupled_slots = dict(grid.coupled_slots)
    db.commit()
    return _time_grid_out(grid)


@router.get("/settings/room-pools", response_model=RoomPoolsOut)
def get_room_pools(db: Session = Depends(get_db)) -> RoomPoolsOut:
    return RoomPoolsOut(pools=load_room_pools(db))


@router.put("/settings/room-pools", response_model=RoomPoolsOut)
def update_room_pools(payload: RoomPoolsIn, db: Session = Depends(get_db)) -> RoomPoolsOut:
    record = get_or_create_term_settings(db)
    record.room_pools = payload.model_dump(mode="json")["pools"]
    db.commit()
    return RoomPoolsOut(pools=load_room_pools(db))


@router.get("/settings/term", response_model=TermOut)
def get_term(db: Session = Depends(get_db)) -> TermOut:
    return TermOut(term=load_term(db))


@router.put("/settings/term", response_model=TermOut)
def update_term(payload: TermIn, db: Session = Depends(get_db)) -> TermOut:
    record = get_or_create_term_settings(db)
    record.term = payload.term.value
    db.commit()
    return TermOut(term=payload.term)

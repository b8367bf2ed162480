from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from edtforge.api.deps import get_db
from edtforge.schemas.conflict import ConflictReport
from edtforge.services.conflict_service import detect_roster_conflicts, generate_resolutions
from edtforge.services.storage import load_roster, load_rooms

router = APIRouter()


@router.get("/", response_model=ConflictReport)
def detect_conflicts(db: Session = Depends(get_db)) -> ConflictReport:
    rooms = {room.name: room for room in load_rooms(db)}
    conflicts = detect_roster_conflicts(load_roster(db), rooms)

    report = ConflictReport(conflicts=conflicts, suggested_resolutions=[])
    for conflict in report.conflicts:
        report.suggested_resolutions.extend(generate_resolutions(conflict))
    return report

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from edtforge.api.deps import get_db
from edtforge.core.config import get_settings
from edtforge.models.instructor import Instructor
from edtforge.schemas.instructor import (
    InstructorCreate,
    InstructorOut,
    InstructorUpdate,
    InstructorWorkloadOut,
    WorkloadReportOut,
)
from edtforge.services.storage import load_instructors, load_roster, load_subjects, load_term
from edtforge.services.workload import (
    Term,
    current_workloads,
    display_hours,
    reference_workload,
    teaching_hours,
)

router = APIRouter()


def _get_instructor_or_404(db: Session, name: str) -> Instructor:
    instructor = db.execute(select(Instructor).where(Instructor.name == name)).scalar_one_or_none()
    if instructor is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Instructor not found")
    return instructor


@router.get("/", response_model=list[InstructorOut])
def list_instructors(db: Session = Depends(get_db)) -> list[InstructorOut]:
    return list(db.execute(select(Instructor).order_by(Instructor.name)).scalars())


@router.get("/workloads", response_model=WorkloadReportOut)
def list_workloads(db: Session = Depends(get_db)) -> WorkloadReportOut:
    instructors = load_instructors(db)
    roster = list(load_roster(db))
    term = load_term(db)
    totals = current_workloads(instructors, roster, term)
    rows: list[InstructorWorkloadOut] = []
    for instructor in instructors:
        teaching = teaching_hours(instructor.name, roster)
        extra = instructor.supplementary_hours() if term is Term.autumn else instructor.carried_over_hours
        rows.append(
            InstructorWorkloadOut(
                name=instructor.name,
                teaching_hours=teaching,
                supplementary_hours=extra,
                total_hours=totals[instructor.name],
                display_hours=display_hours(totals[instructor.name]),
            )
        )
    fixed_credits = sum(item.supplementary_hours() for item in instructors)
    reference = reference_workload(load_subjects(db), len(instructors), fixed_credits=fixed_credits)
    return WorkloadReportOut(
        term=term.value,
        reference_workload=reference,
        tolerance_ceiling=reference * get_settings().workload_tolerance_factor,
        instructors=rows,
    )


@router.post("/", response_model=InstructorOut, status_code=status.HTTP_201_CREATED)
def create_instructor(payload: InstructorCreate, db: Session = Depends(get_db)) -> InstructorOut:
    existing = db.execute(select(Instructor).where(Instructor.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Instructor name already exists")
    instructor = Instructor(**payload.model_dump(mode="json"))
    db.add(instructor)
    db.commit()
    db.refresh(instructor)
    return instructor


@router.put("/{name}", response_model=InstructorOut)
def update_instructor(name: str, payload: InstructorUpdate, db: Session = Depends(get_db)) -> InstructorOut:
    instructor = _get_instructor_or_404(db, name)
    for key, value in payload.model_dump(mode="json", exclude_unset=True).items():
        setattr(instructor, key, value)
    db.commit()
    db.refresh(instructor)
    return instructor


@router.delete("/{name}")
def delete_instructor(name: str, db: Session = Depends(get_db)) -> dict:
    instructor = _get_instructor_or_404(db, name)
    db.delete(instructor)
    db.commit()
    return {"success": True}

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from edtforge.api.deps import get_db
from edtforge.models.subject import Subject
from edtforge.schemas.subject import SubjectCreate, SubjectOut, SubjectUpdate
from edtforge.services.storage import list_subject_records, next_subject_position

router = APIRouter()


def _get_subject_or_404(db: Session, name: str) -> Subject:
    subject = db.execute(select(Subject).where(Subject.name == name)).scalar_one_or_none()
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    return subject


@router.get("/", response_model=list[SubjectOut])
def list_subjects(db: Session = Depends(get_db)) -> list[SubjectOut]:
    return list_subject_records(db)


@router.post("/", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(payload: SubjectCreate, db: Session = Depends(get_db)) -> SubjectOut:
    existing = db.execute(select(Subject).where(Subject.name == payload.name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject name already exists")
    data = payload.model_dump(mode="json")
    subject = Subject(**data, position=next_subject_position(db))
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


@router.put("/{name}", response_model=SubjectOut)
def update_subject(name: str, payload: SubjectUpdate, db: Session = Depends(get_db)) -> SubjectOut:
    subject = _get_subject_or_404(db, name)
    for key, value in payload.model_dump(mode="json", exclude_unset=True).items():
        setattr(subject, key, value)
    db.commit()
    db.refresh(subject)
    return subject


@router.delete("/{name}")
def delete_subject(name: str, db: Session = Depends(get_db)) -> dict:
    subject = _get_subject_or_404(db, name)
    db.delete(subject)
    db.commit()
    return {"success": True}

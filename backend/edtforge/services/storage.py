"""Conversion between database records and scheduling domain objects."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session as DbSession

from edtforge.core.exceptions import ConfigurationError, ResourceNotFoundError
from edtforge.models.instructor import Instructor as InstructorRecord
from edtforge.models.room import Room as RoomRecord
from edtforge.models.scheduled_session import ScheduledSession
from edtforge.models.subject import Subject as SubjectRecord
from edtforge.models.term_settings import TermSettings
from edtforge.services.entities import (
    Instructor,
    InstructorWish,
    Room,
    Session,
    SessionKind,
    Subject,
    SupplementaryCredit,
    make_session,
)
from edtforge.services.room_policy import RoomPools
from edtforge.services.roster import ScheduleRoster
from edtforge.services.scheduling_engine import SchedulingInputs
from edtforge.services.time_grid import DEFAULT_COUPLED_SLOTS, DEFAULT_DAYS, DEFAULT_SLOTS, TimeGrid
from edtforge.services.workload import Term

logger = logging.getLogger(__name__)


def _kind_hours(raw: dict | None) -> dict:
    hours: dict = {}
    for key, value in (raw or {}).items():
        try:
            hours[SessionKind(key)] = float(value)
        except ValueError:
            # Left as-is so input validation can report it.
            hours[key] = value
    return hours


def subject_from_record(record: SubjectRecord) -> Subject:
    return Subject(
        name=record.name,
        curriculum=record.curriculum,
        sections=record.sections,
        tutorial_groups=record.tutorial_groups,
        lab_groups=record.lab_groups,
        lab_instructor_count=record.lab_instructor_count,
        hours=_kind_hours(record.hours),
    )


def room_from_record(record: RoomRecord) -> Room:
    return Room(name=record.name, type=record.type)


def instructor_from_record(record: InstructorRecord) -> Instructor:
    wishes = tuple(
        InstructorWish(subject=item["subject"], rank=int(item["rank"]), hours=_kind_hours(item.get("hours")))
        for item in record.wishes or []
    )
    supplementary = tuple(
        SupplementaryCredit(label=item.get("label", ""), hours=float(item.get("hours", 0)))
        for item in record.supplementary or []
    )
    return Instructor(
        name=record.name,
        wishes=wishes,
        supplementary=supplementary,
        carried_over_hours=record.carried_over_hours or 0.0,
    )


def session_from_record(record: ScheduledSession) -> Session:
    extra = {"continuation": record.continuation} if record.kind is SessionKind.lab else {}
    return make_session(
        record.kind,
        subject=record.subject,
        curriculum=record.curriculum,
        section=record.section,
        group=record.group_name,
        credited_hours=record.credited_hours,
        id=record.id,
        day=record.day,
        slot=record.slot,
        room=record.room,
        instructors=list(record.instructors or []),
        **extra,
    )


def session_to_record(session: Session) -> ScheduledSession:
    return ScheduledSession(
        id=session.id,
        subject=session.subject,
        kind=session.kind,
        curriculum=session.curriculum,
        section=session.section,
        group_name=session.group,
        student_key=session.student_key,
        day=session.day,
        slot=session.slot,
        room=session.room,
        instructors=list(session.instructors),
        credited_hours=session.credited_hours,
        continuation=session.is_continuation,
    )


def get_term_settings(db: DbSession) -> TermSettings | None:
    return db.execute(select(TermSettings).where(TermSettings.id == 1)).scalar_one_or_none()


def get_or_create_term_settings(db: DbSession) -> TermSettings:
    record = get_term_settings(db)
    if record is None:
        record = TermSettings(
            id=1,
            days=list(DEFAULT_DAYS),
            slots=list(DEFAULT_SLOTS),
            coupled_slots=dict(DEFAULT_COUPLED_SLOTS),
            room_pools={},
            term=Term.autumn.value,
        )
        db.add(record)
        db.flush()
    return record


def load_time_grid(db: DbSession) -> TimeGrid:
    record = get_term_settings(db)
    if record is None:
        return TimeGrid.default()
    return TimeGrid.build(record.days, record.slots, record.coupled_slots)


def load_room_pools(db: DbSession) -> RoomPools:
    record = get_term_settings(db)
    if record is None:
        return {}
    pools: RoomPools = {}
    for curriculum, by_kind in (record.room_pools or {}).items():
        try:
            pools[curriculum] = {SessionKind(kind): room for kind, room in by_kind.items()}
        except ValueError as exc:
            raise ConfigurationError(f"Invalid room pool for {curriculum}: {exc}") from exc
    return pools


def load_term(db: DbSession) -> Term:
    record = get_term_settings(db)
    if record is None:
        return Term.autumn
    return Term(record.term)


def list_subject_records(db: DbSession) -> list[SubjectRecord]:
    return list(db.execute(select(SubjectRecord).order_by(SubjectRecord.position, SubjectRecord.name)).scalars())


def next_subject_position(db: DbSession) -> int:
    highest = db.execute(select(func.max(SubjectRecord.position))).scalar_one_or_none()
    return (highest or 0) + 1


def load_subjects(db: DbSession) -> list[Subject]:
    return [subject_from_record(item) for item in list_subject_records(db)]


def load_rooms(db: DbSession) -> list[Room]:
    return [room_from_record(item) for item in db.execute(select(RoomRecord).order_by(RoomRecord.name)).scalars()]


def load_instructors(db: DbSession) -> list[Instructor]:
    records = db.execute(select(InstructorRecord).order_by(InstructorRecord.name)).scalars()
    return [instructor_from_record(item) for item in records]


def load_roster(db: DbSession) -> ScheduleRoster:
    records = db.execute(select(ScheduledSession).order_by(ScheduledSession.id)).scalars()
    return ScheduleRoster(session_from_record(item) for item in records)


def load_scheduling_inputs(db: DbSession) -> SchedulingInputs:
    return SchedulingInputs(
        subjects=load_subjects(db),
        rooms=load_rooms(db),
        instructors=load_instructors(db),
        time_grid=load_time_grid(db),
        room_pools=load_room_pools(db),
        term=load_term(db),
    )


def persist_sessions(db: DbSession, sessions: Iterable[Session]) -> int:
    count = 0
    for session in sessions:
        db.add(session_to_record(session))
        count += 1
    db.flush()
    logger.info("Persisted %d scheduled session(s)", count)
    return count


def delete_scheduled_session(db: DbSession, session_id: int) -> list[int]:
    """Delete a session; a coupled lab is removed with both of its halves."""
    record = db.get(ScheduledSession, session_id)
    if record is None:
        raise ResourceNotFoundError("Session", str(session_id))

    removed = [record.id]
    if record.kind is SessionKind.lab:
        grid = load_time_grid(db)
        if record.continuation:
            partner_slots = [slot for slot, coupled in grid.coupled_slots.items() if coupled == record.slot]
            continuation = False
        else:
            coupled = grid.coupled_slot(record.slot)
            partner_slots = [coupled] if coupled else []
            continuation = True
        if partner_slots:
            partner_ids = db.execute(
                select(ScheduledSession.id).where(
                    ScheduledSession.kind == SessionKind.lab,
                    ScheduledSession.subject == record.subject,
                    ScheduledSession.student_key == record.student_key,
                    ScheduledSession.day == record.day,
                    ScheduledSession.slot.in_(partner_slots),
                    ScheduledSession.continuation == continuation,
                )
            ).scalars()
            removed.extend(partner_ids)

    db.execute(delete(ScheduledSession).where(ScheduledSession.id.in_(removed)))
    logger.info("Deleted scheduled session(s) %s", removed)
    return removed

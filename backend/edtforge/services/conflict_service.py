"""Hard-constraint checks over a schedule roster.

Every function here is read-only: the roster is only iterated, and the
candidate session may be hypothetical (not yet committed). Two sessions
clash only when they sit on the same (day, slot); a coupled lab is stored
as two sessions, one per slot, so no adjacency inference is needed.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import List

from edtforge.schemas.conflict import ConflictDetail, ResolutionAction
from edtforge.services.entities import Room, Session, SessionKind


def _same_cell(candidate: Session, other: Session) -> bool:
    if candidate.id is not None and other.id == candidate.id:
        return False
    return bool(candidate.day) and other.day == candidate.day and other.slot == candidate.slot


def _section_overlap(first: Session, second: Session) -> bool:
    # A section at its lecture cannot also be split into its tutorial/lab groups.
    if first.curriculum != second.curriculum or first.section != second.section:
        return False
    lecture_first = first.kind is SessionKind.lecture
    lecture_second = second.kind is SessionKind.lecture
    return lecture_first != lecture_second


def _clash_types(candidate: Session, other: Session) -> list[str]:
    clashes: list[str] = []
    if candidate.room and other.room == candidate.room:
        clashes.append("room_conflict")
    if set(candidate.instructors) & set(other.instructors):
        clashes.append("instructor_conflict")
    if other.student_key == candidate.student_key:
        clashes.append("student_group_conflict")
    elif _section_overlap(candidate, other):
        clashes.append("section_conflict")
    return clashes


def has_conflict(candidate: Session, roster: Iterable[Session]) -> bool:
    for other in roster:
        if _same_cell(candidate, other) and _clash_types(candidate, other):
            return True
    return False


def _describe(conflict_type: str, candidate: Session, other: Session) -> str:
    where = f"{candidate.day} {candidate.slot}"
    if conflict_type == "room_conflict":
        return f"Room {candidate.room} is already used at {where} by {other.subject} ({other.display_group})"
    if conflict_type == "instructor_conflict":
        shared = ", ".join(sorted(set(candidate.instructors) & set(other.instructors)))
        return f"Instructor {shared} already teaches {other.subject} at {where}"
    if conflict_type == "student_group_conflict":
        return f"Group {candidate.student_key} already attends {other.subject} at {where}"
    return (
        f"{other.kind.value} of {other.subject} is already scheduled for {candidate.section} "
        f"at {where}; a {candidate.kind.value} cannot run in parallel"
    )


def find_conflicts(candidate: Session, roster: Iterable[Session]) -> List[ConflictDetail]:
    conflicts: List[ConflictDetail] = []
    candidate_id = candidate.id or 0
    for other in roster:
        if not _same_cell(candidate, other):
            continue
        for conflict_type in _clash_types(candidate, other):
            conflicts.append(ConflictDetail(
                id=f"{conflict_type}-{candidate_id}-{other.id}",
                conflict_type=conflict_type,
                description=_describe(conflict_type, candidate, other),
                severity="hard",
                day=candidate.day,
                slot=candidate.slot,
                affected_sessions=[candidate_id, other.id or 0],
            ))
    return conflicts


def detect_roster_conflicts(roster: Iterable[Session], rooms: dict[str, Room] | None = None) -> List[ConflictDetail]:
    conflicts: List[ConflictDetail] = []
    by_cell: dict[tuple[str, str], list[Session]] = defaultdict(list)
    for session in roster:
        if session.is_placed:
            by_cell[(session.day, session.slot)].append(session)

    for cell_sessions in by_cell.values():
        n = len(cell_sessions)
        for i in range(n):
            first = cell_sessions[i]
            room = (rooms or {}).get(first.room)
            if room is not None and not room.is_compatible_with(first.kind):
                conflicts.append(ConflictDetail(
                    id=f"room_type-{first.id}",
                    conflict_type="room_type",
                    description=f"{first.kind.value} of {first.subject} is not compatible with room {room.name}",
                    severity="soft",
                    day=first.day,
                    slot=first.slot,
                    affected_sessions=[first.id or 0],
                ))
            for j in range(i + 1, n):
                second = cell_sessions[j]
                for conflict_type in _clash_types(first, second):
                    conflicts.append(ConflictDetail(
                        id=f"{conflict_type}-{first.id}-{second.id}",
                        conflict_type=conflict_type,
                        description=_describe(conflict_type, first, second),
                        severity="hard",
                        day=first.day,
                        slot=first.slot,
                        affected_sessions=[first.id or 0, second.id or 0],
                    ))
    return conflicts


def generate_resolutions(conflict: ConflictDetail) -> List[ResolutionAction]:
    resolutions: List[ResolutionAction] = []
    target = conflict.affected_sessions[-1]
    if conflict.conflict_type in ("room_conflict", "room_type"):
        resolutions.append(ResolutionAction(
            action_type="change_room",
            description="Move the session to a free compatible room",
            target_session_id=target,
            parameters={"day": conflict.day, "slot": conflict.slot},
        ))
    if conflict.conflict_type == "instructor_conflict":
        resolutions.append(ResolutionAction(
            action_type="change_instructor",
            description="Assign another available instructor",
            target_session_id=target,
            parameters={},
        ))
    if conflict.conflict_type in ("instructor_conflict", "student_group_conflict", "section_conflict"):
        resolutions.append(ResolutionAction(
            action_type="move_slot",
            description="Move the session to a different time slot",
            target_session_id=target,
            parameters={},
        ))
    return resolutions


def is_instructor_available(name: str, day: str, slots: Sequence[str], roster: Iterable[Session]) -> bool:
    if not name:
        return True
    for other in roster:
        if other.day == day and other.slot in slots and name in other.instructors:
            return False
    return True


def is_room_occupied(room: str, day: str, slot: str, roster: Iterable[Session]) -> bool:
    if not room or not day or not slot:
        return False
    return any(other.room == room and other.occupies(day, slot) for other in roster)


def is_room_compatible(kind: SessionKind, room: Room) -> bool:
    return room.is_compatible_with(kind)


def free_rooms(
    day: str,
    slots: Sequence[str],
    kind: SessionKind,
    rooms: Iterable[Room],
    roster: Sequence[Session],
) -> list[str]:
    """Compatible rooms free on every slot in ``slots``, sorted by name."""
    if not day or not slots:
        return []
    occupied = {other.room for other in roster if other.room and other.day == day and other.slot in slots}
    names = [room.name for room in rooms if is_room_compatible(kind, room) and room.name not in occupied]
    return sorted(names)

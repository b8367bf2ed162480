from __future__ import annotations

from collections.abc import Iterable, Sequence

from edtforge.services.conflict_service import is_instructor_available
from edtforge.services.entities import Instructor, Session, SessionKind
from edtforge.services.time_grid import TimeGrid

NO_WISH_RANK = 4


def occupied_slots(session: Session, time_grid: TimeGrid) -> tuple[str, ...]:
    """Slots the session holds on its day; a lab also holds its coupled slot."""
    if session.kind is SessionKind.lab and not session.is_continuation:
        coupled = time_grid.coupled_slot(session.slot)
        if coupled:
            return (session.slot, coupled)
    return (session.slot,)


def select_candidates(
    instructors: Iterable[Instructor],
    session: Session,
    count: int,
    current_workloads: dict[str, float],
    reference_workload: float,
    tolerance: float,
    roster: Sequence[Session],
    time_grid: TimeGrid,
    *,
    respect_preferences: bool = True,
) -> list[str]:
    if count <= 0:
        return []

    slots = occupied_slots(session, time_grid)
    ceiling = reference_workload * tolerance

    def rank_key(instructor: Instructor) -> tuple[int, float, str]:
        rank = instructor.wish_rank(session.subject) if respect_preferences else 0
        return (
            rank or NO_WISH_RANK,
            current_workloads.get(instructor.name, 0.0),
            instructor.name,
        )

    under_ceiling: list[Instructor] = []
    over_ceiling: list[Instructor] = []
    for instructor in instructors:
        if instructor.name in session.instructors:
            continue
        if not is_instructor_available(instructor.name, session.day, slots, roster):
            continue
        if respect_preferences and instructor.refuses(session.subject, session.kind):
            continue
        if current_workloads.get(instructor.name, 0.0) >= ceiling:
            over_ceiling.append(instructor)
        else:
            under_ceiling.append(instructor)

    ranked = sorted(under_ceiling, key=rank_key)
    if len(ranked) < count:
        ranked.extend(sorted(over_ceiling, key=rank_key))
    return [instructor.name for instructor in ranked[:count]]

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from edtforge.services.entities import Instructor, Session, SessionKind, Subject, SupplementaryCredit


class Term(str, Enum):
    autumn = "autumn"
    spring = "spring"


@dataclass(frozen=True)
class WorkloadBreakdown:
    teaching: float
    supplementary: float

    @property
    def total(self) -> float:
        return self.teaching + self.supplementary


def display_hours(value: float) -> int:
    # Half up, matching how volumes are shown to staff; never used for balancing.
    return math.floor(value + 0.5)


def session_credit(session: Session, instructor: str) -> float:
    if session.credited_hours <= 0 or instructor not in session.instructors:
        return 0.0
    if session.kind is SessionKind.lab:
        # Co-teaching a lab does not split the credit.
        return session.credited_hours
    return session.credited_hours / len(session.instructors)


def teaching_hours(instructor: str, roster: Iterable[Session]) -> float:
    return sum(session_credit(session, instructor) for session in roster)


def credited_hours(
    instructor: str,
    roster: Iterable[Session],
    supplementary_credits: Iterable[SupplementaryCredit] | float = (),
) -> float:
    if isinstance(supplementary_credits, (int, float)):
        extra = float(supplementary_credits)
    else:
        extra = sum(item.hours for item in supplementary_credits)
    return teaching_hours(instructor, roster) + extra


def workload_breakdown(instructor: Instructor, roster: Iterable[Session]) -> WorkloadBreakdown:
    return WorkloadBreakdown(
        teaching=teaching_hours(instructor.name, roster),
        supplementary=instructor.supplementary_hours(),
    )


def current_workloads(
    instructors: Iterable[Instructor],
    roster: Iterable[Session],
    term: Term = Term.autumn,
) -> dict[str, float]:
    """Workload per instructor used for balancing decisions.

    Supplementary credits count towards the autumn term only; in spring the
    hours carried over from autumn are added instead.
    """
    sessions = list(roster)
    workloads: dict[str, float] = {}
    for instructor in instructors:
        value = teaching_hours(instructor.name, sessions)
        if term is Term.autumn:
            value += instructor.supplementary_hours()
        else:
            value += instructor.carried_over_hours
        workloads[instructor.name] = value
    return workloads


def total_declared_volume(subjects: Iterable[Subject]) -> float:
    return sum(subject.declared_volume() for subject in subjects)


def reference_workload(subjects: Iterable[Subject], instructor_count: int, fixed_credits: float = 0.0) -> float:
    if instructor_count <= 0:
        return 0.0
    return (total_declared_volume(subjects) + fixed_credits) / instructor_count

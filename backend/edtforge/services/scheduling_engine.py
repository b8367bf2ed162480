from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
import logging
from time import perf_counter
from typing import TypeVar

from edtforge.core.exceptions import SchedulerError
from edtforge.services.conflict_service import free_rooms, has_conflict
from edtforge.services.entities import (
    Instructor,
    LabSession,
    Room,
    Session,
    SessionKind,
    Subject,
    group_label,
    make_session,
    section_label,
)
from edtforge.services.instructor_selector import occupied_slots, select_candidates
from edtforge.services.room_policy import RoomPools, assign_room
from edtforge.services.roster import ScheduleRoster
from edtforge.services.time_grid import TimeGrid
from edtforge.services.workload import Term, current_workloads, reference_workload

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ITERATIONS_PER_SEARCH = 100
DEFAULT_TOLERANCE_FACTOR = 1.5


@dataclass(frozen=True)
class SchedulingOptions:
    assign_instructors: bool = True
    assign_rooms: bool = True
    respect_preferences: bool = True
    avoid_conflicts: bool = True


@dataclass
class GenerationStats:
    total: int = 0
    created: int = 0
    failed: int = 0
    skipped: int = 0

    def merge(self, other: "GenerationStats") -> None:
        self.total += other.total
        self.created += other.created
        self.failed += other.failed
        self.skipped += other.skipped


@dataclass(frozen=True)
class PlacementSlot:
    day: str
    slot: str
    coupled_slot: str | None = None


@dataclass(frozen=True)
class PairedPlacement:
    day: str
    first_slot: str
    second_slot: str


@dataclass
class SchedulingInputs:
    subjects: list[Subject]
    rooms: list[Room]
    instructors: list[Instructor]
    time_grid: TimeGrid
    room_pools: RoomPools = field(default_factory=dict)
    term: Term = Term.autumn


@dataclass
class GenerationResult:
    stats: GenerationStats
    subjects: dict[str, GenerationStats]
    warnings: list[str]
    created_sessions: list[Session]
    unassigned_instructors: int = 0
    unassigned_rooms: int = 0
    runtime_ms: int = 0


def validate_scheduling_inputs(inputs: SchedulingInputs) -> None:
    """Reject malformed catalogs before anything is committed."""
    problems: list[str] = []
    seen_subjects: set[str] = set()
    for subject in inputs.subjects:
        name = subject.name.strip()
        if not name:
            problems.append("Subject name cannot be empty")
            continue
        if name in seen_subjects:
            problems.append(f"Duplicate subject {name}")
        seen_subjects.add(name)
        for attribute in ("sections", "tutorial_groups", "lab_groups"):
            if getattr(subject, attribute) < 0:
                problems.append(f"Subject {name} has a negative {attribute.replace('_', ' ')}")
        if subject.sections > 26:
            problems.append(f"Subject {name} has more than 26 sections")
        if subject.lab_instructor_count < 1:
            problems.append(f"Subject {name} needs at least one instructor per lab")
        for kind, hours in subject.hours.items():
            if not isinstance(kind, SessionKind):
                problems.append(f"Subject {name} declares hours for unknown kind {kind!r}")
            elif hours < 0:
                problems.append(f"Subject {name} has negative {kind.value} hours")

    room_names = [room.name for room in inputs.rooms]
    if len(set(room_names)) != len(room_names):
        problems.append("Room names must be unique")
    instructor_names = [item.name for item in inputs.instructors]
    if len(set(instructor_names)) != len(instructor_names):
        problems.append("Instructor names must be unique")
    for instructor in inputs.instructors:
        if len(instructor.wishes) > 3:
            problems.append(f"Instructor {instructor.name} declares more than three wishes")
        if any(wish.rank not in (1, 2, 3) for wish in instructor.wishes):
            problems.append(f"Instructor {instructor.name} has a wish rank outside 1-3")
        if any(item.hours < 0 for item in instructor.supplementary):
            problems.append(f"Instructor {instructor.name} has negative supplementary hours")

    if not inputs.time_grid.days or not inputs.time_grid.slots:
        problems.append("No days or slots configured for timetable generation")

    if problems:
        raise SchedulerError(
            message="Invalid scheduling input",
            details={"errors": problems},
        )


class SchedulingEngine:
    """Greedy first-fit placement of every missing session of a term.

    Subjects are processed in catalog order and, within a subject, lectures
    before tutorials before labs. Each placement is committed to the roster
    immediately so that later searches see it.
    """

    def __init__(
        self,
        *,
        inputs: SchedulingInputs,
        roster: ScheduleRoster,
        options: SchedulingOptions | None = None,
        max_iterations_per_search: int = DEFAULT_MAX_ITERATIONS_PER_SEARCH,
        max_run_iterations: int | None = None,
        tolerance: float = DEFAULT_TOLERANCE_FACTOR,
    ) -> None:
        validate_scheduling_inputs(inputs)
        self.inputs = inputs
        self.roster = roster
        self.options = options or SchedulingOptions()
        self.time_grid = inputs.time_grid
        self.max_iterations_per_search = max_iterations_per_search
        self.max_run_iterations = max_run_iterations
        self.tolerance = tolerance

        self.subjects = {subject.name: subject for subject in inputs.subjects}
        fixed_credits = sum(item.supplementary_hours() for item in inputs.instructors)
        self.reference_workload = reference_workload(
            inputs.subjects, len(inputs.instructors), fixed_credits=fixed_credits
        )

        self._reset_run_state()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, subject_names: Iterable[str] | None = None) -> GenerationResult:
        started = perf_counter()
        self._reset_run_state(self._resolve_scope(subject_names))
        logger.info("Starting automatic generation for %d subject(s)", len(self._scope))

        stats = GenerationStats()
        for subject in self._scope:
            self.generate_subject(subject)
        for subject in self._scope:
            stats.merge(self._stats_for(subject.name))

        runtime_ms = int((perf_counter() - started) * 1000)
        logger.info(
            "Generation finished: %d/%d sessions created, %d skipped, %d failed in %d ms",
            stats.created,
            stats.total,
            stats.skipped,
            stats.failed,
            runtime_ms,
        )
        return GenerationResult(
            stats=stats,
            subjects={subject.name: self._stats_for(subject.name) for subject in self._scope},
            warnings=list(self.warnings),
            created_sessions=list(self.created_sessions),
            unassigned_instructors=self.unassigned_instructors,
            unassigned_rooms=self.unassigned_rooms,
            runtime_ms=runtime_ms,
        )

    def generate_subject(self, subject: Subject) -> GenerationStats:
        stats = self._stats_for(subject.name)
        self._generate_lectures(subject, stats)
        self._generate_tutorials(subject, stats)
        self._generate_labs(subject, stats)
        return stats

    def _reset_run_state(self, scope: list[Subject] | None = None) -> None:
        self.run_iterations = 0
        self.warnings: list[str] = []
        self.created_sessions: list[Session] = []
        self.unassigned_instructors = 0
        self.unassigned_rooms = 0
        self._subject_stats: dict[str, GenerationStats] = {}
        self._scope: list[Subject] = scope or []
        # Units placed earlier in this run (by a binôme) are already counted.
        self._created_units: set[tuple[str, SessionKind, str]] = set()

    def _resolve_scope(self, subject_names: Iterable[str] | None) -> list[Subject]:
        if subject_names is None:
            return list(self.inputs.subjects)
        wanted = list(subject_names)
        unknown = [name for name in wanted if name not in self.subjects]
        if unknown:
            raise SchedulerError(
                message="Unknown subject(s) requested for generation",
                details={"subjects": unknown},
            )
        return [subject for subject in self.inputs.subjects if subject.name in set(wanted)]

    def _stats_for(self, subject_name: str) -> GenerationStats:
        return self._subject_stats.setdefault(subject_name, GenerationStats())

    # ------------------------------------------------------------------
    # Per-kind generation
    # ------------------------------------------------------------------

    def _template(self, subject: Subject, kind: SessionKind, section: str, group: str = "") -> Session:
        return make_session(
            kind,
            subject=subject.name,
            curriculum=subject.curriculum,
            section=section,
            group=group,
            credited_hours=subject.hours_for(kind),
        )

    def _unit_key(self, session: Session) -> tuple[str, SessionKind, str]:
        return (session.subject, session.kind, session.student_key)

    def _open_unit(self, session: Session, stats: GenerationStats) -> bool:
        """Count a required unit; False when it needs no placement."""
        if self._unit_key(session) in self._created_units:
            return False
        stats.total += 1
        if self.roster.has_requirement(session.subject, session.kind, session.student_key):
            stats.skipped += 1
            return False
        return True

    def _fail(self, session: Session, stats: GenerationStats, reason: str = "No slot found") -> None:
        stats.failed += 1
        message = f"{reason} for {session.label()}"
        self.warnings.append(message)
        logger.warning(message)

    def _generate_lectures(self, subject: Subject, stats: GenerationStats) -> None:
        for section_index in range(subject.sections):
            template = self._template(subject, SessionKind.lecture, section_label(section_index))
            if not self._open_unit(template, stats):
                continue
            slot = self.find_available_slot(template)
            if slot is None:
                self._fail(template, stats)
                continue
            self._place(template, slot.day, slot.slot)
            stats.created += 1

    def _generate_tutorials(self, subject: Subject, stats: GenerationStats) -> None:
        group_count = subject.group_count(SessionKind.tutorial)
        for section_index in range(subject.sections):
            section = section_label(section_index)
            number = 1
            while number <= group_count:
                template = self._template(subject, SessionKind.tutorial, section, group_label(number))
                if not self._open_unit(template, stats):
                    number += 1
                    continue

                # A trailing odd group has no partner group and is placed alone.
                if number % 2 == 1 and number < group_count:
                    if self._try_paired_tutorials(subject, section_index, number, stats):
                        number += 2
                        continue

                slot = self.find_available_slot(template)
                if slot is None:
                    self._fail(template, stats)
                else:
                    self._place(template, slot.day, slot.slot)
                    stats.created += 1
                number += 1

    def _generate_labs(self, subject: Subject, stats: GenerationStats) -> None:
        for section_index in range(subject.sections):
            section = section_label(section_index)
            for number in range(1, subject.group_count(SessionKind.lab) + 1):
                template = self._template(subject, SessionKind.lab, section, group_label(number))
                if not self._open_unit(template, stats):
                    continue
                slot = self.find_available_coupled_slot(template)
                if slot is None:
                    self._fail(template, stats, reason="No coupled slot found")
                    continue
                self._place(
                    template,
                    slot.day,
                    slot.slot,
                    instructor_count=subject.lab_instructor_count,
                    continuation_slot=slot.coupled_slot,
                )
                stats.created += 1

    # ------------------------------------------------------------------
    # Paired tutorials (binôme)
    # ------------------------------------------------------------------

    def _partner_candidates(self, subject: Subject, section_index: int, number: int) -> list[Subject]:
        return [
            other
            for other in (self._scope or self.inputs.subjects)
            if other.curriculum == subject.curriculum
            and other.name != subject.name
            and other.tutorial_groups >= number + 1
            and other.sections > section_index
        ]

    def _requirement_taken(self, subject: Subject, section: str, group: str) -> bool:
        template = self._template(subject, SessionKind.tutorial, section, group)
        return (
            self._unit_key(template) in self._created_units
            or self.roster.has_requirement(subject.name, SessionKind.tutorial, template.student_key)
        )

    def _try_paired_tutorials(
        self,
        subject: Subject,
        section_index: int,
        number: int,
        stats: GenerationStats,
    ) -> bool:
        section = section_label(section_index)
        group_a, group_b = group_label(number), group_label(number + 1)
        if self._requirement_taken(subject, section, group_b):
            return False

        for partner in self._partner_candidates(subject, section_index, number):
            if self._requirement_taken(partner, section, group_a) or self._requirement_taken(
                partner, section, group_b
            ):
                continue
            placement = self.find_paired_slots(subject, partner, section, group_a, group_b)
            if placement is None:
                continue

            self._commit_paired_tutorials(subject, partner, section, group_a, group_b, placement)
            # The current subject's first group was counted by the caller.
            stats.total += 1
            stats.created += 2
            partner_stats = self._stats_for(partner.name)
            partner_stats.total += 2
            partner_stats.created += 2
            logger.info(
                "Paired tutorials created: %s/%s - %s/%s on %s %s-%s",
                group_a,
                group_b,
                subject.name,
                partner.name,
                placement.day,
                placement.first_slot,
                placement.second_slot,
            )
            return True
        return False

    def _paired_layout(
        self,
        subject: Subject,
        partner: Subject,
        section: str,
        group_a: str,
        group_b: str,
        placement: PairedPlacement,
    ) -> list[Session]:
        layout = (
            (subject, group_a, placement.first_slot),
            (partner, group_b, placement.first_slot),
            (partner, group_a, placement.second_slot),
            (subject, group_b, placement.second_slot),
        )
        return [
            self._template(item_subject, SessionKind.tutorial, section, group).placed_at(placement.day, slot)
            for item_subject, group, slot in layout
        ]

    def find_paired_slots(
        self,
        subject: Subject,
        partner: Subject,
        section: str,
        group_a: str,
        group_b: str,
    ) -> PairedPlacement | None:
        candidates = (
            PairedPlacement(day=day, first_slot=first, second_slot=second)
            for day in self.time_grid.days
            for first, second in self.time_grid.consecutive_slot_pairs()
        )
        for placement in self._budgeted(candidates):
            sessions = self._paired_layout(subject, partner, section, group_a, group_b, placement)
            if not self.options.avoid_conflicts:
                return placement
            if not any(has_conflict(session, self.roster) for session in sessions):
                return placement
        return None

    def _commit_paired_tutorials(
        self,
        subject: Subject,
        partner: Subject,
        section: str,
        group_a: str,
        group_b: str,
        placement: PairedPlacement,
    ) -> None:
        for session in self._paired_layout(subject, partner, section, group_a, group_b, placement):
            self._place(session, session.day, session.slot)

    # ------------------------------------------------------------------
    # Slot search
    # ------------------------------------------------------------------

    def _budgeted(self, candidates: Iterable[T]) -> Iterator[T]:
        """Yield candidates until the per-search or whole-run ceiling is spent."""
        used = 0
        for candidate in candidates:
            if used >= self.max_iterations_per_search:
                return
            if self.max_run_iterations is not None and self.run_iterations >= self.max_run_iterations:
                return
            used += 1
            self.run_iterations += 1
            yield candidate

    def _parallel_lecture_exists(self, subject: str, day: str, slot: str) -> bool:
        return any(
            item.kind is SessionKind.lecture and item.subject == subject and item.occupies(day, slot)
            for item in self.roster
        )

    def _parallel_lab_exists(self, subject: str, day: str, slots: tuple[str, str]) -> bool:
        return any(
            item.kind is SessionKind.lab and item.subject == subject and item.day == day and item.slot in slots
            for item in self.roster
        )

    def find_available_slot(self, template: Session) -> PlacementSlot | None:
        for day, slot in self._budgeted(self.time_grid.cells()):
            if template.kind is SessionKind.lecture and self._parallel_lecture_exists(template.subject, day, slot):
                continue
            candidate = template.placed_at(day, slot)
            if not self.options.avoid_conflicts or not has_conflict(candidate, self.roster):
                return PlacementSlot(day=day, slot=slot)
        return None

    def find_available_coupled_slot(self, template: LabSession) -> PlacementSlot | None:
        for day, slot in self._budgeted(self.time_grid.cells()):
            coupled = self.time_grid.coupled_slot(slot)
            if not coupled:
                continue
            if self._parallel_lab_exists(template.subject, day, (slot, coupled)):
                continue
            first = template.placed_at(day, slot)
            if self.options.avoid_conflicts and has_conflict(first, self.roster):
                continue
            second = first.continuation_at(coupled)
            if self.options.avoid_conflicts and has_conflict(second, self.roster):
                continue
            return PlacementSlot(day=day, slot=slot, coupled_slot=coupled)
        return None

    # ------------------------------------------------------------------
    # Staffing, rooms and commit
    # ------------------------------------------------------------------

    def select_instructors(self, session: Session, count: int) -> list[str]:
        workloads = current_workloads(self.inputs.instructors, self.roster, self.inputs.term)
        return select_candidates(
            self.inputs.instructors,
            session,
            count,
            workloads,
            self.reference_workload,
            self.tolerance,
            self.roster.sessions,
            self.time_grid,
            respect_preferences=self.options.respect_preferences,
        )

    def _resolve_staff_and_room(self, session: Session, instructor_count: int) -> None:
        if self.options.assign_instructors:
            names = self.select_instructors(session, instructor_count)
            session.set_instructors(names)
            if len(names) < instructor_count:
                self.unassigned_instructors += 1
                message = (
                    f"Only {len(names)} of {instructor_count} instructor(s) assigned for {session.label()}"
                    if names
                    else f"No instructor available for {session.label()}"
                )
                self.warnings.append(message)
                logger.warning(message)

        if self.options.assign_rooms:
            available = free_rooms(
                session.day,
                occupied_slots(session, self.time_grid),
                session.kind,
                self.inputs.rooms,
                self.roster.sessions,
            )
            session.set_room(assign_room(session, available, self.inputs.room_pools))
            if not session.room:
                self.unassigned_rooms += 1
                message = f"No free room for {session.label()}"
                self.warnings.append(message)
                logger.warning(message)

    def _commit(self, session: Session) -> Session:
        committed = self.roster.commit(session, enforce_conflicts=self.options.avoid_conflicts)
        self.created_sessions.append(committed)
        return committed

    def _place(
        self,
        template: Session,
        day: str,
        slot: str,
        *,
        instructor_count: int = 1,
        continuation_slot: str | None = None,
    ) -> Session:
        session = template.placed_at(day, slot)
        self._resolve_staff_and_room(session, instructor_count)
        committed = self._commit(session)
        if continuation_slot is not None and isinstance(committed, LabSession):
            self._commit(committed.continuation_at(continuation_slot))
        self._created_units.add(self._unit_key(committed))
        return committed

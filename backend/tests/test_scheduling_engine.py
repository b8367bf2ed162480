from collections import Counter

import pytest

from edtforge.core.exceptions import SchedulerError
from edtforge.services.conflict_service import detect_roster_conflicts
from edtforge.services.entities import Instructor, InstructorWish, SessionKind
from edtforge.services.roster import ScheduleRoster
from edtforge.services.scheduling_engine import SchedulingEngine, SchedulingInputs, SchedulingOptions
from edtforge.services.time_grid import DEFAULT_DAYS, TimeGrid
from edtforge.services.workload import Term


def _hard_conflicts(roster, rooms=()):
    room_map = {room.name: room for room in rooms}
    return [item for item in detect_roster_conflicts(roster, room_map) if item.severity == "hard"]


def test_two_lectures_on_empty_grid_land_in_distinct_cells(subject_factory, engine_factory):
    grid = TimeGrid.build(DEFAULT_DAYS, ["08:30", "10:15", "14:00", "15:45"])
    engine = engine_factory([subject_factory("Algebra", sections=2)], grid)

    result = engine.run()

    assert result.stats.created == 2
    assert result.stats.failed == 0
    cells = {(item.day, item.slot) for item in engine.roster}
    assert len(cells) == 2
    assert [item.section for item in engine.roster] == ["Section A", "Section B"]


def test_single_cell_grid_fails_the_second_section(subject_factory, engine_factory):
    grid = TimeGrid.build(["Monday"], ["08:30"])
    engine = engine_factory([subject_factory("Algebra", sections=2)], grid)

    result = engine.run()

    assert result.stats.created == 1
    assert result.stats.failed == 1
    assert "No slot found for Algebra (Lecture) - Section B" in result.warnings


def test_no_two_lectures_of_a_subject_share_a_cell(subject_factory, engine_factory):
    grid = TimeGrid.build(["Monday"], ["08:30", "10:15", "14:00"])
    engine = engine_factory([subject_factory("Algebra", sections=3)], grid)

    engine.run()

    cells = Counter((item.day, item.slot) for item in engine.roster if item.kind is SessionKind.lecture)
    assert max(cells.values()) == 1
    assert len(cells) == 3


def test_generated_roster_has_no_double_booking(subject_factory, engine_factory, rooms, instructors):
    subjects = [
        subject_factory("Algebra", sections=2, tutorial_groups=2, lab_groups=2),
        subject_factory("Physics", sections=2, tutorial_groups=2, lab_groups=1, lab_instructor_count=2),
        subject_factory("Biology", curriculum="L2 Bio", tutorial_groups=1, lab_groups=1),
    ]
    engine = engine_factory(subjects, TimeGrid.default(), rooms, instructors)

    result = engine.run()

    assert result.stats.created > 0
    assert _hard_conflicts(engine.roster, rooms) == []
    assert detect_roster_conflicts(engine.roster, {room.name: room for room in rooms}) == []


def test_second_run_creates_nothing(subject_factory, engine_factory, rooms, instructors):
    subjects = [
        subject_factory("Algebra", tutorial_groups=2, lab_groups=1),
        subject_factory("Physics", tutorial_groups=2),
    ]
    roster = ScheduleRoster()
    first = engine_factory(subjects, TimeGrid.default(), rooms, instructors, roster=roster).run()
    assert first.stats.failed == 0
    assert first.stats.total == sum(item.required_unit_count() for item in subjects)
    size = len(roster)

    second = engine_factory(subjects, TimeGrid.default(), rooms, instructors, roster=roster).run()

    assert len(roster) == size
    assert second.stats.created == 0
    assert second.stats.failed == 0
    assert second.stats.skipped == second.stats.total == first.stats.total
    assert second.created_sessions == []


def test_coupled_lab_halves_share_day_staff_and_room(subject_factory, engine_factory, small_grid, rooms, instructors):
    subject = subject_factory("Algebra", lab_groups=1, lab_instructor_count=2)
    engine = engine_factory([subject], small_grid, rooms, instructors)

    result = engine.run()

    labs = [item for item in engine.roster if item.kind is SessionKind.lab]
    assert len(labs) == 2
    first, second = labs
    assert not first.is_continuation and second.is_continuation
    assert first.day == second.day
    assert small_grid.coupled_slot(first.slot) == second.slot
    assert first.instructors == second.instructors
    assert len(first.instructors) == 2
    assert first.room == second.room and first.room.startswith("LAB")
    assert first.credited_hours == 36.0
    assert second.credited_hours == 0
    # The continuation half is not a separate requirement.
    assert result.stats.total == 2
    assert result.stats.created == 2


def test_lab_fails_without_a_coupled_slot(subject_factory, engine_factory):
    grid = TimeGrid.build(["Monday"], ["08:30", "10:15"])
    options = SchedulingOptions(assign_instructors=False, assign_rooms=False)
    engine = engine_factory([subject_factory("Algebra", lab_groups=1)], grid, options=options)

    result = engine.run()

    assert result.stats.created == 1
    assert result.stats.failed == 1
    assert result.warnings == ["No coupled slot found for Algebra (Lab) - Section A - G1"]


def test_paired_tutorials_swap_subjects_across_two_slots(subject_factory, engine_factory, small_grid, rooms):
    subjects = [
        subject_factory("Algebra", tutorial_groups=2),
        subject_factory("Physics", tutorial_groups=2),
    ]
    engine = engine_factory(subjects, small_grid, rooms)

    result = engine.run()

    tutorials = {(item.subject, item.group): item for item in engine.roster if item.kind is SessionKind.tutorial}
    assert len(tutorials) == 4
    a_alg, b_alg = tutorials[("Algebra", "G1")], tutorials[("Algebra", "G2")]
    a_phy, b_phy = tutorials[("Physics", "G1")], tutorials[("Physics", "G2")]

    assert len({a_alg.day, b_alg.day, a_phy.day, b_phy.day}) == 1
    assert a_alg.slot == b_phy.slot
    assert a_phy.slot == b_alg.slot
    assert small_grid.slot_index(b_alg.slot) == small_grid.slot_index(a_alg.slot) + 1

    assert result.subjects["Algebra"].total == 3
    assert result.subjects["Algebra"].created == 3
    assert result.subjects["Physics"].total == 3
    assert result.subjects["Physics"].created == 3
    assert result.stats.created == 6
    assert _hard_conflicts(engine.roster, rooms) == []


def test_trailing_odd_group_is_scheduled_alone(subject_factory, engine_factory, small_grid):
    subjects = [
        subject_factory("Algebra", tutorial_groups=3),
        subject_factory("Physics", tutorial_groups=3),
    ]
    engine = engine_factory(subjects, small_grid, options=SchedulingOptions(assign_rooms=False))

    result = engine.run()

    assert result.stats.failed == 0
    assert result.stats.created == 8
    groups = sorted(item.group for item in engine.roster if item.kind is SessionKind.tutorial)
    assert groups == ["G1", "G1", "G2", "G2", "G3", "G3"]


def test_tutorials_without_partner_are_placed_one_by_one(subject_factory, engine_factory, small_grid):
    engine = engine_factory([subject_factory("Algebra", tutorial_groups=2)], small_grid)

    result = engine.run()

    assert result.stats.created == 3
    tutorials = [item for item in engine.roster if item.kind is SessionKind.tutorial]
    assert [item.group for item in tutorials] == ["G1", "G2"]


def test_overloaded_instructor_is_passed_over(subject_factory):
    subject = subject_factory("Algebra", hours={SessionKind.lecture: 400.0})
    instructors = [
        Instructor("Heavy", wishes=(InstructorWish("Algebra", 1),), carried_over_hours=300.0),
        Instructor("Light"),
    ]
    inputs = SchedulingInputs(
        subjects=[subject],
        rooms=[],
        instructors=instructors,
        time_grid=TimeGrid.default(),
        term=Term.spring,
    )
    engine = SchedulingEngine(inputs=inputs, roster=ScheduleRoster())

    assert engine.reference_workload == pytest.approx(200.0)
    engine.run()

    assert engine.roster.sessions[0].instructors == ["Light"]


def test_missing_instructors_and_rooms_are_reported(subject_factory, engine_factory, small_grid):
    engine = engine_factory([subject_factory("Algebra")], small_grid)

    result = engine.run()

    assert result.stats.created == 1
    assert result.unassigned_instructors == 1
    assert result.unassigned_rooms == 1
    assert "No instructor available for Algebra (Lecture) - Section A" in result.warnings
    assert "No free room for Algebra (Lecture) - Section A" in result.warnings


def test_options_can_skip_staffing(subject_factory, engine_factory, small_grid, rooms, instructors):
    options = SchedulingOptions(assign_instructors=False, assign_rooms=False)
    engine = engine_factory([subject_factory("Algebra")], small_grid, rooms, instructors, options=options)

    result = engine.run()

    session = engine.roster.sessions[0]
    assert session.instructors == []
    assert session.room == ""
    assert result.warnings == []


def test_conflicts_allowed_when_avoidance_is_off(subject_factory, engine_factory):
    grid = TimeGrid.build(["Monday"], ["08:30"])
    subjects = [subject_factory("Algebra"), subject_factory("Physics")]

    strict = engine_factory(subjects, grid).run()
    assert strict.stats.created == 1

    engine = engine_factory(subjects, grid, options=SchedulingOptions(avoid_conflicts=False))
    relaxed = engine.run()
    assert relaxed.stats.created == 2
    types = {item.conflict_type for item in detect_roster_conflicts(engine.roster)}
    assert types == {"student_group_conflict"}


def test_per_search_iteration_ceiling(subject_factory, engine_factory):
    grid = TimeGrid.build(["Monday"], ["08:30", "10:15"])
    subjects = [subject_factory("Algebra", sections=2)]

    assert engine_factory(subjects, grid).run().stats.created == 2

    limited = engine_factory(subjects, grid, max_iterations_per_search=1).run()
    assert limited.stats.created == 1
    assert limited.stats.failed == 1


def test_whole_run_iteration_ceiling(subject_factory, engine_factory):
    grid = TimeGrid.build(["Monday"], ["08:30", "10:15"])
    engine = engine_factory([subject_factory("Algebra", sections=2)], grid, max_run_iterations=1)

    result = engine.run()

    assert result.stats.created == 1
    assert result.stats.failed == 1
    assert engine.run_iterations == 1


def test_run_can_target_named_subjects(subject_factory, engine_factory, small_grid):
    subjects = [subject_factory("Algebra"), subject_factory("Physics", curriculum="L2 Phys")]
    engine = engine_factory(subjects, small_grid)

    result = engine.run(["Physics"])

    assert list(result.subjects) == ["Physics"]
    assert {item.subject for item in engine.roster} == {"Physics"}


def test_unknown_subject_filter_is_rejected(subject_factory, engine_factory, small_grid):
    engine = engine_factory([subject_factory("Algebra")], small_grid)
    with pytest.raises(SchedulerError) as excinfo:
        engine.run(["Nope"])
    assert excinfo.value.details == {"subjects": ["Nope"]}
    assert len(engine.roster) == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": " "},
        {"sections": -1},
        {"sections": 27},
        {"lab_instructor_count": 0},
        {"hours": {"Seminar": 10.0}},
        {"hours": {SessionKind.lecture: -4.0}},
    ],
)
def test_malformed_subject_is_rejected_before_any_commit(subject_factory, engine_factory, small_grid, overrides):
    name = overrides.pop("name", "Algebra")
    roster = ScheduleRoster()
    with pytest.raises(SchedulerError) as excinfo:
        engine_factory([subject_factory(name, **overrides)], small_grid, roster=roster)
    assert excinfo.value.status_code == 400
    assert excinfo.value.details["errors"]
    assert len(roster) == 0


def test_duplicate_subject_names_are_rejected(subject_factory, engine_factory, small_grid):
    with pytest.raises(SchedulerError):
        engine_factory([subject_factory("Algebra"), subject_factory("Algebra")], small_grid)


def test_instructor_wish_limits_are_checked(subject_factory, engine_factory, small_grid):
    wishes = tuple(InstructorWish(f"S{rank}", rank) for rank in (1, 2, 3, 3))
    with pytest.raises(SchedulerError) as excinfo:
        engine_factory([subject_factory("Algebra")], small_grid, instructors=[Instructor("Ann", wishes=wishes)])
    assert "Instructor Ann declares more than three wishes" in excinfo.value.details["errors"]


def test_repeated_run_on_one_engine_reports_only_new_work(subject_factory, engine_factory, small_grid):
    subjects = [
        subject_factory("Algebra", tutorial_groups=2),
        subject_factory("Physics", tutorial_groups=2),
    ]
    engine = engine_factory(subjects, small_grid, options=SchedulingOptions(assign_rooms=False))

    first = engine.run()
    size = len(engine.roster)
    second = engine.run()

    assert first.stats.created == 6
    assert len(engine.roster) == size
    assert second.stats.created == 0
    assert second.stats.failed == 0
    assert second.stats.skipped == second.stats.total == first.stats.total
    assert second.created_sessions == []
    assert second.warnings == []
    assert second.unassigned_instructors == 0


def test_labs_of_one_subject_never_overlap_their_coupled_pairs(subject_factory, engine_factory):
    options = SchedulingOptions(assign_instructors=False, assign_rooms=False)
    engine = engine_factory([subject_factory("Chemistry", lab_groups=2)], TimeGrid.default(), options=options)

    result = engine.run()

    assert result.stats.failed == 0
    grid = engine.time_grid
    first_halves = [item for item in engine.roster if item.kind is SessionKind.lab and not item.is_continuation]
    assert len(first_halves) == 2
    g1, g2 = first_halves
    if g1.day == g2.day:
        pair_one = {g1.slot, grid.coupled_slot(g1.slot)}
        pair_two = {g2.slot, grid.coupled_slot(g2.slot)}
        assert pair_one.isdisjoint(pair_two)
    # Monday 14:00-15:45 is taken by G1, so G2 moves to the next free coupled pair.
    assert (g1.day, g1.slot) == ("Monday", "14:00")
    assert (g2.day, g2.slot) == ("Tuesday", "08:30")

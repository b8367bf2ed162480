import pytest

from edtforge.core.exceptions import InvariantViolationError
from edtforge.services.entities import LabSession, SessionKind, make_session
from edtforge.services.roster import ScheduleRoster


def _lecture(**kwargs):
    kwargs.setdefault("day", "Monday")
    kwargs.setdefault("slot", "08:30")
    kwargs.setdefault("subject", "Algebra")
    kwargs.setdefault("section", "Section A")
    return make_session(SessionKind.lecture, curriculum="L1 Math", **kwargs)


def test_commit_assigns_increasing_ids():
    roster = ScheduleRoster()
    first = roster.commit(_lecture())
    second = roster.commit(_lecture(subject="Physics", section="Section B"))

    assert (first.id, second.id) == (1, 2)
    assert len(roster) == 2
    assert roster.next_id == 3


def test_ids_continue_after_loaded_sessions():
    roster = ScheduleRoster([_lecture(id=41)])
    committed = roster.commit(_lecture(subject="Physics", section="Section B"))
    assert committed.id == 42


def test_commit_rejects_unplaced_session():
    roster = ScheduleRoster()
    with pytest.raises(InvariantViolationError):
        roster.commit(_lecture(day="", slot=""))


def test_commit_rejects_double_booking():
    roster = ScheduleRoster()
    roster.commit(_lecture(room="A101"))

    with pytest.raises(InvariantViolationError) as excinfo:
        roster.commit(_lecture(subject="Physics", section="Section B", room="A101"))

    assert excinfo.value.status_code == 500
    assert excinfo.value.details["conflicts"][0]["conflict_type"] == "room_conflict"
    assert len(roster) == 1


def test_commit_without_enforcement_accepts_conflicts_but_not_duplicates():
    roster = ScheduleRoster()
    roster.commit(_lecture(room="A101"))
    roster.commit(_lecture(subject="Physics", section="Section B", room="A101"), enforce_conflicts=False)
    assert len(roster) == 2

    with pytest.raises(InvariantViolationError):
        roster.commit(_lecture(slot="10:15"), enforce_conflicts=False)


def test_lab_continuation_does_not_count_as_requirement():
    roster = ScheduleRoster()
    first = make_session(
        SessionKind.lab,
        subject="Physics",
        curriculum="L1 Math",
        section="Section A",
        group="G1",
        credited_hours=36.0,
        day="Monday",
        slot="08:30",
    )
    committed = roster.commit(first)
    assert isinstance(committed, LabSession)
    continuation = roster.commit(committed.continuation_at("10:15"))

    assert continuation.credited_hours == 0
    assert continuation.is_continuation
    assert roster.has_requirement("Physics", SessionKind.lab, "L1 Math - Section A - G1")
    assert [item.id for item in roster if item.occupies("Monday", "10:15")] == [continuation.id]

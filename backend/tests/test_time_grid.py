import pytest

from edtforge.core.exceptions import SchedulerError
from edtforge.services.time_grid import TimeGrid, normalize_slot, slot_to_minutes


def test_default_grid_has_six_days_and_five_slots():
    grid = TimeGrid.default()
    assert grid.days[0] == "Monday"
    assert grid.days[-1] == "Saturday"
    assert grid.slots == ("08:30", "10:15", "14:00", "15:45", "17:30")
    assert len(grid) == 30
    assert grid.coupled_slot("08:30") == "10:15"
    assert grid.coupled_slot("14:00") == "15:45"
    assert grid.coupled_slot("17:30") is None


def test_slots_are_sorted_chronologically_and_normalized():
    grid = TimeGrid.build(["Monday"], ["14:00", "8h30", "10:15"])
    assert grid.slots == ("08:30", "10:15", "14:00")


def test_cells_walk_day_major_then_slot():
    grid = TimeGrid.build(["Monday", "Tuesday"], ["08:30", "10:15"])
    assert list(grid.cells()) == [
        ("Monday", "08:30"),
        ("Monday", "10:15"),
        ("Tuesday", "08:30"),
        ("Tuesday", "10:15"),
    ]


def test_consecutive_slot_pairs():
    grid = TimeGrid.build(["Monday"], ["08:30", "10:15", "14:00"])
    assert list(grid.consecutive_slot_pairs()) == [("08:30", "10:15"), ("10:15", "14:00")]


def test_slot_parsing_helpers():
    assert slot_to_minutes("08:30") == 510
    assert normalize_slot("8h30") == "08:30"
    with pytest.raises(ValueError):
        slot_to_minutes("25:00")


@pytest.mark.parametrize(
    "days,slots,coupled",
    [
        (["Monday", "Monday"], ["08:30"], None),
        ([" "], ["08:30"], None),
        (["Monday"], ["08:30", "08:30"], None),
        (["Monday"], ["nope"], None),
        (["Monday"], ["08:30", "10:15"], {"08:30": "17:30"}),
        (["Monday"], ["08:30", "10:15"], {"10:15": "08:30"}),
    ],
)
def test_invalid_grids_raise_scheduler_error(days, slots, coupled):
    with pytest.raises(SchedulerError):
        TimeGrid.build(days, slots, coupled)

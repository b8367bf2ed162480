from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from edtforge.core.exceptions import SchedulerError

DEFAULT_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
DEFAULT_SLOTS = ("08:30", "10:15", "14:00", "15:45", "17:30")
DEFAULT_COUPLED_SLOTS = {"08:30": "10:15", "14:00": "15:45"}

# Accepts both "08:30" and the legacy "8h30" spelling.
SLOT_PATTERN = re.compile(r"^([01]?\d|2[0-3])[:h]([0-5]\d)$")


def slot_to_minutes(value: str) -> int:
    match = SLOT_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid slot key {value!r}; expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def normalize_slot(value: str) -> str:
    minutes = slot_to_minutes(value)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeGrid:
    """Ordered (day, slot) coordinates sessions can occupy.

    Slots are kept in chronological order whatever order they were declared
    in. ``coupled_slots`` maps the first slot of a double-length lab to the
    slot that continues it on the same day.
    """

    days: tuple[str, ...]
    slots: tuple[str, ...]
    coupled_slots: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        days: list[str] | tuple[str, ...],
        slots: list[str] | tuple[str, ...],
        coupled_slots: dict[str, str] | None = None,
    ) -> "TimeGrid":
        cleaned_days: list[str] = []
        for day in days:
            name = day.strip()
            if not name:
                raise SchedulerError("Time grid days cannot be empty")
            if name in cleaned_days:
                raise SchedulerError(f"Duplicate day in time grid: {name}")
            cleaned_days.append(name)

        try:
            normalized = [normalize_slot(item) for item in slots]
        except ValueError as exc:
            raise SchedulerError(str(exc)) from exc
        if len(set(normalized)) != len(normalized):
            raise SchedulerError("Duplicate slot in time grid")
        ordered = tuple(sorted(normalized, key=slot_to_minutes))

        coupled: dict[str, str] = {}
        for first, second in (coupled_slots or {}).items():
            try:
                first_key, second_key = normalize_slot(first), normalize_slot(second)
            except ValueError as exc:
                raise SchedulerError(str(exc)) from exc
            if first_key not in ordered or second_key not in ordered:
                raise SchedulerError(
                    "Coupled slots must reference slots of the grid",
                    details={"first": first_key, "second": second_key},
                )
            if slot_to_minutes(second_key) <= slot_to_minutes(first_key):
                raise SchedulerError(
                    "A coupled slot must follow its first slot",
                    details={"first": first_key, "second": second_key},
                )
            coupled[first_key] = second_key

        return cls(days=tuple(cleaned_days), slots=ordered, coupled_slots=coupled)

    @classmethod
    def default(cls) -> "TimeGrid":
        return cls.build(DEFAULT_DAYS, DEFAULT_SLOTS, DEFAULT_COUPLED_SLOTS)

    def __len__(self) -> int:
        return len(self.days) * len(self.slots)

    def cells(self) -> Iterator[tuple[str, str]]:
        """Day-major, slot-minor walk of the grid."""
        for day in self.days:
            for slot in self.slots:
                yield day, slot

    def consecutive_slot_pairs(self) -> Iterator[tuple[str, str]]:
        for index in range(len(self.slots) - 1):
            yield self.slots[index], self.slots[index + 1]

    def coupled_slot(self, slot: str) -> str | None:
        return self.coupled_slots.get(slot)

    def slot_index(self, slot: str) -> int:
        return self.slots.index(slot)

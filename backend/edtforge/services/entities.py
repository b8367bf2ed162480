from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union


class SessionKind(str, Enum):
    lecture = "Lecture"
    tutorial = "Tutorial"
    lab = "Lab"


DEFAULT_KIND_HOURS = {
    SessionKind.lecture: 48.0,
    SessionKind.tutorial: 32.0,
    SessionKind.lab: 36.0,
}


class RoomType(str, Enum):
    standard = "Standard"
    lecture_hall = "LectureHall"
    lab = "Lab"


LAB_ROOM_NAME_PREFIXES = ("STP", "LAB")


def section_label(index: int) -> str:
    return f"Section {chr(ord('A') + index)}"


def group_label(number: int) -> str:
    return f"G{number}"


def student_entity_key(curriculum: str, section: str, kind: SessionKind, group: str = "") -> str:
    if kind is SessionKind.lecture:
        return f"{curriculum} - {section}"
    return f"{curriculum} - {section} - {group}"


@dataclass(kw_only=True)
class _SessionBase:
    kind: ClassVar[SessionKind]

    subject: str
    curriculum: str
    section: str
    credited_hours: float
    id: int | None = None
    day: str = ""
    slot: str = ""
    room: str = ""
    instructors: list[str] = field(default_factory=list)

    @property
    def group(self) -> str:
        return ""

    @property
    def student_key(self) -> str:
        return student_entity_key(self.curriculum, self.section, self.kind, self.group)

    @property
    def display_group(self) -> str:
        if self.group:
            return f"{self.section} - {self.group}"
        return self.section

    @property
    def is_placed(self) -> bool:
        return bool(self.day and self.slot)

    @property
    def is_continuation(self) -> bool:
        return False

    def occupies(self, day: str, slot: str) -> bool:
        return self.day == day and self.slot == slot

    def label(self) -> str:
        return f"{self.subject} ({self.kind.value}) - {self.display_group}"

    def placed_at(self, day: str, slot: str) -> "Session":
        """Copy of this session moved to (day, slot), keeping its identity."""
        return dataclasses.replace(self, day=day, slot=slot, instructors=list(self.instructors))

    def set_instructors(self, names: list[str]) -> None:
        self.instructors = [name for name in names if name]

    def set_room(self, room: str | None) -> None:
        self.room = room or ""


@dataclass(kw_only=True)
class LectureSession(_SessionBase):
    kind: ClassVar[SessionKind] = SessionKind.lecture


@dataclass(kw_only=True)
class TutorialSession(_SessionBase):
    kind: ClassVar[SessionKind] = SessionKind.tutorial

    group_name: str

    @property
    def group(self) -> str:
        return self.group_name


@dataclass(kw_only=True)
class LabSession(_SessionBase):
    kind: ClassVar[SessionKind] = SessionKind.lab

    group_name: str
    continuation: bool = False

    @property
    def group(self) -> str:
        return self.group_name

    @property
    def is_continuation(self) -> bool:
        return self.continuation

    def continuation_at(self, slot: str) -> "LabSession":
        """Second half of a coupled lab: same cohort, staff and room, no credited hours."""
        return dataclasses.replace(
            self,
            id=None,
            slot=slot,
            credited_hours=0.0,
            continuation=True,
            instructors=list(self.instructors),
        )


Session = Union[LectureSession, TutorialSession, LabSession]


def make_session(
    kind: SessionKind,
    *,
    subject: str,
    curriculum: str,
    section: str,
    group: str = "",
    credited_hours: float = 0.0,
    **extra,
) -> Session:
    if kind is SessionKind.lecture:
        return LectureSession(
            subject=subject, curriculum=curriculum, section=section, credited_hours=credited_hours, **extra
        )
    if kind is SessionKind.tutorial:
        return TutorialSession(
            subject=subject,
            curriculum=curriculum,
            section=section,
            group_name=group,
            credited_hours=credited_hours,
            **extra,
        )
    return LabSession(
        subject=subject,
        curriculum=curriculum,
        section=section,
        group_name=group,
        credited_hours=credited_hours,
        **extra,
    )


@dataclass(frozen=True)
class Subject:
    name: str
    curriculum: str
    sections: int = 1
    tutorial_groups: int = 0
    lab_groups: int = 0
    lab_instructor_count: int = 1
    hours: dict[SessionKind, float] = field(default_factory=dict)

    def hours_for(self, kind: SessionKind) -> float:
        value = self.hours.get(kind)
        if value is None:
            return DEFAULT_KIND_HOURS[kind]
        return value

    def group_count(self, kind: SessionKind) -> int:
        if kind is SessionKind.tutorial:
            return self.tutorial_groups
        if kind is SessionKind.lab:
            return self.lab_groups
        return 0

    def declared_volume(self) -> float:
        lecture = self.sections * self.hours_for(SessionKind.lecture)
        tutorial = self.sections * self.tutorial_groups * self.hours_for(SessionKind.tutorial)
        lab = (
            self.sections
            * self.lab_groups
            * self.hours_for(SessionKind.lab)
            * self.lab_instructor_count
        )
        return lecture + tutorial + lab

    def required_unit_count(self) -> int:
        return self.sections * (1 + self.tutorial_groups + self.lab_groups)


@dataclass(frozen=True)
class Room:
    name: str
    type: RoomType = RoomType.standard

    def is_lab_room(self) -> bool:
        return self.type is RoomType.lab or self.name.upper().startswith(LAB_ROOM_NAME_PREFIXES)

    def is_compatible_with(self, kind: SessionKind) -> bool:
        if kind is SessionKind.lecture:
            return self.type in (RoomType.standard, RoomType.lecture_hall)
        if kind is SessionKind.tutorial:
            return self.type is RoomType.standard
        return self.is_lab_room()


@dataclass(frozen=True)
class InstructorWish:
    subject: str
    rank: int
    hours: dict[SessionKind, float] = field(default_factory=dict)

    def refuses(self, kind: SessionKind) -> bool:
        return kind in self.hours and self.hours[kind] == 0


@dataclass(frozen=True)
class SupplementaryCredit:
    label: str
    hours: float


@dataclass(frozen=True)
class Instructor:
    name: str
    wishes: tuple[InstructorWish, ...] = ()
    supplementary: tuple[SupplementaryCredit, ...] = ()
    carried_over_hours: float = 0.0

    def wish_for(self, subject: str) -> InstructorWish | None:
        for wish in sorted(self.wishes, key=lambda item: item.rank):
            if wish.subject == subject:
                return wish
        return None

    def wish_rank(self, subject: str) -> int:
        wish = self.wish_for(subject)
        return wish.rank if wish is not None else 0

    def refuses(self, subject: str, kind: SessionKind) -> bool:
        wish = self.wish_for(subject)
        return wish is not None and wish.refuses(kind)

    def supplementary_hours(self) -> float:
        return sum(item.hours for item in self.supplementary)

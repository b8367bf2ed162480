import os

# The app module builds its engine at import time; keep it off the real database file.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from edtforge.api.deps import get_db  # noqa: E402
from edtforge.db.base import Base  # noqa: E402
from edtforge.main import app  # noqa: E402
from edtforge.services.entities import Instructor, InstructorWish, Room, RoomType, SessionKind, Subject  # noqa: E402
from edtforge.services.roster import ScheduleRoster  # noqa: E402
from edtforge.services.scheduling_engine import SchedulingEngine, SchedulingInputs  # noqa: E402
from edtforge.services.time_grid import TimeGrid  # noqa: E402


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def small_grid():
    return TimeGrid.build(
        ["Monday", "Tuesday"],
        ["08:30", "10:15", "14:00", "15:45"],
        {"08:30": "10:15", "14:00": "15:45"},
    )


@pytest.fixture()
def rooms():
    return [
        Room("A101", RoomType.standard),
        Room("A102", RoomType.standard),
        Room("Amphi 1", RoomType.lecture_hall),
        Room("LAB1", RoomType.lab),
        Room("LAB2", RoomType.lab),
    ]


@pytest.fixture()
def instructors():
    return [
        Instructor("Alice", wishes=(InstructorWish("Algebra", 1),)),
        Instructor("Bob", wishes=(InstructorWish("Physics", 1),)),
        Instructor("Carol"),
        Instructor("Dan"),
    ]


def make_subject(name, curriculum="L1 Math", **kwargs):
    kwargs.setdefault(
        "hours",
        {SessionKind.lecture: 48.0, SessionKind.tutorial: 32.0, SessionKind.lab: 36.0},
    )
    return Subject(name=name, curriculum=curriculum, **kwargs)


def build_engine(subjects, grid, rooms=(), instructors=(), roster=None, **kwargs):
    inputs = SchedulingInputs(
        subjects=list(subjects),
        rooms=list(rooms),
        instructors=list(instructors),
        time_grid=grid,
        room_pools=kwargs.pop("room_pools", {}),
    )
    return SchedulingEngine(inputs=inputs, roster=roster if roster is not None else ScheduleRoster(), **kwargs)


@pytest.fixture()
def subject_factory():
    return make_subject


@pytest.fixture()
def engine_factory():
    return build_engine

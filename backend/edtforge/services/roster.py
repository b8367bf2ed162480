from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator

from edtforge.core.exceptions import InvariantViolationError
from edtforge.services.conflict_service import find_conflicts
from edtforge.services.entities import Session, SessionKind

logger = logging.getLogger(__name__)


class ScheduleRoster:
    """Authoritative, mutable collection of the sessions of the active term.

    Reads are lock-free; ``commit`` is the single write path and serializes
    appends so that every search observes all earlier commits.
    """

    def __init__(self, sessions: Iterable[Session] = (), next_id: int | None = None) -> None:
        self._sessions: list[Session] = list(sessions)
        highest = max((item.id or 0 for item in self._sessions), default=0)
        self._next_id = max(next_id or 0, highest + 1)
        self._lock = threading.Lock()

    def __iter__(self) -> Iterator[Session]:
        return iter(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions)

    @property
    def next_id(self) -> int:
        return self._next_id

    def has_requirement(self, subject: str, kind: SessionKind, student_key: str) -> bool:
        """Whether the cohort requirement (subject, kind, key) is already covered.

        Lab continuation halves never count: they continue a requirement,
        they do not fulfil one.
        """
        for item in self._sessions:
            if item.is_continuation:
                continue
            if item.subject == subject and item.kind is kind and item.student_key == student_key:
                return True
        return False

    def commit(self, session: Session, *, enforce_conflicts: bool = True) -> Session:
        """Assign an id to ``session`` and append it.

        Raises ``InvariantViolationError`` when the session duplicates an
        existing cohort requirement, or double-books a room, instructor or
        student group while ``enforce_conflicts`` is on.
        """
        if not session.is_placed:
            raise InvariantViolationError(
                f"Cannot commit unplaced session {session.label()}",
            )
        with self._lock:
            if not session.is_continuation and self.has_requirement(
                session.subject, session.kind, session.student_key
            ):
                raise InvariantViolationError(
                    f"Duplicate requirement for {session.label()}",
                    details={"student_key": session.student_key, "kind": session.kind.value},
                )
            if enforce_conflicts:
                conflicts = find_conflicts(session, self._sessions)
                if conflicts:
                    raise InvariantViolationError(
                        f"Commit of {session.label()} at {session.day} {session.slot} would double-book",
                        details={"conflicts": [item.model_dump() for item in conflicts]},
                    )
            session.id = self._next_id
            self._next_id += 1
            self._sessions.append(session)
        logger.debug("Committed session %s: %s at %s %s", session.id, session.label(), session.day, session.slot)
        return session

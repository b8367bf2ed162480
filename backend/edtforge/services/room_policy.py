from __future__ import annotations

from collections.abc import Sequence

from edtforge.services.entities import Session, SessionKind

RoomPools = dict[str, dict[SessionKind, str]]


def assign_room(session: Session, free_rooms: Sequence[str], room_pools: RoomPools | None = None) -> str:
    """Pick a room for a placed session, or "" when none is free."""
    if not free_rooms:
        return ""
    preferred = (room_pools or {}).get(session.curriculum, {}).get(session.kind)
    if preferred and preferred in free_rooms:
        return preferred
    return sorted(free_rooms)[0]

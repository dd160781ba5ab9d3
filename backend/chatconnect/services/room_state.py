"""
Room snapshot reducer.

Pure functions deriving a user's invite code and pairing events from
consecutive room snapshots. No I/O here; RoomObserver feeds these with the
live subscription and performs the side effects.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from chatconnect.core.store import Snapshot


@dataclass(frozen=True)
class Room:
    """A pairing record between one or two users, keyed by its invite code."""
    code: str
    users: Tuple[str, ...]
    user_details: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snap: Snapshot) -> "Room":
        return cls(
            code=snap.id,
            users=tuple(snap.get("users") or ()),
            user_details=dict(snap.get("user_details") or {}),
            created_at=snap.get("createdAt"),
        )

    @property
    def is_solo(self) -> bool:
        return len(self.users) == 1

    @property
    def is_full(self) -> bool:
        return len(self.users) >= 2

    def other_member(self, user_id: str) -> Optional[str]:
        """The occupant that is not `user_id` (None for a solo room)."""
        others = [u for u in self.users if u != user_id]
        return others[0] if others else None

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "users": list(self.users),
            "userDetails": dict(self.user_details),
            "createdAt": self.created_at,
        }


def solo_room_codes(rooms: Iterable[Room], user_id: str) -> List[str]:
    """Codes of the rooms where `user_id` is the only occupant, in snapshot order."""
    return [r.code for r in rooms if r.users == (user_id,)]


def current_invite_code(rooms: Iterable[Room], user_id: str) -> Optional[str]:
    """The user's invite code: the first solo room encountered, if any."""
    codes = solo_room_codes(rooms, user_id)
    return codes[0] if codes else None


def paired_rooms(rooms: Iterable[Room], user_id: str) -> List[Room]:
    return [r for r in rooms if user_id in r.users and r.is_full]


def filled_solo_rooms(previous: Sequence[Room], current: Sequence[Room], user_id: str) -> List[str]:
    """
    Solo rooms of `user_id` present in `previous` that are no longer solo
    rooms of `user_id` in `current`. Each one means the user's invite slot
    was consumed and a new solo room should be issued.
    """
    still_solo = set(solo_room_codes(current, user_id))
    return [code for code in solo_room_codes(previous, user_id) if code not in still_solo]


@dataclass(frozen=True)
class RoomsState:
    """Latest room snapshot seen for one user."""
    user_id: str
    rooms: Tuple[Room, ...] = ()
    initialized: bool = False

    @property
    def invite_code(self) -> Optional[str]:
        return current_invite_code(self.rooms, self.user_id)

    @property
    def paired(self) -> List[Room]:
        return paired_rooms(self.rooms, self.user_id)


def reduce_rooms(state: RoomsState, rooms: Sequence[Room]) -> Tuple[RoomsState, List[str]]:
    """
    Fold one snapshot into the state.

    Returns the new state and the codes of the solo rooms that were filled
    since the previous snapshot (always empty for the first snapshot).
    """
    filled = filled_solo_rooms(state.rooms, rooms, state.user_id) if state.initialized else []
    return RoomsState(user_id=state.user_id, rooms=tuple(rooms), initialized=True), filled

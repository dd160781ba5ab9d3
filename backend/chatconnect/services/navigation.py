"""
Client view state machine.

The client shows exactly one view at a time. Views are a small tagged union
(ViewKind plus the open room for CHAT) and every allowed move is listed in
TRANSITIONS; anything else is rejected.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class ViewKind(str, Enum):
    AUTH = "auth"   # login / signup
    HOME = "home"   # invite code, room list, friends
    CHAT = "chat"   # one open room


class ViewEvent(str, Enum):
    LOGGED_IN = "logged_in"
    LOGGED_OUT = "logged_out"
    OPEN_ROOM = "open_room"
    CLOSE_ROOM = "close_room"
    ROOM_DELETED = "room_deleted"


@dataclass(frozen=True)
class View:
    kind: ViewKind
    room_id: Optional[str] = None

    def __post_init__(self):
        if (self.kind == ViewKind.CHAT) != (self.room_id is not None):
            raise ValueError("room_id is required for CHAT views and only for them")


INITIAL_VIEW = View(ViewKind.AUTH)

TRANSITIONS: Dict[Tuple[ViewKind, ViewEvent], ViewKind] = {
    (ViewKind.AUTH, ViewEvent.LOGGED_IN): ViewKind.HOME,
    (ViewKind.HOME, ViewEvent.LOGGED_OUT): ViewKind.AUTH,
    (ViewKind.HOME, ViewEvent.OPEN_ROOM): ViewKind.CHAT,
    (ViewKind.CHAT, ViewEvent.OPEN_ROOM): ViewKind.CHAT,
    (ViewKind.CHAT, ViewEvent.CLOSE_ROOM): ViewKind.HOME,
    (ViewKind.CHAT, ViewEvent.ROOM_DELETED): ViewKind.HOME,
    (ViewKind.CHAT, ViewEvent.LOGGED_OUT): ViewKind.AUTH,
}


class InvalidTransition(Exception):
    def __init__(self, view: View, event: ViewEvent):
        super().__init__(f"no transition from {view.kind.value} on {event.value}")
        self.view = view
        self.event = event


def transition(view: View, event: ViewEvent, room_id: Optional[str] = None) -> View:
    """Next view for `event`; OPEN_ROOM needs the id of the room to open."""
    target = TRANSITIONS.get((view.kind, event))
    if target is None:
        raise InvalidTransition(view, event)
    if target == ViewKind.CHAT:
        if not room_id:
            raise InvalidTransition(view, event)
        return View(ViewKind.CHAT, room_id)
    return View(target)

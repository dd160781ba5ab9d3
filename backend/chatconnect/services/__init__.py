"""
Services Module

Chat features on top of the document store:
- Rooms: invite-code pairing into two-party rooms, live room observation
- Profiles: private/public user profiles
- Messages: direct messages inside a room
- Friends: friend requests and friend lists
- Navigation: client view state machine
"""

from .results import ErrorCode, Result, MESSAGES
from .codes import generate_code, normalize_code, is_valid_code
from .room_state import (
    Room,
    RoomsState,
    current_invite_code,
    filled_solo_rooms,
    reduce_rooms,
    solo_room_codes,
)
from .rooms import RoomPairingService
from .room_observer import RoomObserver
from .profiles import Profile, ProfileService
from .messages import Message, MessageService
from .friends import FriendService
from .navigation import View, ViewKind, ViewEvent, InvalidTransition, transition

__all__ = [
    # Results
    "ErrorCode",
    "Result",
    "MESSAGES",
    # Rooms
    "generate_code",
    "normalize_code",
    "is_valid_code",
    "Room",
    "RoomsState",
    "current_invite_code",
    "filled_solo_rooms",
    "reduce_rooms",
    "solo_room_codes",
    "RoomPairingService",
    "RoomObserver",
    # Profiles / messages / friends
    "Profile",
    "ProfileService",
    "Message",
    "MessageService",
    "FriendService",
    # Navigation
    "View",
    "ViewKind",
    "ViewEvent",
    "InvalidTransition",
    "transition",
]

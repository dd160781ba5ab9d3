"""
Result type shared by the chat services.

Services never raise for expected failures: they return a Result whose
`code` names the reason and whose `message` is ready to show to the user.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from chatconnect.core.store import StoreError, StoreOffline, TransactionConflict

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Failure reasons reported by the services."""
    NOT_FOUND = "NotFound"
    ROOM_FULL = "RoomFull"
    ALREADY_MEMBER = "AlreadyMember"
    SELF_JOIN = "SelfJoin"
    DUPLICATE_PAIR = "DuplicatePair"
    PROFILE_MISSING = "ProfileMissing"
    STORE_OFFLINE = "StoreOffline"
    STORE_TRANSACTION_CONFLICT = "StoreTransactionConflict"
    STORE_ERROR = "StoreError"
    NOT_MEMBER = "NotMember"
    EMPTY_MESSAGE = "EmptyMessage"
    INVALID_ARGUMENT = "InvalidArgument"
    SELF_REQUEST = "SelfRequest"
    ALREADY_FRIENDS = "AlreadyFriends"


# User-facing text for each reason
MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "Room not found. Check the code and try again.",
    ErrorCode.ROOM_FULL: "This room already has two people in it.",
    ErrorCode.ALREADY_MEMBER: "You are already in this room.",
    ErrorCode.SELF_JOIN: "You can't join your own invite code.",
    ErrorCode.DUPLICATE_PAIR: "You already have a chat with this person.",
    ErrorCode.PROFILE_MISSING: "Your profile was not found.",
    ErrorCode.STORE_OFFLINE: "You appear to be offline. Try again when you're connected.",
    ErrorCode.STORE_TRANSACTION_CONFLICT: "Something went wrong, please try again.",
    ErrorCode.STORE_ERROR: "Something went wrong, please try again.",
    ErrorCode.NOT_MEMBER: "You are not a member of this room.",
    ErrorCode.EMPTY_MESSAGE: "Message can't be empty.",
    ErrorCode.INVALID_ARGUMENT: "Missing or invalid request data.",
    ErrorCode.SELF_REQUEST: "You can't send a friend request to yourself.",
    ErrorCode.ALREADY_FRIENDS: "You are already friends.",
}


@dataclass
class Result:
    """Outcome of a service operation."""
    success: bool
    code: Optional[ErrorCode] = None
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> "Result":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, message: Optional[str] = None) -> "Result":
        return cls(success=False, code=code, message=message or MESSAGES[code])

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict:
        """Response envelope used by the HTTP routers."""
        if self.success:
            data = dict(self.data)
            if self.message:
                data["message"] = self.message
            return {"success": True, "data": data}
        return {"success": False, "error": {"code": self.code.value, "message": self.message}}


class Rejected(Exception):
    """Raised inside a transaction function to abort it with a failure reason."""

    def __init__(self, code: ErrorCode, message: Optional[str] = None):
        super().__init__(code.value)
        self.code = code
        self.message = message

    def to_result(self) -> Result:
        return Result.fail(self.code, self.message)


def store_failure(exc: StoreError, action: str) -> Result:
    """Log a store exception and convert it into a failure Result."""
    if isinstance(exc, StoreOffline):
        logger.warning("[%s] refused, store offline", action)
        return Result.fail(ErrorCode.STORE_OFFLINE)
    if isinstance(exc, TransactionConflict):
        logger.warning("[%s] transaction conflict: %s", action, exc)
        return Result.fail(ErrorCode.STORE_TRANSACTION_CONFLICT)
    logger.error("[%s] store error: %s", action, exc, exc_info=exc)
    return Result.fail(ErrorCode.STORE_ERROR)

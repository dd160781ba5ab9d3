"""
Direct messages inside a room.

Messages are append-only documents under directMessages/{roomId}/messages,
stamped by the store and read back ordered by that timestamp. Delivery to
other clients relies on the store's live subscriptions.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from chatconnect.config import settings
from chatconnect.core.store import DocumentStore, Query, Snapshot, StoreError
from chatconnect.services.codes import is_valid_code, normalize_code
from chatconnect.services.feed import Feed
from chatconnect.services.results import ErrorCode, Result, store_failure
from chatconnect.services.room_state import Room

logger = logging.getLogger(__name__)


@dataclass
class Message:
    id: str
    sender_id: str
    sender_username: str
    text: str
    timestamp: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snap: Snapshot) -> "Message":
        return cls(
            id=snap.id,
            sender_id=snap.get("senderId", ""),
            sender_username=snap.get("senderUsername", ""),
            text=snap.get("text", ""),
            timestamp=snap.get("timestamp"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "senderId": self.sender_id,
            "senderUsername": self.sender_username,
            "text": self.text,
            "timestamp": self.timestamp,
        }


class MessageService:
    def __init__(self, store: DocumentStore, page_size: Optional[int] = None):
        self.store = store
        self.paths = store.paths
        self.page_size = page_size or settings.messages_page_size

    def messages_query(self, room_id: str) -> Query:
        return Query(self.paths.messages(room_id)).ordered("timestamp")

    async def _room(self, room_id: str) -> Optional[Room]:
        if not is_valid_code(room_id):
            return None
        snap = await self.store.get(self.paths.room(room_id))
        return Room.from_snapshot(snap) if snap.exists else None

    async def is_member(self, room_id: str, user_id: str) -> bool:
        room = await self._room(normalize_code(room_id))
        return room is not None and user_id in room.users

    async def send_message(self, room_id: str, sender_id: str, text: str) -> Result:
        """Append a message from `sender_id`, who must be a member of the room."""
        text = (text or "").strip()
        if not text:
            return Result.fail(ErrorCode.EMPTY_MESSAGE)
        if not self.store.online:
            return Result.fail(ErrorCode.STORE_OFFLINE)
        room_id = normalize_code(room_id)
        try:
            room = await self._room(room_id)
            if room is None:
                return Result.fail(ErrorCode.NOT_FOUND)
            if sender_id not in room.users:
                return Result.fail(ErrorCode.NOT_MEMBER)
            path = self.paths.message(room_id, uuid.uuid4().hex)
            await self.store.set(path, {
                "senderId": sender_id,
                "senderUsername": room.user_details.get(sender_id, ""),
                "text": text,
                "timestamp": self.store.server_timestamp(),
            })
            stored = await self.store.get(path)
        except StoreError as e:
            return store_failure(e, "messages.send")
        return Result.ok(item=Message.from_snapshot(stored).to_dict())

    async def list_messages(self, room_id: str, limit: Optional[int] = None) -> List[Message]:
        """The most recent `limit` messages of the room, oldest first."""
        limit = limit or self.page_size
        docs = await self.store.query(self.messages_query(normalize_code(room_id)))
        return [Message.from_snapshot(s) for s in docs[-limit:]]

    async def observe_messages(self, room_id: str) -> Feed[Message]:
        sub = await self.store.subscribe(self.messages_query(normalize_code(room_id)))
        return Feed(sub, Message.from_snapshot)

"""
Room Pairing Service

Pairs two users into an exclusive two-party room through a short invite code.

Core rules:
1. Every user holds at most one open (solo) room; its code is the user's invite code
2. Joining is atomic (one store transaction), capacity-checked and
   duplicate-pair-checked
3. Once a user's solo room is paired, a fresh solo room is issued for them
   (see RoomObserver)

Consistency note: the self-join and duplicate-pair checks read the joiner's
rooms with plain queries, outside the transaction's conflict detection. Two
users joining two different rooms of the same third user at the same instant
can both succeed. DeleteRoom is not transactional either and can race with a
concurrent join.
"""
import logging
from typing import List, Optional

from chatconnect.core.store import DocumentStore, Query, StoreError, Transaction
from chatconnect.services.codes import generate_code, is_valid_code, normalize_code
from chatconnect.services.feed import Feed
from chatconnect.services.results import ErrorCode, Rejected, Result, store_failure
from chatconnect.services.room_state import Room, current_invite_code

logger = logging.getLogger(__name__)


class RoomPairingService:
    """
    Command and query methods over the rooms collection.

    Args:
        store: Document store holding rooms, room code mappings and profiles
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self.paths = store.paths

    # -------- queries --------
    def rooms_query(self, user_id: str) -> Query:
        """All rooms containing `user_id`, oldest first."""
        return Query(self.paths.rooms()).where("users", "array_contains", user_id).ordered("createdAt")

    async def list_rooms(self, user_id: str) -> List[Room]:
        return [Room.from_snapshot(s) for s in await self.store.query(self.rooms_query(user_id))]

    async def get_room(self, code: str) -> Optional[Room]:
        code = normalize_code(code)
        if not is_valid_code(code):
            return None
        snap = await self.store.get(self.paths.room(code))
        return Room.from_snapshot(snap) if snap.exists else None

    async def current_invite_code(self, user_id: str) -> Optional[str]:
        return current_invite_code(await self.list_rooms(user_id), user_id)

    async def observe_rooms(self, user_id: str) -> Feed[Room]:
        """
        Live sequence of the rooms containing `user_id`.
        The first item is the current state; close the feed when done.
        """
        sub = await self.store.subscribe(self.rooms_query(user_id))
        return Feed(sub, Room.from_snapshot)

    # -------- commands --------
    def _new_room_fields(self, user_id: str, username: str) -> dict:
        return {
            "users": [user_id],
            "user_details": {user_id: username},
            "createdAt": self.store.server_timestamp(),
        }

    async def create_room(self, user_id: str, username: str) -> Result:
        """
        Create a solo room for `user_id` and return its code.

        The generated code is not checked against existing rooms; with
        36^6 possible codes a collision is treated as negligible.
        """
        if not self.store.online:
            return Result.fail(ErrorCode.STORE_OFFLINE)
        code = generate_code()
        try:
            await self.store.set(self.paths.room(code), self._new_room_fields(user_id, username))
        except StoreError as e:
            return store_failure(e, "rooms.create")
        logger.info("[rooms] %s created room %s", user_id, code)
        return Result.ok(code=code)

    async def join_room(self, joiner_id: str, joiner_username: str, code: str) -> Result:
        """
        Add `joiner_id` as the second occupant of the room `code`.

        Checks, in order (the first failing one is reported):
        SelfJoin, NotFound, RoomFull, AlreadyMember, DuplicatePair.
        """
        code = normalize_code(code)
        if not self.store.online:
            return Result.fail(ErrorCode.STORE_OFFLINE)
        path = self.paths.room(code) if is_valid_code(code) else None

        async def attempt(tx: Transaction) -> Room:
            own_code = await self.current_invite_code(joiner_id)
            if own_code is not None and own_code == code:
                raise Rejected(ErrorCode.SELF_JOIN)
            if path is None:
                raise Rejected(ErrorCode.NOT_FOUND)

            snap = await tx.get(path)
            if not snap.exists:
                raise Rejected(ErrorCode.NOT_FOUND)
            room = Room.from_snapshot(snap)
            if room.is_full:
                raise Rejected(ErrorCode.ROOM_FULL)
            if joiner_id in room.users:
                raise Rejected(ErrorCode.ALREADY_MEMBER)

            # Plain query: not covered by the commit-time conflict check
            occupant = room.users[0]
            for other in await self.list_rooms(joiner_id):
                if other.code != room.code and other.other_member(joiner_id) == occupant:
                    raise Rejected(ErrorCode.DUPLICATE_PAIR)

            users = list(room.users) + [joiner_id]
            details = {**room.user_details, joiner_id: joiner_username}
            tx.update(path, {"users": users, "user_details": details})
            return Room(code=room.code, users=tuple(users), user_details=details, created_at=room.created_at)

        try:
            room = await self.store.run_transaction(attempt)
        except Rejected as r:
            logger.info("[rooms] %s could not join %s: %s", joiner_id, code, r.code.value)
            return r.to_result()
        except StoreError as e:
            return store_failure(e, "rooms.join")
        logger.info("[rooms] %s joined room %s", joiner_id, code)
        return Result.ok(code=room.code, room=room.to_dict())

    async def create_room_for_original_user(self, original_user_id: str) -> Result:
        """
        Issue a fresh solo room for a user whose previous solo room was just
        paired, and record a roomCodes/{code} provenance mapping.
        """
        if not self.store.online:
            return Result.fail(ErrorCode.STORE_OFFLINE)
        code = generate_code()

        async def write(tx: Transaction) -> None:
            profile = await tx.get(self.paths.user_profile(original_user_id))
            if not profile.exists:
                raise Rejected(ErrorCode.PROFILE_MISSING)
            tx.set(self.paths.room(code), self._new_room_fields(original_user_id, profile.get("username", "")))
            # Audit trail only; joins never read it
            tx.set(self.paths.room_code(code), {
                "roomId": code,
                "createdBy": original_user_id,
                "createdAt": self.store.server_timestamp(),
            })

        try:
            await self.store.run_transaction(write)
        except Rejected as r:
            logger.warning("[rooms] cannot re-issue a room for %s: %s", original_user_id, r.code.value)
            return r.to_result()
        except StoreError as e:
            return store_failure(e, "rooms.reissue")
        logger.info("[rooms] issued room %s for %s", code, original_user_id)
        return Result.ok(code=code)

    async def delete_room(self, room_id: str) -> bool:
        """
        Delete a room and its code mapping. Returns False when the room does
        not exist or the store fails. Anyone knowing the id may delete it.
        """
        if not room_id or "/" in room_id:
            return False
        if not self.store.online:
            logger.warning("[rooms] delete of %s refused, store offline", room_id)
            return False
        try:
            snap = await self.store.get(self.paths.room(room_id))
        except StoreError as e:
            logger.error("[rooms] reading room %s failed: %s", room_id, e)
            return False
        if not snap.exists:
            return False

        try:
            await self.store.delete(self.paths.room_code(room_id))
        except StoreError as e:
            logger.warning("[rooms] could not delete code mapping of %s: %s", room_id, e)

        try:
            await self.store.delete(self.paths.room(room_id))
        except StoreError as e:
            logger.error("[rooms] deleting room %s failed: %s", room_id, e)
            return False
        logger.info("[rooms] deleted room %s", room_id)
        return True

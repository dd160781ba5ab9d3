"""
Friend requests and friend lists.

A request from S to R is stored twice: as R's incoming request
(users/R/friendRequests/S) and as S's outgoing request
(users/S/outgoingFriendRequests/R). Accepting writes both friend entries and
removes both request documents in one transaction.
"""
import logging
from typing import List

from chatconnect.core.store import DocumentStore, Query, StoreError, Transaction
from chatconnect.services.profiles import ProfileService
from chatconnect.services.results import ErrorCode, Rejected, Result, store_failure

logger = logging.getLogger(__name__)


class FriendService:
    def __init__(self, store: DocumentStore, profiles: ProfileService):
        self.store = store
        self.paths = store.paths
        self.profiles = profiles

    async def send_request(self, sender_id: str, receiver_username: str) -> Result:
        if not sender_id or not (receiver_username or "").strip():
            return Result.fail(ErrorCode.INVALID_ARGUMENT)
        if not self.store.online:
            return Result.fail(ErrorCode.STORE_OFFLINE)
        sender = await self.profiles.get_profile(sender_id)
        if sender is None:
            return Result.fail(ErrorCode.PROFILE_MISSING)
        try:
            receiver = await self.profiles.find_by_username(receiver_username)
        except StoreError as e:
            return store_failure(e, "friends.request")
        if receiver is None:
            return Result.fail(ErrorCode.NOT_FOUND, "No user found with that username.")
        if receiver.user_id == sender_id:
            return Result.fail(ErrorCode.SELF_REQUEST)

        async def write(tx: Transaction) -> None:
            existing = await tx.get(self.paths.friend(sender_id, receiver.user_id))
            if existing.exists:
                raise Rejected(ErrorCode.ALREADY_FRIENDS)
            sent_at = self.store.server_timestamp()
            tx.set(self.paths.friend_request(receiver.user_id, sender_id),
                   {"userId": sender_id, "username": sender.username, "sentAt": sent_at})
            tx.set(self.paths.outgoing_request(sender_id, receiver.user_id),
                   {"userId": receiver.user_id, "username": receiver.username, "sentAt": sent_at})

        try:
            await self.store.run_transaction(write)
        except Rejected as r:
            return r.to_result()
        except StoreError as e:
            return store_failure(e, "friends.request")
        logger.info("[friends] %s sent a request to %s", sender_id, receiver.user_id)
        return Result.ok(f"Friend request sent to {receiver.username}.", receiverId=receiver.user_id)

    async def accept_request(self, receiver_id: str, sender_id: str, sender_username: str) -> Result:
        """Make `receiver_id` and `sender_id` friends and clear the pending request."""
        if not sender_id or not sender_username:
            return Result.fail(ErrorCode.INVALID_ARGUMENT, "Missing senderId or senderUsername.")
        if not self.store.online:
            return Result.fail(ErrorCode.STORE_OFFLINE)

        async def write(tx: Transaction) -> None:
            profile = await tx.get(self.paths.user_profile(receiver_id))
            if not profile.exists:
                raise Rejected(ErrorCode.PROFILE_MISSING)
            request = await tx.get(self.paths.friend_request(receiver_id, sender_id))
            if not request.exists:
                raise Rejected(ErrorCode.NOT_FOUND, "Friend request not found.")
            added_at = self.store.server_timestamp()
            tx.set(self.paths.friend(receiver_id, sender_id),
                   {"userId": sender_id, "username": sender_username, "addedAt": added_at})
            tx.set(self.paths.friend(sender_id, receiver_id),
                   {"userId": receiver_id, "username": profile.get("username", ""), "addedAt": added_at})
            tx.delete(self.paths.friend_request(receiver_id, sender_id))
            tx.delete(self.paths.outgoing_request(sender_id, receiver_id))

        try:
            await self.store.run_transaction(write)
        except Rejected as r:
            return r.to_result()
        except StoreError as e:
            return store_failure(e, "friends.accept")
        logger.info("[friends] %s accepted %s", receiver_id, sender_id)
        return Result.ok(f"You are now friends with {sender_username}.")

    async def decline_request(self, receiver_id: str, sender_id: str) -> Result:
        if not sender_id:
            return Result.fail(ErrorCode.INVALID_ARGUMENT)
        if not self.store.online:
            return Result.fail(ErrorCode.STORE_OFFLINE)

        async def write(tx: Transaction) -> None:
            request = await tx.get(self.paths.friend_request(receiver_id, sender_id))
            if not request.exists:
                raise Rejected(ErrorCode.NOT_FOUND, "Friend request not found.")
            tx.delete(self.paths.friend_request(receiver_id, sender_id))
            tx.delete(self.paths.outgoing_request(sender_id, receiver_id))

        try:
            await self.store.run_transaction(write)
        except Rejected as r:
            return r.to_result()
        except StoreError as e:
            return store_failure(e, "friends.decline")
        return Result.ok()

    async def list_friends(self, user_id: str) -> List[dict]:
        docs = await self.store.query(Query(self.paths.friends(user_id)).ordered("username"))
        return [{"userId": d.get("userId"), "username": d.get("username"), "addedAt": d.get("addedAt")} for d in docs]

    async def list_requests(self, user_id: str) -> List[dict]:
        docs = await self.store.query(Query(self.paths.friend_requests(user_id)).ordered("sentAt"))
        return [{"userId": d.get("userId"), "username": d.get("username"), "sentAt": d.get("sentAt")} for d in docs]

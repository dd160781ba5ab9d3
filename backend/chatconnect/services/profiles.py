"""
User profiles.

Each user has a private profile (users/{uid}/profile/userProfile) and a
public copy (public/data/userProfiles/{uid}) that other users can search by
username or email. Both are written once, at signup.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from chatconnect.core.store import DocumentStore, Query, Snapshot, StoreError, Transaction
from chatconnect.services.results import ErrorCode, Result, store_failure

logger = logging.getLogger(__name__)


@dataclass
class Profile:
    user_id: str
    username: str
    email: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snap: Snapshot) -> "Profile":
        return cls(
            user_id=snap.get("userId") or snap.id,
            username=snap.get("username", ""),
            email=snap.get("email"),
            created_at=snap.get("createdAt"),
        )

    def to_dict(self) -> dict:
        return {"userId": self.user_id, "username": self.username, "email": self.email, "createdAt": self.created_at}


class ProfileService:
    def __init__(self, store: DocumentStore):
        self.store = store
        self.paths = store.paths

    async def create_profile(self, user_id: str, username: str, email: Optional[str] = None) -> Result:
        if not user_id or not username:
            return Result.fail(ErrorCode.INVALID_ARGUMENT)
        if not self.store.online:
            return Result.fail(ErrorCode.STORE_OFFLINE)
        fields = {
            "userId": user_id,
            "username": username,
            "email": email.strip().lower() if email else None,
            "createdAt": self.store.server_timestamp(),
        }

        async def write(tx: Transaction) -> None:
            tx.set(self.paths.user_profile(user_id), fields)
            tx.set(self.paths.public_profile(user_id), fields)

        try:
            await self.store.run_transaction(write)
        except StoreError as e:
            return store_failure(e, "profiles.create")
        logger.info("[profiles] created profile for %s (%s)", user_id, username)
        return Result.ok(userId=user_id, username=username)

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            snap = await self.store.get(self.paths.user_profile(user_id))
        except StoreError as e:
            logger.warning("[profiles] reading profile of %s failed: %s", user_id, e)
            return None
        return Profile.from_snapshot(snap) if snap.exists else None

    async def _find_one(self, field: str, value: str) -> Optional[Profile]:
        docs = await self.store.query(Query(self.paths.public_profiles()).where(field, "==", value).limited(1))
        return Profile.from_snapshot(docs[0]) if docs else None

    async def find_by_username(self, username: str) -> Optional[Profile]:
        username = (username or "").strip()
        if not username:
            return None
        return await self._find_one("username", username)

    async def find_by_email(self, email: str) -> Optional[Profile]:
        email = (email or "").strip().lower()
        if not email:
            return None
        return await self._find_one("email", email)

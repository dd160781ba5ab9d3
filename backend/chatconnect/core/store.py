# chatconnect/core/store.py
"""
Document Store contract.

Durable documents addressed by slash-separated paths
("collection/doc/collection/doc"), atomic multi-document transactions,
live query subscriptions and server-assigned timestamps. Services only talk
to this interface; chatconnect.core.tortoise_store provides the
implementation used by the application and the tests.
"""
from __future__ import annotations

import asyncio
import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class StoreError(Exception):
    """Base class for document store failures (transport, bad paths, ...)."""


class StoreOffline(StoreError):
    """Raised for write attempts while the store is offline."""


class TransactionConflict(StoreError):
    """A transaction kept conflicting with concurrent writes and was given up."""


# ---------------------------------------------------------------------------
# Server timestamps
# ---------------------------------------------------------------------------
class _ServerTimestamp:
    """Sentinel replaced by the store with the commit time of the write."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
def split_path(path: str) -> Tuple[str, str]:
    """
    Split a document path into (collection path, document id).

    Raises:
        StoreError: if the path does not address a document
            (empty segments or an odd number of segments).
    """
    segments = path.split("/")
    if len(segments) < 2 or len(segments) % 2 != 0 or any(not s for s in segments):
        raise StoreError(f"invalid document path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


class Paths:
    """
    Builds the app-namespaced paths of every collection the services use.
    All paths live under artifacts/{app_id}/.
    """

    def __init__(self, app_id: str):
        self.app_id = app_id
        self.root = f"artifacts/{app_id}"

    # rooms
    def rooms(self) -> str:
        return f"{self.root}/rooms"

    def room(self, code: str) -> str:
        return f"{self.rooms()}/{code}"

    def room_codes(self) -> str:
        return f"{self.root}/roomCodes"

    def room_code(self, code: str) -> str:
        return f"{self.room_codes()}/{code}"

    # profiles
    def user_profile(self, user_id: str) -> str:
        return f"{self.root}/users/{user_id}/profile/userProfile"

    def public_profiles(self) -> str:
        return f"{self.root}/public/data/userProfiles"

    def public_profile(self, user_id: str) -> str:
        return f"{self.public_profiles()}/{user_id}"

    # messages
    def messages(self, room_id: str) -> str:
        return f"{self.root}/directMessages/{room_id}/messages"

    def message(self, room_id: str, message_id: str) -> str:
        return f"{self.messages(room_id)}/{message_id}"

    # friends
    def friends(self, user_id: str) -> str:
        return f"{self.root}/users/{user_id}/friends"

    def friend(self, user_id: str, friend_id: str) -> str:
        return f"{self.friends(user_id)}/{friend_id}"

    def friend_requests(self, user_id: str) -> str:
        return f"{self.root}/users/{user_id}/friendRequests"

    def friend_request(self, user_id: str, sender_id: str) -> str:
        return f"{self.friend_requests(user_id)}/{sender_id}"

    def outgoing_requests(self, user_id: str) -> str:
        return f"{self.root}/users/{user_id}/outgoingFriendRequests"

    def outgoing_request(self, user_id: str, receiver_id: str) -> str:
        return f"{self.outgoing_requests(user_id)}/{receiver_id}"


# ---------------------------------------------------------------------------
# Snapshots and queries
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Snapshot:
    """A read of one document. `data` is None when the document does not exist."""
    path: str
    data: Optional[dict] = None
    revision: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.data is not None

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def get(self, field: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(field, default)


FILTER_OPS = ("==", "array_contains")


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPS:
            raise ValueError(f"unsupported filter operator: {self.op!r}")

    def matches(self, data: dict) -> bool:
        if self.field not in data:
            return False
        current = data[self.field]
        if self.op == "==":
            return current == self.value
        return isinstance(current, list) and self.value in current


@dataclass(frozen=True)
class Query:
    """
    Query over one collection.

    Built fluently, e.g.
        Query(paths.rooms()).where("users", "array_contains", uid)
        Query(paths.messages(rid)).ordered("timestamp").limited(50)
    """
    collection: str
    filters: Tuple[Filter, ...] = ()
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None

    def where(self, field: str, op: str, value: Any) -> "Query":
        return dataclasses.replace(self, filters=self.filters + (Filter(field, op, value),))

    def ordered(self, field: str, descending: bool = False) -> "Query":
        return dataclasses.replace(self, order_by=field, descending=descending)

    def limited(self, limit: int) -> "Query":
        return dataclasses.replace(self, limit=limit)

    def matches(self, data: dict) -> bool:
        return all(f.matches(data) for f in self.filters)

    def apply(self, snapshots: List[Snapshot]) -> List[Snapshot]:
        """Filter, order and limit snapshots of this query's collection."""
        docs = [s for s in snapshots if s.exists and self.matches(s.data)]
        if self.order_by is not None:
            # Documents missing the field sort first; ties keep path order
            def sort_key(s: Snapshot):
                value = s.get(self.order_by)
                return (value is not None, value if value is not None else "", s.path)

            docs.sort(key=sort_key, reverse=self.descending)
        if self.limit is not None:
            docs = docs[: self.limit]
        return docs


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------
_CLOSED = object()


class Subscription:
    """
    Live query result stream.

    Iterate with `async for docs in subscription` or `await subscription.get()`;
    the first item is the state at subscribe time, then one item per change
    of the result set. Call `close()` when done; iteration then ends.

    With `peek` (a single-document read), a change event naming a document
    that is neither in the current result nor matching the query is dropped
    after one document read instead of re-running the whole query.
    """

    def __init__(
        self,
        query: Query,
        fetch: Callable[[Query], Awaitable[List[Snapshot]]],
        on_close: Callable[["Subscription"], None],
        peek: Optional[Callable[[str], Awaitable[Snapshot]]] = None,
    ):
        self.query = query
        self._fetch = fetch
        self._peek = peek
        self._on_close = on_close
        self._queue: asyncio.Queue = asyncio.Queue()
        self._lock = asyncio.Lock()
        self._last_key: Optional[list] = None
        self._last_paths: set = set()
        self.closed = False

    async def _irrelevant(self, event: Optional[dict]) -> bool:
        path = (event or {}).get("path")
        if self._peek is None or path is None or self._last_key is None or path in self._last_paths:
            return False
        snap = await self._peek(path)
        return not (snap.exists and self.query.matches(snap.data))

    async def refresh(self, event: Optional[dict] = None):
        """Re-run the query and enqueue the result when it changed."""
        if self.closed:
            return
        # Serialized so an older fetch can never be queued after a newer one
        async with self._lock:
            if await self._irrelevant(event):
                return
            docs = await self._fetch(self.query)
            key = [(d.path, d.revision) for d in docs]
            if key == self._last_key or self.closed:
                return
            self._last_key = key
            self._last_paths = {d.path for d in docs}
            await self._queue.put(docs)

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[Snapshot]:
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def get(self, timeout: Optional[float] = None) -> List[Snapshot]:
        """Wait for the next result set (StopAsyncIteration once closed)."""
        return await asyncio.wait_for(self.__anext__(), timeout)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._on_close(self)
        self._queue.put_nowait(_CLOSED)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.close()


# ---------------------------------------------------------------------------
# Store interface
# ---------------------------------------------------------------------------
class Transaction(ABC):
    """
    Handle passed to the function run by DocumentStore.run_transaction.
    Reads must happen before writes; writes are applied only at commit.
    """

    @abstractmethod
    async def get(self, path: str) -> Snapshot:
        """Read a document and remember its revision for the commit check."""

    @abstractmethod
    def set(self, path: str, data: dict) -> None:
        """Create or overwrite a document."""

    @abstractmethod
    def update(self, path: str, fields: dict) -> None:
        """Merge fields into an existing document."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete a document (no-op if absent)."""


class DocumentStore(ABC):
    """Document Store abstract base class."""

    paths: Paths

    @property
    @abstractmethod
    def online(self) -> bool:
        """False while writes are refused."""

    @abstractmethod
    def set_online(self, online: bool) -> None:
        pass

    @abstractmethod
    async def get(self, path: str) -> Snapshot:
        pass

    @abstractmethod
    async def set(self, path: str, data: dict) -> None:
        pass

    @abstractmethod
    async def delete(self, path: str) -> None:
        pass

    @abstractmethod
    async def query(self, query: Query) -> List[Snapshot]:
        pass

    @abstractmethod
    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        """
        Run `fn` atomically. `fn` is re-run when a document it read was
        changed concurrently, so it must not have side effects outside the
        transaction handle. Exceptions raised by `fn` abort the transaction
        and propagate unchanged.
        """

    @abstractmethod
    async def subscribe(self, query: Query) -> Subscription:
        pass

    def server_timestamp(self) -> Any:
        """Placeholder value resolved to the commit time when written."""
        return SERVER_TIMESTAMP

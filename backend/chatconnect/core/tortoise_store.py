# chatconnect/core/tortoise_store.py
"""
Document store backed by Tortoise ORM.

Documents are rows of the `documents` table (chatconnect.models.document).
Transactions are optimistic: reads made through the transaction handle
record each document's revision, writes are buffered, and the commit
re-checks every recorded revision inside a database transaction before
applying the writes. A changed revision aborts the commit and the
transaction function is run again, up to `max_attempts` times.

The re-check selects rows FOR UPDATE (Postgres/MySQL; SQLite serializes
transactions on its single connection instead), and each write is an
UPDATE/DELETE conditional on the revision it replaces, so two commits that
both saw the same revision can never both apply.

Every committed write is published on the pubsub channel under the
document's collection path; live subscriptions re-run their query when a
change can affect their result.
"""
from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from tortoise import timezone
from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from chatconnect.config import settings
from chatconnect.core.pubsub import Channel
from chatconnect.core.store import (
    SERVER_TIMESTAMP,
    DocumentStore,
    Paths,
    Query,
    Snapshot,
    StoreError,
    StoreOffline,
    Subscription,
    T,
    Transaction,
    TransactionConflict,
    split_path,
)
from chatconnect.models.document import Document

logger = logging.getLogger(__name__)

# Buffered write: (op, path, payload) with op in {"set", "update", "delete"}
Write = Tuple[str, str, Optional[dict]]


def _new_revision() -> str:
    return uuid.uuid4().hex


def _snapshot(path: str, row: Optional[Document]) -> Snapshot:
    if row is None:
        return Snapshot(path=path)
    return Snapshot(path=row.path, data=dict(row.data or {}), revision=row.revision)


class _TortoiseTransaction(Transaction):
    def __init__(self, store: "TortoiseDocumentStore"):
        self._store = store
        self.reads: Dict[str, Optional[str]] = {}  # path -> revision seen (None = absent)
        self.writes: List[Write] = []

    async def get(self, path: str) -> Snapshot:
        if self.writes:
            raise StoreError("transaction reads must happen before writes")
        split_path(path)
        snap = await self._store.get(path)
        self.reads.setdefault(path, snap.revision)
        return snap

    def set(self, path: str, data: dict) -> None:
        split_path(path)
        self.writes.append(("set", path, dict(data)))

    def update(self, path: str, fields: dict) -> None:
        split_path(path)
        self.writes.append(("update", path, dict(fields)))

    def delete(self, path: str) -> None:
        split_path(path)
        self.writes.append(("delete", path, None))


class TortoiseDocumentStore(DocumentStore):
    """
    DocumentStore implementation on top of the Tortoise `documents` table.

    Args:
        app_id: Application identifier used to namespace all paths
        max_attempts: How many times a conflicting transaction is run
        channel: PubSub channel for change events (a private one by default)
        online: Initial connectivity; writes raise StoreOffline while False
    """

    def __init__(
        self,
        app_id: Optional[str] = None,
        max_attempts: Optional[int] = None,
        channel: Optional[Channel] = None,
        online: bool = True,
    ):
        self.paths = Paths(app_id or settings.app_id)
        self.max_attempts = max_attempts or settings.transaction_max_attempts
        self.channel = channel or Channel()
        self._online = online
        self._last_ts: Optional[dt.datetime] = None

    # -------- connectivity --------
    @property
    def online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        if online != self._online:
            logger.info("[store] %s", "online" if online else "offline")
        self._online = online

    def _ensure_online(self):
        if not self._online:
            raise StoreOffline("document store is offline")

    # -------- timestamps --------
    def _now(self) -> str:
        """Commit time as a UTC ISO-8601 string, strictly increasing per store."""
        now = dt.datetime.now(dt.timezone.utc)
        if self._last_ts is not None and now <= self._last_ts:
            now = self._last_ts + dt.timedelta(microseconds=1)
        self._last_ts = now
        return now.isoformat(timespec="microseconds")

    def _resolve(self, value: Any, ts: str) -> Any:
        if value is SERVER_TIMESTAMP:
            return ts
        if isinstance(value, dict):
            return {k: self._resolve(v, ts) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._resolve(v, ts) for v in value]
        return value

    # -------- reads --------
    async def get(self, path: str) -> Snapshot:
        split_path(path)
        try:
            row = await Document.get_or_none(path=path)
        except Exception as e:
            logger.error("[store] read of %s failed: %s", path, e, exc_info=True)
            raise StoreError(f"read failed: {e}") from e
        return _snapshot(path, row)

    async def query(self, query: Query) -> List[Snapshot]:
        try:
            rows = await Document.filter(collection=query.collection)
        except Exception as e:
            logger.error("[store] query of %s failed: %s", query.collection, e, exc_info=True)
            raise StoreError(f"query failed: {e}") from e
        return query.apply([_snapshot(r.path, r) for r in rows])

    # -------- writes --------
    async def set(self, path: str, data: dict) -> None:
        self._ensure_online()
        await self._write_blind(("set", path, dict(data)))

    async def delete(self, path: str) -> None:
        self._ensure_online()
        await self._write_blind(("delete", path, None))

    async def _write_blind(self, write: Write) -> None:
        """Single write without reads: last writer wins, lost races are simply re-applied."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self._commit({}, [write])
                return
            except TransactionConflict as e:
                logger.info("[store] write conflict (attempt %d/%d): %s", attempt, self.max_attempts, e)
        raise TransactionConflict(f"write to {write[1]} gave up after {self.max_attempts} attempts")

    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        for attempt in range(1, self.max_attempts + 1):
            self._ensure_online()
            tx = _TortoiseTransaction(self)
            result = await fn(tx)
            try:
                await self._commit(tx.reads, tx.writes)
            except TransactionConflict as e:
                logger.info("[store] transaction conflict (attempt %d/%d): %s", attempt, self.max_attempts, e)
                continue
            return result
        raise TransactionConflict(f"transaction gave up after {self.max_attempts} attempts")

    async def _commit(self, reads: Dict[str, Optional[str]], writes: List[Write]) -> None:
        if not writes:
            return
        ts = self._now()
        try:
            async with in_transaction() as conn:
                # Rows stay locked until commit on servers supporting FOR UPDATE
                for path, seen in reads.items():
                    row = await self._locked_row(conn, path)
                    current = row.revision if row is not None else None
                    if current != seen:
                        raise TransactionConflict(f"{path} changed")
                for op, path, payload in writes:
                    await self._apply(conn, op, path, self._resolve(payload, ts))
        except StoreError:
            raise
        except Exception as e:
            logger.error("[store] commit failed: %s", e, exc_info=True)
            raise StoreError(f"commit failed: {e}") from e

        for op, path, _ in writes:
            collection, _doc_id = split_path(path)
            await self.channel.pub(collection, {"type": op, "path": path})

    async def _locked_row(self, conn, path: str) -> Optional[Document]:
        """Current row of `path`, selected FOR UPDATE where the backend supports it (not SQLite)."""
        return await Document.filter(path=path).select_for_update().using_db(conn).first()

    async def _apply(self, conn, op: str, path: str, payload: Optional[dict]) -> None:
        """
        Apply one buffered write. Every statement is conditional on the
        revision just read, and inserting an existing path fails on the
        primary key: both mean a concurrent commit won and raise
        TransactionConflict.
        """
        collection, doc_id = split_path(path)
        row = await self._locked_row(conn, path)
        if op == "delete":
            if row is not None:
                deleted = await Document.filter(path=path, revision=row.revision).using_db(conn).delete()
                if not deleted:
                    raise TransactionConflict(f"{path} changed before delete")
            return
        if op == "update":
            if row is None:
                raise StoreError(f"update of missing document {path}")
            payload = {**(row.data or {}), **payload}
        if row is None:
            try:
                await Document.create(
                    path=path,
                    collection=collection,
                    doc_id=doc_id,
                    data=payload,
                    revision=_new_revision(),
                    using_db=conn,
                )
            except IntegrityError as e:
                raise TransactionConflict(f"{path} was created concurrently") from e
            return
        updated = await Document.filter(path=path, revision=row.revision).using_db(conn).update(
            data=payload,
            revision=_new_revision(),
            updated_at=timezone.now(),
        )
        if not updated:
            raise TransactionConflict(f"{path} changed before write")

    # -------- live queries --------
    async def subscribe(self, query: Query) -> Subscription:
        sub = Subscription(query, self.query, self._drop_subscription, peek=self.get)
        self.channel.sub(query.collection, sub.refresh)
        try:
            await sub.refresh()  # Initial state
        except StoreError:
            sub.close()
            raise
        return sub

    def _drop_subscription(self, sub: Subscription) -> None:
        self.channel.unsub(sub.query.collection, sub.refresh)

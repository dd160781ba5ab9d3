"""
Typed view over a store subscription.
"""
from typing import Callable, Generic, List, Optional, TypeVar

from chatconnect.core.store import Snapshot, Subscription

ItemT = TypeVar("ItemT")


class Feed(Generic[ItemT]):
    """
    Live sequence of converted documents.

    Wraps a Subscription and converts every snapshot list with `convert`
    (e.g. Room.from_snapshot). Must be closed by its owner.
    """

    def __init__(self, subscription: Subscription, convert: Callable[[Snapshot], ItemT]):
        self._sub = subscription
        self._convert = convert

    @property
    def closed(self) -> bool:
        return self._sub.closed

    def __aiter__(self):
        return self

    async def __anext__(self) -> List[ItemT]:
        return [self._convert(s) for s in await self._sub.__anext__()]

    async def get(self, timeout: Optional[float] = None) -> List[ItemT]:
        return [self._convert(s) for s in await self._sub.get(timeout)]

    def close(self):
        self._sub.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.close()

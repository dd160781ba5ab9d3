"""
Room observer: keeps one user's room state live and re-issues their invite.

Feeds every snapshot of the user's rooms through reduce_rooms(). When a solo
room of the user stops being solo (it was paired) and the user is left
without an invite code, a new solo room is created through
RoomPairingService.create_room_for_original_user().
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from chatconnect.services.feed import Feed
from chatconnect.services.room_state import Room, RoomsState, reduce_rooms
from chatconnect.services.rooms import RoomPairingService

logger = logging.getLogger(__name__)


class RoomObserver:
    """
    Args:
        service: Pairing service used to subscribe and to issue new rooms
        user_id: The observed user
        ensure_invite: Also issue a room when the first snapshot has no solo
            room (e.g. the user was paired while disconnected)
        on_update: Optional async callback receiving each new RoomsState
    """

    def __init__(
        self,
        service: RoomPairingService,
        user_id: str,
        ensure_invite: bool = False,
        on_update: Optional[Callable[[RoomsState], Awaitable[None]]] = None,
    ):
        self.service = service
        self.user_id = user_id
        self.ensure_invite = ensure_invite
        self.on_update = on_update
        self.state = RoomsState(user_id=user_id)
        self.issued: List[str] = []  # Codes of the rooms this observer created
        self._feed: Optional[Feed[Room]] = None
        self._task: Optional[asyncio.Task] = None
        self._changed = asyncio.Condition()

    async def start(self) -> "RoomObserver":
        self._feed = await self.service.observe_rooms(self.user_id)
        self._task = asyncio.create_task(self._run())
        return self

    async def stop(self):
        if self._feed is not None:
            self._feed.close()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self):
        async for rooms in self._feed:
            try:
                await self.apply(rooms)
            except Exception:
                logger.error("[rooms] observer of %s failed on a snapshot", self.user_id, exc_info=True)

    async def apply(self, rooms: Sequence[Room]) -> List[str]:
        """
        Fold one snapshot into the state and issue a new room when needed.
        Returns the codes issued for this snapshot.
        """
        first = not self.state.initialized
        self.state, filled = reduce_rooms(self.state, rooms)
        for code in filled:
            logger.info("[rooms] solo room %s of %s was paired", code, self.user_id)

        issued = []
        wants_room = bool(filled) or (first and self.ensure_invite)
        if wants_room and self.state.invite_code is None:
            result = await self.service.create_room_for_original_user(self.user_id)
            if result:
                issued.append(result.data["code"])
            else:
                logger.warning("[rooms] could not issue a new room for %s: %s", self.user_id, result.message)
        self.issued.extend(issued)

        if self.on_update is not None:
            await self.on_update(self.state)
        async with self._changed:
            self._changed.notify_all()
        return issued

    async def wait_for(self, predicate: Callable[[RoomsState], bool], timeout: float = 5.0) -> RoomsState:
        """Wait until `predicate(state)` holds (asyncio.TimeoutError otherwise)."""
        async def _wait():
            async with self._changed:
                await self._changed.wait_for(lambda: predicate(self.state))

        await asyncio.wait_for(_wait(), timeout)
        return self.state

import asyncio
import json
import logging
from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect
from chatconnect.api.v1.deps import token_identity
from chatconnect.core.store import StoreError
from chatconnect.services import ErrorCode, MessageService, RoomObserver, RoomPairingService, RoomsState

router = APIRouter()
logger = logging.getLogger(__name__)

async def _authenticate(ws: WebSocket, token: str | None) -> tuple[str, str] | None:
    """Resolve the token or report the auth error and close the socket."""
    try:
        return token_identity(token)
    except PermissionError as e:
        await ws.send_text(json.dumps({"type": "error", "code": str(e)}))
        await ws.close(code=4401)
        return None

async def _store_unavailable(ws: WebSocket, tag: str, exc: StoreError):
    """Report a store failure during setup and close the socket."""
    logger.error("[%s] store unavailable: %s", tag, exc)
    await ws.send_text(json.dumps({"type": "error", "code": ErrorCode.STORE_ERROR.value}))
    await ws.close(code=1011)

async def _receive_until_disconnect(ws: WebSocket, tag: str):
    """Answer pings until the client goes away."""
    while True:
        raw = await ws.receive_text()
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            await ws.send_text(json.dumps({"type": "error", "code": "BAD_MESSAGE"}))
            continue
        if msg.get("type") == "ping":
            await ws.send_text(json.dumps({"type": "pong"}))
        else:
            logger.info("[%s] ignoring message type %r", tag, msg.get("type"))

@router.websocket("/ws/rooms")
async def ws_rooms(ws: WebSocket, token: str | None = None):
    """
    WebSocket endpoint streaming the authenticated user's rooms.

    Message flow:
    1. Client connects with ?token=<accessToken>
    2. Server sends {"type": "rooms", "rooms": [...], "inviteCode": "..."}
       now and after every change of the user's rooms
    3. When the user's solo room gets paired, a new solo room is issued and
       shows up in the next push
    4. Client may send {"type": "ping"}; server answers {"type": "pong"}

    Auth errors: {"type": "error", "code": "AUTH_..."} then close(4401).
    """
    await ws.accept()
    identity = await _authenticate(ws, token)
    if identity is None:
        return
    user_id, _username = identity
    rooms: RoomPairingService = ws.app.state.rooms

    async def push(state: RoomsState):
        await ws.send_text(json.dumps({
            "type": "rooms",
            "rooms": [r.to_dict() for r in state.rooms],
            "inviteCode": state.invite_code,
        }))

    observer = RoomObserver(rooms, user_id, ensure_invite=True, on_update=push)
    try:
        await observer.start()
    except StoreError as e:
        await _store_unavailable(ws, "ws_rooms", e)
        return
    logger.info("[ws_rooms] %s connected", user_id)
    try:
        await _receive_until_disconnect(ws, "ws_rooms")
    except WebSocketDisconnect:
        logger.info("[ws_rooms] %s disconnected", user_id)
    finally:
        await observer.stop()

@router.websocket("/ws/messages/{room_id}")
async def ws_messages(ws: WebSocket, room_id: str, token: str | None = None):
    """
    WebSocket endpoint streaming the messages of one room, oldest first.

    Server sends {"type": "messages", "roomId": ..., "messages": [...]} now and
    after every new message. Only members of the room may subscribe;
    others get {"type": "error", "code": "NOT_FOUND"} and close(4404).
    """
    await ws.accept()
    identity = await _authenticate(ws, token)
    if identity is None:
        return
    user_id, _username = identity
    messages: MessageService = ws.app.state.messages
    try:
        member = await messages.is_member(room_id, user_id)
        feed = await messages.observe_messages(room_id) if member else None
    except StoreError as e:
        await _store_unavailable(ws, "ws_messages", e)
        return
    if feed is None:
        await ws.send_text(json.dumps({"type": "error", "code": "NOT_FOUND"}))
        await ws.close(code=4404)
        return

    async def forward():
        async for items in feed:
            await ws.send_text(json.dumps({
                "type": "messages",
                "roomId": room_id,
                "messages": [m.to_dict() for m in items],
            }))

    task = asyncio.create_task(forward())
    logger.info("[ws_messages] %s subscribed to %s", user_id, room_id)
    try:
        await _receive_until_disconnect(ws, "ws_messages")
    except WebSocketDisconnect:
        logger.info("[ws_messages] %s left %s", user_id, room_id)
    finally:
        feed.close()
        task.cancel()
        try:
            await task
        except (asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            pass

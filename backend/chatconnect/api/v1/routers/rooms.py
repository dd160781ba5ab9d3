from fastapi import APIRouter, Depends
from chatconnect.api.v1.deps import get_current_user, get_rooms
from chatconnect.models.user import User
from chatconnect.schemas.room import JoinRoomIn
from chatconnect.services import RoomPairingService, current_invite_code

router = APIRouter(prefix="/rooms", tags=["rooms"])

@router.get("", response_model=dict)
async def list_rooms(user: User = Depends(get_current_user), rooms: RoomPairingService = Depends(get_rooms)):
    """
    List the rooms of the authenticated user (oldest first) and the user's
    current invite code (the code of their solo room, if any).
    """
    items = await rooms.list_rooms(str(user.id))
    return {"success": True, "data": {
        "items": [r.to_dict() for r in items],
        "inviteCode": current_invite_code(items, str(user.id)),
    }}

@router.post("", response_model=dict)
async def create_room(user: User = Depends(get_current_user), rooms: RoomPairingService = Depends(get_rooms)):
    """
    Create a new solo room for the authenticated user and return its code.
    """
    result = await rooms.create_room(str(user.id), user.username)
    return result.to_dict()

@router.post("/join", response_model=dict)
async def join_room(body: JoinRoomIn, user: User = Depends(get_current_user),
                    rooms: RoomPairingService = Depends(get_rooms)):
    """
    Join a room by invite code.

    Returns:
        dict: success with the joined room, or success=False with one of the
        error codes SelfJoin, NotFound, RoomFull, AlreadyMember,
        DuplicatePair, StoreOffline, StoreTransactionConflict, StoreError.
    """
    result = await rooms.join_room(str(user.id), user.username, body.code)
    return result.to_dict()

@router.delete("/{room_id}", response_model=dict)
async def delete_room(room_id: str, user: User = Depends(get_current_user),
                      rooms: RoomPairingService = Depends(get_rooms)):
    """
    Delete a room and its code mapping.
    Any authenticated user knowing the room id may delete it.
    """
    if not await rooms.delete_room(room_id):
        return {"success": False, "error": {"code": "DELETE_FAILED", "message": "Room could not be deleted"}}
    return {"success": True, "data": {"id": room_id, "deleted": True}}

from fastapi import APIRouter, Depends, HTTPException, Query, status
from chatconnect.api.v1.deps import get_current_user, get_messages
from chatconnect.models.user import User
from chatconnect.schemas.room import SendMessageIn
from chatconnect.services import MessageService

router = APIRouter(prefix="/rooms", tags=["messages"])

@router.get("/{room_id}/messages", response_model=dict)
async def list_messages(
    room_id: str,
    user: User = Depends(get_current_user),
    messages: MessageService = Depends(get_messages),
    limit: int = Query(100, ge=1, le=500),
):
    """
    Get the most recent messages of a room, oldest first.

    Raises:
        HTTPException (404): If the room does not exist or the user is not a member
    """
    if not await messages.is_member(room_id, str(user.id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOT_FOUND")
    items = await messages.list_messages(room_id, limit=limit)
    return {"success": True, "data": {"items": [m.to_dict() for m in items]}}

@router.post("/{room_id}/messages", response_model=dict)
async def send_message(
    room_id: str,
    body: SendMessageIn,
    user: User = Depends(get_current_user),
    messages: MessageService = Depends(get_messages),
):
    """
    Post a message into a room the user belongs to.
    Error codes: EmptyMessage, NotFound, NotMember, StoreOffline, StoreError.
    """
    result = await messages.send_message(room_id, str(user.id), body.text)
    return result.to_dict()

from fastapi import APIRouter, Depends
from chatconnect.api.v1.deps import get_current_user, get_friends
from chatconnect.models.user import User
from chatconnect.schemas.friend import AcceptFriendIn, FriendRequestIn
from chatconnect.services import FriendService

router = APIRouter(prefix="/friends", tags=["friends"])

@router.get("", response_model=dict)
async def list_friends(user: User = Depends(get_current_user), friends: FriendService = Depends(get_friends)):
    items = await friends.list_friends(str(user.id))
    return {"success": True, "data": {"items": items}}

@router.get("/requests", response_model=dict)
async def list_requests(user: User = Depends(get_current_user), friends: FriendService = Depends(get_friends)):
    """Incoming friend requests, oldest first."""
    items = await friends.list_requests(str(user.id))
    return {"success": True, "data": {"items": items}}

@router.post("/requests", response_model=dict)
async def send_request(body: FriendRequestIn, user: User = Depends(get_current_user),
                       friends: FriendService = Depends(get_friends)):
    """
    Send a friend request to the user with the given username.
    Error codes: NotFound, SelfRequest, AlreadyFriends, ProfileMissing.
    """
    result = await friends.send_request(str(user.id), body.username)
    return result.to_dict()

@router.post("/requests/{sender_id}/accept", response_model=dict)
async def accept_request(sender_id: str, body: AcceptFriendIn, user: User = Depends(get_current_user),
                         friends: FriendService = Depends(get_friends)):
    """
    Accept the pending request from `sender_id`: both users become friends
    and the request documents are removed in one transaction.
    """
    result = await friends.accept_request(str(user.id), sender_id, body.senderUsername)
    return result.to_dict()

@router.delete("/requests/{sender_id}", response_model=dict)
async def decline_request(sender_id: str, user: User = Depends(get_current_user),
                          friends: FriendService = Depends(get_friends)):
    result = await friends.decline_request(str(user.id), sender_id)
    return result.to_dict()

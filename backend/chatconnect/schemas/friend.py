# chatconnect/schemas/friend.py
"""
Pydantic schemas for friend endpoints.
"""
from pydantic import BaseModel

class FriendRequestIn(BaseModel):
    """
    Request model for sending a friend request by username.
    """
    username: str

class AcceptFriendIn(BaseModel):
    """
    Request model for accepting a friend request.
    senderUsername is the name shown in the receiver's friend list.
    """
    senderUsername: str

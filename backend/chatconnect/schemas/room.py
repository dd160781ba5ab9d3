# chatconnect/schemas/room.py
"""
Pydantic schemas for room and message endpoints.
"""
from pydantic import BaseModel, Field

class JoinRoomIn(BaseModel):
    """
    Request model for joining a room by invite code.
    The code is trimmed and uppercased server-side.
    """
    code: str

class SendMessageIn(BaseModel):
    """
    Request model for posting a message into a room.
    """
    text: str = Field(max_length=4000)

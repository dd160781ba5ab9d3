# chatconnect/api/v1/deps.py
from fastapi import Header, HTTPException, Request, status
from chatconnect.core.security import decode_access_token
from chatconnect.models.user import User
from chatconnect.services import FriendService, MessageService, ProfileService, RoomPairingService

async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
):
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the JWT token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method

    Returns:
        User: The authenticated account from the database

    Raises:
        HTTPException (401): If no token is provided (AUTH_REQUIRED)
        HTTPException (401): If token is invalid or expired (AUTH_INVALID_TOKEN)
        HTTPException (401): If user not found in database (AUTH_USER_NOT_FOUND)
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await User.get_or_none(id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return user

def token_identity(token: str | None) -> tuple[str, str]:
    """
    Resolve a WebSocket `token` query parameter to (user_id, username).

    Raises:
        PermissionError: with AUTH_REQUIRED / AUTH_INVALID_TOKEN as message
    """
    if not token:
        raise PermissionError("AUTH_REQUIRED")
    try:
        payload = decode_access_token(token)
    except Exception:
        raise PermissionError("AUTH_INVALID_TOKEN")
    user_id = payload.get("sub")
    if not user_id:
        raise PermissionError("AUTH_INVALID_TOKEN")
    return str(user_id), payload.get("username", "")

# -------- services (one instance per app, installed by chatconnect.main.install_services) --------
def get_rooms(request: Request) -> RoomPairingService:
    return request.app.state.rooms

def get_profiles(request: Request) -> ProfileService:
    return request.app.state.profiles

def get_messages(request: Request) -> MessageService:
    return request.app.state.messages

def get_friends(request: Request) -> FriendService:
    return request.app.state.friends

from fastapi import APIRouter, HTTPException, Response, status, Depends
from chatconnect.core.security import verify_password, create_access_token, hash_password
from chatconnect.api.v1.deps import get_current_user, get_profiles, get_rooms
from chatconnect.models.user import User
from chatconnect.schemas.auth import LoginRequest, RegisterIn
from chatconnect.services import ProfileService, RoomPairingService

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register")
async def register(
    body: RegisterIn,
    profiles: ProfileService = Depends(get_profiles),
    rooms: RoomPairingService = Depends(get_rooms),
):
    """
    Register a new user account.

    Creates the login account, the private and public profile documents and
    the user's first solo room, whose code is returned as the invite code.

    Returns:
        dict: Success response with user data and inviteCode, or error response:
            - success: bool
            - data: dict with id, username, email, inviteCode (if success)
            - error: dict with error code and message (if failure)

    Error codes:
        - BAD_REQUEST: Missing username or password
        - USERNAME_EXISTS: Username already taken
        - EMAIL_EXISTS: Email already registered
        - StoreOffline / StoreError: profile could not be written
    """
    username = (body.username or "").strip()
    email = (body.email or "").strip().lower() or None
    # Basic validation, avoid pydantic error becoming 500
    if not username or not body.password:
        return {"success": False, "error": {"code": "BAD_REQUEST", "message": "username/password required"}}
    # Check duplicates
    if await User.get_or_none(username=username):
        return {"success": False, "error": {"code": "USERNAME_EXISTS", "message": "Username already exists"}}
    if email and await User.get_or_none(email=email):
        return {"success": False, "error": {"code": "EMAIL_EXISTS", "message": "Email already registered"}}
    # Create
    u = await User.create(
        username=username,
        email=email,
        password_hash=hash_password(body.password),
    )
    created = await profiles.create_profile(str(u.id), u.username, u.email)
    if not created:
        # Without a profile the account is unusable: undo it
        await u.delete()
        return created.to_dict()
    room = await rooms.create_room(str(u.id), u.username)
    return {"success": True, "data": {"id": str(u.id), "username": u.username, "email": u.email,
                                      "inviteCode": room.data.get("code")}}

@router.post("/login")
async def login(payload: LoginRequest, response: Response):
    """
    Authenticate user and create access token.

    The token is returned in the response body and also set as an HttpOnly
    cookie for browser-based clients.

    Raises:
        HTTPException (401): If credentials are invalid
    """
    user = await User.get_or_none(username=payload.username)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail={"code":"AUTH_INVALID_CREDENTIALS","message":"Incorrect username or password"})
    token = create_access_token(str(user.id), user.username)
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": {"user": {"id": str(user.id), "username": user.username, "email": user.email},
                                      "accessToken": token}}

@router.get("/me")
async def me(user: User = Depends(get_current_user), rooms: RoomPairingService = Depends(get_rooms)):
    """
    Get current authenticated user information, including the current invite code.

    Raises:
        HTTPException (401): If user is not authenticated
    """
    invite_code = await rooms.current_invite_code(str(user.id))
    return {"success": True, "data": {"id": str(user.id), "username": user.username, "email": user.email,
                                      "inviteCode": invite_code}}

@router.post("/logout")
async def logout(response: Response):
    """
    Log out the current user by clearing the access token cookie.
    The JWT itself remains valid until it expires.
    """
    response.delete_cookie("accessToken")
    return {"success": True}

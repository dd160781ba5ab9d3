from fastapi import APIRouter, Depends, HTTPException, Query, status
from chatconnect.api.v1.deps import get_current_user, get_profiles
from chatconnect.models.user import User
from chatconnect.services import ProfileService

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/search", response_model=dict)
async def search_user(
    username: str | None = Query(default=None),
    email: str | None = Query(default=None),
    user: User = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profiles),
):
    """
    Look up a public profile by exact username or email.

    Raises:
        HTTPException (400): If neither username nor email is given
        HTTPException (404): If no profile matches
    """
    if not username and not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="BAD_REQUEST")
    profile = await profiles.find_by_username(username) if username else await profiles.find_by_email(email)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOT_FOUND")
    return {"success": True, "data": profile.to_dict()}

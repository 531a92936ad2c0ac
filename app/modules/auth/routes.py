from fastapi import APIRouter, Depends

from app.core.dependencies import get_current_user
from app.modules.auth.schemas import CurrentUser, MeResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=MeResponse)
async def get_me(user: CurrentUser = Depends(get_current_user)):
    """Get the caller's canonical ids and role"""
    return MeResponse(
        profile_id=user.profile_id,
        auth_id=user.auth_id,
        email=user.email,
        role=user.role,
    )

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_user_id
from app.core.db import get_session
from app.schemas.schemas import ProfileIn, ProfileOut
from app.services import closet

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileOut)
async def get_profile(
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    profile = await closet.get_profile(session, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="profile_not_found")
    return closet.profile_out(profile)


@router.put("", response_model=ProfileOut)
async def save_profile(
    payload: ProfileIn,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    """Onboarding and profile edits both replace the whole profile."""
    profile = await closet.upsert_profile(session, user_id, payload)
    return closet.profile_out(profile)

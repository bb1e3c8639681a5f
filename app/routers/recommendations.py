import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_user_id
from app.core.db import get_session
from app.schemas.schemas import OutfitRecommendationsOut, OutfitRequestIn
from app.services import closet
from app.services import llm as llm_service
from app.services.llm.types import RecommendOutfitsInput

router = APIRouter(prefix="/recommendations", tags=["recommendations"])
logger = logging.getLogger("uvicorn.error")

EMPTY_CLOSET_MESSAGE = "No clothes in closet"


@router.post("", response_model=OutfitRecommendationsOut)
async def recommend_outfits(
    payload: OutfitRequestIn,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    items = await closet.list_items(session, user_id)
    if not items:
        return OutfitRecommendationsOut(outfits=[], message=EMPTY_CLOSET_MESSAGE)
    profile = await closet.get_profile(session, user_id)
    out = await llm_service.recommend_outfits(
        RecommendOutfitsInput(
            occasion=payload.occasion,
            weather=payload.weather,
            profile=closet.profile_prompt_payload(profile),
            items=[closet.item_prompt_payload(i) for i in items],
        )
    )
    logger.info(
        "recommendations: user_id=%s items=%d outfits=%d fallback=%s latency_ms=%s",
        user_id,
        len(items),
        len(out.outfits),
        out.usage.fallback,
        out.usage.latency_ms,
    )
    return OutfitRecommendationsOut(outfits=out.outfits)

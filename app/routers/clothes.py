from datetime import datetime, timezone
from uuid import UUID
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_user_id
from app.core.config import settings
from app.core.db import get_session
from app.schemas.schemas import (
    ClosetInsightsOut,
    ClothingCreate,
    ClothingItemOut,
    FlaggedItemOut,
    PresignIn,
    PresignOut,
    UsageRecommendationOut,
    UsageSummaryOut,
)
from app.services import closet
from app.services.usage import analyze_wardrobe
from app.storage.keys import clothing_key
from app.storage.r2 import object_url, presign_put

router = APIRouter(prefix="/clothes", tags=["clothes"])
logger = logging.getLogger("uvicorn.error")


@router.get("", response_model=list[ClothingItemOut])
async def list_clothes(
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    items = await closet.list_items(session, user_id)
    return [closet.item_out(i) for i in items]


@router.post("/uploads/presign", response_model=PresignOut)
async def presign_upload(body: PresignIn, user_id: str = Depends(get_current_user_id)):
    key = clothing_key(user_id, body.filename, settings.UPLOAD_MAX_FILENAME)
    upload_url, headers = presign_put(key, body.content_type, expires=settings.UPLOAD_PRESIGN_TTL_S)
    return PresignOut(key=key, upload_url=upload_url, headers=headers, public_url=object_url(key))


@router.post("", response_model=ClothingItemOut)
async def add_clothing(
    payload: ClothingCreate,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    item = await closet.add_item_from_upload(session, user_id, payload)
    logger.info("clothes: added item_id=%s user_id=%s category=%s", item.id, user_id, item.category)
    return closet.item_out(item)


@router.get("/insights", response_model=ClosetInsightsOut)
async def closet_insights(
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    items = await closet.list_items(session, user_id)
    analysis = analyze_wardrobe(
        items,
        datetime.now(timezone.utc),
        rarely_used_days=settings.USAGE_RARELY_USED_DAYS,
        recent_wear_days=settings.USAGE_RECENT_WEAR_DAYS,
    )
    return ClosetInsightsOut(
        summary=UsageSummaryOut(
            total_items=analysis.summary.total_items,
            rarely_used_count=analysis.summary.rarely_used_count,
            seasonal_storage_count=analysis.summary.seasonal_storage_count,
        ),
        recommendations=[
            UsageRecommendationOut(
                type=rec.type,
                message=rec.message,
                items=[FlaggedItemOut(item=closet.item_out(f.item), reason=f.reason) for f in rec.items],
            )
            for rec in analysis.recommendations
        ],
        current_season=analysis.current_season.value,
    )


@router.post("/{item_id}/worn", response_model=ClothingItemOut)
async def mark_worn(
    item_id: UUID,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    item = await closet.mark_item_worn(session, user_id, item_id)
    return closet.item_out(item)

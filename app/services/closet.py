from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, TransientIO, ValidationFailure
from app.core.taxonomy import normalize_seasons
from app.models.models import ClothingItem, Profile
from app.schemas.schemas import ClothingAnalysis, ClothingCreate, ClothingItemOut, ProfileIn, ProfileOut
from app.services import llm as llm_service
from app.services.llm.types import AnalyzeClothingInput
from app.storage.keys import key_belongs_to
from app.storage.r2 import object_size, object_url

logger = logging.getLogger("uvicorn.error")


def _iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def item_out(item: ClothingItem) -> ClothingItemOut:
    return ClothingItemOut(
        id=str(item.id),
        image_url=item.image_url,
        category=item.category,
        subcategory=item.subcategory,
        color=item.color,
        material=item.material,
        season=item.season or [],
        tags=item.tags or [],
        ai_description=item.ai_description,
        last_worn_at=_iso(item.last_worn_at),
        created_at=_iso(item.created_at),
    )


def profile_out(profile: Profile) -> ProfileOut:
    return ProfileOut(
        id=profile.id,
        height=profile.height,
        body_type=profile.body_type,
        aesthetics=profile.aesthetics or [],
        color_preferences=profile.color_preferences or [],
        location=profile.location,
    )


def item_prompt_payload(item: ClothingItem) -> Dict[str, Any]:
    return {
        "id": str(item.id),
        "category": item.category,
        "subcategory": item.subcategory,
        "color": item.color,
        "description": item.ai_description,
        "tags": item.tags or [],
        "season": item.season or [],
    }


def profile_prompt_payload(profile: Optional[Profile]) -> Optional[Dict[str, Any]]:
    if profile is None:
        return None
    return {
        "height": profile.height,
        "body_type": profile.body_type,
        "aesthetics": profile.aesthetics or [],
        "color_preferences": profile.color_preferences or [],
    }


async def _commit(session: AsyncSession, what: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("closet: %s write failed reason=%s", what, e)
        raise TransientIO() from e


async def list_items(session: AsyncSession, user_id: str) -> List[ClothingItem]:
    res = await session.execute(
        select(ClothingItem)
        .where(ClothingItem.user_id == user_id)
        .order_by(ClothingItem.created_at.desc(), ClothingItem.id)
    )
    return list(res.scalars().all())


async def get_profile(session: AsyncSession, user_id: str) -> Optional[Profile]:
    return await session.get(Profile, user_id)


async def upsert_profile(session: AsyncSession, user_id: str, payload: ProfileIn) -> Profile:
    profile = await session.get(Profile, user_id)
    if profile is None:
        profile = Profile(id=user_id)
        session.add(profile)
    profile.height = payload.height
    profile.body_type = payload.body_type.value if payload.body_type else None
    profile.aesthetics = [a.value for a in payload.aesthetics]
    profile.color_preferences = list(payload.color_preferences)
    profile.location = payload.location
    await _commit(session, "profile")
    await session.refresh(profile)
    return profile


async def create_item(
    session: AsyncSession,
    user_id: str,
    *,
    image_url: str,
    category: str,
    analysis: ClothingAnalysis,
    image_key: Optional[str] = None,
) -> ClothingItem:
    item = ClothingItem(
        user_id=user_id,
        image_url=image_url,
        image_key=image_key,
        category=category,
        subcategory=analysis.subcategory or category,
        color=analysis.color,
        material=analysis.material,
        season=normalize_seasons(analysis.season),
        tags=list(analysis.tags),
        ai_description=analysis.description,
        created_at=datetime.now(timezone.utc),
    )
    session.add(item)
    await _commit(session, "clothing")
    await session.refresh(item)
    return item


def _resolve_image(user_id: str, payload: ClothingCreate) -> tuple[str, Optional[str]]:
    if payload.key:
        if not key_belongs_to(user_id, payload.key):
            raise ValidationFailure("invalid_image_key", "That upload does not belong to you.")
        if object_size(payload.key) is None:
            raise ValidationFailure("image_not_uploaded", "The image upload did not complete. Please try again.")
        return object_url(payload.key), payload.key
    if payload.image_url:
        return payload.image_url, None
    raise ValidationFailure("image_required", "Please select a file")


async def add_item_from_upload(session: AsyncSession, user_id: str, payload: ClothingCreate) -> ClothingItem:
    """Analyze an uploaded photo and catalog it. Nothing is stored if the analysis fails."""
    image_url, image_key = _resolve_image(user_id, payload)
    category = payload.category.value
    out = await llm_service.analyze_clothing(AnalyzeClothingInput(image_url=image_url, category=category))
    logger.info(
        "closet: analyzed upload user_id=%s category=%s fallback=%s latency_ms=%s",
        user_id,
        category,
        out.usage.fallback,
        out.usage.latency_ms,
    )
    return await create_item(
        session,
        user_id,
        image_url=image_url,
        image_key=image_key,
        category=category,
        analysis=out.analysis,
    )


async def mark_item_worn(
    session: AsyncSession,
    user_id: str,
    item_id: UUID,
    now: Optional[datetime] = None,
) -> ClothingItem:
    item = await session.get(ClothingItem, item_id)
    if item is None or str(item.user_id) != str(user_id):
        raise NotFound("item_not_found")
    item.last_worn_at = now or datetime.now(timezone.utc)
    await _commit(session, "worn")
    await session.refresh(item)
    return item

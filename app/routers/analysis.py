import logging

from fastapi import APIRouter, Depends

from app.auth.deps import get_current_user_id
from app.schemas.schemas import AnalyzeIn, ClothingAnalysis
from app.services import llm as llm_service
from app.services.llm.types import AnalyzeClothingInput

router = APIRouter(tags=["analysis"])
logger = logging.getLogger("uvicorn.error")


@router.post("/analyze", response_model=ClothingAnalysis)
async def analyze_clothing(payload: AnalyzeIn, user_id: str = Depends(get_current_user_id)):
    out = await llm_service.analyze_clothing(
        AnalyzeClothingInput(image_url=payload.image_url, category=payload.category.value)
    )
    logger.info(
        "analyze: user_id=%s category=%s fallback=%s latency_ms=%s",
        user_id,
        payload.category.value,
        out.usage.fallback,
        out.usage.latency_ms,
    )
    return out.analysis

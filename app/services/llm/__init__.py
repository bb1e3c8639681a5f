from __future__ import annotations

from app.core.config import settings
from app.services.llm.providers.base import LLMProvider, NullProvider
from app.services.llm.providers.gateway import GatewayProvider
from app.services.llm.types import (
    AnalyzeClothingInput,
    AnalyzeClothingOutput,
    ChatStream,
    RecommendOutfitsInput,
    RecommendOutfitsOutput,
    StylistChatInput,
)

_provider: LLMProvider | None = None


def _get_provider() -> LLMProvider:
    global _provider
    if _provider:
        return _provider
    if not settings.AI_GATEWAY_API_KEY:
        _provider = NullProvider()
        return _provider
    _provider = GatewayProvider(
        settings.AI_GATEWAY_URL,
        settings.AI_GATEWAY_API_KEY,
        settings.LLM_MODEL,
        timeout_s=settings.LLM_TIMEOUT_S,
        stream_connect_timeout_s=settings.LLM_STREAM_CONNECT_TIMEOUT_S,
        analyze_temperature=settings.LLM_ANALYZE_TEMPERATURE,
        recommend_temperature=settings.LLM_RECOMMEND_TEMPERATURE,
    )
    return _provider


async def analyze_clothing(payload: AnalyzeClothingInput) -> AnalyzeClothingOutput:
    return await _get_provider().analyze_clothing(payload)


async def recommend_outfits(payload: RecommendOutfitsInput) -> RecommendOutfitsOutput:
    return await _get_provider().recommend_outfits(payload)


async def open_stylist_stream(payload: StylistChatInput) -> ChatStream:
    return await _get_provider().open_stylist_stream(payload)

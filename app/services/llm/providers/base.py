from __future__ import annotations

from typing import Protocol

from app.core.errors import UpstreamServiceFailure
from app.services.llm.types import (
    AnalyzeClothingInput,
    AnalyzeClothingOutput,
    ChatStream,
    RecommendOutfitsInput,
    RecommendOutfitsOutput,
    StylistChatInput,
)


class LLMProvider(Protocol):
    async def analyze_clothing(self, payload: AnalyzeClothingInput) -> AnalyzeClothingOutput:
        ...

    async def recommend_outfits(self, payload: RecommendOutfitsInput) -> RecommendOutfitsOutput:
        ...

    async def open_stylist_stream(self, payload: StylistChatInput) -> ChatStream:
        ...


class NullProvider:
    """Stand-in used when no gateway key is configured; every call fails upstream."""

    name = "disabled"

    def _fail(self) -> UpstreamServiceFailure:
        return UpstreamServiceFailure("ai_gateway_not_configured", "The AI service is not configured.")

    async def analyze_clothing(self, payload: AnalyzeClothingInput) -> AnalyzeClothingOutput:
        raise self._fail()

    async def recommend_outfits(self, payload: RecommendOutfitsInput) -> RecommendOutfitsOutput:
        raise self._fail()

    async def open_stylist_stream(self, payload: StylistChatInput) -> ChatStream:
        raise self._fail()

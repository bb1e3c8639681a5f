from __future__ import annotations

from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from app.schemas.schemas import ClothingAnalysis, OutfitOut


class LLMUsage(BaseModel):
    model: str = ""
    tokens_in: int = 0
    tokens_out: int = 0
    latency_ms: int = 0
    fallback: bool = False


class AnalyzeClothingInput(BaseModel):
    image_url: str
    category: str


class AnalyzeClothingOutput(BaseModel):
    analysis: ClothingAnalysis
    usage: LLMUsage = Field(default_factory=LLMUsage)


class RecommendOutfitsInput(BaseModel):
    occasion: str
    weather: str
    profile: Optional[Dict[str, Any]] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)


class RecommendOutfitsOutput(BaseModel):
    outfits: List[OutfitOut] = Field(default_factory=list)
    usage: LLMUsage = Field(default_factory=LLMUsage)


class StylistChatInput(BaseModel):
    profile: Optional[Dict[str, Any]] = None
    items: List[Dict[str, Any]] = Field(default_factory=list)
    messages: List[Dict[str, str]] = Field(default_factory=list)


class ChatStream(Protocol):
    """An opened upstream event stream; the status has already been checked."""

    def iter_bytes(self) -> AsyncIterator[bytes]:
        ...

    async def aclose(self) -> None:
        ...

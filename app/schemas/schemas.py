from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal, Dict, Union

from app.core.taxonomy import Aesthetic, BodyType, Category


class ClothingItemOut(BaseModel):
    id: str
    image_url: str
    category: str
    subcategory: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    season: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    ai_description: Optional[str] = None
    last_worn_at: Optional[str] = None
    created_at: Optional[str] = None


class ClothingCreate(BaseModel):
    category: Category
    key: Optional[str] = None
    image_url: Optional[str] = None


class PresignIn(BaseModel):
    filename: str
    content_type: str = "image/jpeg"

    @field_validator("content_type")
    @classmethod
    def _image_only(cls, v: str) -> str:
        if not v.lower().startswith("image/"):
            raise ValueError("image_content_type_required")
        return v.lower()


class PresignOut(BaseModel):
    key: str
    upload_url: str
    headers: Dict[str, str]
    public_url: str


class AnalyzeIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    image_url: str = Field(..., alias="imageUrl", min_length=1)
    category: Category


class ClothingAnalysis(BaseModel):
    description: str = ""
    color: str = "unknown"
    subcategory: str = ""
    tags: List[str] = Field(default_factory=list)
    material: str = "unknown"
    season: Union[str, List[str]] = "all-season"

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return [str(t) for t in v]

    @field_validator("description", "color", "subcategory", "material", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("season", mode="before")
    @classmethod
    def _season(cls, v):
        if isinstance(v, str):
            return v
        if isinstance(v, (list, tuple)):
            words = [s for s in v if isinstance(s, str) and s.strip()]
            if words:
                return words
        return "all-season"


class UsageSummaryOut(BaseModel):
    total_items: int
    rarely_used_count: int
    seasonal_storage_count: int


class FlaggedItemOut(BaseModel):
    item: ClothingItemOut
    reason: str


class UsageRecommendationOut(BaseModel):
    type: Literal["donate", "store"]
    message: str
    items: List[FlaggedItemOut]


class ClosetInsightsOut(BaseModel):
    summary: UsageSummaryOut
    recommendations: List[UsageRecommendationOut] = Field(default_factory=list)
    current_season: str


class ProfileIn(BaseModel):
    height: Optional[int] = Field(None, gt=0, le=300)
    body_type: Optional[BodyType] = None
    aesthetics: List[Aesthetic] = Field(default_factory=list)
    color_preferences: List[str] = Field(default_factory=list)
    location: Optional[str] = None

    @field_validator("color_preferences", mode="before")
    @classmethod
    def _split_colors(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [c.strip() for c in v if isinstance(c, str) and c.strip()]

    @field_validator("aesthetics", mode="after")
    @classmethod
    def _dedupe(cls, v: List[Aesthetic]) -> List[Aesthetic]:
        return list(dict.fromkeys(v))

    @field_validator("location", mode="before")
    @classmethod
    def _blank_location(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProfileOut(BaseModel):
    id: str
    height: Optional[int] = None
    body_type: Optional[str] = None
    aesthetics: List[str] = Field(default_factory=list)
    color_preferences: List[str] = Field(default_factory=list)
    location: Optional[str] = None


class OutfitRequestIn(BaseModel):
    occasion: str = "casual outing"
    weather: str = "moderate"


class OutfitOut(BaseModel):
    name: str
    items: List[str] = Field(default_factory=list)
    reasoning: str = ""


class OutfitRecommendationsOut(BaseModel):
    outfits: List[OutfitOut] = Field(default_factory=list)
    message: Optional[str] = None


class ChatMessageIn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class StylistChatIn(BaseModel):
    messages: List[ChatMessageIn] = Field(..., min_length=1)

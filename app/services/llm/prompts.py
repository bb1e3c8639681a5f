from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from app.services.llm.types import AnalyzeClothingInput, RecommendOutfitsInput, StylistChatInput


ANALYZE_SYS = (
    "You are a fashion expert analyzing clothing items. Extract detailed information and return it in JSON "
    "format with fields: description (brief 1-2 sentence description), color (main color name), subcategory "
    "(specific type like \"t-shirt\", \"jeans\", \"sneakers\"), tags (array of descriptive tags), material "
    "(fabric type if visible), season (suitable season)."
)

RECOMMEND_SYS = """You are a professional fashion stylist. Create outfit recommendations by combining clothing items from the user's closet. Return ONLY valid JSON in this exact format:
{
  "outfits": [
    {
      "name": "Outfit Name",
      "items": ["item description 1", "item description 2", "item description 3"],
      "reasoning": "Why this outfit works for the occasion and weather"
    }
  ]
}
Generate 3-5 complete outfits. Each outfit should include items from different categories (tops, bottoms, footwear, etc.) that work well together."""

STYLIST_SYS = """You are a professional AI fashion stylist assistant. You help users create perfect outfits from their virtual closet.

USER PROFILE:
- Height: {height} cm
- Body Type: {body_type}
- Aesthetics: {aesthetics}
- Color Preferences: {colors}

AVAILABLE CLOTHING ITEMS:
{items}

When recommending outfits:
1. Consider the user's body type, height, and aesthetic preferences
2. Only suggest items from their available closet
3. Consider the occasion and weather they mention
4. Explain why each outfit works for them
5. Be conversational, friendly, and encouraging
6. If they don't have suitable items, suggest what types of pieces would complete the look

Keep responses concise and actionable."""

NOT_SPECIFIED = "not specified"


def build_analyze_prompt(payload: AnalyzeClothingInput) -> List[Dict[str, Any]]:
    return [
        {"role": "system", "content": ANALYZE_SYS},
        {
            "role": "user",
            "content": [
                {
                    "type": "text",
                    "text": (
                        f"Analyze this {payload.category} clothing item. "
                        "Provide: description, color, subcategory, tags, material, and season."
                    ),
                },
                {"type": "image_url", "image_url": {"url": payload.image_url}},
            ],
        },
    ]


def _profile_line(profile: Optional[Dict[str, Any]]) -> str:
    if not profile:
        return ""
    aesthetics = ", ".join(profile.get("aesthetics") or [])
    return (
        f"User preferences: Height {profile.get('height')}cm, "
        f"Body type: {profile.get('body_type')}, Aesthetics: {aesthetics}"
    )


def build_recommend_prompt(payload: RecommendOutfitsInput) -> List[Dict[str, str]]:
    user = (
        "Create outfit recommendations for:\n"
        f"Occasion: {payload.occasion}\n"
        f"Weather: {payload.weather}\n"
        f"{_profile_line(payload.profile)}\n\n"
        "Available clothing items:\n"
        f"{json.dumps(payload.items, indent=2, ensure_ascii=False)}\n\n"
        "Return complete outfit combinations with reasoning."
    )
    return [
        {"role": "system", "content": RECOMMEND_SYS},
        {"role": "user", "content": user},
    ]


def build_stylist_system_prompt(profile: Optional[Dict[str, Any]], items: List[Dict[str, Any]]) -> str:
    profile = profile or {}
    return STYLIST_SYS.format(
        height=profile.get("height") or NOT_SPECIFIED,
        body_type=profile.get("body_type") or NOT_SPECIFIED,
        aesthetics=", ".join(profile.get("aesthetics") or []) or NOT_SPECIFIED,
        colors=", ".join(profile.get("color_preferences") or []) or NOT_SPECIFIED,
        items=json.dumps(items, indent=2, ensure_ascii=False),
    )


def build_stylist_messages(payload: StylistChatInput) -> List[Dict[str, str]]:
    system = build_stylist_system_prompt(payload.profile, payload.items)
    return [{"role": "system", "content": system}, *payload.messages]

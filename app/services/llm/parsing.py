from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from app.core.errors import ParseFailure
from app.schemas.schemas import ClothingAnalysis, OutfitOut

logger = logging.getLogger("uvicorn.error")

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

FALLBACK_OUTFIT_NAME = "Casual Everyday Look"
FALLBACK_OUTFIT_REASONING = "A simple combination from your closet that works for most occasions."


def extract_json_object(raw: str) -> Dict[str, Any]:
    """Parse the outermost ``{...}`` block of a model reply (models like to wrap JSON in prose or fences)."""
    match = _JSON_BLOCK.search(raw or "")
    if not match:
        raise ParseFailure("no_json_found")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ParseFailure("invalid_json") from e
    if not isinstance(data, dict):
        raise ParseFailure("invalid_json")
    return data


def fallback_analysis(raw: str, category: str) -> ClothingAnalysis:
    return ClothingAnalysis(
        description=(raw or "")[:200],
        color="unknown",
        subcategory=category,
        tags=[category],
        material="unknown",
        season="all-season",
    )


def parse_analysis(raw: str, category: str) -> tuple[ClothingAnalysis, bool]:
    """Return the analysis and whether the fallback record was used."""
    try:
        data = extract_json_object(raw)
        analysis = ClothingAnalysis.model_validate(data)
    except (ParseFailure, ValidationError) as e:
        logger.warning("llm:analyze parse failed reason=%s raw=%.200r", e, raw)
        return fallback_analysis(raw, category), True
    if not analysis.subcategory:
        analysis.subcategory = category
    if not analysis.tags:
        analysis.tags = [category]
    return analysis, False


def fallback_outfits(items: List[Dict[str, Any]]) -> List[OutfitOut]:
    return [
        OutfitOut(
            name=FALLBACK_OUTFIT_NAME,
            items=[f"{it.get('color')} {it.get('subcategory')}" for it in items[:3]],
            reasoning=FALLBACK_OUTFIT_REASONING,
        )
    ]


def parse_outfits(raw: str, items: List[Dict[str, Any]]) -> tuple[List[OutfitOut], bool]:
    try:
        data = extract_json_object(raw)
        outfits = data.get("outfits")
        if not isinstance(outfits, list):
            raise ParseFailure("outfits_missing")
    except ParseFailure as e:
        logger.warning("llm:recommend parse failed reason=%s raw=%.200r", e, raw)
        return fallback_outfits(items), True
    out: List[OutfitOut] = []
    for entry in outfits:
        if not isinstance(entry, dict):
            continue
        try:
            out.append(OutfitOut.model_validate(entry))
        except ValidationError:
            continue
    return out, False

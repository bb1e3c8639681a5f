"""Closet usage insights: which items to donate and which to put away.

Pure functions over the catalog; callers pass ``now`` so results are
reproducible.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence

from app.core.taxonomy import Season, normalize_seasons, season_for


@dataclass
class UsageSummary:
    total_items: int = 0
    rarely_used_count: int = 0
    seasonal_storage_count: int = 0


@dataclass
class FlaggedItem:
    item: Any
    reason: str


@dataclass
class UsageRecommendation:
    type: str  # donate | store
    message: str
    items: List[FlaggedItem] = field(default_factory=list)


@dataclass
class WardrobeAnalysis:
    summary: UsageSummary
    recommendations: List[UsageRecommendation]
    current_season: Season


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _item_seasons(item: Any) -> List[str]:
    # no season data means wearable year-round
    return normalize_seasons(getattr(item, "season", None))


def days_since_worn(item: Any, now: datetime) -> Optional[int]:
    last = getattr(item, "last_worn_at", None)
    if last is None:
        return None
    return max((_as_utc(now) - _as_utc(last)).days, 0)


def rarely_used_reason(item: Any, now: datetime, rarely_used_days: int) -> Optional[str]:
    last = getattr(item, "last_worn_at", None)
    if last is None:
        return "Never worn"
    if _as_utc(now) - _as_utc(last) > timedelta(days=rarely_used_days):
        return f"Not worn in {days_since_worn(item, now)} days"
    return None


def seasonal_storage_reason(item: Any, now: datetime, recent_wear_days: int) -> Optional[str]:
    current = season_for(_as_utc(now))
    if current.value in _item_seasons(item):
        return None
    last = getattr(item, "last_worn_at", None)
    if last is not None and _as_utc(now) - _as_utc(last) <= timedelta(days=recent_wear_days):
        return None
    return f"Out of season: currently {current.value}"


def _plural(n: int) -> str:
    return "item" if n == 1 else "items"


def analyze_wardrobe(
    items: Sequence[Any],
    now: datetime,
    *,
    rarely_used_days: int = 90,
    recent_wear_days: int = 30,
) -> WardrobeAnalysis:
    """Summarize closet usage and group donate/store suggestions.

    An item that is both rarely used and out of season is only listed under
    donation, so the two groups never overlap and the summary counts match
    the group sizes.
    """
    now = _as_utc(now)
    current = season_for(now)
    donate: List[FlaggedItem] = []
    store: List[FlaggedItem] = []

    for item in items:
        reason = rarely_used_reason(item, now, rarely_used_days)
        if reason:
            donate.append(FlaggedItem(item=item, reason=reason))
            continue
        reason = seasonal_storage_reason(item, now, recent_wear_days)
        if reason:
            store.append(FlaggedItem(item=item, reason=reason))

    recommendations: List[UsageRecommendation] = []
    if donate:
        recommendations.append(UsageRecommendation(
            type="donate",
            message=(
                f"You have {len(donate)} {_plural(len(donate))} you haven't worn in over "
                f"{rarely_used_days} days. Consider donating what you no longer love."
            ),
            items=donate,
        ))
    if store:
        recommendations.append(UsageRecommendation(
            type="store",
            message=(
                f"It's {current.value}. Consider moving {len(store)} out-of-season "
                f"{_plural(len(store))} to storage to free up space."
            ),
            items=store,
        ))

    summary = UsageSummary(
        total_items=len(items),
        rarely_used_count=len(donate),
        seasonal_storage_count=len(store),
    )
    return WardrobeAnalysis(summary=summary, recommendations=recommendations, current_season=current)

import re
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Union


class Category(str, Enum):
    top = "top"
    bottom = "bottom"
    dress = "dress"
    outerwear = "outerwear"
    footwear = "footwear"
    accessory = "accessory"


class BodyType(str, Enum):
    athletic = "athletic"
    slim = "slim"
    curvy = "curvy"
    plus_size = "plus_size"
    petite = "petite"
    tall = "tall"


class Aesthetic(str, Enum):
    minimalist = "minimalist"
    bohemian = "bohemian"
    streetwear = "streetwear"
    classic = "classic"
    romantic = "romantic"
    edgy = "edgy"
    preppy = "preppy"
    casual = "casual"


class Season(str, Enum):
    spring = "spring"
    summer = "summer"
    fall = "fall"
    winter = "winter"


ALL_SEASONS = [s.value for s in Season]
ALL_SEASON_WORDS = {"all-season", "all-seasons", "all", "year-round", "any", "all-year"}
SEASON_ALIASES = {"autumn": "fall"}

# Northern hemisphere, by calendar month
_MONTH_SEASON = {
    12: Season.winter, 1: Season.winter, 2: Season.winter,
    3: Season.spring, 4: Season.spring, 5: Season.spring,
    6: Season.summer, 7: Season.summer, 8: Season.summer,
    9: Season.fall, 10: Season.fall, 11: Season.fall,
}


def season_for(moment: datetime) -> Season:
    return _MONTH_SEASON[moment.month]


def normalize_seasons(raw: Union[str, Iterable[str], None]) -> List[str]:
    """Map free-form season text from the vision model onto the season enum.

    Accepts a string ("summer", "spring, summer", "all-season") or a list of
    strings. Unknown words are dropped; an empty result means all seasons.
    """
    if raw is None:
        return list(ALL_SEASONS)
    parts: List[str] = []
    values = [raw] if isinstance(raw, str) else list(raw)
    for value in values:
        if not isinstance(value, str):
            continue
        for chunk in re.split(r"[,/;&]|\band\b", value.lower()):
            word = re.sub(r"\s+", "-", chunk.strip())
            if word:
                parts.append(word)
    out: List[str] = []
    for word in parts:
        if word in ALL_SEASON_WORDS:
            return list(ALL_SEASONS)
        word = SEASON_ALIASES.get(word, word)
        if word in ALL_SEASONS and word not in out:
            out.append(word)
    if not out:
        return list(ALL_SEASONS)
    return sorted(out, key=ALL_SEASONS.index)

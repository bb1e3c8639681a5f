"""User-facing notices for client surfaces."""
from dataclasses import dataclass
from typing import Any, Dict

from app.core.errors import ClosetError, PaymentRequired, RateLimited

NO_OUTFITS = "No outfits found. Try uploading more items to your closet!"


@dataclass(frozen=True)
class Notice:
    level: str  # error | info | success
    message: str


def error_notice(exc: BaseException, default: str = "Something went wrong. Please try again.") -> Notice:
    if isinstance(exc, RateLimited):
        return Notice("error", RateLimited.message)
    if isinstance(exc, PaymentRequired):
        return Notice("error", PaymentRequired.message)
    if isinstance(exc, ClosetError) and exc.message:
        return Notice("error", exc.message)
    return Notice("error", default)


def recommendations_notice(result: Dict[str, Any]) -> Notice:
    outfits = result.get("outfits") or []
    if not outfits:
        return Notice("info", NO_OUTFITS)
    return Notice("success", f"Generated {len(outfits)} outfit recommendations!")


def item_added_notice() -> Notice:
    return Notice("success", "Clothing item added to your closet!")

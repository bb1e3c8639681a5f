from typing import Optional


class ClosetError(Exception):
    """Base for failures that are shown to the user as a readable message."""

    status_code = 500
    code = "internal_error"
    message = "Something went wrong. Please try again."

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None, *, status_code: Optional[int] = None):
        if code is not None:
            self.code = code
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class Unauthenticated(ClosetError):
    status_code = 401
    code = "unauthorized"
    message = "Please sign in to continue."


class ValidationFailure(ClosetError):
    status_code = 422
    code = "validation_failed"
    message = "Some required fields are missing."


class UpstreamServiceFailure(ClosetError):
    status_code = 502
    code = "upstream_failed"
    message = "The AI service is unavailable right now."


class RateLimited(UpstreamServiceFailure):
    status_code = 429
    code = "rate_limited"
    message = "Too many requests. Please try again shortly."


class PaymentRequired(UpstreamServiceFailure):
    status_code = 402
    code = "payment_required"
    message = "AI usage limit reached. Please add credits to continue."


class ParseFailure(ClosetError):
    """AI output was not valid structured data. Callers recover with a fallback."""

    code = "parse_failed"
    message = "The AI response could not be read."


class NotFound(ClosetError):
    status_code = 404
    code = "not_found"
    message = "That item could not be found."


class TransientIO(ClosetError):
    status_code = 503
    code = "persistence_unavailable"
    message = "Could not save your changes. Please try again."


class StreamStartFailure(ClosetError):
    code = "stream_start_failed"
    message = "Failed to start stream"


class StreamParseError(ClosetError):
    code = "stream_malformed"
    message = "The stylist response could not be read."


def upstream_error_for_status(status: int, where: str) -> UpstreamServiceFailure:
    if status == 429:
        return RateLimited()
    if status == 402:
        return PaymentRequired()
    return UpstreamServiceFailure(f"{where}_failed", f"AI {where} failed: {status}")

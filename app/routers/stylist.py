import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_user_id
from app.core.config import settings
from app.core.db import get_session
from app.core.errors import StreamParseError
from app.schemas.schemas import StylistChatIn
from app.services import closet
from app.services import llm as llm_service
from app.services.chat_stream import SSEDeltaParser
from app.services.llm.types import ChatStream, StylistChatInput

router = APIRouter(prefix="/stylist", tags=["stylist"])
logger = logging.getLogger("uvicorn.error")


async def _relay(stream: ChatStream, user_id: str) -> AsyncIterator[bytes]:
    """Pass upstream bytes through unchanged while tallying the reply for the log line."""
    parser = SSEDeltaParser(max_malformed=settings.CHAT_STREAM_MAX_MALFORMED)
    chars = 0
    inspect = True
    try:
        async for chunk in stream.iter_bytes():
            if inspect:
                try:
                    chars += sum(len(d) for d in parser.feed(chunk))
                except StreamParseError as e:
                    logger.warning("stylist: unreadable upstream frame user_id=%s reason=%s", user_id, e)
                    inspect = False
            yield chunk
        if inspect:
            chars += sum(len(d) for d in parser.finish())
        logger.info("stylist: stream finished user_id=%s chars=%d done=%s", user_id, chars, parser.done)
    finally:
        await stream.aclose()


@router.post("/chat")
async def stylist_chat(
    payload: StylistChatIn,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    items = await closet.list_items(session, user_id)
    profile = await closet.get_profile(session, user_id)
    # Open before responding so upstream failures surface as a status code.
    stream = await llm_service.open_stylist_stream(
        StylistChatInput(
            profile=closet.profile_prompt_payload(profile),
            items=[closet.item_prompt_payload(i) for i in items],
            messages=[m.model_dump() for m in payload.messages],
        )
    )
    return StreamingResponse(
        _relay(stream, user_id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )

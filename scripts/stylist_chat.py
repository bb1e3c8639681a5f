from __future__ import annotations

import asyncio
import os
import sys

from dotenv import load_dotenv

from app.clients.api import ClosetClient
from app.clients.chat import Conversation, stream_reply
from app.clients.notices import error_notice
from app.core.config import settings
from app.core.errors import ClosetError

load_dotenv()


async def _run(base_url: str, token: str) -> None:
    conversation = Conversation()
    async with ClosetClient(base_url, token) as client:
        while True:
            try:
                text = (await asyncio.to_thread(input, "you> ")).strip()
            except EOFError:
                break
            if not text:
                continue
            if text in {"/quit", "/exit"}:
                break
            shown = 0
            print("stylist> ", end="", flush=True)
            try:
                async for content in stream_reply(
                    client, conversation, text, max_malformed=settings.CHAT_STREAM_MAX_MALFORMED
                ):
                    print(content[shown:], end="", flush=True)
                    shown = len(content)
                print()
            except ClosetError as e:
                notice = error_notice(e.__cause__ or e, default="Failed to get response")
                print(f"\n{notice.level}: {notice.message}")


if __name__ == "__main__":
    base = os.getenv("CLOSET_API_URL", f"http://localhost:8000{settings.API_PREFIX}")
    token = os.getenv("CLOSET_TOKEN") or (sys.argv[1] if len(sys.argv) > 1 else "")
    if not token:
        print("usage: python3 scripts/stylist_chat.py <access_token>  (or set CLOSET_TOKEN)")
        sys.exit(1)
    asyncio.run(_run(base, token))

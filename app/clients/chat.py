"""Stylist conversation state for chat clients.

A conversation holds committed messages plus at most one pending assistant
message that grows while a reply streams in. A turn that does not finish
cleanly removes its pending message so the history never shows a
half-written reply.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional

from app.clients.api import ClosetClient
from app.services.chat_stream import stream_assistant_content

logger = logging.getLogger("app.clients")


@dataclass
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class Conversation:
    messages: List[ChatMessage] = field(default_factory=list)
    pending: Optional[ChatMessage] = None

    def add_user(self, text: str) -> ChatMessage:
        if self.pending is not None:
            raise RuntimeError("a reply is still streaming")
        msg = ChatMessage("user", text)
        self.messages.append(msg)
        return msg

    def begin_assistant(self) -> ChatMessage:
        if self.pending is not None:
            raise RuntimeError("a reply is already pending")
        self.pending = ChatMessage("assistant", "")
        return self.pending

    def update_pending(self, content: str) -> None:
        if self.pending is None:
            raise RuntimeError("no pending reply")
        self.pending.content = content

    def commit(self) -> Optional[ChatMessage]:
        msg, self.pending = self.pending, None
        if msg is None or not msg.content:
            return None
        self.messages.append(msg)
        return msg

    def rollback(self) -> None:
        self.pending = None

    def visible(self) -> List[ChatMessage]:
        if self.pending is None:
            return list(self.messages)
        return self.messages + [self.pending]

    def history(self) -> List[Dict[str, str]]:
        return [m.to_dict() for m in self.messages]


async def stream_reply(
    client: ClosetClient,
    conversation: Conversation,
    text: str,
    *,
    max_malformed: int = 3,
) -> AsyncIterator[str]:
    """Send ``text`` and yield the assistant reply as it accumulates.

    The user message is kept whatever happens. The pending assistant message
    is committed once the stream ends and rolled back on any error or when
    the caller stops iterating early.
    """
    conversation.add_user(text)
    async with client.open_chat_stream(conversation.history()) as response:
        conversation.begin_assistant()
        committed = False
        try:
            async for content in stream_assistant_content(response.aiter_bytes(), max_malformed=max_malformed):
                conversation.update_pending(content)
                yield content
            conversation.commit()
            committed = True
        finally:
            if not committed:
                logger.info("chat: discarding unfinished reply")
                conversation.rollback()

"""Incremental reader for chat-completion event streams.

The stylist endpoint relays the gateway's ``text/event-stream`` body. Each
``data:`` line carries a JSON chunk whose ``choices[0].delta.content`` is the
next piece of the assistant reply, and ``data: [DONE]`` ends the stream.
Network reads can stop anywhere, including inside a line or inside a
multi-byte character, so bytes are buffered until a full line is available.
"""
from __future__ import annotations

import codecs
import json
import logging
from typing import AsyncIterable, AsyncIterator, List, Optional

from app.core.errors import StreamParseError

logger = logging.getLogger("uvicorn.error")

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSEDeltaParser:
    """Turns raw stream bytes into assistant text deltas.

    ``feed`` returns the deltas completed by a chunk. A ``data:`` line whose
    payload is not valid JSON is put back at the head of the buffer and
    retried once more bytes arrive; after ``max_malformed`` failed attempts
    on the same line :class:`StreamParseError` is raised.
    """

    def __init__(self, max_malformed: int = 3):
        self.max_malformed = max(1, max_malformed)
        self.done = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._retry_line: Optional[str] = None
        self._retry_count = 0

    def feed(self, chunk: bytes) -> List[str]:
        if self.done:
            return []
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def finish(self) -> List[str]:
        """Flush whatever is left once the underlying stream has ended."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        deltas: List[str] = []
        for line in self._buffer.split("\n"):
            if self.done:
                break
            try:
                delta = self._parse_line(line)
            except ValueError:
                logger.warning("chat-stream: dropping malformed trailing line len=%s", len(line))
                continue
            if delta:
                deltas.append(delta)
        self._buffer = ""
        return deltas

    def _drain(self) -> List[str]:
        deltas: List[str] = []
        while not self.done:
            idx = self._buffer.find("\n")
            if idx == -1:
                break
            line = self._buffer[:idx]
            self._buffer = self._buffer[idx + 1:]
            try:
                delta = self._parse_line(line)
            except ValueError:
                self._push_back(line)
                break
            self._retry_line = None
            self._retry_count = 0
            if delta:
                deltas.append(delta)
        return deltas

    def _push_back(self, line: str) -> None:
        if line == self._retry_line:
            self._retry_count += 1
        else:
            self._retry_line = line
            self._retry_count = 1
        if self._retry_count >= self.max_malformed:
            logger.warning("chat-stream: malformed data line after %s attempts", self._retry_count)
            raise StreamParseError()
        self._buffer = line + "\n" + self._buffer

    def _parse_line(self, line: str) -> Optional[str]:
        if line.endswith("\r"):
            line = line[:-1]
        if line.startswith(":") or line.strip() == "":
            return None
        if not line.startswith(DATA_PREFIX):
            return None
        payload = line[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            self.done = True
            return None
        data = json.loads(payload)
        try:
            content = data["choices"][0]["delta"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            return None
        if isinstance(content, str) and content:
            return content
        return None


async def stream_assistant_content(
    chunks: AsyncIterable[bytes], *, max_malformed: int = 3
) -> AsyncIterator[str]:
    """Yield the full assistant reply so far after every received delta."""
    parser = SSEDeltaParser(max_malformed=max_malformed)
    content = ""
    async for chunk in chunks:
        for delta in parser.feed(chunk):
            content += delta
            yield content
        if parser.done:
            break
    else:
        for delta in parser.finish():
            content += delta
            yield content

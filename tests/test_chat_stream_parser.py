import pytest

from app.core.errors import StreamParseError
from app.services.chat_stream import SSEDeltaParser, stream_assistant_content


def _chunk(content: str) -> bytes:
    return ('data: {"choices":[{"delta":{"content":"%s"}}]}\n' % content).encode()


async def _aiter(chunks):
    for c in chunks:
        yield c


async def _collect(chunks, **kwargs):
    return [c async for c in stream_assistant_content(_aiter(chunks), **kwargs)]


async def test_single_delta_then_done():
    emitted = await _collect([_chunk("Hi"), b"data: [DONE]\n"])
    assert emitted == ["Hi"]


async def test_line_split_across_reads():
    emitted = await _collect([b'data: {"cho', b'ices":[{"delta":{"content":"Hello"}}]}\n', b"data: [DONE]\n"])
    assert emitted == ["Hello"]


async def test_content_accumulates_per_delta():
    emitted = await _collect([_chunk("Wear "), _chunk("the "), _chunk("blazer."), b"data: [DONE]\n"])
    assert emitted == ["Wear ", "Wear the ", "Wear the blazer."]


async def test_stops_at_done_and_ignores_rest():
    emitted = await _collect([_chunk("A") + b"data: [DONE]\n" + _chunk("B"), _chunk("C")])
    assert emitted == ["A"]


async def test_comments_blank_lines_and_crlf_are_skipped():
    body = (
        b": keep-alive\r\n"
        b"\r\n"
        b"event: message\r\n"
        b'data: {"choices":[{"delta":{"role":"assistant"}}]}\r\n'
        b'data: {"choices":[{"delta":{"content":"ok"}}]}\r\n'
        b"data: [DONE]\r\n"
    )
    assert await _collect([body]) == ["ok"]


async def test_multibyte_character_split_across_reads():
    raw = _chunk("café ✨")
    idx = raw.index("✨".encode()) + 1
    emitted = await _collect([raw[:idx], raw[idx:], b"data: [DONE]\n"])
    assert emitted == ["café ✨"]


async def test_unterminated_final_line_is_flushed_at_end_of_stream():
    emitted = await _collect([_chunk("Hi"), b'data: {"choices":[{"delta":{"content":"!"}}]}'])
    assert emitted == ["Hi", "Hi!"]


def test_malformed_line_is_retried_then_rejected():
    parser = SSEDeltaParser(max_malformed=3)
    assert parser.feed(b"data: {not json}\n") == []
    assert parser.feed(_chunk("later")) == []
    with pytest.raises(StreamParseError):
        parser.feed(b"\n")


def test_malformed_line_dropped_on_finish():
    parser = SSEDeltaParser(max_malformed=3)
    assert parser.feed(b"data: {not json}\n" + _chunk("after")) == []
    assert parser.finish() == ["after"]


def test_feed_after_done_is_ignored():
    parser = SSEDeltaParser()
    parser.feed(b"data: [DONE]\n")
    assert parser.done is True
    assert parser.feed(_chunk("late")) == []
    assert parser.finish() == []

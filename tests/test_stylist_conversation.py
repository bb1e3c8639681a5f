import json

import httpx
import pytest

from app.clients.api import ClosetClient, replace_item
from app.clients.chat import Conversation, stream_reply
from app.clients.notices import error_notice, item_added_notice, recommendations_notice
from app.core.errors import RateLimited, StreamParseError, StreamStartFailure, UpstreamServiceFailure, ValidationFailure


def _sse(*contents: str, done: bool = True) -> bytes:
    body = b"".join(
        b"data: " + json.dumps({"choices": [{"delta": {"content": c}}]}).encode() + b"\n\n" for c in contents
    )
    if done:
        body += b"data: [DONE]\n\n"
    return body


def _client(handler) -> ClosetClient:
    return ClosetClient("http://test/v1", "token", transport=httpx.MockTransport(handler))


def test_pending_message_lifecycle():
    conv = Conversation()
    conv.add_user("What goes with jeans?")
    conv.begin_assistant()
    conv.update_pending("A white tee")
    assert [m.role for m in conv.visible()] == ["user", "assistant"]
    assert conv.history() == [{"role": "user", "content": "What goes with jeans?"}]
    conv.rollback()
    assert conv.pending is None
    assert [m.role for m in conv.visible()] == ["user"]


def test_commit_discards_empty_reply():
    conv = Conversation()
    conv.add_user("hi")
    conv.begin_assistant()
    assert conv.commit() is None
    assert len(conv.messages) == 1


async def test_stream_reply_commits_full_reply():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, content=_sse("Pair it ", "with loafers."), headers={"content-type": "text/event-stream"})

    conv = Conversation()
    async with _client(handler) as client:
        updates = [c async for c in stream_reply(client, conv, "Date night outfit?")]

    assert updates == ["Pair it ", "Pair it with loafers."]
    assert seen["auth"] == "Bearer token"
    assert seen["body"] == {"messages": [{"role": "user", "content": "Date night outfit?"}]}
    assert conv.pending is None
    assert conv.history()[-1] == {"role": "assistant", "content": "Pair it with loafers."}


async def test_stream_start_failure_keeps_user_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "rate_limited", "message": "Too many requests. Please try again shortly."})

    conv = Conversation()
    async with _client(handler) as client:
        with pytest.raises(StreamStartFailure) as exc:
            async for _ in stream_reply(client, conv, "hello"):
                pass

    assert isinstance(exc.value.__cause__, RateLimited)
    assert error_notice(exc.value.__cause__).message == "Too many requests. Please try again shortly."
    assert conv.pending is None
    assert conv.history() == [{"role": "user", "content": "hello"}]


async def test_no_content_response_is_a_start_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    conv = Conversation()
    async with _client(handler) as client:
        with pytest.raises(StreamStartFailure):
            async for _ in stream_reply(client, conv, "hello"):
                pass
    assert conv.pending is None


async def test_malformed_stream_rolls_back_pending_reply():
    body = _sse("Start", done=False) + b"data: {broken\n"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=body)

    conv = Conversation()
    async with _client(handler) as client:
        with pytest.raises(StreamParseError):
            async for _ in stream_reply(client, conv, "hello", max_malformed=1):
                pass

    assert conv.pending is None
    assert [m.role for m in conv.messages] == ["user"]


async def test_abandoned_stream_rolls_back():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse("one ", "two"))

    conv = Conversation()
    async with _client(handler) as client:
        gen = stream_reply(client, conv, "hello")
        assert await gen.__anext__() == "one "
        await gen.aclose()

    assert conv.pending is None
    assert [m.role for m in conv.messages] == ["user"]


async def test_mark_worn_replaces_only_that_item():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/clothes/b/worn"
        return httpx.Response(200, json={"id": "b", "last_worn_at": "2026-10-19T10:00:00+00:00"})

    items = [{"id": "a", "last_worn_at": None}, {"id": "b", "last_worn_at": None}, {"id": "c", "last_worn_at": None}]
    async with _client(handler) as client:
        updated = await client.mark_worn("b")
    new_items = replace_item(items, updated)

    assert [i["id"] for i in new_items] == ["a", "b", "c"]
    assert new_items[1]["last_worn_at"] == "2026-10-19T10:00:00+00:00"
    assert new_items[0] is items[0] and new_items[2] is items[2]


def test_recommendations_notice_for_empty_result():
    notice = recommendations_notice({"outfits": []})
    assert notice.level == "info"
    assert notice.message == "No outfits found. Try uploading more items to your closet!"
    assert recommendations_notice({"outfits": [{"name": "x"}]}).level == "success"


async def test_chat_stream_uses_configured_connect_timeout():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["timeout"] = request.extensions["timeout"]
        return httpx.Response(200, content=_sse("ok"))

    conv = Conversation()
    client = ClosetClient("http://test/v1", "token", stream_connect_timeout=2.5, transport=httpx.MockTransport(handler))
    async with client:
        assert [c async for c in stream_reply(client, conv, "hi")] == ["ok"]
    assert seen["timeout"]["connect"] == 2.5
    assert seen["timeout"]["read"] is None


async def test_upload_clothing_presigns_puts_then_catalogs():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path == "/v1/clothes/uploads/presign":
            return httpx.Response(200, json={
                "key": "u/test-user/clothes/1-abc-tee.jpg",
                "upload_url": "https://r2.example.com/closet/u/test-user/clothes/1-abc-tee.jpg?X-Amz-Signature=s",
                "headers": {"Content-Type": "image/jpeg"},
                "public_url": "https://r2.example.com/closet/u/test-user/clothes/1-abc-tee.jpg",
            })
        if request.method == "PUT":
            return httpx.Response(200)
        return httpx.Response(200, json={"id": "1", "color": "navy", "subcategory": "t-shirt", "season": ["summer"]})

    async with _client(handler) as client:
        item = await client.upload_clothing("tee.jpg", b"\xff\xd8jpeg", "image/jpeg", "top")

    presign, put, create = calls
    assert json.loads(presign.content) == {"filename": "tee.jpg", "content_type": "image/jpeg"}
    assert put.url.host == "r2.example.com"
    assert put.content == b"\xff\xd8jpeg"
    assert put.headers["Content-Type"] == "image/jpeg"
    assert "Authorization" not in put.headers
    assert json.loads(create.content) == {"category": "top", "key": "u/test-user/clothes/1-abc-tee.jpg", "image_url": None}
    assert item["color"] == "navy"
    assert item_added_notice().message == "Clothing item added to your closet!"
    assert item_added_notice().level == "success"


async def test_upload_clothing_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            return httpx.Response(403)
        return httpx.Response(200, json={"key": "k", "upload_url": "https://r2.example.com/k", "headers": {}, "public_url": "p"})

    async with _client(handler) as client:
        with pytest.raises(ValidationFailure) as empty:
            await client.upload_clothing("tee.jpg", b"", "image/jpeg", "top")
        with pytest.raises(UpstreamServiceFailure) as rejected:
            await client.upload_clothing("tee.jpg", b"data", "image/jpeg", "top")

    assert error_notice(empty.value).message == "Please select a file"
    assert error_notice(rejected.value, default="Failed to upload item").message == "Failed to upload item"

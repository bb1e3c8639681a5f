from typing import List

import httpx
import pytest
from asgi_lifespan import LifespanManager
from botocore.exceptions import ClientError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.main import app
from app.auth import deps as auth_deps
from app.core.db import Base, get_session
from app.models import models  # noqa: F401
from app.schemas.schemas import ClothingAnalysis, OutfitOut
from app.services import llm as llm_service
from app.services.llm.types import (
    AnalyzeClothingInput,
    AnalyzeClothingOutput,
    LLMUsage,
    RecommendOutfitsInput,
    RecommendOutfitsOutput,
    StylistChatInput,
)

API_BASE = "http://test"
USER_ID = "test-user"


class FakeChatStream:
    def __init__(self, chunks: List[bytes]):
        self.chunks = chunks
        self.closed = False

    async def iter_bytes(self):
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


class FakeProvider:
    def __init__(self):
        self.analysis = ClothingAnalysis(
            description="A navy cotton crew-neck tee.",
            color="navy",
            subcategory="t-shirt",
            tags=["casual", "basic"],
            material="cotton",
            season="spring, summer",
        )
        self.outfits = [OutfitOut(name="Weekend Ease", items=["navy t-shirt", "blue jeans"], reasoning="Relaxed.")]
        self.stream_chunks: List[bytes] = [
            b'data: {"choices":[{"delta":{"content":"Try the "}}]}\n\n',
            b'data: {"choices":[{"delta":{"content":"navy tee."}}]}\n\n',
            b"data: [DONE]\n\n",
        ]
        self.error = None
        self.analyze_calls: List[AnalyzeClothingInput] = []
        self.recommend_calls: List[RecommendOutfitsInput] = []
        self.chat_calls: List[StylistChatInput] = []
        self.streams: List[FakeChatStream] = []

    async def analyze_clothing(self, payload: AnalyzeClothingInput) -> AnalyzeClothingOutput:
        self.analyze_calls.append(payload)
        if self.error:
            raise self.error
        return AnalyzeClothingOutput(analysis=self.analysis.model_copy(), usage=LLMUsage(model="fake"))

    async def recommend_outfits(self, payload: RecommendOutfitsInput) -> RecommendOutfitsOutput:
        self.recommend_calls.append(payload)
        if self.error:
            raise self.error
        return RecommendOutfitsOutput(outfits=list(self.outfits), usage=LLMUsage(model="fake"))

    async def open_stylist_stream(self, payload: StylistChatInput) -> FakeChatStream:
        self.chat_calls.append(payload)
        if self.error:
            raise self.error
        stream = FakeChatStream(list(self.stream_chunks))
        self.streams.append(stream)
        return stream


class DummyS3:
    def __init__(self, existing=None):
        self.existing = set(existing or [])

    def generate_presigned_url(self, op, Params, ExpiresIn):
        return f"https://presigned/{Params['Bucket']}/{Params['Key']}?expires={ExpiresIn}"

    def head_object(self, Bucket, Key):
        if Key not in self.existing:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {"ContentLength": 1234}


@pytest.fixture(autouse=True)
def override_auth():
    app.dependency_overrides[auth_deps.get_current_user_id] = lambda: USER_ID
    yield
    app.dependency_overrides.pop(auth_deps.get_current_user_id, None)


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def override_db(session_factory):
    async def _get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield
    app.dependency_overrides.pop(get_session, None)


@pytest.fixture
def fake_llm(monkeypatch):
    provider = FakeProvider()
    monkeypatch.setattr(llm_service, "_provider", provider)
    return provider


@pytest.fixture
def dummy_s3(monkeypatch):
    from app.storage import r2 as storage_r2

    dummy = DummyS3()
    monkeypatch.setattr(storage_r2, "r2_client", lambda: dummy)
    monkeypatch.setattr(storage_r2, "R2_BUCKET", "closet")
    monkeypatch.setattr(storage_r2, "R2_ENDPOINT", "https://r2.example.com")
    monkeypatch.setattr(storage_r2, "R2_CDN_BASE", "")
    return dummy


@pytest.fixture
async def client(override_db, fake_llm):
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=API_BASE) as ac:
            yield ac

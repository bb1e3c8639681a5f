from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from app.core.errors import UpstreamServiceFailure, upstream_error_for_status
from app.services.llm.parsing import parse_analysis, parse_outfits
from app.services.llm.prompts import build_analyze_prompt, build_recommend_prompt, build_stylist_messages
from app.services.llm.types import (
    AnalyzeClothingInput,
    AnalyzeClothingOutput,
    LLMUsage,
    RecommendOutfitsInput,
    RecommendOutfitsOutput,
    StylistChatInput,
)

logger = logging.getLogger("uvicorn.error")


class GatewayChatStream:
    def __init__(self, response: httpx.Response, client: httpx.AsyncClient):
        self.response = response
        self._client = client

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self.response.aiter_bytes():
            yield chunk

    async def aclose(self) -> None:
        await self.response.aclose()
        await self._client.aclose()


class GatewayProvider:
    """OpenAI-compatible chat-completions gateway (JSON replies and event streams)."""

    name = "gateway"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        *,
        timeout_s: float = 60.0,
        stream_connect_timeout_s: float = 15.0,
        analyze_temperature: float = 0.7,
        recommend_temperature: float = 0.8,
        client: Optional[Any] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout_s = timeout_s
        self.stream_connect_timeout_s = stream_connect_timeout_s
        self.analyze_temperature = analyze_temperature
        self.recommend_temperature = recommend_temperature
        self.client = client or AsyncOpenAI(base_url=self.base_url, api_key=api_key, max_retries=0)
        self._http_transport = http_transport

    async def _chat(self, messages: List[Dict[str, Any]], temperature: float, where: str) -> Dict[str, Any]:
        start = time.perf_counter()
        logger.info("llm:gateway request op=%s model=%s", where, self.model)
        try:
            resp = await asyncio.wait_for(
                self.client.chat.completions.create(model=self.model, messages=messages, temperature=temperature),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            logger.warning("llm:gateway timeout op=%s model=%s timeout_s=%s", where, self.model, self.timeout_s)
            raise UpstreamServiceFailure(f"{where}_timeout", f"AI {where} timed out") from e
        except openai.APIStatusError as e:
            logger.error("llm:gateway error op=%s status=%s body=%.300s", where, e.status_code, e.message)
            raise upstream_error_for_status(e.status_code, where) from e
        except openai.APIError as e:
            logger.error("llm:gateway transport error op=%s reason=%s", where, e)
            raise UpstreamServiceFailure(f"{where}_failed", f"AI {where} failed") from e
        latency_ms = int((time.perf_counter() - start) * 1000)
        content = resp.choices[0].message.content if resp.choices else ""
        logger.info("llm:gateway response op=%s latency_ms=%s", where, latency_ms)
        usage = getattr(resp, "usage", None)
        return {
            "content": content or "",
            "latency_ms": latency_ms,
            "tokens_in": getattr(usage, "prompt_tokens", 0) if usage else 0,
            "tokens_out": getattr(usage, "completion_tokens", 0) if usage else 0,
        }

    def _usage(self, res: Dict[str, Any], fallback: bool) -> LLMUsage:
        return LLMUsage(
            model=self.model,
            tokens_in=res["tokens_in"] or 0,
            tokens_out=res["tokens_out"] or 0,
            latency_ms=res["latency_ms"],
            fallback=fallback,
        )

    async def analyze_clothing(self, payload: AnalyzeClothingInput) -> AnalyzeClothingOutput:
        messages = build_analyze_prompt(payload)
        res = await self._chat(messages, self.analyze_temperature, "analysis")
        analysis, fallback = parse_analysis(res["content"], payload.category)
        return AnalyzeClothingOutput(analysis=analysis, usage=self._usage(res, fallback))

    async def recommend_outfits(self, payload: RecommendOutfitsInput) -> RecommendOutfitsOutput:
        messages = build_recommend_prompt(payload)
        res = await self._chat(messages, self.recommend_temperature, "recommendation")
        outfits, fallback = parse_outfits(res["content"], payload.items)
        return RecommendOutfitsOutput(outfits=outfits, usage=self._usage(res, fallback))

    async def open_stylist_stream(self, payload: StylistChatInput) -> GatewayChatStream:
        client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(None, connect=self.stream_connect_timeout_s),
            transport=self._http_transport,
        )
        request = client.build_request(
            "POST",
            "/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"model": self.model, "messages": build_stylist_messages(payload), "stream": True},
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            await client.aclose()
            logger.error("llm:gateway stream connect failed reason=%s", e)
            raise UpstreamServiceFailure("chat_failed", "AI gateway error") from e
        if not response.is_success:
            body = await response.aread()
            await response.aclose()
            await client.aclose()
            logger.error("llm:gateway stream error status=%s body=%.300s", response.status_code, body.decode(errors="replace"))
            raise upstream_error_for_status(response.status_code, "chat")
        return GatewayChatStream(response, client)

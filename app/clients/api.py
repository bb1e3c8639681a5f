"""HTTP client for the closet API, used by the terminal stylist and scripts."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from app.core.errors import (
    ClosetError,
    NotFound,
    PaymentRequired,
    RateLimited,
    StreamStartFailure,
    TransientIO,
    Unauthenticated,
    UpstreamServiceFailure,
    ValidationFailure,
)

logger = logging.getLogger("app.clients")

_STATUS_ERRORS = {
    401: Unauthenticated,
    402: PaymentRequired,
    404: NotFound,
    422: ValidationFailure,
    429: RateLimited,
    503: TransientIO,
}


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    if not isinstance(data, dict):
        return {}
    if isinstance(data.get("detail"), str):
        # HTTPException bodies carry only a code
        return {"error": data["detail"]}
    return data


def error_for_response(response: httpx.Response) -> ClosetError:
    body = _error_body(response)
    code = body.get("error") if isinstance(body.get("error"), str) else None
    message = body.get("message") if isinstance(body.get("message"), str) else None
    cls = _STATUS_ERRORS.get(response.status_code)
    if cls is None:
        if response.status_code >= 500:
            return UpstreamServiceFailure(code, message, status_code=response.status_code)
        return ClosetError(code, message, status_code=response.status_code)
    return cls(code, message)


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    raise error_for_response(response)


def replace_item(items: List[Dict[str, Any]], updated: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Swap in the server's copy of an item, keeping list order. Unknown ids leave the list as is."""
    return [updated if item.get("id") == updated.get("id") else item for item in items]


class ClosetClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = 30.0,
        stream_connect_timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.stream_connect_timeout = stream_connect_timeout
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "ClosetClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("client: %s %s transport error reason=%s", method, path, e)
            raise UpstreamServiceFailure("network_error", "Could not reach the closet service.") from e
        _raise_for_status(response)
        return response.json()

    async def list_clothes(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/clothes")

    async def mark_worn(self, item_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/clothes/{item_id}/worn")

    async def insights(self) -> Dict[str, Any]:
        return await self._request("GET", "/clothes/insights")

    async def presign_upload(self, filename: str, content_type: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/clothes/uploads/presign", json={"filename": filename, "content_type": content_type}
        )

    async def add_clothing(self, category: str, *, key: Optional[str] = None, image_url: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("POST", "/clothes", json={"category": category, "key": key, "image_url": image_url})

    async def upload_clothing(self, filename: str, content: bytes, content_type: str, category: str) -> Dict[str, Any]:
        """Presign, PUT the photo straight to object storage, then have the API analyze and catalog it."""
        if not content:
            raise ValidationFailure("image_required", "Please select a file")
        slot = await self.presign_upload(filename, content_type)
        request = self._http.build_request("PUT", slot["upload_url"], content=content, headers=slot["headers"])
        # the presigned URL carries its own signature
        request.headers.pop("Authorization", None)
        try:
            put = await self._http.send(request)
        except httpx.HTTPError as e:
            logger.warning("client: upload transport error key=%s reason=%s", slot["key"], e)
            raise UpstreamServiceFailure("upload_failed", "Failed to upload item") from e
        if not put.is_success:
            logger.warning("client: upload rejected key=%s status=%s", slot["key"], put.status_code)
            raise UpstreamServiceFailure("upload_failed", "Failed to upload item")
        return await self.add_clothing(category, key=slot["key"])

    async def analyze(self, image_url: str, category: str) -> Dict[str, Any]:
        return await self._request("POST", "/analyze", json={"imageUrl": image_url, "category": category})

    async def recommend(self, occasion: Optional[str] = None, weather: Optional[str] = None) -> Dict[str, Any]:
        body = {k: v for k, v in (("occasion", occasion), ("weather", weather)) if v}
        return await self._request("POST", "/recommendations", json=body)

    async def get_profile(self) -> Optional[Dict[str, Any]]:
        try:
            return await self._request("GET", "/profile")
        except NotFound:
            return None

    async def save_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", "/profile", json=profile)

    @asynccontextmanager
    async def open_chat_stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[httpx.Response]:
        """POST the conversation and yield the streaming response once it is known to be good."""
        request = self._http.build_request(
            "POST",
            "/stylist/chat",
            json={"messages": messages},
            headers={"Accept": "text/event-stream"},
            timeout=httpx.Timeout(None, connect=self.stream_connect_timeout),
        )
        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning("client: stylist stream connect failed reason=%s", e)
            raise StreamStartFailure() from e
        try:
            if not response.is_success:
                await response.aread()
                raise StreamStartFailure() from error_for_response(response)
            if response.status_code == 204:
                raise StreamStartFailure()
            yield response
        finally:
            await response.aclose()

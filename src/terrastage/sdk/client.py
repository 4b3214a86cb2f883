from __future__ import annotations

from typing import Any

import httpx

from ..errors import RenderRequestError


def _json_body(res: httpx.Response) -> dict[str, Any]:
    try:
        data = res.json()
    except ValueError:
        return {"error": res.text}
    return data if isinstance(data, dict) else {"error": str(data)}


class RenderClient:
    """HTTP client for a running terrastage render proxy.

    Contract (current):
    - GET  /quota   -> {limit, used, remaining}
    - POST /render  (JSON {imageData, prompt?}) -> {imageUrl, limit, used, remaining}

    Non-2xx responses raise `RenderRequestError` carrying the decoded JSON body, so
    callers can still read `limit` / `remaining` from a 429.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        *,
        timeout_s: float = 200.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = float(timeout_s)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout_s, transport=self._transport)

    async def get_quota(self) -> dict[str, int]:
        async with self._client() as client:
            res = await client.get("/quota")
        data = _json_body(res)
        if res.status_code >= 400:
            raise RenderRequestError(res.status_code, data)
        return {k: int(data[k]) for k in ("limit", "used", "remaining") if isinstance(data.get(k), int)}

    async def render(self, image_data: str, *, prompt: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"imageData": image_data}
        if prompt is not None:
            body["prompt"] = prompt
        async with self._client() as client:
            res = await client.post("/render", json=body)
        data = _json_body(res)
        if res.status_code >= 400:
            raise RenderRequestError(res.status_code, data)
        return data

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ...config import Settings
from ...core.quota import QuotaStatus, QuotaStore, quota_status
from ...errors import InvalidInput, QuotaExceeded, RenderError, ServiceMisconfigured
from ...generator import ImageGenerator

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def client_key(request: Request) -> str:
    """Identify the caller by network origin headers.

    Order: first `x-forwarded-for` entry, then `x-real-ip`, then a shared `unknown` bucket.
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    return UNKNOWN_CLIENT


def mount_render_api(
    app: FastAPI,
    *,
    settings: Settings,
    quota_store: QuotaStore,
    generator: ImageGenerator,
) -> None:
    """Mount the quota query and the render proxy endpoints."""

    limit = int(settings.render_limit)

    def _status(request: Request) -> dict[str, int]:
        return quota_status(quota_store, client_key(request), limit).to_dict()

    # `/api/*` mirrors the paths the browser page used.
    @app.get("/quota")
    @app.get("/api/quota")
    def get_quota(request: Request) -> dict[str, int]:
        return _status(request)

    @app.get("/render")
    @app.get("/api/render")
    def get_render_quota(request: Request) -> dict[str, int]:
        return _status(request)

    @app.post("/render")
    @app.post("/api/render")
    async def render(request: Request) -> JSONResponse:
        key = client_key(request)
        try:
            return JSONResponse(await _render(key, request))
        except RenderError as err:
            return JSONResponse(err.to_dict(), status_code=err.status_code)
        except Exception:
            logger.exception("Failed to generate image")
            return JSONResponse({"error": "Failed to generate image."}, status_code=500)

    async def _render(key: str, request: Request) -> dict[str, Any]:
        before = quota_status(quota_store, key, limit)
        if before.remaining <= 0:
            logger.warning("Render limit reached for key %s", key)
            raise QuotaExceeded(limit=limit, used=before.used)

        body = await request.json()
        if not isinstance(body, dict):
            body = {}
        image_data = body.get("imageData")
        prompt = body.get("prompt")
        if not image_data or not isinstance(image_data, str):
            raise InvalidInput("Missing required field `imageData`.")

        logger.info("Incoming render request from %s", key)

        if not settings.api_key:
            logger.error("Missing Google Generative AI API key environment variable.")
            raise ServiceMisconfigured("Server is not configured with a Google Generative AI API key.")

        image = await generator.generate(image_data, prompt=prompt if isinstance(prompt, str) else None)

        after = QuotaStatus(limit=limit, used=quota_store.increment(key))
        return {"imageUrl": image.data_uri, **after.to_dict()}

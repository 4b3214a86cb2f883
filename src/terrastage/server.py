from __future__ import annotations

from fastapi import FastAPI

from .api import create_api_app
from .config import Settings
from .core.quota import QuotaStore
from .generator import ImageGenerator


def create_app(
    settings: Settings | None = None,
    *,
    quota_store: QuotaStore | None = None,
    generator: ImageGenerator | None = None,
) -> FastAPI:
    """Create the full app served by `terrastage` (currently the render proxy API)."""

    return create_api_app(settings, quota_store=quota_store, generator=generator)

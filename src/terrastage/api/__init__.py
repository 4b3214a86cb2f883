from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import Settings
from ..core.quota import QUOTA_STORE, QuotaStore
from ..core.viewport import INITIAL_VIEW_STATE
from ..generator import GeminiImageGenerator, ImageGenerator
from .routes import mount_render_api


def create_api_app(
    settings: Settings | None = None,
    *,
    quota_store: QuotaStore | None = None,
    generator: ImageGenerator | None = None,
) -> FastAPI:
    """Build the render proxy app.

    Defaults: settings from the environment, the process-wide quota store and the
    Gemini generator. Tests pass their own store and a fake generator.
    """

    s = settings if settings is not None else Settings.from_env()
    store = quota_store if quota_store is not None else QUOTA_STORE
    gen = generator if generator is not None else GeminiImageGenerator(s)

    app = FastAPI(title="terrastage", version="0.1.0")
    app.state.settings = s
    app.state.quota_store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(s.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    mount_render_api(app, settings=s, quota_store=store, generator=gen)

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/api/viewer/settings")
    def get_viewer_settings() -> dict:
        return {
            "initialViewState": INITIAL_VIEW_STATE.to_dict(),
            "mapStyle": s.map_style_url,
        }

    return app

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping


_API_KEY_ENV_VARS: tuple[str, ...] = (
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_GENAI_API_KEY",
    "NEXT_PUBLIC_GOOGLE_API_KEY",
)

DEFAULT_RENDER_LIMIT = 10
DEFAULT_MODEL_NAME = "gemini-3-pro-image-preview"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_UPSTREAM_TIMEOUT_S = 180.0

_DEFAULT_CORS_ORIGINS: tuple[str, ...] = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)


def _first_env(env: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = str(env.get(name, "") or "").strip()
        if value:
            return value
    return None


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = str(env.get(name, "") or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as ex:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from ex
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = str(env.get(name, "") or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as ex:
        raise ValueError(f"{name} must be a number, got {raw!r}") from ex
    if not value > 0:
        raise ValueError(f"{name} must be > 0")
    return value


@dataclass(frozen=True)
class Settings:
    """Server-side configuration for the render proxy.

    Notes:
    - Everything is read from environment variables in `from_env()`; nothing else in
      the package touches `os.environ` except the runner's attach URL.
    - `api_key=None` is a valid state: the quota endpoint keeps working and render
      requests fail with a configuration error.
    """

    api_key: str | None = None
    render_limit: int = DEFAULT_RENDER_LIMIT
    model_name: str = DEFAULT_MODEL_NAME
    api_base: str = DEFAULT_API_BASE
    upstream_timeout_s: float = DEFAULT_UPSTREAM_TIMEOUT_S
    map_style_url: str | None = None
    cors_origins: tuple[str, ...] = field(default_factory=lambda: _DEFAULT_CORS_ORIGINS)

    @property
    def generate_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/models/{self.model_name}:generateContent"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        e = os.environ if env is None else env

        map_style = _first_env(e, ("TERRASTAGE_MAP_STYLE_URL",))
        if map_style is None:
            maptiler_key = _first_env(e, ("MAPTILER_KEY", "NEXT_PUBLIC_MAPTILER_KEY"))
            if maptiler_key is not None:
                map_style = f"https://api.maptiler.com/maps/satellite/style.json?key={maptiler_key}"

        return cls(
            api_key=_first_env(e, _API_KEY_ENV_VARS),
            render_limit=_parse_int(e, "TERRASTAGE_RENDER_LIMIT", DEFAULT_RENDER_LIMIT),
            model_name=_first_env(e, ("TERRASTAGE_MODEL",)) or DEFAULT_MODEL_NAME,
            api_base=_first_env(e, ("TERRASTAGE_API_BASE",)) or DEFAULT_API_BASE,
            upstream_timeout_s=_parse_float(e, "TERRASTAGE_UPSTREAM_TIMEOUT", DEFAULT_UPSTREAM_TIMEOUT_S),
            map_style_url=map_style,
        )

from __future__ import annotations

import pytest

from terrastage.config import DEFAULT_MODEL_NAME, DEFAULT_RENDER_LIMIT, Settings


def test_defaults_without_environment() -> None:
    s = Settings.from_env({})

    assert s.api_key is None
    assert s.render_limit == DEFAULT_RENDER_LIMIT == 10
    assert s.model_name == DEFAULT_MODEL_NAME
    assert s.map_style_url is None
    assert s.generate_url == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-3-pro-image-preview:generateContent"
    )


def test_api_key_fallback_order() -> None:
    s = Settings.from_env({"GEMINI_API_KEY": "second", "GOOGLE_GENAI_API_KEY": "third"})
    assert s.api_key == "second"

    s = Settings.from_env({"GOOGLE_API_KEY": "  ", "NEXT_PUBLIC_GOOGLE_API_KEY": "last"})
    assert s.api_key == "last"


def test_overrides_and_map_style() -> None:
    s = Settings.from_env(
        {
            "TERRASTAGE_RENDER_LIMIT": "3",
            "TERRASTAGE_MODEL": "other-model",
            "TERRASTAGE_API_BASE": "http://upstream.test/v1/",
            "TERRASTAGE_UPSTREAM_TIMEOUT": "12.5",
            "MAPTILER_KEY": "abc",
        }
    )

    assert s.render_limit == 3
    assert s.upstream_timeout_s == 12.5
    assert s.generate_url == "http://upstream.test/v1/models/other-model:generateContent"
    assert s.map_style_url == "https://api.maptiler.com/maps/satellite/style.json?key=abc"

    explicit = Settings.from_env({"TERRASTAGE_MAP_STYLE_URL": "http://style.test/s.json", "MAPTILER_KEY": "abc"})
    assert explicit.map_style_url == "http://style.test/s.json"


def test_invalid_numbers_raise() -> None:
    with pytest.raises(ValueError):
        Settings.from_env({"TERRASTAGE_RENDER_LIMIT": "lots"})
    with pytest.raises(ValueError):
        Settings.from_env({"TERRASTAGE_RENDER_LIMIT": "-1"})
    with pytest.raises(ValueError):
        Settings.from_env({"TERRASTAGE_UPSTREAM_TIMEOUT": "0"})

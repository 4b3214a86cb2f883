from __future__ import annotations

import httpx

from terrastage.config import Settings
from terrastage.core.quota import InMemoryQuotaStore
from terrastage.generator import GeminiImageGenerator, GeneratedImage
from terrastage.server import create_app


def _skip(msg: str) -> None:  # pragma: no cover
    try:
        import pytest  # type: ignore

        pytest.skip(msg)
    except Exception:
        raise RuntimeError(msg)


_IMAGE = "data:image/png;base64,iVBORw0KGgo="


class _FakeGenerator:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[str] = []
        self.error = error

    async def generate(self, image_data: str, *, prompt: str | None = None) -> GeneratedImage:
        self.calls.append(image_data)
        if self.error is not None:
            raise self.error
        return GeneratedImage(mime_type="image/png", data="UkVOREVS")


def _client(*, limit: int = 3, api_key: str | None = "k", generator=None, store=None):
    try:
        from fastapi.testclient import TestClient
    except Exception as e:  # pragma: no cover
        _skip(f"TestClient not available ({e!r}); install test extras to run this test")
        return None

    settings = Settings(api_key=api_key, render_limit=limit)
    app = create_app(
        settings,
        quota_store=store if store is not None else InMemoryQuotaStore(),
        generator=generator if generator is not None else _FakeGenerator(),
    )
    return TestClient(app)


def test_quota_for_unseen_client() -> None:
    client = _client(limit=3)

    res = client.get("/quota")
    assert res.status_code == 200
    assert res.json() == {"limit": 3, "used": 0, "remaining": 3}

    # The render path answers GET with the same status.
    assert client.get("/render").json() == {"limit": 3, "used": 0, "remaining": 3}


def test_successful_renders_consume_quota_until_exhausted() -> None:
    gen = _FakeGenerator()
    client = _client(limit=3, generator=gen)

    for n in range(1, 4):
        res = client.post("/render", json={"imageData": _IMAGE})
        assert res.status_code == 200
        assert res.json() == {
            "imageUrl": "data:image/png;base64,UkVOREVS",
            "limit": 3,
            "used": n,
            "remaining": 3 - n,
        }

    res = client.post("/render", json={"imageData": _IMAGE})
    assert res.status_code == 429
    data = res.json()
    assert data["remaining"] == 0
    assert data["limit"] == 3
    assert data["used"] == 3
    assert "error" in data
    assert len(gen.calls) == 3


def test_quota_checked_before_payload_validation() -> None:
    store = InMemoryQuotaStore()
    store.increment("unknown")
    client = _client(limit=1, store=store)

    res = client.post("/render", json={})
    assert res.status_code == 429
    assert res.json()["remaining"] == 0


def test_missing_image_data_is_rejected_without_quota_change() -> None:
    gen = _FakeGenerator()
    client = _client(generator=gen)

    for body in ({}, {"imageData": ""}, {"imageData": 42}, {"prompt": "x"}):
        res = client.post("/render", json=body)
        assert res.status_code == 400
        assert res.json() == {"error": "Missing required field `imageData`."}

    assert client.get("/quota").json()["used"] == 0
    assert gen.calls == []


def test_missing_credential_is_a_server_error() -> None:
    gen = _FakeGenerator()
    client = _client(api_key=None, generator=gen)

    res = client.post("/render", json={"imageData": _IMAGE})
    assert res.status_code == 500
    assert "API key" in res.json()["error"]
    assert gen.calls == []
    assert client.get("/quota").json()["used"] == 0


def test_upstream_http_error_maps_to_502_without_quota_change() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    settings = Settings(api_key="k", render_limit=2)
    gen = GeminiImageGenerator(settings, transport=httpx.MockTransport(handler))
    client = _client(limit=2, generator=gen)

    res = client.post("/render", json={"imageData": _IMAGE})
    assert res.status_code == 502
    assert res.json() == {"error": "Gemini HTTP error", "status": 500}
    assert client.get("/quota").json()["used"] == 0


def test_upstream_without_image_maps_to_502_without_quota_change() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "nope"}]}}]})

    settings = Settings(api_key="k")
    gen = GeminiImageGenerator(settings, transport=httpx.MockTransport(handler))
    client = _client(generator=gen)

    res = client.post("/render", json={"imageData": _IMAGE})
    assert res.status_code == 502
    assert res.json() == {"error": "Gemini did not return an image."}
    assert client.get("/quota").json()["used"] == 0


def test_unexpected_failure_is_reported_as_500() -> None:
    gen = _FakeGenerator(error=httpx.ConnectError("unreachable"))
    client = _client(generator=gen)

    res = client.post("/render", json={"imageData": _IMAGE})
    assert res.status_code == 500
    assert res.json() == {"error": "Failed to generate image."}
    assert client.get("/quota").json()["used"] == 0


def test_invalid_json_body_is_reported_as_500() -> None:
    client = _client()

    res = client.post("/render", content=b"{not json", headers={"content-type": "application/json"})
    assert res.status_code == 500


def test_clients_are_keyed_by_forwarded_headers() -> None:
    store = InMemoryQuotaStore()
    client = _client(limit=1, store=store)

    ok = client.post("/render", json={"imageData": _IMAGE}, headers={"x-forwarded-for": "10.0.0.1 , 172.16.0.1"})
    assert ok.status_code == 200
    assert store.get("10.0.0.1") == 1

    again = client.post("/render", json={"imageData": _IMAGE}, headers={"x-forwarded-for": "10.0.0.1"})
    assert again.status_code == 429

    other = client.post("/render", json={"imageData": _IMAGE}, headers={"x-real-ip": "10.0.0.2"})
    assert other.status_code == 200
    assert store.get("10.0.0.2") == 1

    assert client.get("/quota").json() == {"limit": 1, "used": 0, "remaining": 1}
    assert client.get("/quota", headers={"x-real-ip": "10.0.0.2"}).json()["remaining"] == 0


def test_healthz_and_viewer_settings() -> None:
    client = _client()

    assert client.get("/healthz").json() == {"ok": True}

    settings = client.get("/api/viewer/settings").json()
    assert settings["initialViewState"]["longitude"] == -122.4194
    assert settings["initialViewState"]["pitch"] == 60.0
    assert settings["mapStyle"] is None


def test_api_prefixed_paths_share_the_same_quota() -> None:
    gen = _FakeGenerator()
    client = _client(limit=2, generator=gen)

    assert client.post("/render", json={"imageData": _IMAGE}).status_code == 200
    assert client.get("/api/quota").json() == {"limit": 2, "used": 1, "remaining": 1}

    res = client.post("/api/render", json={"imageData": _IMAGE})
    assert res.status_code == 200
    assert res.json()["remaining"] == 0
    assert client.get("/quota").json() == {"limit": 2, "used": 2, "remaining": 0}
    assert client.get("/api/render").json()["remaining"] == 0

    assert client.post("/render", json={"imageData": _IMAGE}).status_code == 429
    assert client.post("/api/render", json={"imageData": _IMAGE}).status_code == 429
    assert len(gen.calls) == 2

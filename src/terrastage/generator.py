from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from .config import Settings
from .errors import ServiceMisconfigured, UpstreamFailure
from .io.image import DEFAULT_MIME_TYPE, split_data_uri, to_data_uri

logger = logging.getLogger(__name__)


RENDER_PROMPT = (
    "Photorealistic aerial architectural visualization. Preserve the spatial layout, composition, "
    "and geographic positions from the input image. "
    "\n\n"
    "1. BUILDING: Render the 3D building massing model as a fully realized structure. Maintain its "
    "exact volumetric shape, roofline, footprint, and position from the input. Apply realistic facade "
    "materials, windows, doors, and roofing textures. Do not alter the structural form or location. "
    "\n\n"
    "2. IMMEDIATE SURROUNDINGS: Add a neat residential yard around the building with manicured lawn, "
    "small pathways, and low shrubs. This yard should visually separate the house from the surrounding "
    "landscape. "
    "\n\n"
    "3. ENVIRONMENT: Replace all flat 2D satellite imagery with fully rendered 3D elements while keeping "
    "their positions. Flat tree blobs must become detailed 3D trees with volumetric canopies and visible "
    "branches. Flat grass areas must become lush volumetric grass fields. Blurry roads must become "
    "textured 3D roads with depth. Other buildings visible in the satellite image must be rendered as 3D "
    "structures. Transform the entire scene from a flat aerial photo into a photorealistic 3D render - "
    "every element should look three-dimensional, not flat. Maintain approximate positions of all "
    "features. "
    "\n\n"
    "4. LIGHTING & QUALITY: Clear natural daylight. Sharp, realistic shadow casting. Strong ambient "
    "occlusion to ground buildings onto terrain. 8K resolution, ultra-sharp, crisp detail, tack-sharp "
    "focus throughout. Drone photography style."
)


@dataclass(frozen=True)
class GeneratedImage:
    mime_type: str
    data: str  # base64

    @property
    def data_uri(self) -> str:
        return to_data_uri(self.data, self.mime_type)


class ImageGenerator(Protocol):
    async def generate(self, image_data: str, *, prompt: str | None = None) -> GeneratedImage: ...


def build_request_body(mime_type: str, base64_data: str, prompt: str = RENDER_PROMPT) -> dict[str, Any]:
    return {
        "contents": [
            {
                "parts": [
                    {"text": prompt},
                    {"inlineData": {"mimeType": mime_type, "data": base64_data}},
                ]
            }
        ],
        "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
    }


def extract_image(payload: Any) -> GeneratedImage | None:
    """Return the first inline image of the first candidate, if any."""

    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return None
    for part in content.get("parts") or []:
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if isinstance(inline, dict) and inline.get("data"):
            mime = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_MIME_TYPE
            return GeneratedImage(mime_type=str(mime), data=str(inline["data"]))
    return None


class GeminiImageGenerator:
    """Forwards a captured frame to the Gemini `generateContent` endpoint.

    No retries: one call per request, and any failure is raised as `UpstreamFailure`
    (or propagates as an `httpx` error for transport problems).
    """

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    async def generate(self, image_data: str, *, prompt: str | None = None) -> GeneratedImage:
        api_key = self.settings.api_key
        if not api_key:
            raise ServiceMisconfigured("Server is not configured with a Google Generative AI API key.")

        mime_type, base64_data = split_data_uri(image_data)
        if prompt:
            # The instruction is fixed server-side; client prompts are not forwarded.
            logger.info("Ignoring client-supplied prompt (%d chars)", len(prompt))

        body = build_request_body(mime_type, base64_data)
        logger.info(
            "Gemini request payload summary: model=%s mimeType=%s imageBytes=%d imagePreview=%s",
            self.settings.model_name,
            mime_type,
            len(base64_data),
            base64_data[:64],
        )

        async with httpx.AsyncClient(timeout=self.settings.upstream_timeout_s, transport=self._transport) as client:
            res = await client.post(
                self.settings.generate_url,
                params={"key": api_key},
                json=body,
                headers={"Content-Type": "application/json"},
            )

        if res.status_code < 200 or res.status_code >= 300:
            logger.error("Gemini HTTP error %s: %s", res.status_code, res.text)
            raise UpstreamFailure("Gemini HTTP error", status=res.status_code)

        payload = res.json()
        image = extract_image(payload)
        if image is None:
            logger.error("No inlineData image returned: %s", payload)
            raise UpstreamFailure("Gemini did not return an image.")
        return image
